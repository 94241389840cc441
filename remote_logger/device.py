"""Device info snapshots taken at entry-creation time."""

import platform

from remote_logger.identity import IdentityStore
from remote_logger.models import DeviceInfo

UNKNOWN = "Unknown"

# Hardware identifier -> marketing name. Unlisted identifiers pass through.
MODEL_MAP = {
    # iPhone 15 series
    "iPhone15,3": "iPhone 15 Pro Max",
    "iPhone15,2": "iPhone 15 Pro",
    "iPhone15,5": "iPhone 15 Plus",
    "iPhone15,4": "iPhone 15",
    # iPhone 14 series
    "iPhone14,8": "iPhone 14 Plus",
    "iPhone14,7": "iPhone 14",
    "iPhone14,3": "iPhone 14 Pro Max",
    "iPhone14,2": "iPhone 14 Pro",
    # iPhone 13 series
    "iPhone14,5": "iPhone 13",
    "iPhone14,4": "iPhone 13 mini",
    "iPhone14,6": "iPhone 13 Pro Max",
    "iPhone13,3": "iPhone 13 Pro",
    # iPad
    "iPad13,1": "iPad Air (4th gen)",
    "iPad13,2": "iPad Air (4th gen)",
    # Simulator
    "arm64": "Simulator (Apple Silicon)",
    "x86_64": "Simulator (Intel)",
}


def resolve_model(identifier: str) -> str:
    return MODEL_MAP.get(identifier, identifier)


class DeviceInfoProvider:
    """Builds a fresh DeviceInfo for every entry."""

    def __init__(
        self,
        identity: IdentityStore,
        app_version: str = UNKNOWN,
        build_number: str = UNKNOWN,
        hardware_identifier: str | None = None,
        os_version: str | None = None,
    ):
        self._identity = identity
        self._app_version = app_version
        self._build_number = build_number
        self._hardware_identifier = hardware_identifier or platform.machine() or UNKNOWN
        self._os_version = os_version or platform.release() or UNKNOWN

    def snapshot(self) -> DeviceInfo:
        return DeviceInfo(
            device_id=self._identity.device_id(),
            model=resolve_model(self._hardware_identifier),
            os_version=self._os_version,
            app_version=self._app_version,
            build_number=self._build_number,
        )
