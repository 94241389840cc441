"""Builds log entries enriched with device, session and time."""

import datetime
from typing import Callable, Optional

from remote_logger.device import DeviceInfoProvider
from remote_logger.identity import IdentityStore
from remote_logger.models import LogContext, LogEntry, LogLevel


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class LogEntryFactory:
    def __init__(
        self,
        device: DeviceInfoProvider,
        identity: IdentityStore,
        clock: Callable[[], datetime.datetime] = _utc_now,
    ):
        self._device = device
        self._identity = identity
        self._clock = clock

    def record(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        metadata: Optional[dict] = None,
    ) -> LogEntry:
        """Build one immutable entry. Metadata values are coerced to str."""
        return LogEntry(
            timestamp=self._clock(),
            level=level,
            message=str(message),
            device_info=self._device.snapshot(),
            context=context,
            session_id=self._identity.session_id(),
            metadata={str(k): str(v) for k, v in (metadata or {}).items()},
        )
