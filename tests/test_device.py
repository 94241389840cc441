"""Tests for device model resolution and device snapshots."""

from remote_logger.device import MODEL_MAP, DeviceInfoProvider, resolve_model
from remote_logger.identity import IdentityStore, KeyValueStore


def test_known_identifiers_resolve():
    assert resolve_model("iPhone15,2") == "iPhone 15 Pro"
    assert resolve_model("iPhone14,4") == "iPhone 13 mini"
    assert resolve_model("iPad13,1") == "iPad Air (4th gen)"
    assert resolve_model("arm64") == "Simulator (Apple Silicon)"


def test_unknown_identifier_passes_through():
    assert "iPhone99,9" not in MODEL_MAP
    assert resolve_model("iPhone99,9") == "iPhone99,9"


class TestDeviceInfoProvider:
    def _provider(self, tmp_path, **kwargs):
        identity = IdentityStore(KeyValueStore(str(tmp_path / "id.json")))
        return identity, DeviceInfoProvider(identity, **kwargs)

    def test_snapshot_fields(self, tmp_path):
        identity, provider = self._provider(
            tmp_path,
            app_version="2.0.1",
            build_number="77",
            hardware_identifier="iPhone15,3",
            os_version="17.5",
        )
        info = provider.snapshot()

        assert info.device_id == identity.device_id()
        assert info.model == "iPhone 15 Pro Max"
        assert info.os_version == "17.5"
        assert info.app_version == "2.0.1"
        assert info.build_number == "77"

    def test_defaults_are_filled_from_platform(self, tmp_path):
        _, provider = self._provider(tmp_path)
        info = provider.snapshot()
        assert info.model
        assert info.os_version
        assert info.app_version == "Unknown"
        assert info.build_number == "Unknown"

    def test_each_snapshot_is_a_new_object(self, tmp_path):
        _, provider = self._provider(tmp_path, hardware_identifier="x86_64")
        first, second = provider.snapshot(), provider.snapshot()
        assert first == second
        assert first is not second
