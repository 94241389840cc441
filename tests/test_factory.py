"""Tests for the log entry factory."""

import datetime

from remote_logger.device import DeviceInfoProvider
from remote_logger.factory import LogEntryFactory
from remote_logger.identity import IdentityStore, KeyValueStore
from remote_logger.models import LogContext, LogLevel

FIXED_NOW = datetime.datetime(2024, 3, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


def _factory(tmp_path, clock=lambda: FIXED_NOW):
    identity = IdentityStore(KeyValueStore(str(tmp_path / "id.json")))
    device = DeviceInfoProvider(identity, app_version="1.0", build_number="5",
                                hardware_identifier="iPhone14,7", os_version="16.0")
    return identity, LogEntryFactory(device, identity, clock=clock)


def test_record_enriches_entry(tmp_path):
    identity, factory = _factory(tmp_path)
    context = LogContext(file="login.py", function="submit", line=12)

    entry = factory.record(LogLevel.WARN, "Slow login", context=context,
                           metadata={"elapsed": "2.5"})

    assert entry.timestamp == FIXED_NOW
    assert entry.level is LogLevel.WARN
    assert entry.message == "Slow login"
    assert entry.context == context
    assert entry.session_id == identity.session_id()
    assert entry.device_info.device_id == identity.device_id()
    assert entry.device_info.model == "iPhone 14"
    assert entry.metadata == {"elapsed": "2.5"}


def test_metadata_values_are_stringified(tmp_path):
    _, factory = _factory(tmp_path)
    entry = factory.record(LogLevel.INFO, "count", metadata={"n": 3, "ok": True})
    assert entry.metadata == {"n": "3", "ok": "True"}


def test_metadata_is_copied(tmp_path):
    _, factory = _factory(tmp_path)
    tags = {"k": "v"}
    entry = factory.record(LogLevel.INFO, "copy", metadata=tags)
    tags["k"] = "changed"
    assert entry.metadata == {"k": "v"}


def test_optional_parts_default_to_empty(tmp_path):
    _, factory = _factory(tmp_path)
    entry = factory.record(LogLevel.DEBUG, "bare")
    assert entry.context is None
    assert entry.metadata == {}


def test_uses_current_session_after_rotation(tmp_path):
    identity, factory = _factory(tmp_path)
    before = factory.record(LogLevel.INFO, "before")
    identity.rotate_session()
    after = factory.record(LogLevel.INFO, "after")

    assert before.session_id != after.session_id
    assert after.session_id == identity.session_id()


def test_default_clock_is_utc(tmp_path):
    identity = IdentityStore(KeyValueStore(str(tmp_path / "id.json")))
    factory = LogEntryFactory(DeviceInfoProvider(identity), identity)
    entry = factory.record(LogLevel.INFO, "now")
    assert entry.timestamp.utcoffset() == datetime.timedelta(0)
