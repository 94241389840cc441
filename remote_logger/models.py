"""Log entry model — levels, device snapshot, call-site context, wire form."""

import datetime
import functools
import types
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


@functools.total_ordering
class LogLevel(Enum):
    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __lt__(self, other):
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity < other.severity

    @classmethod
    def parse(cls, value: str) -> "LogLevel":
        """Parse a level name case-insensitively; WARNING is accepted for WARN."""
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        return cls(name)


_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


@dataclass(frozen=True)
class DeviceInfo:
    device_id: str
    model: str
    os_version: str
    app_version: str
    build_number: str


@dataclass(frozen=True)
class LogContext:
    file: Optional[str] = None
    function: Optional[str] = None
    line: Optional[int] = None
    user_id: Optional[str] = None
    organization_id: Optional[str] = None


@dataclass(frozen=True)
class LogEntry:
    level: LogLevel
    message: str
    device_info: DeviceInfo
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    context: Optional[LogContext] = None
    session_id: Optional[str] = None
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Read-only view over a private copy.
        object.__setattr__(self, "metadata", types.MappingProxyType(dict(self.metadata)))


# ------------------------------------------------------------------
# Wire form
# ------------------------------------------------------------------

def _device_to_dict(info: DeviceInfo) -> dict:
    return {
        "deviceId": info.device_id,
        "model": info.model,
        "osVersion": info.os_version,
        "appVersion": info.app_version,
        "buildNumber": info.build_number,
    }


def _context_to_dict(context: LogContext) -> dict:
    return {
        "file": context.file,
        "function": context.function,
        "line": context.line,
        "userId": context.user_id,
        "organizationId": context.organization_id,
    }


def entry_to_dict(entry: LogEntry) -> dict:
    """Convert a LogEntry to the JSON-ready dict shipped to the collector."""
    return {
        "timestamp": entry.timestamp.isoformat(),
        "level": entry.level.value,
        "message": entry.message,
        "deviceInfo": _device_to_dict(entry.device_info),
        "context": _context_to_dict(entry.context) if entry.context else None,
        "sessionId": entry.session_id,
        "metadata": dict(entry.metadata),
    }


def entry_from_dict(data: dict) -> LogEntry:
    """Rebuild a LogEntry from the dict produced by *entry_to_dict*.

    Raises KeyError or ValueError on malformed input.
    """
    device = data["deviceInfo"]
    ctx = data.get("context")
    timestamp = datetime.datetime.fromisoformat(data["timestamp"])
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)

    return LogEntry(
        timestamp=timestamp,
        level=LogLevel(data["level"]),
        message=data["message"],
        device_info=DeviceInfo(
            device_id=device["deviceId"],
            model=device["model"],
            os_version=device["osVersion"],
            app_version=device["appVersion"],
            build_number=device["buildNumber"],
        ),
        context=LogContext(
            file=ctx.get("file"),
            function=ctx.get("function"),
            line=ctx.get("line"),
            user_id=ctx.get("userId"),
            organization_id=ctx.get("organizationId"),
        ) if ctx is not None else None,
        session_id=data.get("sessionId"),
        metadata=dict(data.get("metadata") or {}),
    )


def build_batch_payload(entries: list[LogEntry]) -> dict:
    """Wrap a batch in the collector's request envelope."""
    return {"logs": [entry_to_dict(e) for e in entries]}
