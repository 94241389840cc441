import datetime
import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from remote_logger.config import LoggerConfiguration
from remote_logger.models import DeviceInfo, LogContext, LogEntry, LogLevel
from remote_logger.transport import Outcome


class ScriptedTransport:
    """Transport double that records batches and replays scripted outcomes.

    Outcomes are popped from *outcomes*; once empty, *default* is returned.
    While *gate* is set to an Event, every send blocks until it is set.
    """

    def __init__(self, outcomes=None, default=Outcome.DELIVERED, gate=None):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.gate = gate
        self._lock = threading.Lock()
        self.batches: list[list[LogEntry]] = []
        self.started = threading.Event()
        self.closed = False

    def send(self, batch):
        with self._lock:
            self.batches.append(list(batch))
        self.started.set()
        gate = self.gate
        if gate is not None:
            gate.wait(timeout=5.0)
        with self._lock:
            return self.outcomes.pop(0) if self.outcomes else self.default

    def close(self):
        self.closed = True

    @property
    def messages(self) -> list[list[str]]:
        return [[e.message for e in batch] for batch in self.batches]


class _Collector(HTTPServer):
    def __init__(self):
        super().__init__(("127.0.0.1", 0), _CollectorHandler)
        self.status = 200
        self.requests: list[dict] = []


class _CollectorHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length)
        self.server.requests.append({
            "path": self.path,
            "headers": dict(self.headers),
            "body": json.loads(body),
        })
        self.send_response(self.server.status)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def collector():
    """Run a loopback collector on an ephemeral port; yield (server, endpoint)."""
    server = _Collector()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    yield server, f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def device_info():
    return DeviceInfo(
        device_id="DEVICE-1",
        model="iPhone 15 Pro",
        os_version="17.4",
        app_version="1.2.0",
        build_number="42",
    )


@pytest.fixture
def make_entry(device_info):
    def _make(i: int, level=LogLevel.INFO, **overrides) -> LogEntry:
        fields = dict(
            timestamp=datetime.datetime(2024, 1, 15, 10, 30, i % 60, (1000 * i) % 1_000_000,
                                        tzinfo=datetime.timezone.utc),
            level=level,
            message=f"log-{i}",
            device_info=device_info,
            context=LogContext(file="views.py", function="load", line=10 + i,
                               user_id="user-1", organization_id="orga-1"),
            session_id="SESSION-1",
            metadata={"seq": str(i)},
        )
        fields.update(overrides)
        return LogEntry(**fields)

    return _make


@pytest.fixture
def config():
    return LoggerConfiguration(
        endpoint="https://collector.example.com",
        auth_token="token-123",
        batch_size=50,
        flush_interval=3600.0,
        console_mirror=False,
    )


@pytest.fixture(autouse=True)
def no_proxy_for_loopback(monkeypatch):
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")
