"""Tests for the demo entry point."""

import json
import threading

from main import generate_sample_logs, main
from remote_logger.overflow import OVERFLOW_FILENAME


class _Recorder:
    def __init__(self):
        self.calls = []

    def __getattr__(self, level):
        return lambda message, metadata=None: self.calls.append((level, message))


def test_generate_sample_logs_rate():
    recorder = _Recorder()
    generate_sample_logs(recorder, logs_per_second=4, run_time=1, shutdown=threading.Event())
    assert len(recorder.calls) == 4
    assert {level for level, _ in recorder.calls} <= {"debug", "info", "warn", "error"}


def test_generate_sample_logs_stops_on_shutdown():
    recorder = _Recorder()
    shutdown = threading.Event()
    shutdown.set()
    generate_sample_logs(recorder, logs_per_second=10, run_time=5, shutdown=shutdown)
    assert recorder.calls == []


def test_main_with_transport_disabled_keeps_logs_on_disk(tmp_path, monkeypatch):
    monkeypatch.delenv("REMOTE_LOGGER_CONFIG", raising=False)
    main([
        "--storage-dir", str(tmp_path),
        "--endpoint", "https://collector.example.com",
        "--auth-token", "demo",
        "--disable-transport",
        "--no-console",
        "--logs-per-second", "3",
        "--run-time", "1",
    ])

    data = json.loads((tmp_path / OVERFLOW_FILENAME).read_text())
    assert [d["message"] for d in data][0] == "RemoteLogger configured"
    assert len(data) == 4
