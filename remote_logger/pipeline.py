"""RemoteLogger: captures entries from any thread and ships them in batches.

Callers build entries on their own thread; every buffer mutation, flush
decision and failure requeue runs on one SerialWorker. Transport calls run on
a separate sender thread and hand their outcome back to the worker, so a slow
collector delays flushes without ever touching the buffer concurrently.
"""

import logging
import os
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional

from remote_logger.buffer import EntryBuffer
from remote_logger.config import LoggerConfiguration, validate_config
from remote_logger.device import DeviceInfoProvider, UNKNOWN
from remote_logger.factory import LogEntryFactory
from remote_logger.identity import IdentityStore, KeyValueStore
from remote_logger.metrics import PipelineMetrics
from remote_logger.models import LogContext, LogEntry, LogLevel
from remote_logger.overflow import OVERFLOW_THRESHOLD, OverflowStore
from remote_logger.scheduler import FlushScheduler
from remote_logger.transport import (
    DisabledTransport,
    HTTPTransport,
    Outcome,
    Transport,
)
from remote_logger.worker import SerialWorker

logger = logging.getLogger(__name__)

IDENTITY_FILENAME = "identity.json"

LEVEL_EMOJI = {
    LogLevel.ERROR: "❌",
    LogLevel.WARN: "⚠️",
    LogLevel.INFO: "ℹ️",
    LogLevel.DEBUG: "🔍",
}


def build_transport(config: LoggerConfiguration) -> Transport:
    if not config.transport_enabled:
        return DisabledTransport(announce=config.console_mirror)
    return HTTPTransport(
        config.endpoint,
        config.auth_token,
        max_retries=config.max_retries,
        timeout=config.request_timeout,
    )


def format_console_line(level: LogLevel, message: str, context: Optional[LogContext]) -> str:
    if context is None:
        return f"{LEVEL_EMOJI[level]} {message}"
    return f"{LEVEL_EMOJI[level]} [{context.file}:{context.line}] {context.function} - {message}"


class RemoteLogger:
    """One pipeline per process: create it at start-up and pass it around."""

    def __init__(
        self,
        storage_dir: str,
        app_version: str = UNKNOWN,
        build_number: str = UNKNOWN,
        transport_factory: Callable[[LoggerConfiguration], Transport] = build_transport,
        overflow_threshold: int = OVERFLOW_THRESHOLD,
        device_provider: Optional[DeviceInfoProvider] = None,
    ):
        os.makedirs(storage_dir, exist_ok=True)
        self._identity = IdentityStore(KeyValueStore(os.path.join(storage_dir, IDENTITY_FILENAME)))
        self._device = device_provider or DeviceInfoProvider(
            self._identity, app_version=app_version, build_number=build_number
        )
        self._factory = LogEntryFactory(self._device, self._identity)
        self._transport_factory = transport_factory
        self._overflow_threshold = overflow_threshold
        self._metrics = PipelineMetrics()

        self._config: Optional[LoggerConfiguration] = None
        self._transport: Optional[Transport] = None
        self._user_id: Optional[str] = None
        self._organization_id: Optional[str] = None
        self._context_lock = threading.Lock()
        self._closed = False
        self._closing = False

        # Worker-owned state
        self._buffer = EntryBuffer()
        self._overflow = OverflowStore(storage_dir)
        self._in_flight: Optional[list[LogEntry]] = None
        self._in_flight_future = None
        self._pending_trigger: Optional[str] = None

        recovered = self._overflow.load_and_clear()
        if recovered:
            self._buffer.extend(recovered)
            self._metrics.record_recovered(len(recovered))

        self._sender = ThreadPoolExecutor(max_workers=1, thread_name_prefix="remote-logger-send")
        self._worker = SerialWorker()
        self._scheduler = FlushScheduler(self._timer_flush)
        self._worker.start()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def configured(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> Optional[LoggerConfiguration]:
        return self._config

    @property
    def metrics(self) -> PipelineMetrics:
        return self._metrics

    @property
    def pending_count(self) -> int:
        return len(self._buffer)

    @property
    def device_id(self) -> str:
        return self._identity.device_id()

    @property
    def session_id(self) -> str:
        return self._identity.session_id()

    @property
    def overflow_path(self) -> str:
        return self._overflow.path

    def configure(self, config: LoggerConfiguration) -> bool:
        """Start shipping with *config*.

        An invalid config is logged and ignored; the pipeline stays in
        console-only mode.
        """
        if self._closed:
            return False
        problems = validate_config(config)
        if problems:
            logger.warning("Invalid logger configuration, staying console-only: %s", "; ".join(problems))
            return False

        try:
            transport = self._transport_factory(config)
        except Exception:
            logger.exception("Failed to build transport, staying console-only")
            return False

        self._worker.submit(self._install, config, transport)
        self._config = config
        self._scheduler.start(config.flush_interval)

        self._log(LogLevel.INFO, "RemoteLogger configured", {
            "endpoint": config.endpoint,
            "batchSize": str(config.batch_size),
            "flushInterval": str(config.flush_interval),
        }, stacklevel=1)
        return True

    def set_user_context(self, user_id: Optional[str] = None, organization_id: Optional[str] = None):
        with self._context_lock:
            self._user_id = user_id
            self._organization_id = organization_id

    def error(self, message: str, metadata: Optional[dict] = None) -> LogEntry:
        return self._log(LogLevel.ERROR, message, metadata, stacklevel=2)

    def warn(self, message: str, metadata: Optional[dict] = None) -> LogEntry:
        return self._log(LogLevel.WARN, message, metadata, stacklevel=2)

    def info(self, message: str, metadata: Optional[dict] = None) -> LogEntry:
        return self._log(LogLevel.INFO, message, metadata, stacklevel=2)

    def debug(self, message: str, metadata: Optional[dict] = None) -> LogEntry:
        return self._log(LogLevel.DEBUG, message, metadata, stacklevel=2)

    def record(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        metadata: Optional[dict] = None,
    ) -> LogEntry:
        """Build an entry, mirror it to the console, and queue it for shipping.

        Before configure() (or below min_level) the entry is mirrored only.
        """
        config = self._config
        entry = self._factory.record(level, message, context, metadata)

        if config is None or config.console_mirror:
            print(format_console_line(level, entry.message, context))

        if config is None or self._closed or level < config.min_level:
            return entry

        self._worker.submit(self._enqueue, entry)
        return entry

    def log_network_request(
        self,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> LogEntry:
        metadata = {"method": method, "url": url}
        if status_code is not None:
            metadata["statusCode"] = str(status_code)
        if error is not None:
            metadata["error"] = str(error)
            return self._log(LogLevel.ERROR, "Network request failed", metadata, stacklevel=2)
        return self._log(LogLevel.DEBUG, "Network request completed", metadata, stacklevel=2)

    def start_new_session(self) -> str:
        session_id = self._identity.rotate_session()
        self._log(LogLevel.INFO, "New session started", None, stacklevel=2)
        return session_id

    def flush(self):
        """Ship up to one batch now. Returns immediately."""
        self._worker.submit(self._flush_now, "manual")

    def pending_entries(self, timeout: float = 5.0) -> list[LogEntry]:
        """Copy of the buffer, taken on the worker thread."""
        result: list[LogEntry] = []
        done = threading.Event()

        def _copy():
            result.extend(self._buffer.snapshot())
            done.set()

        if not self._worker.submit(_copy):
            return self._buffer.snapshot()
        done.wait(timeout=timeout)
        return result

    def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Block until the worker queue is empty and no batch is in flight."""
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            if not self._worker.barrier(timeout=remaining):
                return False
            future = self._in_flight_future
            if future is None:
                return True
            wait([future], timeout=max(deadline - time.monotonic(), 0))

    def close(self, timeout: float = 10.0):
        """Final flush, then spill whatever is left to the overflow file."""
        if self._closed:
            return
        self._closed = True
        self._scheduler.stop()

        self._worker.submit(self._begin_drain)
        if not self.wait_until_idle(timeout=timeout):
            logger.warning("Timed out waiting for in-flight logs during close")
        self._worker.submit(self._persist_remaining)
        self._worker.stop(timeout=timeout)
        self._sender.shutdown(wait=False)
        if self._transport is not None:
            self._transport.close()

    # ------------------------------------------------------------------
    # Caller-side helpers
    # ------------------------------------------------------------------

    def _log(self, level: LogLevel, message: str, metadata: Optional[dict], stacklevel: int) -> LogEntry:
        context = self._caller_context(stacklevel + 1)
        return self.record(level, message, context, metadata)

    def _caller_context(self, depth: int) -> LogContext:
        """Context for the frame *depth* levels above this one."""
        with self._context_lock:
            user_id, organization_id = self._user_id, self._organization_id
        try:
            frame = sys._getframe(depth)
        except ValueError:
            return LogContext(user_id=user_id, organization_id=organization_id)
        return LogContext(
            file=os.path.basename(frame.f_code.co_filename),
            function=frame.f_code.co_name,
            line=frame.f_lineno,
            user_id=user_id,
            organization_id=organization_id,
        )

    def _timer_flush(self):
        self._worker.submit(self._flush_now, "timer")

    # ------------------------------------------------------------------
    # Worker tasks
    # ------------------------------------------------------------------

    def _install(self, config: LoggerConfiguration, transport: Transport):
        previous = self._transport
        self._transport = transport
        if previous is not None and previous is not transport:
            previous.close()
        if len(self._buffer) >= config.batch_size:
            self._flush_now("size")

    def _enqueue(self, entry: LogEntry):
        self._buffer.append(entry)
        config = self._config
        if config is not None and len(self._buffer) >= config.batch_size:
            self._flush_now("size")

    def _flush_now(self, trigger: str):
        config = self._config
        if config is None or self._transport is None or not len(self._buffer):
            return
        if self._in_flight is not None:
            # One batch at a time keeps requeued entries ahead of newer ones.
            self._pending_trigger = self._pending_trigger or trigger
            return

        batch = self._buffer.take_batch(config.batch_size)
        self._metrics.record_flush(trigger)
        self._in_flight = batch
        self._in_flight_future = self._sender.submit(self._send, self._transport, batch)

    def _send(self, transport: Transport, batch: list[LogEntry]):
        """Runs on the sender thread; the outcome goes back to the worker."""
        start = time.monotonic()
        try:
            outcome = transport.send(batch)
        except Exception:
            logger.exception("Transport raised while sending %d logs", len(batch))
            outcome = Outcome.TRANSPORT_ERROR
        elapsed_ms = (time.monotonic() - start) * 1000

        if not self._worker.submit(self._handle_outcome, batch, outcome, elapsed_ms):
            if self._in_flight is batch:
                logger.error("Pipeline stopped; dropping %d logs with outcome %s", len(batch), outcome.value)

    def _handle_outcome(self, batch: list[LogEntry], outcome: Outcome, elapsed_ms: float):
        if batch is not self._in_flight:
            # Already written to the overflow file by close().
            logger.debug("Ignoring late %s outcome for %d saved logs", outcome.value, len(batch))
            return
        self._in_flight = None
        self._in_flight_future = None
        self._metrics.record_send(outcome, len(batch), elapsed_ms)

        if outcome is Outcome.DELIVERED:
            logger.debug("Sent batch of %d logs in %.1fms", len(batch), elapsed_ms)
            config = self._config
            trigger = self._pending_trigger
            self._pending_trigger = None
            if config is not None and len(self._buffer) >= config.batch_size:
                self._flush_now("size")
            elif trigger is not None or self._closing:
                self._flush_now(trigger or "manual")
            return

        if outcome is Outcome.AUTH_FAILED:
            logger.error("Authentication failed for batch of %d logs, requeueing", len(batch))
        else:
            logger.warning("Batch of %d logs not delivered (%s), requeueing", len(batch), outcome.value)

        self._pending_trigger = None
        self._buffer.requeue(batch)
        if len(self._buffer) > self._overflow_threshold:
            self._spill()

    def _spill(self):
        entries = self._buffer.drain()
        persisted = self._overflow.persist(entries)
        self._metrics.record_overflow(len(entries), persisted)
        if not persisted:
            logger.error("Dropped %d logs after overflow write failure", len(entries))

    def _begin_drain(self):
        self._closing = True
        self._flush_now("manual")

    def _persist_remaining(self):
        entries = self._buffer.drain()
        if self._in_flight is not None:
            # A send outlived close(); its batch is older than the buffer.
            entries = self._in_flight + entries
            self._in_flight = None
            self._in_flight_future = None
        if entries:
            if self._overflow.persist(entries):
                logger.info("Saved %d unsent logs for the next start", len(entries))
            else:
                logger.error("Lost %d unsent logs at shutdown", len(entries))
