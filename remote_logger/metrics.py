"""Pipeline metrics — thread-safe counters for flushes, deliveries and spills."""

import threading
import time

from remote_logger.transport import Outcome


class PipelineMetrics:
    """Counts what the pipeline did with its entries."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._flush_triggers: dict[str, int] = {"size": 0, "timer": 0, "manual": 0}
        self._batches_delivered: int = 0
        self._entries_delivered: int = 0
        self._failures: dict[str, int] = {
            o.value: 0 for o in Outcome if o is not Outcome.DELIVERED
        }
        self._entries_requeued: int = 0
        self._overflow_events: int = 0
        self._entries_overflowed: int = 0
        self._entries_lost: int = 0
        self._entries_recovered: int = 0
        self._send_times: list[float] = []
        self._start_time = time.monotonic()

    def record_flush(self, trigger: str) -> None:
        with self._lock:
            self._flush_triggers[trigger] = self._flush_triggers.get(trigger, 0) + 1

    def record_send(self, outcome: Outcome, batch_size: int, send_time_ms: float) -> None:
        """Record the result of one transport call.

        Args:
            outcome: What the transport reported.
            batch_size: Number of entries in the batch.
            send_time_ms: Wall time of the transport call, in milliseconds.
        """
        with self._lock:
            self._send_times.append(send_time_ms)
            if outcome is Outcome.DELIVERED:
                self._batches_delivered += 1
                self._entries_delivered += batch_size
            else:
                self._failures[outcome.value] += 1
                self._entries_requeued += batch_size

    def record_overflow(self, count: int, persisted: bool) -> None:
        with self._lock:
            self._overflow_events += 1
            if persisted:
                self._entries_overflowed += count
            else:
                self._entries_lost += count

    def record_recovered(self, count: int) -> None:
        with self._lock:
            self._entries_recovered += count

    def snapshot(self) -> dict:
        """Return a point-in-time copy of all counters."""
        with self._lock:
            send_times = list(self._send_times)
            avg_send = sum(send_times) / len(send_times) if send_times else 0.0
            return {
                "flush_triggers": dict(self._flush_triggers),
                "batches_delivered": self._batches_delivered,
                "entries_delivered": self._entries_delivered,
                "failures": dict(self._failures),
                "entries_requeued": self._entries_requeued,
                "overflow_events": self._overflow_events,
                "entries_overflowed": self._entries_overflowed,
                "entries_lost": self._entries_lost,
                "entries_recovered": self._entries_recovered,
                "avg_send_time_ms": avg_send,
                "p95_send_time_ms": self._percentile(send_times, 95),
                "uptime_seconds": time.monotonic() - self._start_time,
            }

    @staticmethod
    def _percentile(data: list, pct: float) -> float:
        """Interpolated percentile of *data*, or 0.0 when empty."""
        if not data:
            return 0.0

        sorted_data = sorted(data)
        n = len(sorted_data)

        if n == 1:
            return float(sorted_data[0])

        idx = (pct / 100) * (n - 1)
        lower = int(idx)
        upper = lower + 1
        fraction = idx - lower

        if upper >= n:
            return float(sorted_data[-1])

        return float(sorted_data[lower] + fraction * (sorted_data[upper] - sorted_data[lower]))
