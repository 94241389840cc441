"""Pending-entry buffer. Owned by the serialized worker; not locked."""

from collections import deque

from remote_logger.models import LogEntry


class EntryBuffer:
    """FIFO queue of entries awaiting delivery.

    Only the worker thread mutates it, so it carries no lock of its own.
    """

    def __init__(self):
        self._entries: deque[LogEntry] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: LogEntry):
        self._entries.append(entry)

    def extend(self, entries: list[LogEntry]):
        self._entries.extend(entries)

    def take_batch(self, max_size: int) -> list[LogEntry]:
        """Remove and return up to *max_size* entries from the head."""
        count = min(max_size, len(self._entries))
        return [self._entries.popleft() for _ in range(count)]

    def requeue(self, batch: list[LogEntry]):
        """Put a failed batch back at the head, keeping its order."""
        self._entries.extendleft(reversed(batch))

    def drain(self) -> list[LogEntry]:
        entries = list(self._entries)
        self._entries.clear()
        return entries

    def snapshot(self) -> list[LogEntry]:
        return list(self._entries)
