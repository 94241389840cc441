"""Tests for the EntryBuffer module."""

from remote_logger.buffer import EntryBuffer


def _filled(make_entry, n: int) -> EntryBuffer:
    buf = EntryBuffer()
    for i in range(n):
        buf.append(make_entry(i))
    return buf


class TestTakeBatch:
    def test_takes_oldest_first(self, make_entry):
        buf = _filled(make_entry, 5)
        batch = buf.take_batch(3)
        assert [e.message for e in batch] == ["log-0", "log-1", "log-2"]
        assert [e.message for e in buf.snapshot()] == ["log-3", "log-4"]

    def test_takes_fewer_when_short(self, make_entry):
        buf = _filled(make_entry, 2)
        assert len(buf.take_batch(10)) == 2
        assert len(buf) == 0

    def test_empty_buffer_gives_empty_batch(self):
        assert EntryBuffer().take_batch(5) == []


class TestRequeue:
    def test_requeue_goes_to_head_in_order(self, make_entry):
        buf = _filled(make_entry, 5)
        batch = buf.take_batch(3)
        buf.append(make_entry(99))

        buf.requeue(batch)

        assert [e.message for e in buf.snapshot()] == [
            "log-0", "log-1", "log-2", "log-3", "log-4", "log-99",
        ]

    def test_requeue_empty_batch_is_noop(self, make_entry):
        buf = _filled(make_entry, 2)
        buf.requeue([])
        assert len(buf) == 2


def test_drain_empties_buffer(make_entry):
    buf = _filled(make_entry, 3)
    drained = buf.drain()
    assert [e.message for e in drained] == ["log-0", "log-1", "log-2"]
    assert len(buf) == 0


def test_extend_appends_at_tail(make_entry):
    buf = _filled(make_entry, 1)
    buf.extend([make_entry(5), make_entry(6)])
    assert [e.message for e in buf.snapshot()] == ["log-0", "log-5", "log-6"]
