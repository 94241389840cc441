"""Serialized worker: a single consumer thread draining a task queue."""

import logging
import queue
import threading

logger = logging.getLogger(__name__)


class SerialWorker:
    """Runs submitted callables one at a time, in submission order.

    Producers never block: submit() only puts onto an unbounded queue.
    A None item is the poison pill that ends the loop.
    """

    def __init__(self, name: str = "remote-logger-worker"):
        self._queue: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = False
        self._stopped = False
        self._lock = threading.Lock()

    def start(self):
        with self._lock:
            if not self._started:
                self._started = True
                self._thread.start()

    def submit(self, fn, *args) -> bool:
        """Queue *fn(*args)*. Returns False once the worker has been stopped."""
        if self._stopped:
            return False
        self._queue.put((fn, args))
        return True

    def barrier(self, timeout: float | None = None) -> bool:
        """Block until every task submitted before this call has run."""
        done = threading.Event()
        if not self.submit(done.set):
            return True
        return done.wait(timeout=timeout)

    @property
    def on_worker_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def stop(self, timeout: float | None = 5.0):
        """Finish queued tasks, then end the thread."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        self._queue.put(None)
        if self._started and not self.on_worker_thread:
            self._thread.join(timeout=timeout)

    def _run(self):
        while True:
            item = self._queue.get()
            if item is None:
                return
            fn, args = item
            try:
                fn(*args)
            except Exception:
                logger.exception("Worker task %s failed", getattr(fn, "__name__", fn))
