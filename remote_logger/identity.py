"""Identity store: persists the device id and the current session id."""

import json
import logging
import os
import threading
import uuid

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "remote_logger.device_id"
SESSION_ID_KEY = "remote_logger.session_id"


class KeyValueStore:
    """Small JSON-file key/value store with lock-protected access."""

    def __init__(self, path: str):
        self._path = path
        self._lock = threading.Lock()
        self._data: dict[str, str] = {}
        self._load()

    def _load(self):
        if not os.path.exists(self._path):
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load key/value store %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._data = {str(k): str(v) for k, v in data.items()}

    def _save(self):
        """Atomic write: write to tmp file then replace."""
        tmp_path = self._path + ".tmp"
        try:
            os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            # The in-memory value still serves this process.
            logger.warning("Failed to save key/value store %s: %s", self._path, e)
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as cleanup_error:
                    logger.warning("Failed to remove %s: %s", tmp_path, cleanup_error)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str):
        with self._lock:
            self._data[key] = value
            self._save()

    def set_if_absent(self, key: str, value: str) -> str:
        """Store *value* unless *key* already has one; return the stored value."""
        with self._lock:
            existing = self._data.get(key)
            if existing is not None:
                return existing
            self._data[key] = value
            self._save()
            return value


class IdentityStore:
    """Device and session identifiers backed by a KeyValueStore.

    The device id is written once and never replaced. The session id is
    created on first use, survives restarts, and only changes through
    rotate_session().
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._lock = threading.Lock()

    def device_id(self) -> str:
        existing = self._store.get(DEVICE_ID_KEY)
        if existing is not None:
            return existing
        return self._store.set_if_absent(DEVICE_ID_KEY, _new_id())

    def session_id(self) -> str:
        with self._lock:
            current = self._store.get(SESSION_ID_KEY)
            if current is None:
                current = _new_id()
                self._store.set(SESSION_ID_KEY, current)
            return current

    def rotate_session(self) -> str:
        new_id = _new_id()
        with self._lock:
            self._store.set(SESSION_ID_KEY, new_id)
        logger.info("Rotated session id to %s", new_id)
        return new_id


def _new_id() -> str:
    return str(uuid.uuid4()).upper()
