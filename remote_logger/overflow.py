"""Overflow persistence — spills the buffer to disk and reloads it at startup."""

import json
import logging
import os

import jsonschema

from remote_logger.models import LogEntry, entry_from_dict, entry_to_dict

logger = logging.getLogger(__name__)

OVERFLOW_THRESHOLD = 1000
OVERFLOW_FILENAME = "pending_logs.json"
SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "log_entry.json")


class OverflowStore:
    """A single JSON-array file of entries that could not be delivered.

    At most one file exists. A spill while a file is already pending appends
    to it, so the file stays in chronological order.
    """

    def __init__(self, directory: str, filename: str = OVERFLOW_FILENAME):
        self._path = os.path.join(directory, filename)
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            self._validator = jsonschema.Draft202012Validator(json.load(f))

    @property
    def path(self) -> str:
        return self._path

    def exists(self) -> bool:
        return os.path.exists(self._path)

    def persist(self, entries: list[LogEntry]) -> bool:
        """Write *entries* after any already-pending ones.

        Returns False when the write fails; the caller treats those entries
        as lost.
        """
        if not entries:
            return True

        records = self._read_existing() + [entry_to_dict(e) for e in entries]

        tmp_path = self._path + ".tmp"
        try:
            os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to persist %d logs to %s: %s", len(entries), self._path, e)
            _discard(tmp_path)
            return False

        logger.warning(
            "Persisted %d logs to %s (%d pending on disk)",
            len(entries), self._path, len(records),
        )
        return True

    def load_and_clear(self) -> list[LogEntry]:
        """Read back the pending file and delete it.

        A file that cannot be read, parsed or validated is deleted anyway;
        its contents are lost.
        """
        if not self.exists():
            return []

        entries: list[LogEntry] = []
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                records = json.load(f)
            self._validator.validate(records)
            entries = [entry_from_dict(r) for r in records]
        except (OSError, ValueError, KeyError, jsonschema.ValidationError) as e:
            logger.error("Failed to load persisted logs from %s: %s", self._path, e)
            entries = []

        self._remove()
        if entries:
            logger.info("Recovered %d persisted logs from %s", len(entries), self._path)
        return entries

    def _read_existing(self) -> list[dict]:
        if not self.exists():
            return []
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                records = json.load(f)
            self._validator.validate(records)
            return records
        except (OSError, ValueError, jsonschema.ValidationError) as e:
            logger.warning("Replacing unreadable overflow file %s: %s", self._path, e)
            return []

    def _remove(self):
        try:
            os.remove(self._path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to remove overflow file %s: %s", self._path, e)


def _discard(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove partial file %s: %s", path, e)
