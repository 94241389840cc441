"""Batch transport — the HTTP collector client and its outcome classification."""

import json
import logging
import random
import time
from enum import Enum
from typing import Protocol, runtime_checkable

import requests

from remote_logger.models import LogEntry, build_batch_payload

logger = logging.getLogger(__name__)

LOGS_PATH = "/api/logs"


class Outcome(Enum):
    DELIVERED = "delivered"
    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    TRANSPORT_ERROR = "transport_error"


def classify_status(status_code: int) -> Outcome:
    """Map an HTTP status to a delivery outcome."""
    if 200 <= status_code < 300:
        return Outcome.DELIVERED
    if status_code == 401:
        return Outcome.AUTH_FAILED
    if status_code == 429:
        return Outcome.RATE_LIMITED
    return Outcome.TRANSPORT_ERROR


@runtime_checkable
class Transport(Protocol):
    def send(self, batch: list[LogEntry]) -> Outcome: ...

    def close(self) -> None: ...


class HTTPTransport:
    """POSTs batches to ``{endpoint}/api/logs`` with a bearer token.

    Connection errors and timeouts are retried up to *max_retries* times with
    exponential backoff. HTTP status codes are classified and returned as-is.
    """

    def __init__(
        self,
        endpoint: str,
        auth_token: str,
        max_retries: int = 3,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self._url = endpoint.rstrip("/") + LOGS_PATH
        self._max_retries = max_retries
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {auth_token}",
            "Content-Type": "application/json",
        })

    @property
    def url(self) -> str:
        return self._url

    def send(self, batch: list[LogEntry]) -> Outcome:
        try:
            body = json.dumps(build_batch_payload(batch)).encode("utf-8")
        except (TypeError, ValueError) as exc:
            logger.error("Failed to encode batch of %d logs: %s", len(batch), exc)
            return Outcome.TRANSPORT_ERROR

        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.post(self._url, data=body, timeout=self._timeout)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt < self._max_retries:
                    logger.warning(
                        "Send failed (attempt %d/%d): %s",
                        attempt + 1,
                        self._max_retries + 1,
                        exc,
                    )
                    time.sleep(self._backoff_delay(attempt))
                    continue
                logger.error(
                    "Send failed after %d attempts: %s", self._max_retries + 1, exc
                )
                return Outcome.TRANSPORT_ERROR
            except requests.RequestException as exc:
                logger.error("Send failed: %s", exc)
                return Outcome.TRANSPORT_ERROR

            outcome = classify_status(response.status_code)
            if outcome is Outcome.DELIVERED:
                logger.debug("Delivered %d logs to %s", len(batch), self._url)
            elif outcome is Outcome.AUTH_FAILED:
                logger.error("Authentication failed. Check your auth token.")
            elif outcome is Outcome.RATE_LIMITED:
                logger.warning("Rate limit exceeded. Will retry later.")
            else:
                logger.error("Collector returned status %d", response.status_code)
            return outcome

        return Outcome.TRANSPORT_ERROR

    @staticmethod
    def _backoff_delay(attempt: int) -> float:
        """Exponential backoff: 0.1s doubling per attempt, capped at 2.0s,
        times a random jitter factor between 0.8 and 1.2."""
        base = 0.1 * (2 ** attempt)
        capped = min(base, 2.0)
        jitter = random.uniform(0.8, 1.2)
        return capped * jitter

    def close(self):
        self._session.close()


class DisabledTransport:
    """Stands in when remote delivery is switched off.

    Every batch is reported as a transport error so requeue and overflow
    behave exactly as they would against an unreachable collector.
    """

    def __init__(self, announce: bool = True):
        self._announce = announce

    def send(self, batch: list[LogEntry]) -> Outcome:
        if self._announce:
            print(f"🚫 RemoteLogger: Remote logging disabled - {len(batch)} logs NOT sent to server")
        return Outcome.TRANSPORT_ERROR

    def close(self):
        pass
