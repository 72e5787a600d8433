"""
Retry helper for collaborator calls.

Every network call to Gmail, Drive, Sheets, Supabase, and the LLM goes through
``with_retry``. Only transient failures are retried: timeouts, connection
errors, HTTP 408/429, and 5xx. Permission, not-found, and credential errors
surface on the first attempt.
"""

import logging
import socket
import time
from typing import Callable, Optional, TypeVar

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_STATUS = {408, 429}

# Upper bound for a single backoff sleep, in seconds
_MAX_DELAY = 30.0


def _status_of(exc: BaseException) -> Optional[int]:
    """Pull an HTTP status out of the various SDK exception shapes."""
    for candidate in (
        getattr(exc, "status_code", None),
        getattr(getattr(exc, "resp", None), "status", None),
        getattr(getattr(exc, "response", None), "status_code", None),
        getattr(exc, "code", None),
    ):
        if candidate is None:
            continue
        try:
            return int(candidate)
        except (TypeError, ValueError):
            continue
    return None


def is_transient_error(exc: BaseException) -> bool:
    """Return True for failures worth retrying."""
    if isinstance(exc, (TimeoutError, ConnectionError, socket.timeout)):
        return True
    if isinstance(exc, httpx.TransportError):
        return True
    status = _status_of(exc)
    if status is None:
        return False
    return status in _TRANSIENT_STATUS or 500 <= status < 600


def with_retry(
    fn: Callable[[], T],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``fn`` with exponential backoff on transient errors.

    Delays double from ``base_delay`` (1s, 2s, 4s, ...). After
    ``max_attempts`` the last exception is re-raised unchanged.
    """
    retryer = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, min=base_delay, max=_MAX_DELAY),
        retry=retry_if_exception(is_transient_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return retryer(fn)
