"""Timeout and bounded-retry wrapper for calls to external services.

Every network call (embedding, vector store, LLM) goes through
:func:`call_with_retry` so that a hung or flaky collaborator cannot hang a
request forever.  Only the terminal failure reaches the caller, as an
:class:`~pdf_qa.errors.ExternalServiceError` chained to the last cause.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, TypeVar

from pdf_qa.config import settings
from pdf_qa.errors import ConfigurationError, ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Deterministic failures, raised on the first attempt.
_NON_RETRYABLE = (ConfigurationError, ValidationError)

# Client errors that may succeed on a later attempt.
_RETRYABLE_CLIENT_STATUSES = frozenset({408, 409, 429})


def _status_code(exc: BaseException) -> int | None:
    """HTTP status carried by an SDK exception, if any.

    OpenAI and httpx errors expose ``status_code`` (directly or on
    ``response``); Pinecone API exceptions expose ``status``.
    """
    for candidate in (exc, getattr(exc, "response", None)):
        for attr in ("status_code", "status"):
            value = getattr(candidate, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_transient(exc: BaseException) -> bool:
    """Return ``False`` for 4xx client errors that will fail the same way again."""
    status = _status_code(exc)
    if status is None:
        return True
    return not (400 <= status < 500) or status in _RETRYABLE_CLIENT_STATUSES


@dataclass(frozen=True)
class RetryPolicy:
    """How long to wait for one attempt and how often to try.

    Attributes
    ----------
    attempts:
        Total number of attempts (1 disables retrying).
    timeout_seconds:
        Per-attempt timeout; ``None`` waits indefinitely.
    backoff_seconds:
        Base delay; attempt *n* waits ``backoff_seconds * 2 ** (n - 1)``.
    """

    attempts: int = 3
    timeout_seconds: float | None = 60.0
    backoff_seconds: float = 1.0

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            attempts=max(1, settings.external_max_attempts),
            timeout_seconds=settings.external_timeout_seconds or None,
            backoff_seconds=settings.external_backoff_seconds,
        )


def _run_with_timeout(fn: Callable[[], T], timeout: float | None) -> T:
    if timeout is None:
        return fn()
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        future.cancel()
        raise TimeoutError(f"call did not complete within {timeout:.1f}s") from exc
    finally:
        # A hung call keeps its worker thread until it returns.
        executor.shutdown(wait=False)


def call_with_retry(
    fn: Callable[[], T],
    *,
    description: str,
    policy: RetryPolicy | None = None,
) -> T:
    """Invoke *fn* under a timeout, retrying transient failures with backoff.

    Parameters
    ----------
    fn:
        Zero-argument callable performing one external call.
    description:
        Human-readable name used in logs and in the terminal error.
    policy:
        Retry policy; defaults to :meth:`RetryPolicy.from_settings`.

    Raises
    ------
    ExternalServiceError
        When every attempt failed or timed out, or at once on a
        non-transient client error (HTTP 4xx other than 408/409/429).
    """
    policy = policy or RetryPolicy.from_settings()
    last_exc: BaseException | None = None
    for attempt in range(1, policy.attempts + 1):
        try:
            return _run_with_timeout(fn, policy.timeout_seconds)
        except _NON_RETRYABLE:
            raise
        except Exception as exc:
            last_exc = exc
            if not is_transient(exc):
                raise ExternalServiceError(
                    f"{description} rejected (HTTP {_status_code(exc)}): {exc}"
                ) from exc
            if attempt < policy.attempts:
                wait = policy.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Retry %d/%d for %s (wait %.1fs): %s",
                    attempt, policy.attempts, description, wait, exc,
                )
                if wait > 0:
                    time.sleep(wait)
    raise ExternalServiceError(
        f"{description} failed after {policy.attempts} attempt(s): {last_exc}"
    ) from last_exc
