# Copyright (c) Syntropy Systems
"""Submit one placement object with retry, backoff and rate-limit waits."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
)

from megaverse.domain import describe, object_attrs
from megaverse.errors import RateLimitError, classify_failure
from megaverse.pacing import Pacer
from megaverse.results import SubmissionOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from megaverse.domain import PlacementObject
    from megaverse.endpoint import PlacementEndpoint
    from megaverse.models.api import ApiResponse
    from megaverse.pacing import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_RATE_LIMIT_DELAY = 2.0


class _Cancelled(Exception):
    """The run was cancelled during a retry wait or while waiting for a call slot."""


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, Exception) and not isinstance(error, _Cancelled)


def _log_wait(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(error, RateLimitError) and retry_state.next_action is not None:
        logger.info(
            "Rate limited, waiting %.1fs before retry...",
            retry_state.next_action.sleep,
        )


class ObjectSubmitter:
    """Drive a single create or delete call to a definite outcome.

    Every call to ``submit``/``retract`` returns exactly one outcome and
    issues at most ``max_retries`` endpoint calls. Failures, including
    exceptions raised by the endpoint, are returned as values, never raised.
    """

    endpoint: PlacementEndpoint
    max_retries: int
    retry_delay: float
    rate_limit_delay: float
    pacer: Pacer

    def __init__(
        self,
        endpoint: PlacementEndpoint,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY,
        pacer: Pacer | None = None,
    ) -> None:
        """Initialize the submitter.

        Args:
            endpoint: Remote endpoint the calls go through
            max_retries: Total attempts per object (not extra retries)
            retry_delay: Base backoff in seconds, scaled by attempt number
            rate_limit_delay: Base wait in seconds after a rate-limit
                response, scaled by attempt number
            pacer: Shared pacer used for waits and cancellation

        """
        if max_retries < 1:
            msg = f"max_retries must be >= 1, got {max_retries}"
            raise ValueError(msg)
        self.endpoint = endpoint
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.rate_limit_delay = rate_limit_delay
        self.pacer = pacer or Pacer()

    def submit(
        self,
        obj: PlacementObject,
        limiter: RateLimiter | None = None,
    ) -> SubmissionOutcome:
        """Create ``obj`` on the remote side.

        With a ``limiter``, every attempt (retries included) waits for a
        call slot first.
        """
        attrs = object_attrs(obj)
        return self._attempt(
            obj,
            lambda: self.endpoint.create_object(obj.kind, obj.position, attrs),
            limiter,
        )

    def retract(
        self,
        obj: PlacementObject,
        limiter: RateLimiter | None = None,
    ) -> SubmissionOutcome:
        """Delete whatever occupies ``obj``'s position for its kind."""
        return self._attempt(
            obj,
            lambda: self.endpoint.delete_object(obj.kind, obj.position),
            limiter,
        )

    # --- Retry policy ---

    def _backoff(self, retry_state: RetryCallState) -> float:
        """Attempt-scaled wait; a rate limit replaces the ordinary backoff."""
        attempt = retry_state.attempt_number
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError):
            return self.rate_limit_delay * attempt
        return self.retry_delay * attempt

    def _sleep(self, seconds: float) -> None:
        if self.pacer.wait(seconds):
            raise _Cancelled

    def _attempt(
        self,
        obj: PlacementObject,
        call: Callable[[], ApiResponse],
        limiter: RateLimiter | None,
    ) -> SubmissionOutcome:
        label = describe(obj)
        calls = 0
        last_error: str | None = None

        try:
            for attempt_state in Retrying(
                stop=stop_after_attempt(self.max_retries),
                wait=self._backoff,
                retry=retry_if_exception(_is_retryable),
                sleep=self._sleep,
                before_sleep=_log_wait,
                reraise=False,
            ):
                with attempt_state:
                    if limiter is not None and not limiter.acquire():
                        raise _Cancelled
                    calls += 1
                    try:
                        response = call()
                    except Exception as e:
                        last_error = f"Exception: {e}"
                        logger.warning(
                            "Attempt %d failed for %s: %s", calls, label, last_error
                        )
                        raise
                    if not response.success:
                        failure = classify_failure(response)
                        last_error = str(failure)
                        logger.warning(
                            "Attempt %d failed for %s: %s", calls, label, last_error
                        )
                        raise failure
        except RetryError:
            return SubmissionOutcome(
                obj.position,
                obj.kind,
                success=False,
                error=f"Failed after {calls} attempts. Last error: {last_error}",
            )
        except _Cancelled:
            logger.info("Cancelled while submitting %s", label)
            error = (
                f"Cancelled after {calls} attempts. Last error: {last_error}"
                if calls
                else "Cancelled before submission"
            )
            return SubmissionOutcome(obj.position, obj.kind, success=False, error=error)

        logger.debug("Done with %s on attempt %d", label, calls)
        return SubmissionOutcome(obj.position, obj.kind, success=True)
