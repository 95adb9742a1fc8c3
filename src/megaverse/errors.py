# Copyright (c) Syntropy Systems
"""Error taxonomy for megaverse."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from megaverse.domain import Position
    from megaverse.models.api import ApiResponse

RATE_LIMIT_STATUS = 429
RATE_LIMIT_MARKERS = ("429", "too many requests")


class MegaverseError(Exception):
    """Base class for megaverse errors."""


class InvalidGoalError(MegaverseError):
    """The goal could not be fetched or carries no usable grid."""


class TransientSubmissionError(MegaverseError):
    """A single create/delete call failed and may be retried."""

    status_code: int | None

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(TransientSubmissionError):
    """The server asked us to slow down."""


class MegaverseClientError(TransientSubmissionError):
    """Transport-level failure talking to the megaverse API."""


class UnknownCellWarning(UserWarning):
    """A goal grid cell carried a label outside the known vocabulary.

    Recorded as a diagnostic on the translated object set, never raised.
    """

    def __init__(self, position: Position, label: str) -> None:
        super().__init__(f"Unknown cell type {label!r} at {position}")
        self.position = position
        self.label = label


def is_rate_limited(status_code: int | None, message: str | None) -> bool:
    """Return True if a status code or error message signals rate limiting."""
    if status_code == RATE_LIMIT_STATUS:
        return True
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


def classify_failure(response: ApiResponse) -> TransientSubmissionError:
    """Build the error value describing a failed API response."""
    message = response.error or "Unknown error"
    if is_rate_limited(response.status_code, message):
        return RateLimitError(message, status_code=response.status_code)
    return TransientSubmissionError(message, status_code=response.status_code)
