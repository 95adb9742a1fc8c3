# Copyright (c) Syntropy Systems
"""HTTP client for the megaverse challenge API."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, cast

import httpx
from pydantic import ValidationError
from typing_extensions import Self

from megaverse.errors import MegaverseClientError
from megaverse.models.api import (
    ApiResponse,
    ErrorResponse,
    GoalResponse,
    PlacementRequest,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from megaverse.domain import ObjectKind, Position

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://challenge.crossmint.io"


class _HttpxResponse(Protocol):
    status_code: int
    text: str

    def json(self) -> object:
        ...


class _HttpxClient(Protocol):
    def request(
        self,
        *,
        method: str,
        url: str,
        json: Mapping[str, object] | None = None,
    ) -> _HttpxResponse:
        ...

    def close(self) -> None:
        ...


def _error_detail(response: _HttpxResponse) -> str:
    """Pull a readable error out of a failed response body."""
    try:
        detail = ErrorResponse.model_validate(response.json()).detail
    except (ValidationError, ValueError):
        detail = None
    return detail or response.text or "Unknown error"


class MegaverseClient:
    """HTTP implementation of the placement endpoint."""

    base_url: str
    candidate_id: str
    timeout: float
    _client: _HttpxClient

    def __init__(
        self,
        candidate_id: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the client.

        Args:
            candidate_id: Candidate identifier sent with every call
            base_url: Base URL of the API (e.g., "https://challenge.crossmint.io")
            timeout: Request timeout in seconds

        """
        self.base_url = base_url.rstrip("/")
        self.candidate_id = candidate_id
        self.timeout = timeout
        client = cast("object", httpx.Client(timeout=timeout))
        self._client = cast("_HttpxClient", client)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the HTTP client."""
        self.close()

    def _send(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
    ) -> _HttpxResponse:
        """Make an HTTP request, translating transport errors."""
        url = f"{self.base_url}{path}"
        try:
            return self._client.request(method=method, url=url, json=json)
        except httpx.RequestError as e:
            msg = f"Network error: {e}"
            raise MegaverseClientError(msg) from e

    def _placement(
        self,
        method: str,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        body = PlacementRequest(
            candidate_id=self.candidate_id,
            row=position.row,
            column=position.column,
            **(attrs or {}),
        )
        response = self._send(
            method,
            f"/api/{kind.resource}",
            json=body.model_dump(by_alias=True, exclude_none=True),
        )
        if httpx.codes.is_success(response.status_code):
            return ApiResponse(success=True, status_code=response.status_code)

        error = f"HTTP {response.status_code}: {_error_detail(response)}"
        logger.debug("%s %s at %s rejected: %s", method, kind.value, position, error)
        return ApiResponse(
            success=False,
            status_code=response.status_code,
            error=error,
        )

    # --- Placement Operations ---

    def create_object(
        self,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        """Create an object of ``kind`` at ``position``.

        Args:
            kind: Object kind, selects the API collection
            position: Grid cell to place the object in
            attrs: Kind-specific fields (``color`` or ``direction``)

        Returns:
            Response describing success or the HTTP failure

        Raises:
            MegaverseClientError: On transport failures

        """
        return self._placement("POST", kind, position, attrs)

    def delete_object(self, kind: ObjectKind, position: Position) -> ApiResponse:
        """Delete the object of ``kind`` at ``position``.

        Raises:
            MegaverseClientError: On transport failures

        """
        return self._placement("DELETE", kind, position)

    # --- Goal Operations ---

    def fetch_goal(self) -> GoalResponse:
        """Fetch the goal map for this candidate.

        Never raises: failures are described in ``GoalResponse.error``.
        """
        try:
            response = self._send("GET", f"/api/map/{self.candidate_id}/goal")
        except MegaverseClientError as e:
            return GoalResponse(error=str(e))

        if not httpx.codes.is_success(response.status_code):
            return GoalResponse(
                error=f"HTTP {response.status_code}: {_error_detail(response)}"
            )

        try:
            data = response.json()
        except ValueError as e:
            return GoalResponse(error=f"Failed to parse goal map: {e}")

        try:
            goal = GoalResponse.model_validate(data)
        except ValidationError:
            return GoalResponse(error="Goal map structure is invalid")
        if goal.goal is None and goal.error is None:
            return GoalResponse(error="Goal map structure is invalid")
        return goal


def get_client(
    candidate_id: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = 30.0,
) -> MegaverseClient:
    """Create a MegaverseClient instance."""
    return MegaverseClient(candidate_id, base_url=base_url, timeout=timeout)
