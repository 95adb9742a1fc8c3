# Copyright (c) Syntropy Systems
"""Pydantic models for megaverse API requests and responses."""

from __future__ import annotations

from pydantic import Field

from .base import MegaverseBaseModel


class ErrorResponse(MegaverseBaseModel):
    """Error body returned by the API."""

    error: bool | None = None
    message: str | None = None
    reason: str | None = None

    @property
    def detail(self) -> str | None:
        """Most specific human-readable description in the body."""
        return self.message or self.reason


class PlacementRequest(MegaverseBaseModel):
    """Body of a create or delete call."""

    candidate_id: str = Field(alias="candidateId")
    row: int = Field(ge=0)
    column: int = Field(ge=0)
    color: str | None = None
    direction: str | None = None


class ApiResponse(MegaverseBaseModel):
    """Outcome of one create or delete call."""

    success: bool
    status_code: int | None = None
    error: str | None = None


class GoalResponse(MegaverseBaseModel):
    """Goal map returned by the API, or a description of why it is missing."""

    goal: list[list[str]] | None = None
    error: str | None = None
