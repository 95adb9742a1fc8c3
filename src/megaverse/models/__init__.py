# Copyright (c) Syntropy Systems
"""Pydantic models for the megaverse API."""

from .api import ApiResponse, ErrorResponse, GoalResponse, PlacementRequest
from .base import MegaverseBaseModel

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "GoalResponse",
    "MegaverseBaseModel",
    "PlacementRequest",
]
