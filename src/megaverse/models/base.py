# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for megaverse."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class MegaverseBaseModel(BaseModel):
    """Base model with shared config for megaverse schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )
