from __future__ import annotations

from typing import List

from pydantic import Field

from .base import CamelModel


class SettingsLists(CamelModel):
    """Configurable category and payment method lists (order preserved)."""

    categories: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(default_factory=list)
