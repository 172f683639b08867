from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field, field_validator

from .base import CamelModel
from .constants import DEFAULT_PAID_BY, LOCATION_MAX, NOTE_MAX, TAG_MAX, TAGS_MAX


def parse_date_time(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid dateTime '{value}' (expected YYYY-MM-DDTHH:MM)") from None


class ExpenseIn(CamelModel):
    """Expense form payload.

    ``amountBase`` is never accepted from callers; the ledger service derives
    it from ``amountOriginal`` and the resolved FX rate on every write.
    ``fxRateToBase`` may be omitted for base-currency expenses.
    """

    trip_id: str
    date_time: Optional[str] = None
    amount_original: float = Field(..., gt=0)
    currency: str
    fx_rate_to_base: Optional[float] = None
    category: str
    payment: str
    note: str = Field("", max_length=NOTE_MAX)
    location: str = Field("", max_length=LOCATION_MAX)
    paid_by: str = DEFAULT_PAID_BY
    tags: List[str] = Field(default_factory=list)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("currency is required")
        return value

    @field_validator("category", "payment")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("value is required")
        return value

    @field_validator("date_time")
    @classmethod
    def _valid_date_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        parse_date_time(value)
        return value

    @field_validator("note", "location", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        tags = [t.strip() for t in value if isinstance(t, str) and t.strip()]
        if len(tags) > TAGS_MAX:
            raise ValueError(f"maximum {TAGS_MAX} tags")
        if any(len(t) > TAG_MAX for t in tags):
            raise ValueError(f"tags must be {TAG_MAX} chars or less")
        return tags


class Expense(CamelModel):
    """Stored expense record."""

    id: str
    trip_id: str
    date_time: str
    amount_original: float
    currency: str
    fx_rate_to_base: float = 1.0
    amount_base: float = 0.0
    category: str = ""
    payment: str = ""
    note: str = ""
    location: str = ""
    paid_by: str = DEFAULT_PAID_BY
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[Union[int, str]] = None
    updated_at: Optional[Union[int, str]] = None

    @field_validator("date_time")
    @classmethod
    def _parsable_date_time(cls, value: str) -> str:
        parse_date_time(value)
        return value

    @field_validator("note", "location", "category", "payment", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return [] if value is None else value

    @property
    def day(self) -> str:
        """Calendar date portion of ``dateTime``."""
        return self.date_time[:10]
