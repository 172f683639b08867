from __future__ import annotations

from datetime import date
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from .base import CamelModel, normalize_currency
from .constants import TRIP_NAME_MAX


def _unique_currencies(currencies: List[str], base_currency: Optional[str]) -> List[str]:
    # Remove duplicates while preserving order; base currency always included
    seen = set()
    unique = []
    for cur in [*currencies, *([base_currency] if base_currency else [])]:
        code = normalize_currency(cur)
        if code not in seen:
            seen.add(code)
            unique.append(code)
    return unique


class TripIn(CamelModel):
    """Trip form payload; the service assigns id and timestamps."""

    name: str
    start_date: date
    end_date: date
    base_currency: str
    currencies: List[str] = Field(default_factory=list)
    budget_enabled: bool = False
    budget_amount_base: float = Field(0, ge=0)
    daily_budget_amount_base: Optional[float] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def _name_length(cls, value: str) -> str:
        value = value.strip()
        if not value or len(value) > TRIP_NAME_MAX:
            raise ValueError(f"trip name is required (1-{TRIP_NAME_MAX} chars)")
        return value

    @field_validator("base_currency")
    @classmethod
    def _base_currency(cls, value: str) -> str:
        return normalize_currency(value)

    @field_validator("currencies", mode="before")
    @classmethod
    def _split_currencies(cls, value):
        if isinstance(value, str):
            return [v for v in (p.strip() for p in value.split(",")) if v]
        return value

    @model_validator(mode="after")
    def _cross_field_rules(self) -> "TripIn":
        if self.end_date < self.start_date:
            raise ValueError("start date must be before or equal to end date")
        self.currencies = _unique_currencies(self.currencies, self.base_currency)
        if self.budget_enabled:
            if not self.budget_amount_base > 0:
                raise ValueError("budget amount is required when budget is enabled")
        else:
            self.budget_amount_base = 0
        return self


class Trip(CamelModel):
    """Stored trip record."""

    id: str
    name: str
    start_date: date
    end_date: date
    base_currency: str
    currencies: List[str]
    budget_enabled: bool = False
    budget_amount_base: float = 0
    daily_budget_amount_base: Optional[float] = None
    created_at: Optional[Union[int, str]] = None
    updated_at: Optional[Union[int, str]] = None

    @classmethod
    def from_input(
        cls, trip_id: str, payload: TripIn, created_at: Union[int, str], updated_at: str
    ) -> "Trip":
        return cls(
            id=trip_id,
            created_at=created_at,
            updated_at=updated_at,
            **payload.model_dump(),
        )
