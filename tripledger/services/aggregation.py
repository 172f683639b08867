"""Aggregation helpers over one trip's expenses.

Scopes implemented:
    - Filtering (date range, category, payment, free-text search)
    - Totals and category / payment breakdowns
    - Daily series with running total
    - Budget remaining and average spend per elapsed day

Design notes:
    Every function takes a materialized list of expenses and returns fresh
    values; nothing reads the store or the clock. "Now" is always passed in.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from tripledger.models import Expense, Trip
from tripledger.models.constants import FILTER_ALL
from tripledger.services.money import round_money, to_decimal

UNKNOWN_KEY = "Unknown"
GROUP_KEYS = ("category", "payment")
# Trip end is treated as the last minute of the end date.
TRIP_END_TIME = time(23, 59)


# ---------------- Filtering -----------------
def _unrestricted(value: Optional[str]) -> bool:
    return value is None or value == "" or value == FILTER_ALL


@dataclass(frozen=True)
class ExpenseFilter:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category: Optional[str] = None
    payment: Optional[str] = None
    search: str = ""

    @classmethod
    def for_trip(cls, trip: Trip, **kwargs) -> "ExpenseFilter":
        """Quick filter covering the whole trip date range."""
        return cls(start_date=trip.start_date, end_date=trip.end_date, **kwargs)

    @classmethod
    def for_day(cls, day: date, **kwargs) -> "ExpenseFilter":
        return cls(start_date=day, end_date=day, **kwargs)

    @classmethod
    def for_month(cls, year: int, month: int, **kwargs) -> "ExpenseFilter":
        """First through last day of one calendar month."""
        last = calendar.monthrange(year, month)[1]
        return cls(start_date=date(year, month, 1), end_date=date(year, month, last), **kwargs)

    def matches(self, expense: Expense) -> bool:
        day = expense.day
        if self.start_date and day < self.start_date.isoformat():
            return False
        if self.end_date and day > self.end_date.isoformat():
            return False
        if not _unrestricted(self.category) and expense.category != self.category:
            return False
        if not _unrestricted(self.payment) and expense.payment != self.payment:
            return False
        needle = (self.search or "").strip().lower()
        if needle:
            bag = " ".join([expense.note or "", expense.location or "", *expense.tags])
            if needle not in bag.lower():
                return False
        return True


def filter_expenses(
    expenses: Iterable[Expense], flt: Optional[ExpenseFilter] = None
) -> List[Expense]:
    if flt is None:
        return list(expenses)
    return [e for e in expenses if flt.matches(e)]


def sort_expenses(expenses: Iterable[Expense]) -> List[Expense]:
    """Newest first by dateTime, then most recently created."""
    return sorted(
        expenses,
        key=lambda e: (e.date_time, str(e.created_at or "")),
        reverse=True,
    )


def last_fx_rate(expenses: Iterable[Expense], currency: str) -> Optional[float]:
    """Most recently updated positive rate used for ``currency``, if any."""
    candidates = [
        e for e in expenses if e.currency == currency and (e.fx_rate_to_base or 0) > 0
    ]
    if not candidates:
        return None
    latest = max(
        candidates,
        key=lambda e: (str(e.updated_at or e.created_at or ""), e.date_time),
    )
    return latest.fx_rate_to_base


# ---------------- Totals & breakdowns -----------------
def _sum_base(expenses: Iterable[Expense]) -> Decimal:
    return sum((to_decimal(e.amount_base or 0) for e in expenses), Decimal(0))


def total_base(expenses: Iterable[Expense]) -> float:
    return float(_sum_base(expenses))


@dataclass(frozen=True)
class GroupTotal:
    key: str
    total: float


def group_totals(expenses: Iterable[Expense], key: str) -> List[GroupTotal]:
    """Sum ``amountBase`` per distinct ``key`` value, largest first.

    Ties keep the order in which keys were first encountered.
    """
    if key not in GROUP_KEYS:
        raise ValueError(f"cannot group by '{key}'; expected one of {GROUP_KEYS}")
    sums: Dict[str, Decimal] = {}
    for e in expenses:
        k = getattr(e, key) or UNKNOWN_KEY
        sums[k] = sums.get(k, Decimal(0)) + to_decimal(e.amount_base or 0)
    # sorted() is stable, so equal totals stay in encounter order
    ordered = sorted(sums.items(), key=lambda kv: kv[1], reverse=True)
    return [GroupTotal(key=k, total=float(v)) for k, v in ordered]


@dataclass(frozen=True)
class DailyTotal:
    day: date
    total: float
    cumulative: float


def daily_series(expenses: Iterable[Expense]) -> List[DailyTotal]:
    """Chronological per-day totals plus running cumulative total."""
    sums: Dict[str, Decimal] = {}
    for e in expenses:
        sums[e.day] = sums.get(e.day, Decimal(0)) + to_decimal(e.amount_base or 0)
    cumulative = Decimal(0)
    points: List[DailyTotal] = []
    for day in sorted(sums):
        cumulative += sums[day]
        points.append(
            DailyTotal(
                day=date.fromisoformat(day),
                total=float(sums[day]),
                cumulative=float(cumulative),
            )
        )
    return points


# ---------------- Budget -----------------
def days_elapsed(start_date: date, end_date: date, now: datetime) -> int:
    """Whole days from trip start to the earlier of ``now`` and trip end, inclusive.

    Never less than 1, including before the trip has started.
    """
    trip_start = datetime.combine(start_date, time.min)
    trip_end = datetime.combine(end_date, TRIP_END_TIME)
    if now.tzinfo is not None:
        now = now.replace(tzinfo=None)
    until = now if now < trip_end else trip_end
    elapsed = max(until - trip_start, timedelta(0))
    return max(elapsed // timedelta(days=1) + 1, 1)


@dataclass(frozen=True)
class BudgetSummary:
    enabled: bool
    currency: str
    budget: Optional[float]
    spent: float
    remaining: Optional[float]
    over_budget: bool
    days_elapsed: int
    average_per_day: float
    daily_budget: Optional[float]


def budget_summary(trip: Trip, total: float, now: datetime) -> BudgetSummary:
    currency = trip.base_currency
    days = days_elapsed(trip.start_date, trip.end_date, now)
    average = round_money(to_decimal(total) / days, currency)
    remaining: Optional[float] = None
    budget: Optional[float] = None
    if trip.budget_enabled:
        budget = float(trip.budget_amount_base or 0)
        remaining = round_money(to_decimal(budget) - to_decimal(total), currency)
    return BudgetSummary(
        enabled=trip.budget_enabled,
        currency=currency,
        budget=budget,
        spent=round_money(total, currency),
        remaining=remaining,
        over_budget=remaining is not None and remaining < 0,
        days_elapsed=days,
        average_per_day=average,
        daily_budget=trip.daily_budget_amount_base,
    )


# ---------------- Dashboard bundle -----------------
@dataclass(frozen=True)
class TripSummary:
    trip_id: str
    base_currency: str
    count: int
    total: float
    by_category: List[GroupTotal] = field(default_factory=list)
    by_payment: List[GroupTotal] = field(default_factory=list)
    by_day: List[DailyTotal] = field(default_factory=list)
    budget: Optional[BudgetSummary] = None


def summarize(
    trip: Trip,
    expenses: Sequence[Expense],
    flt: Optional[ExpenseFilter],
    now: datetime,
) -> TripSummary:
    items = filter_expenses(expenses, flt)
    total = total_base(items)
    return TripSummary(
        trip_id=trip.id,
        base_currency=trip.base_currency,
        count=len(items),
        total=total,
        by_category=group_totals(items, "category"),
        by_payment=group_totals(items, "payment"),
        by_day=daily_series(items),
        budget=budget_summary(trip, total, now),
    )
