"""Money / rounding helpers.

Centralized so the ledger service, aggregation and export use identical
rounding semantics. All functions are pure.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from tripledger.core.errors import ValidationFailed
from tripledger.models.constants import ZERO_DECIMAL_CURRENCIES

_QUANTS = {0: Decimal("1"), 2: Decimal("0.01")}


def decimals_for(currency: str) -> int:
    return 0 if (currency or "").upper() in ZERO_DECIMAL_CURRENCIES else 2


def to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def round_money(value, currency: str) -> float:
    """Half-up rounding to the minor unit of ``currency``."""
    quant = _QUANTS[decimals_for(currency)]
    dec = value if isinstance(value, Decimal) else to_decimal(value)
    rounded = dec.quantize(quant, rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0  # normalizes -0.0


def resolve_fx_rate(
    currency: str, base_currency: str, fx_rate_to_base: Optional[float]
) -> float:
    """Rate to store for an expense: fixed at 1 for the base currency."""
    if currency.upper() == base_currency.upper():
        return 1.0
    if fx_rate_to_base is None or not fx_rate_to_base > 0:
        raise ValidationFailed("FX rate must be greater than 0 for non-base currency")
    if not math.isfinite(fx_rate_to_base):
        raise ValidationFailed("FX rate must be a finite number")
    return float(fx_rate_to_base)


def convert(
    amount_original: float,
    fx_rate_to_base: float,
    base_currency: str,
    currency: Optional[str] = None,
) -> float:
    """Base-currency amount for an expense.

    When ``currency`` is the base currency the original amount is carried over
    unchanged; the caller has already fixed the rate at 1.
    """
    if currency is not None and currency.upper() == base_currency.upper():
        return float(amount_original)
    product = to_decimal(amount_original) * to_decimal(fx_rate_to_base)
    return round_money(product, base_currency)
