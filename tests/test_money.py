"""Unit tests for conversion and rounding."""

import pytest

from tripledger.core.errors import ValidationFailed
from tripledger.services.money import convert, decimals_for, resolve_fx_rate, round_money


class TestDecimalsFor:
    def test_zero_decimal_currencies(self):
        assert decimals_for("JPY") == 0
        assert decimals_for("krw") == 0

    def test_two_decimal_default(self):
        assert decimals_for("USD") == 2
        assert decimals_for("HKD") == 2


class TestRoundMoney:
    def test_half_up_two_decimals(self):
        assert round_money(2.675, "USD") == 2.68
        assert round_money(1.005, "EUR") == 1.01

    def test_half_up_zero_decimals(self):
        assert round_money(2.5, "JPY") == 3
        assert round_money(1234.49, "JPY") == 1234


class TestConvert:
    def test_usd_to_jpy_scenario(self):
        assert convert(50, 150, "JPY") == 7500

    def test_rounds_to_base_currency_minor_unit(self):
        assert convert(10, 0.12345, "USD") == 1.23
        assert convert(3.33, 147.5, "JPY") == 491

    def test_base_currency_amount_carried_unchanged(self):
        assert convert(12.345, 1, "USD", currency="USD") == 12.345

    def test_deterministic(self):
        results = {convert(19.99, 0.0913, "EUR") for _ in range(50)}
        assert results == {1.83}


class TestResolveFxRate:
    def test_base_currency_forces_one(self):
        assert resolve_fx_rate("JPY", "JPY", 42.0) == 1.0
        assert resolve_fx_rate("JPY", "JPY", None) == 1.0

    @pytest.mark.parametrize("rate", [None, 0, -1.5, float("inf"), float("nan")])
    def test_foreign_currency_requires_positive_rate(self, rate):
        with pytest.raises(ValidationFailed):
            resolve_fx_rate("USD", "JPY", rate)
