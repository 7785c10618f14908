"""Tests for server-side price calculation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from condopark_engine.common.exceptions import (
    DurationTooLongError,
    InvalidIntervalError,
    InvalidRateError,
)
from condopark_engine.pricing.calculator import calculate_price, duration_hours, round_minor

T0 = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


class TestDuration:
    def test_whole_hours(self):
        assert duration_hours(T0, T0 + timedelta(hours=3)) == Decimal(3)

    def test_fractional_hours(self):
        assert duration_hours(T0, T0 + timedelta(minutes=90)) == Decimal("1.5")

    def test_naive_datetimes_treated_as_utc(self):
        start = T0.replace(tzinfo=None)
        assert duration_hours(start, T0 + timedelta(hours=2)) == Decimal(2)

    def test_other_offsets_normalized(self):
        plus_two = timezone(timedelta(hours=2))
        start = datetime(2026, 3, 1, 10, 0, tzinfo=plus_two)  # 08:00 UTC
        assert duration_hours(start, T0 + timedelta(hours=1)) == Decimal(1)

    def test_end_equal_start_rejected(self):
        with pytest.raises(InvalidIntervalError):
            duration_hours(T0, T0)

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidIntervalError):
            duration_hours(T0, T0 - timedelta(minutes=1))

    def test_missing_bound_rejected(self):
        with pytest.raises(InvalidIntervalError):
            duration_hours(T0, None)


class TestCalculatePrice:
    def test_two_hours_at_fifty(self):
        price = calculate_price(Decimal("50"), T0 + timedelta(hours=2), T0 + timedelta(hours=4))
        assert price == Decimal("100.00")

    def test_fractional_hours_rounded_half_up(self):
        # 10 minutes at 10.00/h = 1.6666... -> 1.67
        price = calculate_price("10.00", T0, T0 + timedelta(minutes=10))
        assert price == Decimal("1.67")

    def test_half_cent_rounds_up(self):
        # 0.5 h at 0.05/h = 0.025 -> 0.03
        assert calculate_price("0.05", T0, T0 + timedelta(minutes=30)) == Decimal("0.03")

    def test_result_has_minor_unit_exponent(self):
        price = calculate_price(7, T0, T0 + timedelta(hours=1))
        assert price.as_tuple().exponent == -2

    def test_exactly_max_hours_allowed(self):
        price = calculate_price("2", T0, T0 + timedelta(hours=24))
        assert price == Decimal("48.00")

    def test_over_max_hours_rejected(self):
        with pytest.raises(DurationTooLongError):
            calculate_price("2", T0, T0 + timedelta(hours=24, seconds=1))

    def test_custom_max_hours(self):
        with pytest.raises(DurationTooLongError):
            calculate_price("2", T0, T0 + timedelta(hours=5), max_hours=4)

    def test_invalid_interval_propagates(self):
        with pytest.raises(InvalidIntervalError):
            calculate_price("2", T0, T0)

    def test_zero_rate_rejected(self):
        with pytest.raises(InvalidRateError):
            calculate_price(0, T0, T0 + timedelta(hours=1))

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidRateError):
            calculate_price("-5", T0, T0 + timedelta(hours=1))

    def test_deterministic(self):
        a = calculate_price("12.34", T0, T0 + timedelta(minutes=47))
        b = calculate_price("12.34", T0, T0 + timedelta(minutes=47))
        assert a == b


class TestRoundMinor:
    def test_zero_decimals(self):
        assert round_minor(Decimal("2.5"), 0) == Decimal("3")

    def test_two_decimals(self):
        assert round_minor(Decimal("1.005"), 2) == Decimal("1.01")
