"""
Tests for the overtime pay arithmetic.

Validates helpers:
- duration_in_hours: whole minutes, two places
- hourly_rate_for: daily rate / 12, plain rounding
- special_round: second-digit round-up rule
- compute_overtime: end-to-end calculation and validation
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from backoffice_kernel.exceptions import ValidationError
from backoffice_modules.overtime.helpers import (
    compute_overtime,
    duration_in_hours,
    hourly_rate_for,
    special_round,
)

START = datetime(2024, 3, 5, 19, 0)


class TestDuration:

    def test_one_hour(self):
        assert duration_in_hours(START, START + timedelta(hours=1)) == Decimal("1.00")

    def test_partial_hour(self):
        assert duration_in_hours(START, START + timedelta(minutes=50)) == Decimal("0.83")

    def test_seconds_are_dropped(self):
        assert duration_in_hours(START, START + timedelta(minutes=30, seconds=59)) == Decimal("0.50")

    def test_overnight(self):
        assert duration_in_hours(START, datetime(2024, 3, 6, 7, 0)) == Decimal("12.00")

    def test_exit_before_entry_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            duration_in_hours(START, START - timedelta(minutes=1))
        assert exc_info.value.field == "exit_time"

    def test_equal_times_raise(self):
        with pytest.raises(ValidationError):
            duration_in_hours(START, START)


class TestHourlyRate:

    def test_exact(self):
        assert hourly_rate_for(Decimal("210")) == Decimal("17.50")

    def test_rounded_half_up_without_special_rule(self):
        # 200 / 12 = 16.666... -> 16.67, not 16.70
        assert hourly_rate_for(Decimal("200")) == Decimal("16.67")

    def test_custom_divisor(self):
        assert hourly_rate_for(Decimal("240"), hours_per_daily_rate=8) == Decimal("30.00")


class TestSpecialRound:

    def test_second_digit_below_threshold(self):
        assert special_round(Decimal("123.456")) == Decimal("123.46")

    def test_second_digit_at_threshold(self):
        assert special_round(Decimal("123.467")) == Decimal("123.50")

    def test_second_digit_is_truncated_not_rounded(self):
        # 10.4596 rounds to 10.46, but the truncated second digit is 5
        assert special_round(Decimal("10.4596")) == Decimal("10.46")

    def test_round_up_crosses_unit(self):
        assert special_round(Decimal("9.96")) == Decimal("10.00")

    def test_exact_tenth_is_kept(self):
        assert special_round(Decimal("17.50")) == Decimal("17.50")

    def test_custom_threshold(self):
        assert special_round(Decimal("1.25"), threshold=5) == Decimal("1.30")

    @given(st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=4))
    def test_never_moves_more_than_a_tenth(self, value):
        rounded = special_round(value)
        assert rounded == rounded.quantize(Decimal("0.01"))
        assert abs(rounded - value) < Decimal("0.1")


class TestComputeOvertime:

    def test_one_hour_at_210(self):
        result = compute_overtime(START, START + timedelta(hours=1), Decimal("210"))
        assert result.duration_hours == Decimal("1.00")
        assert result.hourly_rate == Decimal("17.50")
        assert result.total == Decimal("17.50")

    def test_total_gets_special_rounding(self):
        # 4.5 h * 16.67 = 75.015 -> second digit 1 -> 75.02
        result = compute_overtime(START, START + timedelta(hours=4, minutes=30), Decimal("200"))
        assert result.total == Decimal("75.02")

    def test_total_rounds_up_to_tenth(self):
        # 0.83 h * 17.50 = 14.525 -> second digit 2 -> 14.53
        result = compute_overtime(START, START + timedelta(minutes=50), Decimal("210"))
        assert result.total == Decimal("14.53")
        # 1.17 h * 17.50 = 20.475 -> second digit 7 -> 20.50
        result = compute_overtime(START, START + timedelta(minutes=70), Decimal("210"))
        assert result.total == Decimal("20.50")

    def test_zero_rate(self):
        result = compute_overtime(START, START + timedelta(hours=2), Decimal("0"))
        assert result.total == Decimal("0.00")

    def test_negative_rate_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_overtime(START, START + timedelta(hours=1), Decimal("-1"))
        assert exc_info.value.field == "daily_rate"

    def test_string_rate_is_accepted(self):
        assert compute_overtime(START, START + timedelta(hours=1), "210").total == Decimal("17.50")
