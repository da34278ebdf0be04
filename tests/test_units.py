"""Tests for raw/human unit conversion."""

from fractions import Fraction

import pytest

from eth_trading_mcp.errors import InvalidAmountFormatError
from eth_trading_mcp.units import (
    format_bps_percent,
    format_ratio,
    human_ratio,
    to_decimal,
    to_raw,
)


class TestToDecimal:
    """Tests for to_decimal."""

    def test_whole_amount_keeps_one_fractional_digit(self):
        assert to_decimal(1000000000, 6) == "1000.0"

    def test_wei_balance(self):
        assert to_decimal(6762500000000000000, 18) == "6.7625"

    def test_zero(self):
        assert to_decimal(0, 18) == "0.0"

    def test_smallest_unit(self):
        assert to_decimal(1, 18) == "0.000000000000000001"

    def test_zero_decimals_has_no_separator(self):
        assert to_decimal(42, 0) == "42"

    def test_trailing_zeros_stripped(self):
        assert to_decimal(1500000, 6) == "1.5"

    def test_negative_raw_rejected(self):
        with pytest.raises(ValueError):
            to_decimal(-1, 18)

    def test_decimals_out_of_range(self):
        with pytest.raises(ValueError):
            to_decimal(1, 256)


class TestToRaw:
    """Tests for to_raw."""

    def test_fractional_amount(self):
        assert to_raw("1.5", 6) == 1500000

    def test_whole_amount(self):
        assert to_raw("1", 18) == 10**18

    def test_surrounding_whitespace(self):
        assert to_raw(" 2 ", 6) == 2000000

    def test_trailing_zeros_beyond_precision_ignored(self):
        assert to_raw("1.50000000", 6) == 1500000

    def test_zero_decimals(self):
        assert to_raw("5", 0) == 5
        assert to_raw("5.0", 0) == 5

    def test_too_many_fractional_digits(self):
        with pytest.raises(InvalidAmountFormatError) as exc_info:
            to_raw("1.1234567", 6)

        assert exc_info.value.error_type == "InvalidAmountFormat"
        assert exc_info.value.details["decimals"] == 6

    @pytest.mark.parametrize("amount", ["", "abc", "-1", "1e5", ".5", "1.", "1,5", "0x10", "1.2.3"])
    def test_malformed_amounts(self, amount):
        with pytest.raises(InvalidAmountFormatError):
            to_raw(amount, 18)

    @pytest.mark.parametrize("amount", ["\u0661\u0660", "1.\u0665", "\uff11"])
    def test_non_ascii_digits_rejected(self, amount):
        with pytest.raises(InvalidAmountFormatError):
            to_raw(amount, 6)

    def test_non_string_rejected(self):
        with pytest.raises(InvalidAmountFormatError):
            to_raw(1.5, 18)

    def test_round_trip_for_every_common_precision(self):
        for decimals in range(0, 19):
            for raw in (0, 1, 10**decimals, 123456789 * 10**decimals + 7):
                assert to_raw(to_decimal(raw, decimals), decimals) == raw


class TestRatios:
    """Tests for ratio helpers."""

    def test_human_ratio_scales_by_decimals(self):
        # 1 WETH against 3000 USDC
        ratio = human_ratio(3000 * 10**6, 10**18, 6, 18)
        assert ratio == Fraction(3000)

    def test_human_ratio_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            human_ratio(1, 0, 18, 18)

    def test_format_ratio_truncates(self):
        assert format_ratio(Fraction(1, 3000)) == "0.000333333333333333"

    def test_format_ratio_whole(self):
        assert format_ratio(Fraction(15)) == "15.0"

    def test_format_ratio_with_denominator(self):
        assert format_ratio(5, 200, precision=4) == "0.025"

    def test_format_ratio_negative_rejected(self):
        with pytest.raises(ValueError):
            format_ratio(Fraction(-1, 2))

    def test_format_bps_percent(self):
        assert format_bps_percent(50) == "0.5"
        assert format_bps_percent(46) == "0.46"
        assert format_bps_percent(10000) == "100.0"
