"""Tests for the AMM quote engine."""

import pytest

from eth_trading_mcp.errors import (
    InsufficientLiquidityError,
    InternalError,
    InvalidAmountFormatError,
    InvalidSlippageError,
)
from eth_trading_mcp.models import ConcentratedLiquidityPool, ConstantProductPool
from eth_trading_mcp.quote_engine import Q96, quote, virtual_reserves


class TestConstantProductQuote:
    """Tests for v2-style quotes."""

    def test_reference_pool(self):
        pool = ConstantProductPool(reserve_in=1_000_000, reserve_out=330_500, fee_bps=30)

        result = quote(pool, 1000, 50)

        # 1000 * 9970 / 10000 = 997 after fee
        assert result.estimated_output == 330_500 * 997 // (1_000_000 + 997)
        assert result.estimated_output == 329
        assert result.minimum_output == 329 * 9950 // 10000
        assert result.price_impact_bps == 46
        assert result.exchange_rate == (330_500, 1_000_000)

    def test_zero_input(self):
        pool = ConstantProductPool(1_000_000, 330_500)

        result = quote(pool, 0, 50)

        assert result.estimated_output == 0
        assert result.minimum_output == 0
        assert result.price_impact_bps == 0

    def test_empty_input_reserve(self):
        with pytest.raises(InsufficientLiquidityError):
            quote(ConstantProductPool(0, 330_500), 1000, 50)

    def test_empty_output_reserve(self):
        with pytest.raises(InsufficientLiquidityError):
            quote(ConstantProductPool(1_000_000, 0), 1000, 50)

    @pytest.mark.parametrize("slippage", [-1, 10_001])
    def test_slippage_out_of_range(self, slippage):
        with pytest.raises(InvalidSlippageError):
            quote(ConstantProductPool(1_000_000, 330_500), 1000, slippage)

    def test_full_slippage_allows_zero_minimum(self):
        result = quote(ConstantProductPool(1_000_000, 330_500), 1000, 10_000)

        assert result.minimum_output == 0

    def test_no_slippage_minimum_equals_estimate(self):
        result = quote(ConstantProductPool(1_000_000, 330_500), 1000, 0)

        assert result.minimum_output == result.estimated_output

    def test_negative_amount(self):
        with pytest.raises(InvalidAmountFormatError):
            quote(ConstantProductPool(1_000_000, 330_500), -1, 50)

    def test_invalid_fee(self):
        with pytest.raises(InternalError):
            quote(ConstantProductPool(1_000_000, 330_500, fee_bps=10_000), 1000, 50)

    def test_output_and_impact_grow_with_input(self):
        pool = ConstantProductPool(10**24, 10**24)
        amounts = [10**18, 10**20, 10**22, 10**23]

        results = [quote(pool, amount, 50) for amount in amounts]

        outputs = [r.estimated_output for r in results]
        impacts = [r.price_impact_bps for r in results]
        assert outputs == sorted(outputs)
        assert len(set(outputs)) == len(outputs)
        assert impacts == sorted(impacts)
        assert impacts[-1] > impacts[0]

    def test_huge_input_stays_below_output_reserve(self):
        pool = ConstantProductPool(1_000, 1_000)

        for amount_in in (10**9, 10**30, 10**60):
            result = quote(pool, amount_in, 50)
            assert result.estimated_output == pool.reserve_out - 1
            assert result.price_impact_bps == 10_000

    def test_fee_free_swap_preserves_product(self):
        pool = ConstantProductPool(5 * 10**21, 7 * 10**20, fee_bps=0)
        amount_in = 3 * 10**19

        result = quote(pool, amount_in, 0)

        after = (pool.reserve_in + amount_in) * (pool.reserve_out - result.estimated_output)
        assert after >= pool.reserve_in * pool.reserve_out

    def test_fee_free_swap_exact_division(self):
        pool = ConstantProductPool(1_000, 3_000, fee_bps=0)

        result = quote(pool, 1_000, 0)

        assert result.estimated_output == 1_500
        assert result.estimated_output * (pool.reserve_in + 1_000) == pool.reserve_out * 1_000

    def test_minimum_below_estimate_with_slippage(self):
        pool = ConstantProductPool(10**24, 10**24)

        for slippage in (1, 50, 9_999):
            result = quote(pool, 10**18, slippage)
            assert result.minimum_output < result.estimated_output


class TestConcentratedLiquidityQuote:
    """Tests for the v3 virtual-reserve approximation."""

    def test_virtual_reserves_at_unit_price(self):
        pool = ConcentratedLiquidityPool(sqrt_price_x96=Q96, liquidity=10**24, fee_bps=5)

        reserves = virtual_reserves(pool)

        assert reserves == ConstantProductPool(10**24, 10**24, 5)

    def test_virtual_reserves_orientation(self):
        # sqrtP = 2 means token1/token0 = 4
        liquidity = 10**24
        forward = virtual_reserves(ConcentratedLiquidityPool(2 * Q96, liquidity, 30, True))
        backward = virtual_reserves(ConcentratedLiquidityPool(2 * Q96, liquidity, 30, False))

        assert forward.reserve_in == liquidity // 2
        assert forward.reserve_out == liquidity * 2
        assert backward.reserve_in == forward.reserve_out
        assert backward.reserve_out == forward.reserve_in

    def test_quote_matches_virtual_pool(self):
        pool = ConcentratedLiquidityPool(sqrt_price_x96=Q96, liquidity=10**24, fee_bps=5)

        result = quote(pool, 10**18, 50)

        assert result == quote(ConstantProductPool(10**24, 10**24, 5), 10**18, 50)

    @pytest.mark.parametrize("sqrt_price, liquidity", [(0, 10**24), (Q96, 0)])
    def test_uninitialised_pool(self, sqrt_price, liquidity):
        pool = ConcentratedLiquidityPool(sqrt_price, liquidity, 30)

        with pytest.raises(InsufficientLiquidityError):
            quote(pool, 10**18, 50)
