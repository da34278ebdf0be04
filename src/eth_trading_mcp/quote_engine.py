"""AMM quote computation.

Pure integer arithmetic over a pool snapshot. Divisions truncate toward
zero, which under-estimates output.

Concentrated-liquidity pools are quoted by converting the current price and
in-range liquidity into virtual constant-product reserves. That ignores tick
boundaries and liquidity outside the current range, so it is an estimate
suitable for simulation only, not for execution-grade quoting.
"""

from .errors import (
    InsufficientLiquidityError,
    InternalError,
    InvalidAmountFormatError,
    InvalidSlippageError,
)
from .models import ConcentratedLiquidityPool, ConstantProductPool, PoolState, SwapQuote

BPS_DENOMINATOR = 10_000
Q96 = 2**96


def virtual_reserves(pool: ConcentratedLiquidityPool) -> ConstantProductPool:
    """
    Approximate a v3 pool as a constant-product pool.

    reserve0 = L / sqrtP and reserve1 = L * sqrtP, with sqrtP in Q64.96.
    """
    if pool.sqrt_price_x96 <= 0 or pool.liquidity <= 0:
        raise InsufficientLiquidityError(
            "v3", "pool has no in-range liquidity or no initialised price"
        )
    reserve0 = pool.liquidity * Q96 // pool.sqrt_price_x96
    reserve1 = pool.liquidity * pool.sqrt_price_x96 // Q96
    if pool.zero_for_one:
        return ConstantProductPool(reserve0, reserve1, pool.fee_bps)
    return ConstantProductPool(reserve1, reserve0, pool.fee_bps)


def quote(pool: PoolState, amount_in: int, slippage_tolerance_bps: int) -> SwapQuote:
    """
    Quote an exact-input swap.

    Args:
        pool: Reserve or price/liquidity snapshot, oriented input -> output
        amount_in: Raw input amount
        slippage_tolerance_bps: Accepted output reduction, 0-10000

    Returns:
        Estimated and minimum output, price impact and the pre-trade rate

    Raises:
        InvalidSlippageError: Slippage outside [0, 10000]
        InsufficientLiquidityError: Empty reserves or output beyond reserves
    """
    if not 0 <= slippage_tolerance_bps <= BPS_DENOMINATOR:
        raise InvalidSlippageError(slippage_tolerance_bps)
    if amount_in < 0:
        raise InvalidAmountFormatError(str(amount_in), "amount must not be negative")
    if not 0 <= pool.fee_bps < BPS_DENOMINATOR:
        raise InternalError(f"pool fee {pool.fee_bps} bps is outside 0-9999")

    if isinstance(pool, ConcentratedLiquidityPool):
        pool = virtual_reserves(pool)

    reserve_in, reserve_out = pool.reserve_in, pool.reserve_out
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError(
            f"{reserve_in}/{reserve_out}", "pool reserves are empty"
        )

    exchange_rate = (reserve_out, reserve_in)
    if amount_in == 0:
        return SwapQuote(0, 0, 0, exchange_rate)

    after_fee = amount_in * (BPS_DENOMINATOR - pool.fee_bps) // BPS_DENOMINATOR
    estimated = reserve_out * after_fee // (reserve_in + after_fee)
    # Unreachable while reserve_in > 0; guards the reserve bound for any pool input.
    if estimated >= reserve_out:
        raise InsufficientLiquidityError(
            f"{reserve_in}/{reserve_out}",
            f"output {estimated} would drain the reserve of {reserve_out}",
        )

    minimum = estimated * (BPS_DENOMINATOR - slippage_tolerance_bps) // BPS_DENOMINATOR

    realised = estimated * reserve_in * BPS_DENOMINATOR // (amount_in * reserve_out)
    impact = min(max(BPS_DENOMINATOR - realised, 0), BPS_DENOMINATOR)

    return SwapQuote(
        estimated_output=estimated,
        minimum_output=minimum,
        price_impact_bps=impact,
        exchange_rate=exchange_rate,
    )
