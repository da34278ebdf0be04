"""The three operations exposed to the protocol layer: balance, price, swap quote."""

import asyncio
import logging
import time
from fractions import Fraction
from typing import Optional

from .balance import BalanceFormatter, complete_descriptor, require_address
from .chain_port import ChainDataPort, ChainPortError, ChainRevertError
from .errors import (
    InsufficientLiquidityError,
    InvalidRequestError,
    InvalidSlippageError,
    translate_chain_error,
)
from .models import (
    BalanceResult,
    ConstantProductPool,
    GasEstimate,
    PairDescriptor,
    PoolState,
    PriceResult,
    SwapOperation,
    SwapQuoteResult,
    TokenDescriptor,
)
from .quote_engine import BPS_DENOMINATOR, quote
from .token_registry import NATIVE_DECIMALS, TokenRegistry
from .units import format_bps_percent, format_ratio, human_ratio, to_decimal, to_raw

logger = logging.getLogger(__name__)

POOL_VERSIONS = ("v2", "v3")
V3_FEE_TIERS = (100, 500, 3000, 10000)
DEFAULT_SLIPPAGE_BPS = 50
DEFAULT_FEE_TIER = 3000
TYPICAL_SWAP_GAS = 150_000
HIGH_PRICE_IMPACT_BPS = 1_000


class TradingService:
    """Balance, price and swap-quote operations over a ChainDataPort."""

    def __init__(
        self,
        port: ChainDataPort,
        registry: Optional[TokenRegistry] = None,
        default_sender: Optional[str] = None,
    ) -> None:
        self.port = port
        self.registry = registry or TokenRegistry()
        self.default_sender = default_sender
        self.balances = BalanceFormatter(self.port, self.registry)

    async def balance(
        self, wallet_address: str, token_identifier: Optional[str] = None
    ) -> BalanceResult:
        return await self.balances.get_balance(wallet_address, token_identifier)

    async def price(
        self,
        symbol: Optional[str] = None,
        contract_address: Optional[str] = None,
    ) -> PriceResult:
        """
        Price a token in ETH and USD from Uniswap v2 reserves.

        Exactly one of ``symbol`` or ``contract_address`` must be given.
        """
        if (symbol is None) == (contract_address is None):
            raise InvalidRequestError(
                "exactly one of symbol or contract_address must be provided"
            )
        if symbol is not None:
            token = self.registry.resolve(symbol)
        else:
            token = TokenDescriptor(
                symbol=None,
                address=require_address(contract_address, "contract_address"),
                decimals=None,
            )
        token = await complete_descriptor(self.port, token)
        address = self.registry.pricing_address(token)
        logger.info("Getting price for token: %s (%s)", token.symbol, address)

        price_eth, eth_usd = await asyncio.gather(
            self._price_in_eth(token), self._eth_usd_price()
        )
        return PriceResult(
            symbol=token.symbol,
            address=address,
            price_eth=format_ratio(price_eth),
            price_usd=format_ratio(price_eth * eth_usd),
            timestamp=int(time.time()),
        )

    async def swap_quote(
        self,
        from_token: str,
        to_token: str,
        amount: str,
        slippage_tolerance_bps: int = DEFAULT_SLIPPAGE_BPS,
        pool_version: str = "v2",
        from_address: Optional[str] = None,
        fee_tier: int = DEFAULT_FEE_TIER,
    ) -> SwapQuoteResult:
        """
        Simulate an exact-input swap against a single Uniswap pool.

        The pool is the v2 pair, or the v3 pool at ``fee_tier``, for the two
        tokens. The native asset trades through WETH.
        """
        version = (pool_version or "").strip().lower()
        if version not in POOL_VERSIONS:
            raise InvalidRequestError(
                "pool_version must be 'v2' or 'v3'", field="pool_version", value=pool_version
            )
        if version == "v3" and fee_tier not in V3_FEE_TIERS:
            raise InvalidRequestError(
                f"fee_tier must be one of {', '.join(map(str, V3_FEE_TIERS))}",
                field="fee_tier",
                value=fee_tier,
            )
        if not 0 <= slippage_tolerance_bps <= BPS_DENOMINATOR:
            raise InvalidSlippageError(slippage_tolerance_bps)

        sender = (
            require_address(from_address, "from_address")
            if from_address is not None
            else self.default_sender
        )
        source = self.registry.resolve(from_token)
        target = self.registry.resolve(to_token)
        address_in = self.registry.pricing_address(source)
        address_out = self.registry.pricing_address(target)
        if address_in == address_out:
            raise InvalidRequestError(
                "from_token and to_token resolve to the same asset",
                field="to_token",
                value=to_token,
            )

        source, target = await asyncio.gather(
            complete_descriptor(self.port, source),
            complete_descriptor(self.port, target),
        )
        amount_in = to_raw(amount, source.decimals)
        logger.info(
            "Amount in (parsed): %s (%s %s)",
            amount_in,
            to_decimal(amount_in, source.decimals),
            source.symbol,
        )

        pair = PairDescriptor(address_in, address_out, version, fee_tier)
        pool = await self._read_pool(pair)
        swap = quote(pool, amount_in, slippage_tolerance_bps)

        gas = await self._estimate_gas(
            SwapOperation(
                sender=sender,
                pair=pair,
                amount_in=amount_in,
                minimum_output=swap.minimum_output,
                native_in=source.is_native,
                native_out=target.is_native,
            )
            if sender
            else None
        )

        rate = human_ratio(*swap.exchange_rate, target.decimals, source.decimals)
        warnings = []
        if version == "v3":
            warnings.append(
                "v3 quote approximates the pool as constant-product at the current "
                "price and in-range liquidity; tick boundaries are ignored"
            )
        if amount_in > 0 and swap.estimated_output == 0:
            warnings.append(
                "estimated output rounds to zero; the input amount is too small for this pool"
            )
        if swap.price_impact_bps >= HIGH_PRICE_IMPACT_BPS:
            warnings.append(
                f"price impact of {format_bps_percent(swap.price_impact_bps)}% is high"
            )

        result = SwapQuoteResult(
            from_symbol=source.symbol,
            to_symbol=target.symbol,
            pool=pair,
            amount_in=amount_in,
            amount_in_formatted=to_decimal(amount_in, source.decimals),
            quote=swap,
            estimated_output_formatted=to_decimal(swap.estimated_output, target.decimals),
            minimum_output_formatted=to_decimal(swap.minimum_output, target.decimals),
            price_impact_percent=format_bps_percent(swap.price_impact_bps),
            exchange_rate_formatted=format_ratio(rate),
            gas=gas,
            warnings=warnings,
        )
        logger.info(
            "%s swap simulation complete: output=%s, impact=%s bps",
            version.upper(),
            result.estimated_output_formatted,
            swap.price_impact_bps,
        )
        return result

    async def _read_pool(self, pair: PairDescriptor) -> PoolState:
        try:
            return await self.port.get_pool_state(pair)
        except ChainPortError as exc:
            raise translate_chain_error(exc) from exc

    async def _price_in_eth(self, token: TokenDescriptor) -> Fraction:
        weth = self.registry.weth
        if token.is_native or token.address == weth.address:
            return Fraction(1)
        pair = PairDescriptor(token.address, weth.address, "v2")
        pool = await self._reserve_pool(pair)
        return human_ratio(pool.reserve_out, pool.reserve_in, NATIVE_DECIMALS, token.decimals)

    async def _eth_usd_price(self) -> Fraction:
        usdc = self.registry.usdc
        pair = PairDescriptor(self.registry.weth.address, usdc.address, "v2")
        pool = await self._reserve_pool(pair)
        return human_ratio(pool.reserve_out, pool.reserve_in, usdc.decimals, NATIVE_DECIMALS)

    async def _reserve_pool(self, pair: PairDescriptor) -> ConstantProductPool:
        pool = await self._read_pool(pair)
        if not isinstance(pool, ConstantProductPool):
            raise InvalidRequestError(f"pricing requires a v2 pool, got {pair.label()}")
        if pool.reserve_in <= 0 or pool.reserve_out <= 0:
            raise InsufficientLiquidityError(pair.label(), "pool reserves are empty")
        return pool

    async def _estimate_gas(self, operation: Optional[SwapOperation]) -> GasEstimate:
        """Gas for the swap; typical gas is used, and labelled, when it cannot be simulated."""
        try:
            (units, source, note), gas_price = await asyncio.gather(
                self._gas_units(operation), self.port.get_gas_price()
            )
        except ChainPortError as exc:
            raise translate_chain_error(exc) from exc
        return GasEstimate(
            gas_units=units,
            gas_price_wei=gas_price,
            cost_eth=to_decimal(units * gas_price, NATIVE_DECIMALS),
            source=source,
            note=note,
        )

    async def _gas_units(
        self, operation: Optional[SwapOperation]
    ) -> tuple[int, str, Optional[str]]:
        if operation is None:
            return TYPICAL_SWAP_GAS, "typical", "no from_address given; typical swap gas used"
        try:
            units = await self.port.estimate_gas(operation)
        except ChainRevertError as exc:
            logger.warning("Swap simulation reverted, using typical gas: %s", exc)
            return TYPICAL_SWAP_GAS, "typical", f"swap simulation reverted: {exc}"
        return units, "simulation", None
