"""Data models for the quotation and balance engine."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union

PoolVersion = Literal["v2", "v3"]


@dataclass(frozen=True)
class TokenDescriptor:
    """A token known to the engine. Identity is the address."""

    symbol: Optional[str]
    address: Optional[str]  # None only for the native asset
    decimals: Optional[int]

    @property
    def is_native(self) -> bool:
        return self.address is None

    @property
    def has_metadata(self) -> bool:
        return self.symbol is not None and self.decimals is not None


@dataclass(frozen=True)
class TokenMetadata:
    """ERC20 metadata as reported by the token contract."""

    decimals: int
    symbol: str


@dataclass(frozen=True)
class ConstantProductPool:
    """Reserve snapshot of a v2-style pool, oriented input -> output."""

    reserve_in: int
    reserve_out: int
    fee_bps: int = 30


@dataclass(frozen=True)
class ConcentratedLiquidityPool:
    """
    Price/liquidity snapshot of a v3-style pool.

    sqrt_price_x96 is the Q64.96 square root of token1/token0 as reported by
    slot0. zero_for_one is True when the input token is the pool's token0.
    """

    sqrt_price_x96: int
    liquidity: int
    fee_bps: int
    zero_for_one: bool = True


PoolState = Union[ConstantProductPool, ConcentratedLiquidityPool]


@dataclass(frozen=True)
class PairDescriptor:
    """Identifies the pool to read for a token pair."""

    token_in: str
    token_out: str
    version: PoolVersion = "v2"
    fee_tier: int = 3000  # v3 only, hundredths of a bip

    def label(self) -> str:
        if self.version == "v3":
            return f"{self.version}:{self.token_in}/{self.token_out}@{self.fee_tier}"
        return f"{self.version}:{self.token_in}/{self.token_out}"


@dataclass(frozen=True)
class SwapOperation:
    """Swap to simulate for gas estimation. Never broadcast."""

    sender: str
    pair: PairDescriptor
    amount_in: int
    minimum_output: int
    native_in: bool = False
    native_out: bool = False


@dataclass(frozen=True)
class SwapQuote:
    """Result of the AMM quote computation, all amounts raw."""

    estimated_output: int
    minimum_output: int
    price_impact_bps: int
    exchange_rate: tuple[int, int]


@dataclass
class BalanceResult:
    raw: int
    formatted: str
    decimals: int
    symbol: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": str(self.raw),
            "formatted_balance": self.formatted,
            "decimals": self.decimals,
            "symbol": self.symbol,
        }


@dataclass
class PriceResult:
    symbol: str
    address: Optional[str]
    price_eth: str
    price_usd: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "address": self.address,
            "price_eth": self.price_eth,
            "price_usd": self.price_usd,
            "timestamp": self.timestamp,
        }


@dataclass
class GasEstimate:
    """Gas units and their ETH cost. source is "simulation" or "typical"."""

    gas_units: int
    gas_price_wei: int
    cost_eth: str
    source: Literal["simulation", "typical"]
    note: Optional[str] = None


@dataclass
class SwapQuoteResult:
    """Swap simulation result handed to the protocol layer."""

    from_symbol: str
    to_symbol: str
    pool: PairDescriptor
    amount_in: int
    amount_in_formatted: str
    quote: SwapQuote
    estimated_output_formatted: str
    minimum_output_formatted: str
    price_impact_percent: str
    exchange_rate_formatted: str
    gas: GasEstimate
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        numerator, denominator = self.quote.exchange_rate
        result = {
            "from_token": self.from_symbol,
            "to_token": self.to_symbol,
            "pool_version": self.pool.version,
            "amount_in": self.amount_in_formatted,
            "amount_in_raw": str(self.amount_in),
            "estimated_output": self.estimated_output_formatted,
            "estimated_output_raw": str(self.quote.estimated_output),
            "minimum_output": self.minimum_output_formatted,
            "minimum_output_raw": str(self.quote.minimum_output),
            "price_impact_bps": self.quote.price_impact_bps,
            "price_impact": self.price_impact_percent,
            "exchange_rate": self.exchange_rate_formatted,
            "exchange_rate_raw": {
                "numerator": str(numerator),
                "denominator": str(denominator),
            },
            "estimated_gas": str(self.gas.gas_units),
            "estimated_gas_eth": self.gas.cost_eth,
            "gas_source": self.gas.source,
            "transaction_data": (
                f"Swap simulation ({self.pool.version.upper()}): "
                f"{self.pool.token_in} -> {self.pool.token_out}"
            ),
        }
        if self.pool.version == "v3":
            result["fee_tier"] = self.pool.fee_tier
        if self.gas.note:
            result["gas_note"] = self.gas.note
        if self.warnings:
            result["warnings"] = list(self.warnings)
        return result
