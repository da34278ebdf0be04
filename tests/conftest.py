"""Pytest configuration and shared fixtures for testing."""

import os
from typing import Any

import pytest

from eth_trading_mcp.chain_port import ChainNotFoundError
from eth_trading_mcp.config import TradingConfig
from eth_trading_mcp.models import (
    ConcentratedLiquidityPool,
    ConstantProductPool,
    PairDescriptor,
    PoolState,
    SwapOperation,
    TokenMetadata,
)
from eth_trading_mcp.service import TradingService
from eth_trading_mcp.token_registry import TokenRegistry


# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)


class FakeChainDataPort:
    """In-memory ChainDataPort that records every call.

    Failures are injected per method through ``errors``.
    """

    def __init__(self) -> None:
        self.native_balances: dict[str, int] = {}
        self.token_balances: dict[tuple[str, str], int] = {}
        self.metadata: dict[str, TokenMetadata] = {}
        self.pools: dict[tuple[str, str, str, int], PoolState] = {}
        self.gas_units = 120_000
        self.gas_price = 20 * 10**9
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []

    def add_v2_pool(self, token_a: str, token_b: str, reserve_a: int, reserve_b: int) -> None:
        self.pools[(token_a, token_b, "v2", 3000)] = ConstantProductPool(reserve_a, reserve_b, 30)
        self.pools[(token_b, token_a, "v2", 3000)] = ConstantProductPool(reserve_b, reserve_a, 30)

    def add_v3_pool(
        self, token0: str, token1: str, sqrt_price_x96: int, liquidity: int, fee_tier: int
    ) -> None:
        fee_bps = fee_tier // 100
        self.pools[(token0, token1, "v3", fee_tier)] = ConcentratedLiquidityPool(
            sqrt_price_x96, liquidity, fee_bps, zero_for_one=True
        )
        self.pools[(token1, token0, "v3", fee_tier)] = ConcentratedLiquidityPool(
            sqrt_price_x96, liquidity, fee_bps, zero_for_one=False
        )

    def _record(self, method: str, argument: Any) -> None:
        self.calls.append((method, argument))
        error = self.errors.get(method)
        if error is not None:
            raise error

    def called(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def get_native_balance(self, owner: str) -> int:
        self._record("get_native_balance", owner)
        return self.native_balances.get(owner, 0)

    async def get_token_balance(self, token_address: str, owner: str) -> int:
        self._record("get_token_balance", (token_address, owner))
        return self.token_balances.get((token_address, owner), 0)

    async def get_token_metadata(self, token_address: str) -> TokenMetadata:
        self._record("get_token_metadata", token_address)
        if token_address not in self.metadata:
            raise ChainNotFoundError(f"no contract deployed at {token_address}")
        return self.metadata[token_address]

    async def get_pool_state(self, pair: PairDescriptor) -> PoolState:
        self._record("get_pool_state", pair)
        fee_tier = pair.fee_tier if pair.version == "v3" else 3000
        key = (pair.token_in, pair.token_out, pair.version, fee_tier)
        if key not in self.pools:
            raise ChainNotFoundError(f"no pool for {pair.label()}")
        return self.pools[key]

    async def estimate_gas(self, operation: SwapOperation) -> int:
        self._record("estimate_gas", operation)
        return self.gas_units

    async def get_gas_price(self) -> int:
        self._record("get_gas_price", None)
        return self.gas_price


@pytest.fixture
def test_private_key() -> str:
    """Provide a test private key for testing."""
    return "0xb25c7db31feed9122727bf0939dc769a96564b2de4c4726d035b36ecf1e5b364"


@pytest.fixture
def test_wallet_address() -> str:
    """Provide a test wallet address for testing."""
    return "0x5ce9454909639D2D17A3F753ce7d93fa0b9aB12E"


@pytest.fixture
def unknown_token_address() -> str:
    """An ERC20 address that is not in the default registry."""
    return "0x" + "11" * 20


@pytest.fixture
def registry() -> TokenRegistry:
    return TokenRegistry()


@pytest.fixture
def fake_port(registry: TokenRegistry) -> FakeChainDataPort:
    """Chain port seeded with WETH/USDC at 3000 USDC per ETH."""
    port = FakeChainDataPort()
    port.add_v2_pool(
        registry.weth.address,
        registry.usdc.address,
        100 * 10**18,
        300_000 * 10**6,
    )
    return port


@pytest.fixture
def service(fake_port: FakeChainDataPort, registry: TokenRegistry) -> TradingService:
    return TradingService(fake_port, registry)


@pytest.fixture
def test_config(test_private_key: str, test_wallet_address: str) -> TradingConfig:
    """Provide a test configuration."""
    return TradingConfig(
        rpc_url="http://localhost:8545",
        wallet_address=test_wallet_address,
        private_key=test_private_key,
    )


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("ETH_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)
