"""ChainDataPort backed by a web3 HTTP provider and Uniswap mainnet contracts."""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

import requests
from cachetools import TTLCache
from web3 import Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    ProviderConnectionError,
    TimeExhausted,
    Web3Exception,
    Web3RPCError,
)

from .abis import (
    ERC20_ABI,
    ERC20_BYTES32_SYMBOL_ABI,
    UNISWAP_V2_FACTORY,
    UNISWAP_V2_FACTORY_ABI,
    UNISWAP_V2_PAIR_ABI,
    UNISWAP_V2_ROUTER,
    UNISWAP_V2_ROUTER_ABI,
    UNISWAP_V3_FACTORY,
    UNISWAP_V3_FACTORY_ABI,
    UNISWAP_V3_POOL_ABI,
    UNISWAP_V3_SWAP_ROUTER,
    UNISWAP_V3_SWAP_ROUTER_ABI,
    ZERO_ADDRESS,
)
from .chain_port import (
    ChainNotFoundError,
    ChainResponseError,
    ChainRevertError,
    ChainTransportError,
)
from .models import (
    ConcentratedLiquidityPool,
    ConstantProductPool,
    PairDescriptor,
    PoolState,
    SwapOperation,
    TokenMetadata,
)

logger = logging.getLogger(__name__)

V2_FEE_BPS = 30
SWAP_DEADLINE_SECONDS = 3600

# JSON-RPC error codes nodes use for failed execution (geth -32000, EIP-1474 3).
EXECUTION_ERROR_CODES = frozenset({-32000, 3})
EXECUTION_ERROR_MARKERS = (
    "execution reverted",
    "insufficient funds",
    "gas required exceeds",
    "out of gas",
)


class Web3ChainDataPort:
    """Reads balances, token metadata and pool state over JSON-RPC.

    The web3 client is synchronous; every call runs in a worker thread.
    Token metadata is immutable on-chain and cached; balances and pool
    state are read fresh on every call.
    """

    METADATA_CACHE_TTL = 3600

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        w3: Optional[Web3] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})
        )
        self._metadata_cache: TTLCache[str, TokenMetadata] = TTLCache(
            maxsize=1000, ttl=self.METADATA_CACHE_TTL
        )

    async def validate_connection(self) -> int:
        """Return the latest block number, or raise ChainTransportError."""
        return await self._call(lambda: self.w3.eth.block_number, "latest block number")

    async def get_native_balance(self, owner: str) -> int:
        return await self._call(
            lambda: self.w3.eth.get_balance(owner), f"ETH balance of {owner}"
        )

    async def get_token_balance(self, token_address: str, owner: str) -> int:
        contract = self._contract(token_address, ERC20_ABI)
        return await self._call(
            contract.functions.balanceOf(owner).call,
            f"balance of {owner} in token {token_address}",
        )

    async def get_token_metadata(self, token_address: str) -> TokenMetadata:
        cached = self._metadata_cache.get(token_address)
        if cached:
            return cached

        code = await self._call(
            lambda: self.w3.eth.get_code(token_address), f"code at {token_address}"
        )
        if not code:
            raise ChainNotFoundError(f"no contract deployed at {token_address}")

        contract = self._contract(token_address, ERC20_ABI)
        decimals = await self._call(
            contract.functions.decimals().call, f"decimals of {token_address}"
        )
        if not isinstance(decimals, int) or not 0 <= decimals <= 255:
            raise ChainResponseError(
                f"token {token_address} reported invalid decimals {decimals!r}"
            )
        symbol = await self._read_symbol(token_address)

        metadata = TokenMetadata(decimals=decimals, symbol=symbol)
        self._metadata_cache[token_address] = metadata
        return metadata

    async def get_pool_state(self, pair: PairDescriptor) -> PoolState:
        if pair.version == "v3":
            return await self._v3_pool_state(pair)
        return await self._v2_pool_state(pair)

    async def estimate_gas(self, operation: SwapOperation) -> int:
        pair = operation.pair
        deadline = int(time.time()) + SWAP_DEADLINE_SECONDS
        tx: dict[str, Any] = {"from": operation.sender}
        if operation.native_in:
            tx["value"] = operation.amount_in

        if pair.version == "v3":
            router = self._contract(UNISWAP_V3_SWAP_ROUTER, UNISWAP_V3_SWAP_ROUTER_ABI)
            function = router.functions.exactInputSingle(
                (
                    pair.token_in,
                    pair.token_out,
                    pair.fee_tier,
                    operation.sender,
                    deadline,
                    operation.amount_in,
                    operation.minimum_output,
                    0,
                )
            )
        else:
            router = self._contract(UNISWAP_V2_ROUTER, UNISWAP_V2_ROUTER_ABI)
            path = [pair.token_in, pair.token_out]
            if operation.native_in:
                function = router.functions.swapExactETHForTokens(
                    operation.minimum_output, path, operation.sender, deadline
                )
            elif operation.native_out:
                function = router.functions.swapExactTokensForETH(
                    operation.amount_in,
                    operation.minimum_output,
                    path,
                    operation.sender,
                    deadline,
                )
            else:
                function = router.functions.swapExactTokensForTokens(
                    operation.amount_in,
                    operation.minimum_output,
                    path,
                    operation.sender,
                    deadline,
                )

        return await self._call(
            lambda: function.estimate_gas(tx), f"gas for swap on {pair.label()}"
        )

    async def get_gas_price(self) -> int:
        return await self._call(lambda: self.w3.eth.gas_price, "gas price")

    async def _v2_pool_state(self, pair: PairDescriptor) -> ConstantProductPool:
        factory = self._contract(UNISWAP_V2_FACTORY, UNISWAP_V2_FACTORY_ABI)
        pair_address = await self._call(
            factory.functions.getPair(pair.token_in, pair.token_out).call,
            f"pair address for {pair.label()}",
        )
        if _is_zero_address(pair_address):
            raise ChainNotFoundError(
                f"no Uniswap V2 pair for {pair.token_in} and {pair.token_out}"
            )

        contract = self._contract(pair_address, UNISWAP_V2_PAIR_ABI)
        reserves, token0 = await asyncio.gather(
            self._call(contract.functions.getReserves().call, f"reserves of {pair_address}"),
            self._call(contract.functions.token0().call, f"token0 of {pair_address}"),
        )
        reserve0, reserve1 = reserves[0], reserves[1]
        if _same_address(token0, pair.token_in):
            return ConstantProductPool(reserve0, reserve1, V2_FEE_BPS)
        return ConstantProductPool(reserve1, reserve0, V2_FEE_BPS)

    async def _v3_pool_state(self, pair: PairDescriptor) -> ConcentratedLiquidityPool:
        factory = self._contract(UNISWAP_V3_FACTORY, UNISWAP_V3_FACTORY_ABI)
        pool_address = await self._call(
            factory.functions.getPool(pair.token_in, pair.token_out, pair.fee_tier).call,
            f"pool address for {pair.label()}",
        )
        if _is_zero_address(pool_address):
            raise ChainNotFoundError(
                f"no Uniswap V3 pool for {pair.token_in} and {pair.token_out} "
                f"at fee tier {pair.fee_tier}"
            )

        contract = self._contract(pool_address, UNISWAP_V3_POOL_ABI)
        slot0, liquidity, token0 = await asyncio.gather(
            self._call(contract.functions.slot0().call, f"slot0 of {pool_address}"),
            self._call(contract.functions.liquidity().call, f"liquidity of {pool_address}"),
            self._call(contract.functions.token0().call, f"token0 of {pool_address}"),
        )
        return ConcentratedLiquidityPool(
            sqrt_price_x96=slot0[0],
            liquidity=liquidity,
            fee_bps=pair.fee_tier // 100,
            zero_for_one=_same_address(token0, pair.token_in),
        )

    async def _read_symbol(self, token_address: str) -> str:
        contract = self._contract(token_address, ERC20_ABI)
        try:
            return await self._call(
                contract.functions.symbol().call, f"symbol of {token_address}"
            )
        except ChainNotFoundError:
            logger.debug("string symbol() failed for %s, trying bytes32", token_address)

        legacy = self._contract(token_address, ERC20_BYTES32_SYMBOL_ABI)
        raw = await self._call(legacy.functions.symbol().call, f"symbol of {token_address}")
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace")

    def _contract(self, address: str, abi: list[dict[str, Any]]) -> Any:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def _call(self, fn: Callable[[], Any], what: str) -> Any:
        """Run a blocking web3 call in a thread and classify its failure."""
        logger.debug("RPC request: %s", what)
        try:
            return await asyncio.to_thread(fn)
        except (
            requests.exceptions.RequestException,
            ProviderConnectionError,
            TimeExhausted,
            TimeoutError,
            ConnectionError,
        ) as exc:
            raise ChainTransportError(f"{what}: {exc}") from exc
        except ContractLogicError as exc:
            raise ChainRevertError(f"{what}: {exc}") from exc
        except BadFunctionCallOutput as exc:
            raise ChainNotFoundError(f"{what}: {exc}") from exc
        except Web3RPCError as exc:
            if _is_execution_error(exc):
                raise ChainRevertError(f"{what}: {exc}") from exc
            raise ChainResponseError(f"{what}: {exc}") from exc
        except Web3Exception as exc:
            raise ChainResponseError(f"{what}: {exc}") from exc


def _is_execution_error(exc: Web3RPCError) -> bool:
    """True when the node answered with an execution failure rather than bad input."""
    response = getattr(exc, "rpc_response", None) or {}
    error = response.get("error") if isinstance(response, dict) else None
    if isinstance(error, dict) and error.get("code") in EXECUTION_ERROR_CODES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in EXECUTION_ERROR_MARKERS)


def _is_zero_address(address: Optional[str]) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


def _same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()
