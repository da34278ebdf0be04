"""Interface to the on-chain data source and the failures it may raise."""

from typing import Protocol

from .models import PairDescriptor, PoolState, SwapOperation, TokenMetadata


class ChainPortError(Exception):
    """Base class for failures raised by a ChainDataPort implementation."""


class ChainTransportError(ChainPortError):
    """The node could not be reached or did not answer in time."""


class ChainNotFoundError(ChainPortError):
    """The queried contract, token or pool does not exist on-chain."""


class ChainRevertError(ChainPortError):
    """A contract call or simulation reverted."""


class ChainResponseError(ChainPortError):
    """The node answered with data that could not be interpreted."""


class ChainDataPort(Protocol):
    """
    Read-only capability the engine needs from the chain.

    Implementations raise ChainPortError subclasses on failure and never
    retry internally. Amounts are raw integers.
    """

    async def get_native_balance(self, owner: str) -> int: ...

    async def get_token_balance(self, token_address: str, owner: str) -> int: ...

    async def get_token_metadata(self, token_address: str) -> TokenMetadata: ...

    async def get_pool_state(self, pair: PairDescriptor) -> PoolState: ...

    async def estimate_gas(self, operation: SwapOperation) -> int: ...

    async def get_gas_price(self) -> int: ...
