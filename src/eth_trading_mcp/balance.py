"""Balance lookup composed from the registry, unit converter and chain port."""

import asyncio
import logging
from typing import Optional

from .chain_port import ChainDataPort, ChainPortError
from .errors import InvalidRequestError, translate_chain_error
from .models import BalanceResult, TokenDescriptor, TokenMetadata
from .token_registry import NATIVE_DECIMALS, NATIVE_SYMBOL, TokenRegistry, parse_address
from .units import to_decimal

logger = logging.getLogger(__name__)


def require_address(value: Optional[str], field: str) -> str:
    """Checksummed address for ``value`` or InvalidRequestError."""
    address = parse_address(value or "")
    if address is None:
        raise InvalidRequestError(
            f"{field} must be a 0x-prefixed 40 hex digit address", field=field, value=value
        )
    return address


class BalanceFormatter:
    """Answers balance queries for the native asset and ERC20 tokens."""

    def __init__(self, port: ChainDataPort, registry: TokenRegistry) -> None:
        self.port = port
        self.registry = registry

    async def get_balance(
        self, owner: str, token: Optional[str] = None
    ) -> BalanceResult:
        owner_address = require_address(owner, "wallet_address")
        descriptor = self.registry.resolve(token) if token is not None else None

        if descriptor is None or descriptor.is_native:
            logger.info("Querying native balance for %s", owner_address)
            try:
                raw = await self.port.get_native_balance(owner_address)
            except ChainPortError as exc:
                raise translate_chain_error(exc) from exc
            return BalanceResult(
                raw=raw,
                formatted=to_decimal(raw, NATIVE_DECIMALS),
                decimals=NATIVE_DECIMALS,
                symbol=NATIVE_SYMBOL,
            )

        logger.info(
            "Querying %s balance for %s",
            descriptor.symbol or descriptor.address,
            owner_address,
        )
        try:
            if descriptor.has_metadata:
                raw = await self.port.get_token_balance(descriptor.address, owner_address)
                metadata = TokenMetadata(descriptor.decimals, descriptor.symbol)
            else:
                raw, metadata = await asyncio.gather(
                    self.port.get_token_balance(descriptor.address, owner_address),
                    self.port.get_token_metadata(descriptor.address),
                )
        except ChainPortError as exc:
            raise translate_chain_error(exc) from exc

        return BalanceResult(
            raw=raw,
            formatted=to_decimal(raw, metadata.decimals),
            decimals=metadata.decimals,
            symbol=metadata.symbol,
        )


async def complete_descriptor(
    port: ChainDataPort, descriptor: TokenDescriptor
) -> TokenDescriptor:
    """Fill in symbol and decimals for an address-only descriptor."""
    if descriptor.has_metadata:
        return descriptor
    try:
        metadata = await port.get_token_metadata(descriptor.address)
    except ChainPortError as exc:
        raise translate_chain_error(exc) from exc
    return TokenDescriptor(
        symbol=metadata.symbol,
        address=descriptor.address,
        decimals=metadata.decimals,
    )
