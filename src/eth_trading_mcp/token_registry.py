"""Token registry mapping well-known symbols to mainnet ERC20 contracts."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional

from web3 import Web3

from .errors import UnknownSymbolError
from .models import TokenDescriptor

logger = logging.getLogger(__name__)

NATIVE_SYMBOL = "ETH"
NATIVE_DECIMALS = 18
NATIVE_TOKEN = TokenDescriptor(symbol=NATIVE_SYMBOL, address=None, decimals=NATIVE_DECIMALS)

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

# symbol -> (address, decimals), Ethereum mainnet
DEFAULT_TOKENS: dict[str, tuple[str, int]] = {
    # Wrapped
    "WETH": ("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", 18),
    "WBTC": ("0x2260fac5e5542a773aa44fbcfedf7c193bc2c599", 8),
    # Stablecoins
    "USDT": ("0xdac17f958d2ee523a2206206994597c13d831ec7", 6),
    "USDC": ("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48", 6),
    "DAI": ("0x6b175474e89094c44da98b954eedeac495271d0f", 18),
    "BUSD": ("0x4fabb145d64652a948d72533023f6e7a623c7c53", 18),
    "FRAX": ("0x853d955acef822db058eb8505911ed77f175b99e", 18),
    # DeFi
    "UNI": ("0x1f9840a85d5af5bf1d1762f925bdaddc4201f984", 18),
    "AAVE": ("0x7fc66500c84a76ad7e9c93437bfc5ac33e2ddae9", 18),
    "LINK": ("0x514910771af9ca656af840dff83e8264ecf986ca", 18),
    "COMP": ("0xc00e94cb662c3520282e6f5717214004a7f26888", 18),
    "MKR": ("0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2", 18),
    "SNX": ("0xc011a73ee8576fb46f5e1c5751ca3b9fe0af2a6f", 18),
    "CRV": ("0xd533a949740bb3306d119cc777fa900ba034cd52", 18),
    "SUSHI": ("0x6b3595068778dd592e39a122f4f5a5cf09c90fe2", 18),
    "LDO": ("0x5a98fcbea516cf06857215779fd812ca3bef1b32", 18),
    # Layer 2
    "MATIC": ("0x7d1afa7b718fb893db30a3abc0cfc608aacfebb0", 18),
    "ARB": ("0xb50721bcf8d664c30412cfbc6cf7a15145234ad1", 18),
    "OP": ("0x4200000000000000000000000000000000000042", 18),
    # Meme
    "SHIB": ("0x95ad61b0a150d79219dcf64e1e6cc01f0b64c4ce", 18),
    "PEPE": ("0x6982508145454ce325ddbe47a25d4ec3d2311933", 18),
    "FLOKI": ("0xcf0c122c6b73ff809c693db761e7baebe62b6a2e", 9),
    # Exchange & utility
    "APE": ("0x4d224452801aced8b2f0aebe155379bb5d594381", 18),
    "GRT": ("0xc944e90c64b2c07662a292be6244bdf05cda44a7", 18),
    "FTM": ("0x4e15361fd6b4bb609fa63c81a2be19d873717870", 18),
    "SAND": ("0x3845badade8e6dff049820680d1f14bd3903a5d0", 18),
    "MANA": ("0x0f5d2fb29fb7d3cfee444a200298f468908cc942", 18),
    "AXS": ("0xbb0e17ef65f82ab018d8edd776e8dd940327b28b", 18),
    "ENJ": ("0xf629cbd94d3791c9250152bd8dfbdf380e2a3b9c", 18),
    "BAT": ("0x0d8775f648430679a709e98d2b0cb6250d2887ef", 18),
    "ZRX": ("0xe41d2489571d322189246dafa5ebde1f4699f498", 18),
}


def is_address_literal(value: str) -> bool:
    """True for "0x" + 40 hex digits whose checksum, if mixed-case, is valid."""
    candidate = value.strip()
    if not _ADDRESS_PATTERN.match(candidate):
        return False
    body = candidate[2:]
    if body.islower() or body.isupper() or body.isdigit():
        return True
    return Web3.is_checksum_address(candidate)


def parse_address(value: str) -> Optional[str]:
    """Return the checksummed address for a valid literal, else None."""
    if not is_address_literal(value):
        return None
    return Web3.to_checksum_address(value.strip().lower())


class TokenRegistry:
    """Resolves user-supplied symbols and address literals to tokens.

    The table is fixed at construction and exposed read-only.
    """

    WRAPPED_NATIVE_SYMBOL = "WETH"
    USD_REFERENCE_SYMBOL = "USDC"

    def __init__(self, tokens: Optional[Mapping[str, tuple[str, int]]] = None) -> None:
        table: dict[str, TokenDescriptor] = {}
        for symbol, (address, decimals) in (tokens or DEFAULT_TOKENS).items():
            canonical = symbol.strip().upper()
            checksummed = parse_address(address)
            if checksummed is None:
                raise ValueError(f"Invalid address configured for {canonical}: {address}")
            table[canonical] = TokenDescriptor(
                symbol=canonical, address=checksummed, decimals=decimals
            )
        for required in (self.WRAPPED_NATIVE_SYMBOL, self.USD_REFERENCE_SYMBOL):
            if required not in table:
                raise ValueError(f"Token table must define {required}")
        table[NATIVE_SYMBOL] = NATIVE_TOKEN
        self._tokens: Mapping[str, TokenDescriptor] = MappingProxyType(table)

    def resolve(self, identifier: str) -> TokenDescriptor:
        """
        Resolve a symbol (case-insensitive) or address literal.

        Address literals resolve to a descriptor with unknown symbol and
        decimals; the caller fetches metadata through the chain data port.

        Raises:
            UnknownSymbolError: If the identifier is neither
        """
        text = (identifier or "").strip()
        address = parse_address(text)
        if address is not None:
            return TokenDescriptor(symbol=None, address=address, decimals=None)

        token = self._tokens.get(text.upper())
        if token is None:
            logger.warning("Token symbol not found in registry: %s", identifier)
            raise UnknownSymbolError(identifier, self.supported_tokens())
        return token

    def lookup(self, symbol: str) -> Optional[TokenDescriptor]:
        return self._tokens.get(symbol.strip().upper())

    def pricing_address(self, token: TokenDescriptor) -> str:
        """Address used for pool reads; the native asset trades as WETH."""
        if token.is_native:
            return self.weth.address
        return token.address

    @property
    def weth(self) -> TokenDescriptor:
        return self._tokens[self.WRAPPED_NATIVE_SYMBOL]

    @property
    def usdc(self) -> TokenDescriptor:
        return self._tokens[self.USD_REFERENCE_SYMBOL]

    def supported_tokens(self) -> list[str]:
        return sorted(self._tokens)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.strip().upper() in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
