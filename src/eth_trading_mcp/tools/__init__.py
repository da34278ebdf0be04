"""MCP tools for Ethereum balance, price and swap quotes."""

from .info_tools import get_balance, get_token_price
from .quote_tools import swap_tokens

__all__ = [
    "get_balance",
    "get_token_price",
    "swap_tokens",
]
