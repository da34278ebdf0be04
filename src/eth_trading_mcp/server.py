"""Main MCP server implementation."""

import json
import logging
from functools import partial
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .chain_port import ChainDataPort
from .config import TradingConfig
from .errors import InvalidRequestError, format_error_response
from .service import TradingService
from .token_registry import TokenRegistry
from .tools import get_balance, get_token_price, swap_tokens
from .web3_port import Web3ChainDataPort

logger = logging.getLogger(__name__)

_TOKEN_DESCRIPTION = (
    "Token symbol (e.g., 'ETH', 'WETH', 'USDC') or ERC20 contract address "
    "(0x followed by 40 hex characters). Symbols are case-insensitive."
)


class TradingMCPServer:
    """MCP server exposing Ethereum balance, price and swap-quote tools."""

    def __init__(self, config: TradingConfig, port: ChainDataPort | None = None):
        """
        Initialize the trading MCP server.

        Args:
            config: Validated configuration for the server
            port: Chain data source; a web3 HTTP port is built when omitted
        """
        self.config = config
        self.port = port or Web3ChainDataPort(
            config.rpc_url, timeout=config.rpc_timeout
        )
        self.service = TradingService(
            self.port,
            TokenRegistry(),
            default_sender=config.wallet_address,
        )

        self.mcp = Server("eth-trading-mcp-server")
        self._init_tool_handlers()
        self._register_tools()

    def _init_tool_handlers(self) -> None:
        self._tool_handlers = {
            "get_balance": partial(get_balance, self.service),
            "get_token_price": partial(get_token_price, self.service),
            "swap_tokens": partial(swap_tokens, self.service),
        }
        self._tool_arguments = {
            "get_balance": ["wallet_address", "token_contract_address"],
            "get_token_price": ["symbol", "contract_address"],
            "swap_tokens": [
                "from_token",
                "to_token",
                "amount",
                "slippage_tolerance_bps",
                "uniswap_version",
                "from_address",
                "fee_tier",
            ],
        }

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Route a tool call to its handler and return the JSON-able payload."""
        handler = self._tool_handlers.get(name)
        if handler is None:
            return InvalidRequestError(f"Unknown tool: {name}", field="name", value=name).to_dict()

        arguments = arguments or {}
        tool_args = {
            key: arguments[key]
            for key in self._tool_arguments.get(name, [])
            if key in arguments
        }
        logger.info("Tool call %s(%s)", name, ", ".join(sorted(tool_args)))

        try:
            return await handler(**tool_args)
        except Exception as exc:
            return format_error_response(exc)

    def _register_tools(self):
        """Register all MCP tools."""

        @self.mcp.list_tools()
        async def list_tools() -> list[Tool]:
            """List all available tools."""
            return [
                Tool(
                    name="get_balance",
                    description=(
                        "Query the ETH or ERC20 token balance of a wallet. Returns the raw "
                        "balance in the token's smallest unit, the balance formatted with "
                        "the token's decimals, the decimals and the token symbol."
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "wallet_address": {
                                "type": "string",
                                "description": (
                                    "Wallet address to query. Must be a valid Ethereum "
                                    "address starting with 0x."
                                ),
                            },
                            "token_contract_address": {
                                "type": "string",
                                "description": (
                                    "Optional token to query. " + _TOKEN_DESCRIPTION +
                                    " If not provided, returns the native ETH balance."
                                ),
                            },
                        },
                        "required": ["wallet_address"],
                    },
                ),
                Tool(
                    name="get_token_price",
                    description=(
                        "Get the current price of a token in ETH and USD, derived from "
                        "Uniswap V2 reserves (token/WETH and WETH/USDC pairs). Provide "
                        "exactly one of symbol or contract_address."
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "symbol": {
                                "type": "string",
                                "description": (
                                    "Token symbol (e.g., 'ETH', 'USDT', 'UNI'). "
                                    "Case-insensitive."
                                ),
                            },
                            "contract_address": {
                                "type": "string",
                                "description": (
                                    "ERC20 contract address (e.g., "
                                    "'0xdac17f958d2ee523a2206206994597c13d831ec7')."
                                ),
                            },
                        },
                    },
                ),
                Tool(
                    name="swap_tokens",
                    description=(
                        "Simulate a token swap on Uniswap V2 or V3 and return a quote: "
                        "estimated output, minimum output after slippage, price impact, "
                        "exchange rate and estimated gas. Nothing is signed or broadcast. "
                        "V3 quotes are an approximation from the pool's current price and "
                        "in-range liquidity."
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "from_token": {
                                "type": "string",
                                "description": "Token to sell. " + _TOKEN_DESCRIPTION,
                            },
                            "to_token": {
                                "type": "string",
                                "description": "Token to buy. " + _TOKEN_DESCRIPTION,
                            },
                            "amount": {
                                "type": "string",
                                "description": (
                                    "Amount to sell in human-readable format (e.g., '1' for "
                                    "1 ETH, '100.5' for 100.5 USDC). Must not have more "
                                    "fractional digits than the token's decimals."
                                ),
                            },
                            "slippage_tolerance_bps": {
                                "type": "integer",
                                "description": (
                                    "Slippage tolerance in basis points (50 = 0.5%), "
                                    "between 0 and 10000. Defaults to 50."
                                ),
                            },
                            "uniswap_version": {
                                "type": "string",
                                "enum": ["v2", "v3"],
                                "description": "Uniswap version to quote against. Defaults to 'v2'.",
                            },
                            "from_address": {
                                "type": "string",
                                "description": (
                                    "Optional wallet address used to simulate the swap for a "
                                    "gas estimate. Without it a typical swap gas figure is "
                                    "reported."
                                ),
                            },
                            "fee_tier": {
                                "type": "integer",
                                "enum": [100, 500, 3000, 10000],
                                "description": (
                                    "V3 pool fee tier in hundredths of a basis point "
                                    "(3000 = 0.3%). Ignored for V2. Defaults to 3000."
                                ),
                            },
                        },
                        "required": ["from_token", "to_token", "amount"],
                    },
                ),
            ]

        @self.mcp.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            result = await self.dispatch(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

    async def run(self):
        """Start the MCP server."""
        async with stdio_server() as (read_stream, write_stream):
            await self.mcp.run(
                read_stream,
                write_stream,
                self.mcp.create_initialization_options(),
            )
