"""Configuration helpers for the Ethereum trading MCP server."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from eth_account import Account

from .token_registry import parse_address

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _require_env(key: str, message: str) -> str:
    value = os.getenv(key)
    if not value:
        raise ValueError(message)
    return value


def _float_from_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(slots=True)
class TradingConfig:
    rpc_url: str
    wallet_address: Optional[str] = None
    private_key: Optional[str] = None
    rpc_timeout: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "TradingConfig":
        rpc_url = _require_env(
            "ETH_RPC_URL",
            "ETH_RPC_URL environment variable is required. Please set it to an Ethereum mainnet JSON-RPC endpoint.",
        ).strip()
        raw_key = os.getenv("ETH_PRIVATE_KEY")
        private_key = cls._normalize_private_key(raw_key) if raw_key else None
        wallet_address = os.getenv("ETH_WALLET_ADDRESS") or (
            cls._derive_wallet_address(private_key) if private_key else None
        )
        return cls(
            rpc_url=rpc_url,
            wallet_address=wallet_address,
            private_key=private_key,
            rpc_timeout=_float_from_env("ETH_RPC_TIMEOUT", 30.0),
            log_level=(os.getenv("ETH_TRADING_LOG_LEVEL") or "INFO").strip().upper(),
        )

    @staticmethod
    def _normalize_private_key(raw_key: str) -> str:
        key = raw_key.strip()
        if not key.startswith("0x"):
            key = f"0x{key}"
        if len(key) != 66:
            raise ValueError(
                "Invalid private key length: expected 66 characters (including 0x prefix), "
                "got {len_val}. Private key should be a 64-character hex string.".format(
                    len_val=len(key)
                )
            )
        try:
            int(key, 16)
        except ValueError as exc:
            raise ValueError(
                f"Invalid private key format: must be a valid hexadecimal string. Error: {exc}"
            ) from exc
        return key

    @staticmethod
    def _derive_wallet_address(private_key: str) -> str:
        try:
            return Account.from_key(private_key).address
        except Exception as exc:  # pragma: no cover - SDK errors bubble up
            raise ValueError(
                f"Failed to derive wallet address from private key: {exc}"
            ) from exc

    def validate(self) -> None:
        if not self.rpc_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid ETH_RPC_URL: {self.rpc_url}. Only http(s) endpoints are supported"
            )
        if self.wallet_address is not None:
            address = parse_address(self.wallet_address)
            if address is None:
                raise ValueError(
                    f"Invalid wallet address format: {self.wallet_address}. "
                    "Address must be 0x followed by 40 hex characters"
                )
            self.wallet_address = address
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid ETH_TRADING_LOG_LEVEL: {self.log_level}. "
                f"Expected one of {', '.join(sorted(LOG_LEVELS))}"
            )


def load_config() -> TradingConfig:
    config = TradingConfig.from_env()
    config.validate()
    return config


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries the MCP stdio stream."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
