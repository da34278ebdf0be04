"""Service error taxonomy and error handling for the MCP server."""

import logging
from typing import Any, Optional

from .chain_port import (
    ChainNotFoundError,
    ChainPortError,
    ChainResponseError,
    ChainRevertError,
    ChainTransportError,
)

logger = logging.getLogger(__name__)


class TradingMCPError(Exception):
    """Base exception for all service-level errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "TradingMCPError",
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            error_type: Type/category of error
            details: Structured context needed to reproduce the failure
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary format for API responses."""
        result = {
            "success": False,
            "error": self.message,
            "error_type": self.error_type,
        }
        if self.details:
            result["details"] = self.details
        return result


class UnknownSymbolError(TradingMCPError):
    """Raised when an identifier is neither a known symbol nor an address."""

    def __init__(self, identifier: str, supported: Optional[list[str]] = None):
        details: dict[str, Any] = {"identifier": identifier}
        if supported:
            details["supported_tokens"] = supported
        super().__init__(
            message=f"Token '{identifier}' is not a supported symbol or a valid contract address.",
            error_type="UnknownSymbol",
            details=details
        )


class InvalidAmountFormatError(TradingMCPError):
    """Raised when an amount string fails the decimal grammar or precision."""

    def __init__(self, value: str, reason: str, decimals: Optional[int] = None):
        details: dict[str, Any] = {"input": value, "reason": reason}
        if decimals is not None:
            details["decimals"] = decimals
        super().__init__(
            message=f"Invalid amount '{value}': {reason}",
            error_type="InvalidAmountFormat",
            details=details
        )


class InvalidSlippageError(TradingMCPError):
    """Raised when slippage tolerance is outside [0, 10000] basis points."""

    def __init__(self, value: int):
        super().__init__(
            message=f"Slippage tolerance {value} bps is outside the allowed range 0-10000 bps.",
            error_type="InvalidSlippage",
            details={"value": value}
        )


class InvalidRequestError(TradingMCPError):
    """Raised when a request combines fields that are mutually exclusive or malformed."""

    def __init__(self, reason: str, field: Optional[str] = None, value: Any = None):
        details: dict[str, Any] = {"reason": reason}
        if field is not None:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(
            message=f"Invalid request: {reason}",
            error_type="InvalidRequest",
            details=details
        )


class InsufficientLiquidityError(TradingMCPError):
    """Raised when pool reserves are empty or cannot cover the trade."""

    def __init__(self, pool: str, reason: str):
        super().__init__(
            message=f"Insufficient liquidity in pool {pool}: {reason}",
            error_type="InsufficientLiquidity",
            details={"pool": pool, "reason": reason}
        )


class ChainUnavailableError(TradingMCPError):
    """Raised when the chain data source cannot be reached. Transient."""

    def __init__(self, cause: str):
        super().__init__(
            message=f"Blockchain node unavailable: {cause}",
            error_type="ChainUnavailable",
            details={"cause": cause, "retryable": True}
        )


class ChainDataNotFoundError(TradingMCPError):
    """Raised when the queried address or pool does not exist on-chain."""

    def __init__(self, what: str):
        super().__init__(
            message=f"Not found on-chain: {what}",
            error_type="ChainDataNotFound",
            details={"what": what, "retryable": False}
        )


class InternalError(TradingMCPError):
    """Raised for any condition not otherwise classified."""

    def __init__(self, cause: str):
        super().__init__(
            message=f"Internal error: {cause}",
            error_type="Internal",
            details={"cause": cause}
        )


def translate_chain_error(error: ChainPortError) -> TradingMCPError:
    """
    Map a chain data source failure onto the service error taxonomy.

    Every ChainPortError kind maps to exactly one service error. Unrecognised
    subclasses are reported as internal errors and logged.

    Args:
        error: The failure raised by a ChainDataPort implementation

    Returns:
        The service error to raise in its place
    """
    if isinstance(error, ChainTransportError):
        return ChainUnavailableError(str(error))
    if isinstance(error, (ChainNotFoundError, ChainRevertError)):
        return ChainDataNotFoundError(str(error))
    if isinstance(error, ChainResponseError):
        logger.error("Malformed response from chain data source: %s", error)
        return InternalError(str(error))
    logger.error("Unclassified chain data failure %s: %s", type(error).__name__, error)
    return InternalError(f"{type(error).__name__}: {error}")


def format_error_response(error: Exception) -> dict[str, Any]:
    """
    Format any exception into a standardized error response.

    Args:
        error: The exception to format

    Returns:
        Dictionary with standardized error format
    """
    if isinstance(error, TradingMCPError):
        return error.to_dict()

    if isinstance(error, ChainPortError):
        return translate_chain_error(error).to_dict()

    # Handle Pydantic validation errors
    if hasattr(error, "errors"):
        errors = error.errors()
        if errors:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get("loc", []))
            message = first_error.get("msg", str(error))
            reason = f"field '{field}': {message}" if field else message
            return InvalidRequestError(reason, field=field or None).to_dict()

    logger.exception("Unhandled error while serving request", exc_info=error)
    return InternalError(f"{type(error).__name__}: {error}").to_dict()
