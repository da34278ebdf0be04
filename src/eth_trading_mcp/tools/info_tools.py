"""Read-only MCP tools: balances and token prices."""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import TradingMCPError, format_error_response
from ..service import TradingService
from ..validation import BalanceParams, TokenPriceParams

logger = logging.getLogger(__name__)


async def get_balance(
    service: TradingService,
    wallet_address: Optional[str] = None,
    token_contract_address: Optional[str] = None,
) -> dict[str, Any]:
    try:
        params = BalanceParams(
            wallet_address=wallet_address,
            token_contract_address=token_contract_address,
        )
    except PydanticValidationError as exc:
        return format_error_response(exc)

    try:
        result = await service.balance(
            params.wallet_address, params.token_contract_address
        )
    except TradingMCPError as exc:
        logger.error("Failed to get balance: %s", exc)
        return format_error_response(exc)
    return {"success": True, "data": result.to_dict()}


async def get_token_price(
    service: TradingService,
    symbol: Optional[str] = None,
    contract_address: Optional[str] = None,
) -> dict[str, Any]:
    try:
        params = TokenPriceParams(symbol=symbol, contract_address=contract_address)
    except PydanticValidationError as exc:
        return format_error_response(exc)

    try:
        result = await service.price(
            symbol=params.symbol, contract_address=params.contract_address
        )
    except TradingMCPError as exc:
        logger.error("Failed to get token price: %s", exc)
        return format_error_response(exc)
    return {"success": True, "data": result.to_dict()}
