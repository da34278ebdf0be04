"""Swap simulation MCP tool. Quotes only; nothing is signed or sent."""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import TradingMCPError, format_error_response
from ..service import TradingService
from ..validation import SwapQuoteParams

logger = logging.getLogger(__name__)


async def swap_tokens(
    service: TradingService,
    from_token: Optional[str] = None,
    to_token: Optional[str] = None,
    amount: Optional[str] = None,
    slippage_tolerance_bps: int = 50,
    uniswap_version: Optional[str] = "v2",
    from_address: Optional[str] = None,
    fee_tier: int = 3000,
) -> dict[str, Any]:
    try:
        params = SwapQuoteParams(
            from_token=from_token,
            to_token=to_token,
            amount=amount,
            slippage_tolerance_bps=slippage_tolerance_bps,
            uniswap_version=uniswap_version,
            from_address=from_address,
            fee_tier=fee_tier,
        )
    except PydanticValidationError as exc:
        return format_error_response(exc)

    try:
        result = await service.swap_quote(
            from_token=params.from_token,
            to_token=params.to_token,
            amount=params.amount,
            slippage_tolerance_bps=params.slippage_tolerance_bps,
            pool_version=params.uniswap_version,
            from_address=params.from_address,
            fee_tier=params.fee_tier,
        )
    except TradingMCPError as exc:
        logger.error("Failed to simulate swap: %s", exc)
        return format_error_response(exc)
    return {"success": True, "data": result.to_dict()}
