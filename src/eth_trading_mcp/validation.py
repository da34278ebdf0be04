"""Input validation helpers for the MCP tools."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _strip_identifier(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Token identifier cannot be empty")
    return cleaned


def _validate_address(value: str) -> str:
    address = value.strip()
    if not address.startswith("0x"):
        raise ValueError("Address must start with '0x'")
    if len(address) != 42:
        raise ValueError("Address must be 42 characters long")
    try:
        int(address, 16)
    except ValueError as exc:
        raise ValueError("Address must be hexadecimal") from exc
    return address


class BalanceParams(BaseModel):
    wallet_address: str
    token_contract_address: Optional[str] = Field(
        default=None, description="Token symbol or contract address; ETH when omitted"
    )

    @field_validator("wallet_address")
    @classmethod
    def validate_wallet(cls, value: str) -> str:
        return _validate_address(value)

    @field_validator("token_contract_address")
    @classmethod
    def validate_token(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _strip_identifier(value)


class TokenPriceParams(BaseModel):
    symbol: Optional[str] = Field(default=None, min_length=1, max_length=42)
    contract_address: Optional[str] = Field(default=None)

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _strip_identifier(value)

    @field_validator("contract_address")
    @classmethod
    def validate_contract(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _validate_address(value)


class SwapQuoteParams(BaseModel):
    from_token: str = Field(min_length=1, max_length=42)
    to_token: str = Field(min_length=1, max_length=42)
    amount: str = Field(min_length=1)
    slippage_tolerance_bps: int = Field(default=50)
    uniswap_version: str = Field(default="v2")
    from_address: Optional[str] = Field(default=None)
    fee_tier: int = Field(default=3000)

    @field_validator("from_token", "to_token")
    @classmethod
    def validate_token(cls, value: str) -> str:
        return _strip_identifier(value)

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value):
        # Integers are exact; floats are not accepted as amounts.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("uniswap_version", mode="before")
    @classmethod
    def validate_version(cls, value: Optional[str]) -> str:
        if value is None:
            return "v2"
        return str(value).strip().lower()

    @field_validator("from_address")
    @classmethod
    def validate_from_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _validate_address(value)

    @model_validator(mode="after")
    def validate_distinct_tokens(self):
        if self.from_token.upper() == self.to_token.upper():
            raise ValueError("from_token and to_token must differ")
        return self
