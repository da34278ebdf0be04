"""Conversion between raw on-chain integers and human decimal strings.

Everything here is integer arithmetic. Amounts never pass through a float.
"""

import re
from fractions import Fraction
from typing import Union

from .errors import InvalidAmountFormatError

MAX_DECIMALS = 255
DEFAULT_RATIO_PRECISION = 18

_AMOUNT_PATTERN = re.compile(r"^([0-9]+)(?:\.([0-9]+))?$")


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise ValueError(f"decimals must be an integer, got {decimals!r}")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals must be within 0-{MAX_DECIMALS}, got {decimals}")


def to_decimal(raw: int, decimals: int) -> str:
    """
    Render a raw amount as the minimal exact decimal string.

    At least one digit is kept on each side of the separator, so whole
    amounts end in ".0". Tokens with zero decimals have no separator.

    Args:
        raw: Non-negative amount in the token's smallest unit
        decimals: Token decimals

    Returns:
        Human-readable amount, e.g. ``to_decimal(1500000, 6) == "1.5"``
    """
    _check_decimals(decimals)
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ValueError(f"raw amount must be a non-negative integer, got {raw!r}")
    if decimals == 0:
        return str(raw)
    whole, remainder = divmod(raw, 10**decimals)
    fraction = str(remainder).rjust(decimals, "0").rstrip("0") or "0"
    return f"{whole}.{fraction}"


def to_raw(amount: str, decimals: int) -> int:
    """
    Parse a human decimal string into the token's smallest unit.

    Trailing zeros in the fractional part are not significant. Any other
    fractional digit beyond ``decimals`` is rejected rather than truncated.

    Args:
        amount: Non-negative base-10 numeral with at most one "."
        decimals: Token decimals

    Returns:
        Raw integer amount

    Raises:
        InvalidAmountFormatError: If the grammar or precision check fails
    """
    _check_decimals(decimals)
    if not isinstance(amount, str):
        raise InvalidAmountFormatError(
            repr(amount), "amount must be given as a decimal string", decimals
        )
    match = _AMOUNT_PATTERN.match(amount.strip())
    if match is None:
        raise InvalidAmountFormatError(
            amount, "expected a non-negative base-10 number such as '1' or '0.5'", decimals
        )
    whole, fraction = match.group(1), match.group(2) or ""
    significant = fraction.rstrip("0")
    if len(significant) > decimals:
        raise InvalidAmountFormatError(
            amount,
            f"has {len(significant)} fractional digits but the token supports {decimals}",
            decimals,
        )
    scaled_fraction = int(significant.ljust(decimals, "0")) if decimals else 0
    return int(whole) * 10**decimals + scaled_fraction


def human_ratio(
    numerator: int,
    denominator: int,
    numerator_decimals: int,
    denominator_decimals: int,
) -> Fraction:
    """Exact ratio of two raw amounts expressed in their human units."""
    _check_decimals(numerator_decimals)
    _check_decimals(denominator_decimals)
    if denominator == 0:
        raise ZeroDivisionError("ratio denominator is zero")
    return Fraction(
        numerator * 10**denominator_decimals,
        denominator * 10**numerator_decimals,
    )


def format_ratio(
    value: Union[Fraction, int],
    denominator: int = 1,
    precision: int = DEFAULT_RATIO_PRECISION,
) -> str:
    """Render an exact non-negative ratio, truncated to ``precision`` digits."""
    ratio = Fraction(value) / denominator
    if ratio < 0:
        raise ValueError(f"ratio must be non-negative, got {ratio}")
    scaled = ratio.numerator * 10**precision // ratio.denominator
    return to_decimal(scaled, precision)


def format_bps_percent(bps: int) -> str:
    """Basis points as a percent string: 50 -> "0.5"."""
    return to_decimal(bps, 2)
