"""Conversion between minor units (cents) and display dollars"""

import enum
import math
from dataclasses import dataclass
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from issuing_console.config import settings

Number = Union[int, float, Decimal, str]

_CENT = Decimal("0.01")


def to_minor_units(display: Optional[Number], allow_negative: bool = False) -> int:
    """
    Convert a display amount to integer cents.

    Multiplies by 100 and rounds half away from zero. Non-finite, unparseable
    and (unless allowed) negative inputs yield 0, which callers treat as
    "no limit".

    Example:
        12.5 -> 1250, "0.005" -> 1
    """
    if display is None or isinstance(display, bool):
        return 0
    if isinstance(display, float) and not math.isfinite(display):
        return 0
    try:
        # str() keeps floats at their shortest repr, so 0.29 stays 0.29
        value = Decimal(str(display).strip())
    except (InvalidOperation, ValueError):
        return 0
    if not value.is_finite():
        return 0
    if value < 0 and not allow_negative:
        return 0
    try:
        return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except DecimalException:
        # More digits than the decimal context can hold
        return 0


def to_display_units(minor: Optional[int]) -> Optional[Decimal]:
    """Cents to dollars rounded to 2 decimals; None stays None (no limit set)"""
    if minor is None:
        return None
    return (Decimal(minor) / 100).quantize(_CENT, rounding=ROUND_HALF_UP)


def format_amount(cents: Optional[int]) -> str:
    """Human-readable dollars, e.g. 123456 -> "1,234.56"; None -> "-" """
    if cents is None:
        return "-"
    return f"{to_display_units(cents):,.2f}"


class LimitState(str, enum.Enum):
    UNSET = "unset"
    INVALID = "invalid"
    AMOUNT = "amount"


@dataclass(frozen=True)
class LimitInput:
    """Parsed limit field: unset, invalid, or a positive amount in cents"""

    state: LimitState
    cents: Optional[int] = None
    raw: str = ""

    @property
    def is_set(self) -> bool:
        return self.state == LimitState.AMOUNT


def parse_limit_input(text: Optional[Number], max_cents: Optional[int] = None) -> LimitInput:
    """
    Resolve a limit form field at the display-to-domain boundary.

    Blank means no limit. Zero, negative, or non-numeric text is INVALID rather
    than silently collapsing into "no limit", and so is anything above
    max_cents (settings.max_limit_cents by default).
    """
    if text is None:
        return LimitInput(LimitState.UNSET)
    raw = str(text).strip()
    if not raw:
        return LimitInput(LimitState.UNSET, raw=raw)
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return LimitInput(LimitState.INVALID, raw=raw)
    if not value.is_finite() or value <= 0:
        return LimitInput(LimitState.INVALID, raw=raw)
    cents = to_minor_units(value)
    ceiling = settings.max_limit_cents if max_cents is None else max_cents
    if cents <= 0 or cents > ceiling:
        return LimitInput(LimitState.INVALID, raw=raw)
    return LimitInput(LimitState.AMOUNT, cents=cents, raw=raw)
