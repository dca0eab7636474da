"""Lenient parsing of user-entered settings.

Input comes from free-text fields. Anything that does not start with a
number, parses to zero, or would break a ledger invariant falls back to
the documented default instead of raising.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .models import (
    DEFAULT_LOSS_LIMIT,
    DEFAULT_MAX_CONSECUTIVE_LOSSES,
    DEFAULT_PROFIT_TARGET,
    DEFAULT_TRADE_AMOUNT,
    LedgerSettings,
)

logger = logging.getLogger(__name__)

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)", re.ASCII)


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse the leading decimal number of value.

    Returns:
        The number, or None when value has no usable numeric prefix
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return None
        return number if number.is_finite() else None

    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return None
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def parse_int(value: Any) -> Optional[int]:
    """Parse the leading integer of value, truncating any fraction."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = parse_decimal(value)
        return int(number) if number is not None else None

    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else None


def _fallback(name: str, raw: Any, default):
    logger.info(f"Invalid {name} {raw!r}, using default {default}")
    return default


def coerce_profit_target(raw: Any) -> Decimal:
    value = parse_decimal(raw)
    if not value:
        return _fallback("profit target", raw, DEFAULT_PROFIT_TARGET)
    return value


def coerce_loss_limit(raw: Any) -> Decimal:
    value = parse_decimal(raw)
    if value is None or value >= 0:
        return _fallback("loss limit", raw, DEFAULT_LOSS_LIMIT)
    return value


def coerce_max_losses(raw: Any) -> int:
    value = parse_int(raw)
    if value is None or value < 1:
        return _fallback("max consecutive losses", raw, DEFAULT_MAX_CONSECUTIVE_LOSSES)
    return value


def coerce_trade_amount(raw: Any, default: Decimal = DEFAULT_TRADE_AMOUNT) -> Decimal:
    value = parse_decimal(raw)
    if value is None or value <= 0:
        return _fallback("trade amount", raw, default)
    return value


def parse_settings(
    profit_target: Any = None,
    loss_limit: Any = None,
    max_losses: Any = None,
    default_amount: Any = None,
) -> LedgerSettings:
    """Build validated settings from raw form values."""
    return LedgerSettings(
        default_trade_amount=coerce_trade_amount(default_amount),
        daily_profit_target=coerce_profit_target(profit_target),
        daily_loss_limit=coerce_loss_limit(loss_limit),
        max_consecutive_losses=coerce_max_losses(max_losses),
    )
