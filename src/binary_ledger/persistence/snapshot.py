"""Snapshot encoding for ledger persistence.

A snapshot is a JSON-compatible dict. Decoding never rejects a whole
snapshot: every field that is missing or malformed falls back to its
default on its own.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from binary_ledger.models import (
    DEFAULT_BALANCE,
    LedgerSettings,
    LedgerState,
    TodayStats,
    Trade,
)
from binary_ledger.settings import (
    coerce_loss_limit,
    coerce_max_losses,
    coerce_profit_target,
    coerce_trade_amount,
    parse_decimal,
    parse_int,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "tradingData"


def encode_snapshot(state: LedgerState) -> dict:
    """Convert ledger state to a snapshot dictionary."""
    return {
        "balance": str(state.balance),
        "tradeHistory": [trade.to_dict() for trade in state.history],
        "todayStats": state.today_stats.to_dict(),
        "settings": state.settings.to_dict(),
        "riskState": {
            "consecutiveLosses": state.consecutive_losses,
            "isPaused": state.is_paused,
        },
    }


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(f"Snapshot field {key!r} is not an object, using defaults")
        return {}
    return value


def _count(section: dict, key: str) -> int:
    value = parse_int(section.get(key))
    if value is None or value < 0:
        if key in section:
            logger.warning(f"Snapshot count {key!r}={section[key]!r} invalid, using 0")
        return 0
    return value


def _decode_balance(raw: Any) -> Decimal:
    value = parse_decimal(raw)
    if value is None:
        if raw is not None:
            logger.warning(f"Snapshot balance {raw!r} invalid, using {DEFAULT_BALANCE}")
        return DEFAULT_BALANCE
    return value


def _decode_stats(section: dict) -> TodayStats:
    profit = parse_decimal(section.get("profit"))
    wins = _count(section, "wins")
    losses = _count(section, "losses")
    trades = _count(section, "trades")
    if trades != wins + losses:
        logger.warning(
            f"Snapshot trade count {trades} disagrees with {wins} wins + "
            f"{losses} losses, recomputing"
        )
        trades = wins + losses
    return TodayStats(
        profit=profit if profit is not None else Decimal("0"),
        trades=trades,
        wins=wins,
        losses=losses,
    )


def _decode_settings(section: dict) -> LedgerSettings:
    # Absent keys use defaults silently; present-but-bad keys are logged by coerce_*
    defaults = LedgerSettings()
    return LedgerSettings(
        default_trade_amount=(
            coerce_trade_amount(section["defaultTradeAmount"])
            if "defaultTradeAmount" in section else defaults.default_trade_amount
        ),
        daily_profit_target=(
            coerce_profit_target(section["dailyProfitTarget"])
            if "dailyProfitTarget" in section else defaults.daily_profit_target
        ),
        daily_loss_limit=(
            coerce_loss_limit(section["dailyLossLimit"])
            if "dailyLossLimit" in section else defaults.daily_loss_limit
        ),
        max_consecutive_losses=(
            coerce_max_losses(section["maxConsecutiveLosses"])
            if "maxConsecutiveLosses" in section else defaults.max_consecutive_losses
        ),
    )


def _decode_history(raw: Any) -> list[Trade]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Snapshot trade history is not a list, starting empty")
        return []

    history = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            logger.warning(f"Skipping history entry {index}: not an object")
            continue
        try:
            history.append(Trade.from_dict(entry))
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            logger.warning(f"Skipping history entry {index}: {e}")
    return history


def decode_snapshot(data: Optional[dict]) -> LedgerState:
    """Rebuild ledger state from a snapshot, field by field.

    Args:
        data: Snapshot dictionary, or None when nothing was stored

    Returns:
        Ledger state; defaults wherever the snapshot is unusable
    """
    if not data:
        return LedgerState()
    if not isinstance(data, dict):
        logger.warning(f"Snapshot is a {type(data).__name__}, not an object; using defaults")
        return LedgerState()

    settings = _decode_settings(_section(data, "settings"))
    risk = _section(data, "riskState")
    consecutive = _count(risk, "consecutiveLosses")
    is_paused = risk.get("isPaused") is True
    if is_paused and consecutive < settings.max_consecutive_losses:
        logger.warning("Snapshot pause flag inconsistent with loss streak, clearing it")
        is_paused = False

    return LedgerState(
        balance=_decode_balance(data.get("balance")),
        settings=settings,
        consecutive_losses=consecutive,
        is_paused=is_paused,
        today_stats=_decode_stats(_section(data, "todayStats")),
        history=_decode_history(data.get("tradeHistory")),
    )
