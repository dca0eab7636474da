"""Session risk guards.

Consecutive-loss pause and daily threshold notifications. Both operate
on a LedgerState owned by the SessionLedger.
"""

import logging
from enum import Enum

from .models import LedgerState, Notification, Severity

logger = logging.getLogger(__name__)


class NotificationPolicy(Enum):
    """When threshold notifications fire.

    LEVEL fires on every check while a threshold is crossed.
    EDGE fires once per crossing and re-arms when the condition clears
    or the day is reset.
    """
    LEVEL = "level"
    EDGE = "edge"


class LimitKind(Enum):
    """Threshold checked after every ledger mutation."""
    PROFIT_TARGET = "profit_target"
    LOSS_LIMIT = "loss_limit"
    LOSS_STREAK = "loss_streak"


def paused_message(max_consecutive_losses: int) -> str:
    return f"Trading paused after {max_consecutive_losses} consecutive losses"


class ConsecutiveLossTracker:
    """Tracks the losing streak and the sticky trading pause.

    - A win resets the counter to zero
    - A loss increments it; reaching the configured maximum pauses trading
    - The pause is only lifted by reset()
    """

    def __init__(self, state: LedgerState):
        """Initialize loss tracker.

        Args:
            state: Ledger state holding the counter and pause flag
        """
        self.state = state

    @property
    def consecutive_losses(self) -> int:
        return self.state.consecutive_losses

    @property
    def should_halt_trading(self) -> bool:
        return self.state.is_paused

    def record_win(self) -> None:
        """Record a winning trade, resetting the counter."""
        self.state.consecutive_losses = 0

    def record_loss(self) -> bool:
        """Record a losing trade.

        Returns:
            True if this loss paused trading
        """
        self.state.consecutive_losses += 1
        limit = self.state.settings.max_consecutive_losses
        if not self.state.is_paused and self.state.consecutive_losses >= limit:
            self.state.is_paused = True
            logger.warning(
                f"Loss streak of {self.state.consecutive_losses} reached limit "
                f"{limit}, trading paused"
            )
            return True
        return False

    def apply_limit(self) -> bool:
        """Re-check the pause against the current maximum.

        A pause below the limit is lifted; a streak at or above a lowered
        limit does not start a pause until the next loss.

        Returns:
            True if the pause was lifted
        """
        limit = self.state.settings.max_consecutive_losses
        if self.state.is_paused and self.state.consecutive_losses < limit:
            self.state.is_paused = False
            logger.info(
                f"Loss streak of {self.state.consecutive_losses} is below new limit "
                f"{limit}, trading resumed"
            )
            return True
        return False

    def reset(self) -> None:
        """Clear the streak and lift the pause."""
        self.state.consecutive_losses = 0
        self.state.is_paused = False

    def get_status(self) -> dict:
        """Get current streak status."""
        return {
            "consecutive_losses": self.state.consecutive_losses,
            "max_consecutive_losses": self.state.settings.max_consecutive_losses,
            "is_paused": self.state.is_paused,
        }


class TradingLimitMonitor:
    """Evaluates the daily profit target, loss limit and loss streak.

    Checks are independent and non-exclusive: one call can report
    any combination of the three.
    """

    def __init__(self, policy: NotificationPolicy = NotificationPolicy.EDGE):
        self.policy = policy
        self._latched: set[LimitKind] = set()

    def _crossed(self, state: LedgerState) -> dict[LimitKind, Notification]:
        settings = state.settings
        profit = state.today_stats.profit
        crossed = {}
        if profit >= settings.daily_profit_target:
            crossed[LimitKind.PROFIT_TARGET] = Notification(
                f"Daily profit target reached! ${settings.daily_profit_target}",
                Severity.SUCCESS,
            )
        if profit <= settings.daily_loss_limit:
            crossed[LimitKind.LOSS_LIMIT] = Notification(
                f"Daily loss limit hit! ${settings.daily_loss_limit}",
                Severity.DANGER,
            )
        if state.consecutive_losses >= settings.max_consecutive_losses:
            crossed[LimitKind.LOSS_STREAK] = Notification(
                paused_message(settings.max_consecutive_losses),
                Severity.WARNING,
            )
        return crossed

    def check(self, state: LedgerState) -> list[Notification]:
        """Return the notifications due for the current state.

        Args:
            state: Ledger state to inspect

        Returns:
            Notifications in profit, loss, streak order
        """
        crossed = self._crossed(state)

        if self.policy is NotificationPolicy.LEVEL:
            return list(crossed.values())

        due = [n for kind, n in crossed.items() if kind not in self._latched]
        self._latched = set(crossed)
        return due

    def rearm(self) -> None:
        """Forget which thresholds have already been reported."""
        self._latched.clear()

    @property
    def latched(self) -> frozenset:
        return frozenset(self._latched)
