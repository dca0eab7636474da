"""Session ledger.

The only state machine in the system. Owns balance, today's statistics,
the loss-streak pause and trade history, and exposes trade placement,
daily reset and settings updates. Storage and display are attached as
observers and only run after a state change has been committed.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Union

from .models import (
    Direction,
    LedgerSettings,
    LedgerState,
    Notification,
    Severity,
    Trade,
    TradeResult,
)
from .outcome import BernoulliOutcome, OutcomeSource
from .persistence import SnapshotStore, decode_snapshot, encode_snapshot
from .risk import (
    ConsecutiveLossTracker,
    NotificationPolicy,
    TradingLimitMonitor,
    paused_message,
)
from .settings import parse_decimal, parse_settings

logger = logging.getLogger(__name__)

DEFAULT_PAYOUT_MULTIPLIER = Decimal("1.8")


class LedgerEvent(Enum):
    """Kind of committed change passed to observers."""
    TRADE_PLACED = "trade_placed"
    DAILY_RESET = "daily_reset"
    SETTINGS_UPDATED = "settings_updated"
    RESTORED = "restored"


LedgerObserver = Callable[["SessionLedger", LedgerEvent], None]
Notifier = Callable[[Notification], Any]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_trade_id() -> str:
    return uuid.uuid4().hex


class SessionLedger:
    """Authoritative record of one simulated trading session.

    Not thread-safe; every operation runs to completion before the next.
    """

    def __init__(
        self,
        state: Optional[LedgerState] = None,
        outcome_source: Optional[OutcomeSource] = None,
        payout_multiplier: Decimal = DEFAULT_PAYOUT_MULTIPLIER,
        notification_policy: NotificationPolicy = NotificationPolicy.EDGE,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_trade_id,
    ):
        """Initialize ledger.

        Args:
            state: Starting state, defaults for a fresh session
            outcome_source: Callable returning True for a win
            payout_multiplier: Win payout as a multiple of the stake
            notification_policy: Threshold notification policy
            notifier: Receives every notification the ledger emits
            clock: Timestamp source for new trades
            id_factory: Trade id source
        """
        self.state = state or LedgerState()
        self.outcome_source = outcome_source or BernoulliOutcome()
        self.payout_multiplier = Decimal(str(payout_multiplier))
        self.notifier = notifier
        self._clock = clock
        self._id_factory = id_factory
        self._loss_tracker = ConsecutiveLossTracker(self.state)
        self._limit_monitor = TradingLimitMonitor(notification_policy)
        self._observers: list[LedgerObserver] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @classmethod
    def open(
        cls,
        store: SnapshotStore,
        initial_state: Optional[LedgerState] = None,
        **kwargs,
    ) -> "SessionLedger":
        """Load a session from a store and keep it saved there.

        Args:
            store: Snapshot store to load from and save to
            initial_state: State used when the store is empty
            **kwargs: Passed to the constructor

        Returns:
            Ledger restored from the store, or a fresh one
        """
        snapshot = store.load()
        if snapshot is None:
            logger.info("No saved session found, starting fresh")
            state = initial_state or LedgerState()
        else:
            state = decode_snapshot(snapshot)
        ledger = cls(state=state, **kwargs)
        ledger.add_observer(persist_to(store))
        logger.info(
            f"Session opened: balance ${ledger.state.balance}, "
            f"{len(ledger.state.history)} trades in history"
        )
        return ledger

    def close(self) -> None:
        """Detach all observers."""
        self._observers.clear()

    def add_observer(self, observer: LedgerObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: LedgerObserver) -> None:
        self._observers.remove(observer)

    def _commit(self, event: LedgerEvent) -> None:
        for observer in list(self._observers):
            observer(self, event)

    def _emit(self, notification: Notification) -> Notification:
        if self.notifier is not None:
            self.notifier(notification)
        return notification

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def balance(self) -> Decimal:
        return self.state.balance

    @property
    def settings(self) -> LedgerSettings:
        return self.state.settings

    @property
    def is_paused(self) -> bool:
        return self.state.is_paused

    @property
    def history(self) -> list[Trade]:
        return self.state.history

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def place_trade(
        self,
        direction: Union[Direction, str],
        amount: Union[Decimal, int, float, str],
        asset: str,
        expiry: str,
        outcome_source: Optional[OutcomeSource] = None,
    ) -> Optional[Trade]:
        """Place and immediately settle one simulated trade.

        Args:
            direction: CALL or PUT
            amount: Stake, must be positive
            asset: Asset name
            expiry: Expiry label
            outcome_source: Overrides the ledger's outcome source for this trade

        Returns:
            The settled trade, or None if trading is paused

        Raises:
            ValueError: If amount is not positive or direction is unknown
        """
        if self.state.is_paused:
            logger.info(f"Rejected {direction} trade on {asset}: trading paused")
            self._emit(Notification(
                paused_message(self.state.settings.max_consecutive_losses),
                Severity.WARNING,
            ))
            return None

        direction = Direction.parse(direction)
        stake = parse_decimal(amount)
        if stake is None or stake <= 0:
            raise ValueError(f"Trade amount must be positive, got {amount!r}")

        is_win = bool((outcome_source or self.outcome_source)())
        payout = stake * self.payout_multiplier if is_win else -stake

        trade = Trade(
            id=self._id_factory(),
            asset=asset,
            direction=direction,
            amount=stake,
            expiry=expiry,
            result=TradeResult.WIN if is_win else TradeResult.LOSS,
            payout=payout,
            timestamp=self._clock(),
        )

        self.state.balance += payout
        self.state.today_stats.record(trade)
        if is_win:
            self._loss_tracker.record_win()
        else:
            self._loss_tracker.record_loss()
        self.state.history.insert(0, trade)

        logger.info(
            f"{trade.result.value.upper()} {direction.value} {asset} ${stake} "
            f"({expiry}) payout {payout:+} -> balance ${self.state.balance}"
        )

        self._commit(LedgerEvent.TRADE_PLACED)
        self.check_trading_limits()
        return trade

    def reset_daily_stats(self) -> None:
        """Start a new trading day.

        Clears today's statistics and the loss-streak pause. Balance and
        history are kept.
        """
        self.state.today_stats.profit = Decimal("0")
        self.state.today_stats.trades = 0
        self.state.today_stats.wins = 0
        self.state.today_stats.losses = 0
        self._loss_tracker.reset()
        self._limit_monitor.rearm()
        logger.info("Daily stats reset, trading resumed")
        self._commit(LedgerEvent.DAILY_RESET)

    def check_trading_limits(self) -> list[Notification]:
        """Report crossed daily thresholds.

        Returns:
            Notifications emitted by this check
        """
        return [self._emit(n) for n in self._limit_monitor.check(self.state)]

    def update_settings(
        self,
        profit_target: Any = None,
        loss_limit: Any = None,
        max_losses: Any = None,
        default_amount: Any = None,
    ) -> LedgerSettings:
        """Replace the risk settings from raw user input.

        Unusable values fall back to their defaults. A pause is lifted
        when the loss streak is below the new maximum.

        Returns:
            The settings now in effect
        """
        settings = parse_settings(
            profit_target=profit_target,
            loss_limit=loss_limit,
            max_losses=max_losses,
            default_amount=default_amount,
        )
        self.state.settings = settings
        self._loss_tracker.apply_limit()
        logger.info(f"Settings updated: {settings}")
        self._commit(LedgerEvent.SETTINGS_UPDATED)
        self._emit(Notification("Settings saved successfully!", Severity.SUCCESS))
        return settings

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> dict:
        """Serializable copy of the full ledger state."""
        return encode_snapshot(self.state)

    def restore(self, snapshot: Optional[dict]) -> None:
        """Replace the current state with a decoded snapshot."""
        self.state = decode_snapshot(snapshot)
        self._loss_tracker = ConsecutiveLossTracker(self.state)
        self._limit_monitor.rearm()
        self._commit(LedgerEvent.RESTORED)


def persist_to(store: SnapshotStore) -> LedgerObserver:
    """Observer saving a snapshot after every committed change."""
    def save(ledger: SessionLedger, event: LedgerEvent) -> None:
        store.save(ledger.snapshot())
        logger.debug(f"Snapshot saved after {event.value}")
    return save


def render_with(render: Callable[[LedgerState], Any]) -> LedgerObserver:
    """Observer refreshing a display after trades, resets and restores."""
    def refresh(ledger: SessionLedger, event: LedgerEvent) -> None:
        if event is not LedgerEvent.SETTINGS_UPDATED:
            render(ledger.state)
    return refresh
