"""
Binary Ledger - simulated binary options session tracker.

Places coin-flip binary options trades against a fake balance, tracks
today's statistics and a consecutive-loss pause, and persists the session
to a local key-value store.
"""

__version__ = "1.0.0"

from .models import (
    Direction,
    TradeResult,
    Trade,
    TodayStats,
    LedgerSettings,
    LedgerState,
    Severity,
    Notification,
)
from .outcome import BernoulliOutcome, SequenceOutcome, OutcomeExhaustedError
from .risk import NotificationPolicy
from .ledger import SessionLedger, LedgerEvent, persist_to, render_with

__all__ = [
    "Direction",
    "TradeResult",
    "Trade",
    "TodayStats",
    "LedgerSettings",
    "LedgerState",
    "Severity",
    "Notification",
    "BernoulliOutcome",
    "SequenceOutcome",
    "OutcomeExhaustedError",
    "NotificationPolicy",
    "SessionLedger",
    "LedgerEvent",
    "persist_to",
    "render_with",
]
