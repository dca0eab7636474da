"""Presentation of ledger state: dashboard rendering and notifications."""

from .dashboard import (
    ConsoleRenderer,
    DashboardView,
    TradeRow,
    build_dashboard,
    format_money,
    format_signed_payout,
)
from .notifications import (
    NotificationCenter,
    TelegramConfig,
    TelegramForwarder,
    format_notification,
)

__all__ = [
    "ConsoleRenderer",
    "DashboardView",
    "TradeRow",
    "build_dashboard",
    "format_money",
    "format_signed_payout",
    "NotificationCenter",
    "TelegramConfig",
    "TelegramForwarder",
    "format_notification",
]
