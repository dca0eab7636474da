"""Text command handling for an interactive session.

Maps the dashboard's controls (CALL and PUT buttons, the settings form
and the reset-day button) onto slash commands.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Sequence

from .ledger import SessionLedger
from .models import Direction
from .presentation.dashboard import ConsoleRenderer, build_dashboard, format_signed_payout
from .settings import coerce_trade_amount

logger = logging.getLogger(__name__)


class Command(Enum):
    """Supported commands."""
    CALL = "/call"
    PUT = "/put"
    SETTINGS = "/settings"
    RESET = "/reset"
    STATUS = "/status"
    HELP = "/help"


HELP_TEXT = (
    "Commands:\n"
    "/call [amount] [asset] [expiry] - Place a CALL trade\n"
    "/put [amount] [asset] [expiry] - Place a PUT trade\n"
    "/settings profit=500 loss=-300 maxlosses=3 amount=50 - Save settings\n"
    "/reset - Reset today's stats\n"
    "/status - Show the dashboard\n"
    "/help - Show this message"
)

_SETTING_KEYS = {
    "profit": "profit_target",
    "loss": "loss_limit",
    "maxlosses": "max_losses",
    "amount": "default_amount",
}


def _choose(value: str, allowed: list[str]) -> Optional[str]:
    """Match value against allowed, ignoring case. Empty allowed accepts anything."""
    if not allowed:
        return value
    for option in allowed:
        if option.lower() == value.lower():
            return option
    return None


class CommandHandler:
    """Dispatches text commands to a SessionLedger."""

    def __init__(
        self,
        ledger: SessionLedger,
        default_asset: str = "EUR/USD",
        default_expiry: str = "1m",
        confirm: Optional[Callable[[str], bool]] = None,
        assets: Optional[Sequence[str]] = None,
        expiries: Optional[Sequence[str]] = None,
    ):
        """Initialize command handler.

        Args:
            ledger: Session to operate on
            default_asset: Asset used when a trade command names none
            default_expiry: Expiry used when a trade command names none
            confirm: Asks the user a yes/no question; without it /reset
                needs an explicit "yes" argument
            assets: Tradable assets; any asset is accepted when empty
            expiries: Allowed expiry labels; any label is accepted when empty
        """
        self.ledger = ledger
        self.default_asset = default_asset
        self.default_expiry = default_expiry
        self._confirm = confirm
        self.assets = list(assets or [])
        self.expiries = list(expiries or [])
        self._renderer = ConsoleRenderer()

    def handle(self, line: str) -> str:
        """Handle one command line.

        Returns:
            Response text
        """
        parts = line.strip().split()
        if not parts:
            return ""

        name, args = parts[0].lower(), parts[1:]
        try:
            command = Command(name)
        except ValueError:
            return f"Unknown command {parts[0]!r}. Type /help for commands."

        if command is Command.CALL:
            return self._handle_trade(Direction.CALL, args)
        if command is Command.PUT:
            return self._handle_trade(Direction.PUT, args)
        if command is Command.SETTINGS:
            return self._handle_settings(args)
        if command is Command.RESET:
            return self._handle_reset(args)
        if command is Command.STATUS:
            return self._handle_status()
        return HELP_TEXT

    def _handle_trade(self, direction: Direction, args: list[str]) -> str:
        default_amount = self.ledger.settings.default_trade_amount
        amount: Decimal = coerce_trade_amount(args[0], default_amount) if args else default_amount
        raw_asset = args[1] if len(args) > 1 else self.default_asset
        raw_expiry = args[2] if len(args) > 2 else self.default_expiry

        asset = _choose(raw_asset, self.assets)
        if asset is None:
            return f"Unknown asset {raw_asset!r}. Choose from {', '.join(self.assets)}."
        expiry = _choose(raw_expiry, self.expiries)
        if expiry is None:
            return f"Unknown expiry {raw_expiry!r}. Choose from {', '.join(self.expiries)}."

        trade = self.ledger.place_trade(direction, amount, asset, expiry)
        if trade is None:
            return "🛑 Trade rejected: trading is paused. Use /reset to start a new day."

        emoji = "🟢" if trade.is_winner else "🔴"
        return (
            f"{emoji} {trade.result.value.upper()} {trade.direction.value} {trade.asset} "
            f"${trade.amount} ({trade.expiry}) {format_signed_payout(trade.payout)}\n"
            f"Balance: ${build_dashboard(self.ledger.state).balance}"
        )

    def _handle_settings(self, args: list[str]) -> str:
        values = {}
        for arg in args:
            key, sep, value = arg.partition("=")
            target = _SETTING_KEYS.get(key.lower())
            if not sep or target is None:
                return f"Unknown setting {arg!r}. Use {', '.join(_SETTING_KEYS)}."
            values[target] = value

        settings = self.ledger.update_settings(**values)
        return (
            f"⚙️ Settings saved\n"
            f"Profit Target: ${settings.daily_profit_target}\n"
            f"Loss Limit: ${settings.daily_loss_limit}\n"
            f"Max Consecutive Losses: {settings.max_consecutive_losses}\n"
            f"Default Amount: ${settings.default_trade_amount}"
        )

    def _handle_reset(self, args: list[str]) -> str:
        question = "Are you sure you want to reset daily stats?"
        if args:
            confirmed = args[0].lower() in ("y", "yes")
        elif self._confirm is not None:
            confirmed = self._confirm(question)
        else:
            return f"{question} Repeat as '/reset yes' to confirm."

        if not confirmed:
            return "Reset cancelled."
        self.ledger.reset_daily_stats()
        return "🔄 Daily stats reset. Trading resumed."

    def _handle_status(self) -> str:
        return self._renderer.format(build_dashboard(self.ledger.state))
