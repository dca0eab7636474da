"""Dashboard view of ledger state.

Turns LedgerState into display-ready strings. Rendering targets only
consume DashboardView and never touch the ledger directly.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import IO, Optional
import sys

from binary_ledger.models import LedgerState, Trade

_CENTS = Decimal("0.01")
_TENTHS = Decimal("0.1")


def format_money(value: Decimal) -> str:
    """Two decimal places, half-up rounding."""
    return str(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_percent(value: Decimal) -> str:
    """One decimal place, half-up rounding."""
    return str(Decimal(value).quantize(_TENTHS, rounding=ROUND_HALF_UP))


def format_signed_payout(payout: Decimal) -> str:
    prefix = "+" if payout > 0 else ""
    return f"{prefix}{format_money(payout)}"


@dataclass(frozen=True)
class TradeRow:
    """One line of the recent trades table."""
    asset: str
    direction: str
    amount: str
    payout: str
    status_class: str
    time: str

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeRow":
        return cls(
            asset=trade.asset,
            direction=trade.direction.value,
            amount=f"${format_money(trade.amount)}",
            payout=format_signed_payout(trade.payout),
            status_class=f"status-{trade.result.value}",
            time=trade.timestamp.astimezone().strftime("%H:%M:%S"),
        )


@dataclass(frozen=True)
class DashboardView:
    """Display-ready values for one render."""
    balance: str
    today_profit: str
    win_rate: str
    trade_count: int
    risk_exposure: str
    paused: bool
    recent_trades: tuple[TradeRow, ...]


def win_rate(state: LedgerState) -> str:
    stats = state.today_stats
    if stats.trades <= 0:
        return "0"
    return format_percent(Decimal(stats.wins) / Decimal(stats.trades) * 100)


def risk_exposure(state: LedgerState) -> str:
    """Default trade amount as a percentage of balance."""
    if state.balance <= 0:
        return "0.0%"
    pct = state.settings.default_trade_amount / state.balance * 100
    return f"{format_percent(pct)}%"


def build_dashboard(state: LedgerState) -> DashboardView:
    """Build the dashboard view for the current ledger state."""
    return DashboardView(
        balance=format_money(state.balance),
        today_profit=format_money(state.today_stats.profit),
        win_rate=win_rate(state),
        trade_count=state.today_stats.trades,
        risk_exposure=risk_exposure(state),
        paused=state.is_paused,
        recent_trades=tuple(TradeRow.from_trade(t) for t in state.recent_trades),
    )


class ConsoleRenderer:
    """Writes the dashboard as plain text."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream or sys.stdout
        self.last_view: Optional[DashboardView] = None

    def format(self, view: DashboardView) -> str:
        status = "⏸️ PAUSED" if view.paused else "✅ Active"
        lines = [
            "📊 Session Dashboard",
            f"Balance: ${view.balance}",
            f"Today P&L: ${view.today_profit}",
            f"Win Rate: {view.win_rate}%",
            f"Trades: {view.trade_count}",
            f"Risk Exposure: {view.risk_exposure}",
            f"Status: {status}",
        ]
        if view.recent_trades:
            lines.append("Recent Trades:")
            for row in view.recent_trades:
                emoji = "🟢" if row.status_class == "status-win" else "🔴"
                lines.append(
                    f"  {emoji} {row.time} {row.asset} {row.direction} "
                    f"{row.amount} -> {row.payout}"
                )
        else:
            lines.append("No trades yet")
        return "\n".join(lines)

    def render(self, state: LedgerState) -> DashboardView:
        view = build_dashboard(state)
        self.last_view = view
        self.stream.write(self.format(view) + "\n")
        return view
