"""Core data models for the binary options session ledger."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
import json


class Direction(Enum):
    """Side of a binary option."""
    CALL = "CALL"
    PUT = "PUT"

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        """Accept an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown direction: {value!r}") from None


class TradeResult(Enum):
    """Outcome of a settled trade."""
    WIN = "win"
    LOSS = "loss"


DEFAULT_BALANCE = Decimal("10000.00")
DEFAULT_TRADE_AMOUNT = Decimal("50")
DEFAULT_PROFIT_TARGET = Decimal("500")
DEFAULT_LOSS_LIMIT = Decimal("-300")
DEFAULT_MAX_CONSECUTIVE_LOSSES = 3
RECENT_TRADES_SHOWN = 5


@dataclass(frozen=True)
class Trade:
    """Settled trade record. Never mutated once created."""
    id: str
    asset: str
    direction: Direction
    amount: Decimal
    expiry: str
    result: TradeResult
    payout: Decimal
    timestamp: datetime

    @property
    def is_winner(self) -> bool:
        return self.result is TradeResult.WIN

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "asset": self.asset,
            "direction": self.direction.value,
            "amount": str(self.amount),
            "expiry": self.expiry,
            "result": self.result.value,
            "payout": str(self.payout),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Trade":
        """Create from dictionary.

        Raises:
            KeyError, ValueError, TypeError: if the record is malformed.
        """
        return cls(
            id=str(data["id"]),
            asset=str(data["asset"]),
            direction=Direction.parse(data["direction"]),
            amount=Decimal(str(data["amount"])),
            expiry=str(data.get("expiry", "")),
            result=TradeResult(str(data["result"]).lower()),
            payout=Decimal(str(data["payout"])),
            timestamp=datetime.fromisoformat(str(data["timestamp"]).replace("Z", "+00:00")),
        )

    def to_json(self) -> str:
        """Serialize trade to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "Trade":
        """Deserialize trade from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class TodayStats:
    """Running statistics for the current trading day."""
    profit: Decimal = Decimal("0")
    trades: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        """Win percentage, 0.0 when no trades were placed."""
        if self.trades <= 0:
            return 0.0
        return self.wins / self.trades * 100

    def record(self, trade: Trade) -> None:
        self.profit += trade.payout
        self.trades += 1
        if trade.is_winner:
            self.wins += 1
        else:
            self.losses += 1

    def to_dict(self) -> dict:
        return {
            "profit": str(self.profit),
            "trades": self.trades,
            "wins": self.wins,
            "losses": self.losses,
        }


@dataclass
class LedgerSettings:
    """User-adjustable risk settings."""
    default_trade_amount: Decimal = DEFAULT_TRADE_AMOUNT
    daily_profit_target: Decimal = DEFAULT_PROFIT_TARGET
    daily_loss_limit: Decimal = DEFAULT_LOSS_LIMIT
    max_consecutive_losses: int = DEFAULT_MAX_CONSECUTIVE_LOSSES

    def to_dict(self) -> dict:
        return {
            "dailyProfitTarget": str(self.daily_profit_target),
            "dailyLossLimit": str(self.daily_loss_limit),
            "maxConsecutiveLosses": self.max_consecutive_losses,
            "defaultTradeAmount": str(self.default_trade_amount),
        }


@dataclass
class LedgerState:
    """Complete mutable state of one trading session."""
    balance: Decimal = DEFAULT_BALANCE
    settings: LedgerSettings = field(default_factory=LedgerSettings)
    consecutive_losses: int = 0
    is_paused: bool = False
    today_stats: TodayStats = field(default_factory=TodayStats)
    history: list[Trade] = field(default_factory=list)

    @property
    def recent_trades(self) -> list[Trade]:
        """Most recent trades, newest first."""
        return self.history[:RECENT_TRADES_SHOWN]

    @property
    def latest_trade(self) -> Optional[Trade]:
        return self.history[0] if self.history else None


class Severity(Enum):
    """Display severity of a notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


DEFAULT_DISPLAY_SECONDS = 3.0


@dataclass(frozen=True)
class Notification:
    """Transient user-facing message."""
    message: str
    severity: Severity = Severity.INFO
    duration: float = DEFAULT_DISPLAY_SECONDS
