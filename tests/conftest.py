"""Pytest configuration and shared fixtures."""

import itertools
import json
from datetime import datetime, timedelta, timezone

import pytest

from binary_ledger import SessionLedger, SequenceOutcome
from binary_ledger.persistence import MemoryStore
from binary_ledger.presentation import NotificationCenter
from binary_ledger.risk import NotificationPolicy


class TickingClock:
    """Clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


def counting_ids():
    counter = itertools.count(1)
    return lambda: f"trade-{next(counter)}"


@pytest.fixture
def notifications():
    """Notification center with a frozen clock."""
    return NotificationCenter(clock=lambda: 0.0)


@pytest.fixture
def make_ledger(notifications):
    """Factory for ledgers with scripted outcomes."""
    def factory(outcomes=(), policy=NotificationPolicy.EDGE, **kwargs):
        kwargs.setdefault("clock", TickingClock())
        kwargs.setdefault("id_factory", counting_ids())
        kwargs.setdefault("notifier", notifications.publish)
        return SessionLedger(
            outcome_source=SequenceOutcome(outcomes),
            notification_policy=policy,
            **kwargs,
        )
    return factory


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def valid_config_data():
    """Return valid configuration data."""
    return {
        "log_level": "DEBUG",
        "ledger": {
            "starting_balance": "2500",
            "default_trade_amount": "25",
            "daily_profit_target": "200",
            "daily_loss_limit": "-100",
            "max_consecutive_losses": 4,
            "default_asset": "GBP/USD",
            "default_expiry": "5m",
        },
        "outcome": {
            "win_probability": 0.55,
            "payout_multiplier": "1.85",
            "seed": 7,
        },
        "storage": {
            "backend": "sqlite",
            "path": "data/test.db",
            "key": "tradingData",
        },
        "notifications": {
            "policy": "level",
            "display_seconds": 5,
        },
        "telegram": {
            "enabled": False,
            "token": "",
            "chat_id": "",
        },
    }


@pytest.fixture
def config_file(tmp_path, valid_config_data):
    """Create a temporary config file with valid data."""
    config_path = tmp_path / "config.json"
    with open(config_path, "w") as f:
        json.dump(valid_config_data, f)
    return config_path
