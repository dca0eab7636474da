"""Configuration management module for the binary ledger."""

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .models import (
    DEFAULT_BALANCE,
    DEFAULT_LOSS_LIMIT,
    DEFAULT_MAX_CONSECUTIVE_LOSSES,
    DEFAULT_PROFIT_TARGET,
    DEFAULT_TRADE_AMOUNT,
    DEFAULT_DISPLAY_SECONDS,
    LedgerSettings,
    LedgerState,
)
from .outcome import DEFAULT_WIN_PROBABILITY
from .persistence.snapshot import STORAGE_KEY
from .risk import NotificationPolicy


@dataclass
class LedgerConfig:
    """Starting values for a fresh session."""
    starting_balance: Decimal = DEFAULT_BALANCE
    default_trade_amount: Decimal = DEFAULT_TRADE_AMOUNT
    daily_profit_target: Decimal = DEFAULT_PROFIT_TARGET
    daily_loss_limit: Decimal = DEFAULT_LOSS_LIMIT
    max_consecutive_losses: int = DEFAULT_MAX_CONSECUTIVE_LOSSES
    default_asset: str = "EUR/USD"
    default_expiry: str = "1m"
    assets: list[str] = field(default_factory=lambda: [
        "EUR/USD", "GBP/USD", "USD/JPY", "BTC/USD"
    ])
    expiries: list[str] = field(default_factory=lambda: ["30s", "1m", "5m", "15m"])

    def initial_state(self) -> LedgerState:
        """Fresh session state built from these values."""
        return LedgerState(
            balance=self.starting_balance,
            settings=LedgerSettings(
                default_trade_amount=self.default_trade_amount,
                daily_profit_target=self.daily_profit_target,
                daily_loss_limit=self.daily_loss_limit,
                max_consecutive_losses=self.max_consecutive_losses,
            ),
        )


@dataclass
class OutcomeConfig:
    """Simulated outcome policy."""
    win_probability: float = DEFAULT_WIN_PROBABILITY
    payout_multiplier: Decimal = Decimal("1.8")
    seed: int | None = None


@dataclass
class StorageConfig:
    """Snapshot storage configuration."""
    backend: str = "json"
    path: str = "data/ledger.json"
    key: str = STORAGE_KEY


@dataclass
class NotificationConfig:
    """Notification display configuration."""
    policy: NotificationPolicy = NotificationPolicy.EDGE
    display_seconds: float = DEFAULT_DISPLAY_SECONDS


@dataclass
class TelegramSettings:
    """Telegram forwarding configuration."""
    enabled: bool = False
    token: str = ""
    chat_id: str = ""


@dataclass
class Config:
    """Main configuration container."""
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    outcome: OutcomeConfig = field(default_factory=OutcomeConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    telegram: TelegramSettings = field(default_factory=TelegramSettings)
    log_level: str = "INFO"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


STORAGE_BACKENDS = ("json", "sqlite", "memory")


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except ArithmeticError:
        raise ConfigValidationError(f"{name} must be a number, got {value!r}") from None


class ConfigManager:
    """Manages loading and validation of configuration."""

    def __init__(self, config_path: str | Path | None = None, load_env: bool = True):
        """Initialize configuration manager.

        Args:
            config_path: Path to config.json file. If None, uses default location.
            load_env: Whether to load .env file and environment overrides.
                Set to False for testing.
        """
        self.config_path = Path(config_path) if config_path else Path("config/config.json")
        self._config: Config | None = None
        self._load_env = load_env
        if load_env:
            load_dotenv()

    @property
    def config(self) -> Config:
        if self._config is None:
            return self.load()
        return self._config

    def load(self) -> Config:
        """Load configuration from file and environment variables.

        Returns:
            Loaded and validated Config object.

        Raises:
            ConfigValidationError: If values are missing or invalid.
        """
        config_data = self._load_json()
        self._config = self._parse_config(config_data)
        self._override_from_env()
        self._validate()
        return self._config

    def _load_json(self) -> dict[str, Any]:
        """Load JSON configuration file."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigValidationError(f"Invalid JSON in {self.config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"{self.config_path} must contain a JSON object")
        return data

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration dictionary into Config object."""
        ledger_data = data.get("ledger", {})
        outcome_data = data.get("outcome", {})
        storage_data = data.get("storage", {})
        notification_data = data.get("notifications", {})
        telegram_data = data.get("telegram", {})
        defaults = LedgerConfig()

        try:
            policy = NotificationPolicy(notification_data.get("policy", "edge"))
        except ValueError:
            raise ConfigValidationError(
                f"notifications.policy must be 'edge' or 'level', "
                f"got {notification_data.get('policy')!r}"
            ) from None

        return Config(
            ledger=LedgerConfig(
                starting_balance=_decimal(
                    ledger_data.get("starting_balance", DEFAULT_BALANCE), "ledger.starting_balance"
                ),
                default_trade_amount=_decimal(
                    ledger_data.get("default_trade_amount", DEFAULT_TRADE_AMOUNT),
                    "ledger.default_trade_amount",
                ),
                daily_profit_target=_decimal(
                    ledger_data.get("daily_profit_target", DEFAULT_PROFIT_TARGET),
                    "ledger.daily_profit_target",
                ),
                daily_loss_limit=_decimal(
                    ledger_data.get("daily_loss_limit", DEFAULT_LOSS_LIMIT),
                    "ledger.daily_loss_limit",
                ),
                max_consecutive_losses=ledger_data.get(
                    "max_consecutive_losses", DEFAULT_MAX_CONSECUTIVE_LOSSES
                ),
                default_asset=ledger_data.get("default_asset", defaults.default_asset),
                default_expiry=ledger_data.get("default_expiry", defaults.default_expiry),
                assets=ledger_data.get("assets", defaults.assets),
                expiries=ledger_data.get("expiries", defaults.expiries),
            ),
            outcome=OutcomeConfig(
                win_probability=outcome_data.get("win_probability", DEFAULT_WIN_PROBABILITY),
                payout_multiplier=_decimal(
                    outcome_data.get("payout_multiplier", "1.8"), "outcome.payout_multiplier"
                ),
                seed=outcome_data.get("seed"),
            ),
            storage=StorageConfig(
                backend=storage_data.get("backend", "json"),
                path=storage_data.get("path", "data/ledger.json"),
                key=storage_data.get("key", STORAGE_KEY),
            ),
            notifications=NotificationConfig(
                policy=policy,
                display_seconds=notification_data.get(
                    "display_seconds", DEFAULT_DISPLAY_SECONDS
                ),
            ),
            telegram=TelegramSettings(
                enabled=telegram_data.get("enabled", False),
                token=telegram_data.get("token", ""),
                chat_id=telegram_data.get("chat_id", ""),
            ),
            log_level=data.get("log_level", "INFO"),
        )

    def _override_from_env(self) -> None:
        """Override configuration values from environment variables."""
        if not self._config:
            return

        # Skip env overrides if load_env is False (for testing)
        if not self._load_env:
            return

        # Outcome
        if win_prob := os.getenv("BINARY_LEDGER_WIN_PROBABILITY"):
            try:
                self._config.outcome.win_probability = float(win_prob)
            except ValueError:
                raise ConfigValidationError(
                    f"BINARY_LEDGER_WIN_PROBABILITY must be a number, got {win_prob!r}"
                ) from None
        if seed := os.getenv("BINARY_LEDGER_SEED"):
            try:
                self._config.outcome.seed = int(seed)
            except ValueError:
                raise ConfigValidationError(
                    f"BINARY_LEDGER_SEED must be an integer, got {seed!r}"
                ) from None

        # Storage
        if backend := os.getenv("BINARY_LEDGER_STORAGE"):
            self._config.storage.backend = backend
        if path := os.getenv("BINARY_LEDGER_STORAGE_PATH"):
            self._config.storage.path = path

        # Notifications
        if policy := os.getenv("BINARY_LEDGER_NOTIFY_POLICY"):
            try:
                self._config.notifications.policy = NotificationPolicy(policy.lower())
            except ValueError:
                raise ConfigValidationError(
                    f"BINARY_LEDGER_NOTIFY_POLICY must be 'edge' or 'level', got {policy!r}"
                ) from None

        # Telegram
        if token := os.getenv("TELEGRAM_BOT_TOKEN"):
            self._config.telegram.token = token
            self._config.telegram.enabled = True
        if chat_id := os.getenv("TELEGRAM_CHAT_ID"):
            self._config.telegram.chat_id = chat_id

        if level := os.getenv("LOG_LEVEL"):
            self._config.log_level = level

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigValidationError: If validation fails.
        """
        if not self._config:
            raise ConfigValidationError("Configuration not loaded")

        errors = []
        ledger = self._config.ledger
        outcome = self._config.outcome

        if ledger.starting_balance < 0:
            errors.append("ledger.starting_balance must be >= 0")
        if ledger.default_trade_amount <= 0:
            errors.append("ledger.default_trade_amount must be > 0")
        if ledger.daily_loss_limit >= 0:
            errors.append("ledger.daily_loss_limit must be negative")
        if not isinstance(ledger.max_consecutive_losses, int) or ledger.max_consecutive_losses < 1:
            errors.append("ledger.max_consecutive_losses must be an integer >= 1")
        if ledger.assets and ledger.default_asset not in ledger.assets:
            errors.append("ledger.default_asset must be one of ledger.assets")
        if ledger.expiries and ledger.default_expiry not in ledger.expiries:
            errors.append("ledger.default_expiry must be one of ledger.expiries")
        if not 0.0 <= outcome.win_probability <= 1.0:
            errors.append("outcome.win_probability must be between 0 and 1")
        if outcome.payout_multiplier <= 0:
            errors.append("outcome.payout_multiplier must be > 0")
        if self._config.storage.backend.lower() not in STORAGE_BACKENDS:
            errors.append(f"storage.backend must be one of {', '.join(STORAGE_BACKENDS)}")
        if self._config.notifications.display_seconds <= 0:
            errors.append("notifications.display_seconds must be > 0")
        if self._config.telegram.enabled and not self._config.telegram.chat_id:
            errors.append("telegram.chat_id is required when telegram is enabled")

        if errors:
            raise ConfigValidationError("\n".join(errors))
