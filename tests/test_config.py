"""Tests for configuration module."""

import json
from decimal import Decimal

import pytest

from binary_ledger.config import Config, ConfigManager, ConfigValidationError
from binary_ledger.risk import NotificationPolicy


class TestConfigLoading:
    """Loading from JSON."""

    def test_missing_file_gives_defaults(self, tmp_path):
        manager = ConfigManager(config_path=tmp_path / "absent.json", load_env=False)

        config = manager.load()

        assert config == Config()
        assert config.ledger.starting_balance == Decimal("10000.00")
        assert config.notifications.policy is NotificationPolicy.EDGE

    def test_values_from_file(self, config_file):
        config = ConfigManager(config_path=config_file, load_env=False).load()

        assert config.ledger.starting_balance == Decimal("2500")
        assert config.ledger.max_consecutive_losses == 4
        assert config.ledger.default_asset == "GBP/USD"
        assert config.outcome.win_probability == 0.55
        assert config.outcome.payout_multiplier == Decimal("1.85")
        assert config.outcome.seed == 7
        assert config.storage.backend == "sqlite"
        assert config.notifications.policy is NotificationPolicy.LEVEL
        assert config.log_level == "DEBUG"

    def test_initial_state_from_config(self, config_file):
        config = ConfigManager(config_path=config_file, load_env=False).load()

        state = config.ledger.initial_state()

        assert state.balance == Decimal("2500")
        assert state.settings.default_trade_amount == Decimal("25")
        assert state.settings.daily_loss_limit == Decimal("-100")
        assert state.settings.max_consecutive_losses == 4

    def test_config_property_loads_lazily(self, config_file):
        manager = ConfigManager(config_path=config_file, load_env=False)

        assert manager.config.ledger.default_expiry == "5m"


class TestConfigValidation:
    """Invalid values are rejected with every error listed."""

    def _write(self, tmp_path, data) -> ConfigManager:
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data))
        return ConfigManager(config_path=path, load_env=False)

    @pytest.mark.parametrize("section,key,value", [
        ("ledger", "default_trade_amount", "0"),
        ("ledger", "daily_loss_limit", "300"),
        ("ledger", "max_consecutive_losses", 0),
        ("ledger", "starting_balance", "-1"),
        ("outcome", "win_probability", 1.5),
        ("outcome", "payout_multiplier", "0"),
        ("storage", "backend", "redis"),
        ("notifications", "display_seconds", 0),
    ])
    def test_rejects_invalid_value(self, tmp_path, section, key, value):
        manager = self._write(tmp_path, {section: {key: value}})

        with pytest.raises(ConfigValidationError):
            manager.load()

    def test_rejects_non_numeric_decimal(self, tmp_path):
        manager = self._write(tmp_path, {"ledger": {"starting_balance": "lots"}})

        with pytest.raises(ConfigValidationError):
            manager.load()

    def test_rejects_unknown_policy(self, tmp_path):
        manager = self._write(tmp_path, {"notifications": {"policy": "sometimes"}})

        with pytest.raises(ConfigValidationError):
            manager.load()

    def test_rejects_broken_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops")

        with pytest.raises(ConfigValidationError):
            ConfigManager(config_path=path, load_env=False).load()

    def test_collects_all_errors(self, tmp_path):
        manager = self._write(tmp_path, {
            "ledger": {"default_trade_amount": "0", "max_consecutive_losses": 0},
        })

        with pytest.raises(ConfigValidationError) as exc_info:
            manager.load()

        message = str(exc_info.value)
        assert "default_trade_amount" in message
        assert "max_consecutive_losses" in message

    @pytest.mark.parametrize("ledger_data", [
        {"default_asset": "DOGE/USD"},
        {"default_expiry": "1h"},
        {"assets": ["BTC/USD"]},
    ])
    def test_default_must_be_a_configured_choice(self, tmp_path, ledger_data):
        manager = self._write(tmp_path, {"ledger": ledger_data})

        with pytest.raises(ConfigValidationError):
            manager.load()

    def test_telegram_requires_chat_id(self, tmp_path):
        manager = self._write(tmp_path, {"telegram": {"enabled": True, "token": "t"}})

        with pytest.raises(ConfigValidationError):
            manager.load()


class TestEnvironmentOverrides:
    """Environment variables win over the file."""

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("BINARY_LEDGER_WIN_PROBABILITY", "0.25")
        monkeypatch.setenv("BINARY_LEDGER_SEED", "99")
        monkeypatch.setenv("BINARY_LEDGER_STORAGE", "memory")
        monkeypatch.setenv("BINARY_LEDGER_NOTIFY_POLICY", "EDGE")
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "chat")
        monkeypatch.chdir(config_file.parent)

        config = ConfigManager(config_path=config_file, load_env=True).load()

        assert config.outcome.win_probability == 0.25
        assert config.outcome.seed == 99
        assert config.storage.backend == "memory"
        assert config.notifications.policy is NotificationPolicy.EDGE
        assert config.telegram.enabled is True
        assert config.telegram.chat_id == "chat"

    def test_env_ignored_when_disabled(self, config_file, monkeypatch):
        monkeypatch.setenv("BINARY_LEDGER_STORAGE", "memory")

        config = ConfigManager(config_path=config_file, load_env=False).load()

        assert config.storage.backend == "sqlite"

    def test_invalid_env_policy(self, config_file, monkeypatch):
        monkeypatch.setenv("BINARY_LEDGER_NOTIFY_POLICY", "never")
        monkeypatch.chdir(config_file.parent)

        with pytest.raises(ConfigValidationError):
            ConfigManager(config_path=config_file, load_env=True).load()

    @pytest.mark.parametrize("name,value", [
        ("BINARY_LEDGER_WIN_PROBABILITY", "likely"),
        ("BINARY_LEDGER_SEED", "1.5"),
    ])
    def test_invalid_numeric_env(self, config_file, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        monkeypatch.chdir(config_file.parent)

        with pytest.raises(ConfigValidationError):
            ConfigManager(config_path=config_file, load_env=True).load()
