#!/usr/bin/env python3
"""Binary Ledger - Interactive Session Entry Point.

Opens the saved session (or a fresh one), then reads slash commands
from stdin until EOF or /quit.

Usage:
    python main.py
    python main.py --config config/config.json --seed 42
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables first
load_dotenv(override=True)

from binary_ledger import BernoulliOutcome, SessionLedger, render_with
from binary_ledger.commands import CommandHandler
from binary_ledger.config import ConfigManager, ConfigValidationError
from binary_ledger.persistence import create_store
from binary_ledger.presentation import (
    ConsoleRenderer,
    NotificationCenter,
    TelegramConfig,
    TelegramForwarder,
)

logger = logging.getLogger(__name__)


def setup_logging(level: str, log_dir: str | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.FileHandler(Path(log_dir) / f"session_{datetime.now():%Y%m%d_%H%M%S}.log")
        )
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s',
        datefmt='%H:%M:%S',
        handlers=handlers,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def ask_yes_no(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for an interactive session."""
    parser = argparse.ArgumentParser(description="Simulated binary options session")
    parser.add_argument("--config", default=None, help="Path to config.json")
    parser.add_argument("--seed", type=int, default=None, help="Seed for trade outcomes")
    parser.add_argument("--log-dir", default=None, help="Also write logs to this directory")
    args = parser.parse_args(argv)

    try:
        config = ConfigManager(config_path=args.config).load()
    except ConfigValidationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level, args.log_dir)

    notifications = NotificationCenter(display_seconds=config.notifications.display_seconds)
    if config.telegram.enabled:
        notifications.add_sink(TelegramForwarder(TelegramConfig(
            bot_token=config.telegram.token,
            chat_id=config.telegram.chat_id,
            enabled=True,
        )))

    store = create_store(config.storage.backend, config.storage.path, config.storage.key)
    seed = args.seed if args.seed is not None else config.outcome.seed
    ledger = SessionLedger.open(
        store,
        initial_state=config.ledger.initial_state(),
        outcome_source=BernoulliOutcome(config.outcome.win_probability, seed=seed),
        payout_multiplier=config.outcome.payout_multiplier,
        notification_policy=config.notifications.policy,
        notifier=notifications.publish,
    )

    renderer = ConsoleRenderer(sys.stdout)
    ledger.add_observer(render_with(renderer.render))
    renderer.render(ledger.state)
    ledger.check_trading_limits()

    handler = CommandHandler(
        ledger,
        default_asset=config.ledger.default_asset,
        default_expiry=config.ledger.default_expiry,
        confirm=ask_yes_no,
        assets=config.ledger.assets,
        expiries=config.ledger.expiries,
    )
    print("Type /help for commands, /quit to exit.")

    try:
        while True:
            try:
                line = input("> ")
            except EOFError:
                break
            if line.strip().lower() in ("/quit", "/exit"):
                break
            response = handler.handle(line)
            if response:
                print(response)
            for message in notifications.get_pending_messages():
                print(message)
    except KeyboardInterrupt:
        print()
    finally:
        ledger.close()

    logger.info("👋 Session closed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
