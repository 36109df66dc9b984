#!/usr/bin/env python3
"""
tradehook - Main Entry Point.

Executes a single alert message against the configured exchanges.

Usage:
    python -m tradehook.main config/config.yaml --message "paper(BTCUSD){buy(1)}"
    echo "paper(BTCUSD){buy(1)}" | python -m tradehook.main config/config.yaml
    python -m tradehook.main config/config.yaml --message "..." --dry-run

Environment:
    TRADEHOOK_<NAME>_KEY: API key for the exchange alias <NAME>
    TRADEHOOK_<NAME>_SECRET: API secret for the exchange alias <NAME>
    TRADEHOOK_LOG_LEVEL: Overrides the configured log level
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from config.settings import BotConfig
from tradehook.commands import iter_blocks, parse_actions
from tradehook.core import ExchangeManager
from tradehook.exchanges import default_catalog
from tradehook.notifications import LoggingChannel, Notifier, WebhookChannel
from tradehook.utils.config_loader import ConfigLoader


def setup_logging(level: str, log_file: Optional[str] = None) -> None:
    """
    Configure logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for logging
    """
    console_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    file_format = (
        "%(asctime)s [%(levelname)s] %(name)s "
        "(%(filename)s:%(lineno)d): %(message)s"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)  # Log everything to file
        file_handler.setFormatter(logging.Formatter(file_format))
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Execute alert messages against exchanges",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a message against the paper exchange
  python -m tradehook.main config/config.yaml --message "paper(BTCUSD){buy(1)}"

  # Show what a message would do without executing it
  python -m tradehook.main config/config.yaml --message "..." --dry-run
        """,
    )

    parser.add_argument(
        "config",
        type=str,
        help="Path to configuration YAML file",
    )

    parser.add_argument(
        "--message",
        type=str,
        default=None,
        help="Alert message to execute (default: read from stdin)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the parsed blocks and actions and exit",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path (default: from config, else console only)",
    )

    return parser.parse_args(argv)


def build_notifier(config: BotConfig) -> Notifier:
    """Create the notifier with the configured channels."""
    notifier = Notifier()
    if config.notifications.log_alerts:
        notifier.add_channel(LoggingChannel())
    if config.notifications.webhook_url:
        notifier.add_channel(
            WebhookChannel(
                config.notifications.webhook_url,
                timeout=config.notifications.webhook_timeout,
            )
        )
    return notifier


def print_dry_run(message: str) -> None:
    """Print the blocks and actions a message contains."""
    blocks = list(iter_blocks(message))
    if not blocks:
        print("No command blocks found")
        return

    for block in blocks:
        print(f"{block.exchange_name} {block.symbol}")
        for action in parse_actions(block.actions_text):
            print(f"  {action}")


async def main(config: BotConfig, message: str) -> int:
    """
    Main async entry point.

    Args:
        config: Loaded configuration
        message: Alert message to execute

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    logger = logging.getLogger(__name__)

    notifier = build_notifier(config)
    if config.notifications.alert_on_startup:
        await notifier.send_async(f"tradehook starting up at {datetime.utcnow().isoformat()}.")

    manager = ExchangeManager(default_catalog(), notifier, config.dispatch)

    try:
        tasks = manager.execute_message(message, config.credentials)
        logger.info(f"Dispatched {len(tasks)} command blocks")
    finally:
        await manager.shutdown()

    stats = manager.failures.get_stats()
    if stats["total"]:
        logger.warning(f"Finished with {stats['total']} failures: {stats['by_category']}")
    else:
        logger.info("Finished without failures")
    return 0


def run(argv=None) -> None:
    """Synchronous entry point."""
    args = parse_args(argv)

    try:
        config = ConfigLoader(args.config).load()
    except Exception as e:
        print(f"Error loading config: {e}")
        sys.exit(1)

    setup_logging(
        args.log_level or config.logging.level,
        args.log_file or config.logging.file_path,
    )
    logger = logging.getLogger(__name__)

    errors = config.validate()
    if errors:
        print("Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    message = args.message if args.message is not None else sys.stdin.read()
    if not message.strip():
        logger.error("No message given. Pass --message or pipe it on stdin.")
        sys.exit(1)

    if args.dry_run:
        print_dry_run(message)
        sys.exit(0)

    try:
        exit_code = asyncio.run(main(config, message))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        exit_code = 0

    logger.info(f"Exiting with code {exit_code}")
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
