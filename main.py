"""
Entry point for the Discord moderation bot.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from bot import __version__
from bot.client import push_commands, run_bot
from bot.config import Config, ConfigError
from utils.logger import get_logger, set_default_level, setup_logging

logger = get_logger("Main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guildmod", description="Discord moderation bot")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("start", help="Starts the bot")
    subcommands.add_parser("push", help="Pushes the latest commands to Discord")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.from_env()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if config.DEBUG:
        set_default_level(logging.DEBUG)

    # Route discord.py's own logging through the same console
    setup_logging("discord", logging.WARNING)

    try:
        if args.command == "push":
            logger.info("Pushing commands to Discord...")
            results = asyncio.run(push_commands(config))
            failed = [guild_id for guild_id, synced in results.items() if not synced]
            if failed:
                logger.error(f"Commands not registered for guilds: {', '.join(map(str, failed))}")
                return 1
            logger.info(f"Commands registered for {len(results)} guild(s)")
        else:
            logger.info(f"Starting moderation bot v{__version__}...")
            asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
