"""
Discord bot client setup using discord.py.
"""

import asyncio
from typing import Dict, Optional

import discord

from bot.config import Config
from bot.keep_alive import run_server
from bot.platform import DiscordRemoteAPI, event_from_interaction, ready_from_user
from commands.command_registry import CommandRegistry, build_registry
from commands.errors import CommandSyncError
from commands.interaction_router import InteractionRouter
from utils.error_handler import setup_error_handler
from utils.logger import get_logger
from utils.monitoring import Monitoring

logger = get_logger("Client")

# How long shutdown waits for running commands before cancelling them
SHUTDOWN_GRACE_SECONDS = 10


class GuildModBot(discord.Client):
    """Discord moderation bot client."""

    def __init__(
        self,
        config: Config,
        registry: Optional[CommandRegistry] = None,
        monitoring: Optional[Monitoring] = None,
        serve_health: bool = True,
    ):
        intents = discord.Intents.default()
        intents.members = True
        super().__init__(intents=intents)

        self.config = config
        # The one-shot push login must not bind the health server port
        self.serve_health = serve_health
        self.monitoring = monitoring or Monitoring()
        self.registry = registry or build_registry(config)
        self.api = DiscordRemoteAPI(self)
        self.router = InteractionRouter.from_config(self.registry, self.api, config, self.monitoring)

        # Track uptime
        self.start_time: Optional[float] = None

        # Set when command registration failed under the fail/retry policies
        self.sync_error: Optional[CommandSyncError] = None

        self._keep_alive_task: Optional[asyncio.Task] = None

    async def setup_hook(self):
        """Called when bot is starting up."""
        logger.info("Setting up bot...")

        if self.config.KEEP_ALIVE and self.serve_health:
            self._keep_alive_task = run_server(self.config, self.monitoring)

        logger.info("Bot setup complete")

    async def on_ready(self):
        """Called when bot is ready."""
        self.start_time = asyncio.get_running_loop().time()
        self.monitoring.set_connected(True)

        logger.info(f"Logged in as: {self.user}")

        try:
            await self.router.on_ready(ready_from_user(self.user))
        except CommandSyncError as error:
            logger.error(f"{error} - shutting down")
            self.sync_error = error
            await self.close()

    async def on_resumed(self):
        self.monitoring.set_connected(True)

    async def on_disconnect(self):
        self.monitoring.set_connected(False)

    async def on_interaction(self, interaction: discord.Interaction):
        """Route slash command interactions."""
        event = event_from_interaction(interaction)
        if event is None:
            return
        await self.router.on_interaction(event)

    async def close(self):
        """Clean shutdown."""
        logger.info("Shutting down bot...")

        pending = self.router.pending_tasks
        if pending:
            logger.info(f"Waiting for {len(pending)} running command(s)...")
            _, still_running = await asyncio.wait(pending, timeout=SHUTDOWN_GRACE_SECONDS)
            for task in still_running:
                task.cancel()

        if self._keep_alive_task and not self._keep_alive_task.done():
            self._keep_alive_task.cancel()

        self.monitoring.set_connected(False)
        await super().close()


def create_bot(config: Config, serve_health: bool = True) -> GuildModBot:
    """Create and return bot instance."""
    return GuildModBot(config, serve_health=serve_health)


async def run_bot(config: Config) -> None:
    """
    Run the bot until it is closed.

    Raises:
        ConfigError: if the configuration is invalid
        CommandSyncError: if command registration failed and the policy forbids degrading
    """
    config.validate()

    bot = create_bot(config)

    # SIGINT/SIGTERM close the client, which ends bot.start()
    setup_error_handler(on_shutdown=bot.close)

    async with bot:
        await bot.start(config.DISCORD_TOKEN)

    if bot.sync_error is not None:
        raise bot.sync_error


async def push_commands(config: Config) -> Dict[int, bool]:
    """
    Log in, overwrite every configured guild's command set, and exit.

    Returns:
        Mapping of guild ID to whether its commands were registered
    """
    config.validate()

    bot = create_bot(config, serve_health=False)
    async with bot:
        await bot.login(config.DISCORD_TOKEN)
        return await bot.router.sync_commands()
