"""
Interaction Router
Registers command schemas on ready and routes interactions to their handlers
"""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Set, Tuple

from commands.base import CommandHandler
from commands.command_registry import CommandRegistry
from commands.errors import (
    CommandExecutionError,
    CommandSyncError,
    MalformedInvocation,
    RemoteOperationFailure,
)
from commands.models import (
    InteractionContext,
    InteractionEvent,
    InteractionKind,
    ReadyEvent,
    RemoteAPI,
)
from utils.error_handler import ErrorHandler, get_error_handler
from utils.logger import get_logger
from utils.monitoring import Monitoring

if TYPE_CHECKING:
    from bot.config import Config

GENERIC_FAILURE_MESSAGE = "Something went wrong while running this command."


class SyncPolicy(Enum):
    """What to do when pushing command schemas to a guild fails."""

    FAIL = "fail"
    RETRY = "retry"
    DEGRADE = "degrade"


class InteractionRouter:
    """Routes gateway events to registered command handlers."""

    def __init__(
        self,
        registry: CommandRegistry,
        api: RemoteAPI,
        guild_ids: Iterable[int] = (),
        sync_policy: SyncPolicy = SyncPolicy.RETRY,
        sync_attempts: int = 3,
        sync_retry_delay: float = 5.0,
        monitoring: Optional[Monitoring] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.logger = get_logger("Router")
        self.registry = registry
        self.api = api
        self.guild_ids: Tuple[int, ...] = tuple(guild_ids)
        self.sync_policy = sync_policy
        self.sync_attempts = max(1, sync_attempts)
        self.sync_retry_delay = sync_retry_delay
        self.monitoring = monitoring or Monitoring()
        self.error_handler = error_handler or get_error_handler()

        # Strong references so running command tasks are not garbage collected
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        registry: CommandRegistry,
        api: RemoteAPI,
        config: "Config",
        monitoring: Optional[Monitoring] = None,
    ) -> "InteractionRouter":
        return cls(
            registry,
            api,
            guild_ids=config.GUILD_IDS,
            sync_policy=config.COMMAND_SYNC_POLICY,
            sync_attempts=config.COMMAND_SYNC_ATTEMPTS,
            sync_retry_delay=config.COMMAND_SYNC_RETRY_DELAY,
            monitoring=monitoring,
        )

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    # Ready / registration

    async def on_ready(self, event: ReadyEvent) -> Dict[int, bool]:
        """
        Handle the gateway ready event.

        Args:
            event: Ready event with the bot identity

        Returns:
            Mapping of guild ID to whether its commands were registered
        """
        self.logger.info("Connected to Discord")
        self.logger.info(f"Username: {event.bot_user.name}")
        self.logger.info(f"User Id: {event.bot_user.id}")

        return await self.sync_commands()

    async def sync_commands(self, guild_ids: Optional[Iterable[int]] = None) -> Dict[int, bool]:
        """
        Overwrite each guild's command set with the registry's schemas.

        Args:
            guild_ids: Guilds to register in (default: configured guilds)

        Returns:
            Mapping of guild ID to whether its commands were registered

        Raises:
            CommandSyncError: if a guild fails and the policy is fail or retry
        """
        targets = self.guild_ids if guild_ids is None else tuple(guild_ids)
        if not targets:
            self.logger.warning("No guilds configured - slash commands will not be registered")
            return {}

        payloads = [schema.to_payload() for schema in self.registry.all_schemas()]

        results: Dict[int, bool] = {}
        for guild_id in targets:
            results[guild_id] = await self._sync_guild(guild_id, payloads)
        return results

    async def _sync_guild(self, guild_id: int, payloads: list) -> bool:
        attempts = self.sync_attempts if self.sync_policy is SyncPolicy.RETRY else 1
        last_error: Optional[RemoteOperationFailure] = None

        for attempt in range(1, attempts + 1):
            try:
                await self.api.set_guild_commands(guild_id, payloads)
            except RemoteOperationFailure as error:
                last_error = error
                self.logger.warning(
                    f"Registering commands for guild {guild_id} failed "
                    f"(attempt {attempt}/{attempts}): {error}"
                )
                if attempt < attempts:
                    await asyncio.sleep(self.sync_retry_delay)
                continue

            self.monitoring.record_guild_sync(guild_id, True)
            self.logger.info(f"Registered {len(payloads)} commands for guild {guild_id}")
            return True

        self.monitoring.record_guild_sync(guild_id, False)

        if self.sync_policy is SyncPolicy.DEGRADE:
            self.logger.error(f"Slash commands unavailable in guild {guild_id}: {last_error}")
            return False

        raise CommandSyncError(guild_id, last_error) from last_error

    # Interactions

    async def on_interaction(self, event: InteractionEvent) -> Optional[asyncio.Task]:
        """
        Route an inbound interaction.

        The handler runs in its own task so a slow command never blocks
        delivery of later events.

        Args:
            event: Inbound interaction

        Returns:
            The task running the handler, or None if the event was dropped
        """
        if event.kind is not InteractionKind.COMMAND:
            return None

        handler = self.registry.lookup(event.command_name)
        if handler is None:
            self.monitoring.record_dropped()
            self.logger.debug(f"No handler for command {event.command_name!r}, dropping")
            return None

        task = asyncio.create_task(
            self.dispatch(event, handler),
            name=f"command:{handler.name}:{event.interaction_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def dispatch(
        self,
        event: InteractionEvent,
        handler: Optional[CommandHandler] = None,
    ) -> Any:
        """
        Execute the handler for an interaction and contain any failure.

        Args:
            event: Inbound interaction
            handler: Resolved handler (looked up by name when omitted)

        Returns:
            The handler's outcome, or None if it failed or none matched
        """
        if handler is None:
            handler = self.registry.lookup(event.command_name)
            if handler is None:
                return None

        ctx = InteractionContext.from_event(event, self.api)
        self.monitoring.record_command(handler.name)
        self.logger.debug(f"Executing: {handler.name} (user {ctx.user.id}, guild {ctx.guild_id})")

        try:
            outcome = await handler.execute(ctx)
        except CommandExecutionError as error:
            self.monitoring.record_failure(handler.name)
            if error.outcome is not None:
                self.monitoring.record_outcome(handler.name, error.outcome)
            self._log_failure(handler.name, ctx, error)
            await self._reply_failure(ctx, error.user_message)
            return None
        except Exception as error:
            self.monitoring.record_failure(handler.name)
            self.monitoring.record_error()
            self.error_handler.handle_exception(error, f"command:{handler.name}")
            await self._reply_failure(ctx, None)
            return None

        self.monitoring.record_outcome(handler.name, outcome)
        self.logger.debug(f"Command {handler.name} finished: {getattr(outcome, 'value', outcome)}")
        return outcome

    def _log_failure(self, name: str, ctx: InteractionContext, error: CommandExecutionError) -> None:
        if isinstance(error, MalformedInvocation):
            self.logger.error(
                f"Malformed /{name} invocation (interaction {ctx.interaction_id}, "
                f"user {ctx.user.id}, guild {ctx.guild_id}): {error.detail}"
            )
        elif isinstance(error, RemoteOperationFailure):
            self.logger.error(
                f"Failed to execute command {name}: {error.operation} "
                f"on {error.target} failed: {error.detail}"
            )
        else:
            self.logger.error(f"Failed to execute command {name}: {error.detail}")

    async def _reply_failure(self, ctx: InteractionContext, message: Optional[str]) -> None:
        """Best-effort ephemeral notice when a command failed before replying."""
        if ctx.response.responded and not ctx.response.deferred:
            return
        try:
            await ctx.response.send(message or GENERIC_FAILURE_MESSAGE, ephemeral=True)
        except Exception as error:
            self.logger.warning(f"Could not send failure reply for {ctx.command_name}: {error}")

    async def wait_idle(self) -> None:
        """Wait for every running command task to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
