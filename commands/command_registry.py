"""
Command Registry
Centralized command registration and lookup
"""

from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from commands.base import CommandHandler, CommandSchema
from commands.errors import DuplicateCommandError
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.config import Config


class CommandRegistry:
    """Ordered, name-keyed collection of command handlers."""

    def __init__(self):
        self.logger = get_logger("CommandRegistry")
        self.commands: Dict[str, CommandHandler] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, handler: CommandHandler) -> "CommandRegistry":
        """
        Register a command handler.

        Args:
            handler: Handler whose schema name becomes the lookup key

        Returns:
            Self for chaining

        Raises:
            DuplicateCommandError: if a handler with the same name exists
            RuntimeError: if the registry was already frozen
        """
        if self._frozen:
            raise RuntimeError("Cannot register commands after the registry is frozen")

        key = handler.name.lower()
        if key in self.commands:
            raise DuplicateCommandError(
                f"Command {handler.name!r} is already registered by {self.commands[key]!r}"
            )

        self.commands[key] = handler
        self.logger.debug(f"Registered command: {handler.name}")
        return self

    def freeze(self) -> "CommandRegistry":
        """Stop accepting registrations. Lookups stay lock-free afterwards."""
        self._frozen = True
        return self

    def lookup(self, name: str) -> Optional[CommandHandler]:
        """
        Get a command by name.

        Args:
            name: Command name

        Returns:
            Handler or None if not found
        """
        if not name:
            return None
        return self.commands.get(name.lower())

    def has(self, name: str) -> bool:
        return self.lookup(name) is not None

    def get_all(self) -> List[CommandHandler]:
        """Get all registered handlers in registration order."""
        return list(self.commands.values())

    def all_schemas(self) -> List[CommandSchema]:
        """
        Get every schema in registration order, for bulk upload.

        Returns:
            List of command schemas
        """
        return [handler.schema for handler in self.commands.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[CommandHandler]:
        return iter(self.get_all())


def build_registry(config: Optional["Config"] = None) -> CommandRegistry:
    """
    Build the frozen registry of every command the bot ships.

    Args:
        config: Bot configuration (defaults apply when omitted)

    Returns:
        Frozen CommandRegistry
    """
    from commands.ban_command import BanCommand

    delete_message_days = config.BAN_DELETE_MESSAGE_DAYS if config is not None else 0

    registry = CommandRegistry()
    registry.register(BanCommand(delete_message_days=delete_message_days))
    registry.freeze()

    registry.logger.info(f"Registered {len(registry)} commands")
    return registry
