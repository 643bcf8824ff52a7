"""
Command Base
Schema metadata and the abstract handler every slash command implements
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import discord

from commands.models import InteractionContext

# Discord application command type for slash commands
CHAT_INPUT_COMMAND = 1


@dataclass(frozen=True)
class CommandParameter:
    """One typed option of a slash command."""

    name: str
    type: discord.AppCommandOptionType
    description: str = ""
    required: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }


@dataclass(frozen=True)
class CommandSchema:
    """Definition of a slash command as uploaded to Discord."""

    name: str
    description: str = ""
    parameters: Tuple[CommandParameter, ...] = field(default_factory=tuple)
    default_permission: Optional[discord.Permissions] = None
    allowed_in_direct_message: bool = True

    def get_parameter(self, name: str) -> Optional[CommandParameter]:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    def to_payload(self) -> Dict[str, Any]:
        """
        Build the application command JSON body.

        Returns:
            Dict accepted by the bulk overwrite guild commands endpoint
        """
        default_member_permissions = None
        if self.default_permission is not None:
            default_member_permissions = str(self.default_permission.value)

        return {
            "name": self.name,
            "description": self.description,
            "type": CHAT_INPUT_COMMAND,
            "options": [parameter.to_payload() for parameter in self.parameters],
            "default_member_permissions": default_member_permissions,
            "dm_permission": self.allowed_in_direct_message,
        }


class CommandHandler(ABC):
    """A single slash command: its schema plus an async entry point."""

    @property
    @abstractmethod
    def schema(self) -> CommandSchema:
        ...

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def description(self) -> str:
        return self.schema.description

    @abstractmethod
    async def execute(self, ctx: InteractionContext) -> Any:
        """
        Run the command for one interaction.

        Args:
            ctx: Interaction context with options, reply channel and remote API

        Returns:
            A command-specific outcome

        Raises:
            CommandExecutionError: when the interaction cannot be completed
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
