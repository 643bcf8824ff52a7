"""
Command Errors
Failure types raised while registering, routing and executing commands
"""

from typing import Any, Optional


class CommandExecutionError(Exception):
    """Base class for failures that abort a single interaction."""

    default_message = "Error whilst executing command"

    def __init__(
        self,
        detail: str = "",
        user_message: Optional[str] = None,
        outcome: Any = None,
    ):
        self.detail = detail or self.default_message
        # Shown to the invoker when nothing was replied yet
        self.user_message = user_message
        # Command-specific outcome, set by handlers that track one
        self.outcome = outcome
        super().__init__(self.detail)


class MalformedInvocation(CommandExecutionError):
    """The interaction is missing context or arguments its schema guarantees."""

    default_message = "Malformed command invocation"


class RemoteOperationFailure(CommandExecutionError):
    """A call to the Discord API failed."""

    default_message = "Remote operation failed"

    def __init__(
        self,
        operation: str,
        target: Any = None,
        detail: str = "",
        user_message: Optional[str] = None,
        outcome: Any = None,
    ):
        self.operation = operation
        self.target = target
        super().__init__(detail, user_message, outcome)

    def __str__(self) -> str:
        return f"{self.operation}({self.target}) failed: {self.detail}"


class DuplicateCommandError(ValueError):
    """Two handlers were registered under the same command name."""


class ResponseAlreadySent(RuntimeError):
    """An initial reply was attempted on an interaction that already has one."""


class InteractionNotAcknowledged(RuntimeError):
    """A followup was attempted before the interaction was replied to."""


class CommandSyncError(RuntimeError):
    """Pushing command schemas to a guild failed and the policy forbids degrading."""

    def __init__(self, guild_id: int, cause: Optional[BaseException] = None):
        self.guild_id = guild_id
        self.cause = cause
        super().__init__(f"Failed to register commands for guild {guild_id}: {cause}")
