"""
Slash command system for the moderation bot.
"""

from .errors import (
    CommandExecutionError,
    CommandSyncError,
    DuplicateCommandError,
    MalformedInvocation,
    RemoteOperationFailure,
)
from .models import (
    GuildRecord,
    InteractionContext,
    InteractionEvent,
    InteractionKind,
    MemberRecord,
    ReadyEvent,
    RemoteAPI,
    ReplyTransport,
    ResponseChannel,
    UserRecord,
)
from .base import CommandHandler, CommandParameter, CommandSchema
from .command_registry import CommandRegistry, build_registry
from .ban_command import BanCommand, BanOutcome
from .interaction_router import InteractionRouter, SyncPolicy

__all__ = [
    "BanCommand",
    "BanOutcome",
    "CommandExecutionError",
    "CommandHandler",
    "CommandParameter",
    "CommandRegistry",
    "CommandSchema",
    "CommandSyncError",
    "DuplicateCommandError",
    "GuildRecord",
    "InteractionContext",
    "InteractionEvent",
    "InteractionKind",
    "InteractionRouter",
    "MalformedInvocation",
    "MemberRecord",
    "ReadyEvent",
    "RemoteAPI",
    "RemoteOperationFailure",
    "ReplyTransport",
    "ResponseChannel",
    "SyncPolicy",
    "UserRecord",
    "build_registry",
]
