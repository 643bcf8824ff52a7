"""
Ban Command
Bans a guild member after self, owner and role hierarchy checks
"""

from enum import Enum

import discord

from commands.base import CommandHandler, CommandParameter, CommandSchema
from commands.errors import MalformedInvocation, RemoteOperationFailure
from commands.models import GuildRecord, InteractionContext, MemberRecord
from utils.logger import get_logger
from utils.validation import ValidationUtils

SELF_BAN_MESSAGE = "You're unable to ban yourself..."
OWNER_BAN_MESSAGE = "Unable to ban server owner"
INSUFFICIENT_PRIVILEGE_MESSAGE = "You lack sufficient privileges to ban this user"

BAN_SCHEMA = CommandSchema(
    name="ban",
    description="Ban a user from the server",
    parameters=(
        CommandParameter(
            name="user",
            type=discord.AppCommandOptionType.user,
            description="The user to ban",
            required=True,
        ),
        CommandParameter(
            name="reason",
            type=discord.AppCommandOptionType.string,
            description="Reason to ban the user",
        ),
    ),
    default_permission=discord.Permissions(ban_members=True),
    allowed_in_direct_message=False,
)


class BanOutcome(Enum):
    """How a ban interaction ended."""

    BANNED = "banned"
    SELF_TARGET = "self_target"
    OWNER_TARGET = "owner_target"
    INSUFFICIENT_PRIVILEGE = "insufficient_privilege"
    MISSING_TARGET = "missing_target"
    REMOTE_ERROR = "remote_error"


class BanCommand(CommandHandler):
    """The /ban slash command."""

    def __init__(self, delete_message_days: int = 0):
        validation = ValidationUtils.validate_delete_message_days(delete_message_days)
        if not validation:
            raise ValueError(validation.error)

        self.logger = get_logger("BanCommand")
        self.delete_message_days = validation.value

    @property
    def schema(self) -> CommandSchema:
        return BAN_SCHEMA

    async def execute(self, ctx: InteractionContext) -> BanOutcome:
        try:
            return await self._execute(ctx)
        except RemoteOperationFailure as error:
            error.outcome = BanOutcome.REMOTE_ERROR
            raise

    async def _execute(self, ctx: InteractionContext) -> BanOutcome:
        invoker = ctx.member
        if invoker is None:
            raise MalformedInvocation("Failed to fetch member from interaction")

        target_id = ctx.options.get("user")
        if target_id is None:
            raise MalformedInvocation(
                "Failed to get command arg data user",
                outcome=BanOutcome.MISSING_TARGET,
            )
        if isinstance(target_id, bool) or not isinstance(target_id, int):
            raise MalformedInvocation(
                f"Failed to get target user arg: {target_id!r}",
                outcome=BanOutcome.MISSING_TARGET,
            )

        # The lookups below can outlast Discord's 3 second acknowledgement window
        if not ctx.response.responded:
            await ctx.response.defer(ephemeral=True)

        target = await ctx.api.resolve_user(target_id)

        if ctx.guild_id is None:
            raise MalformedInvocation("Interaction has no guild")
        guild = await ctx.api.resolve_guild(ctx.guild_id)

        if target.id == ctx.user.id:
            await ctx.response.send(SELF_BAN_MESSAGE, ephemeral=True)
            return BanOutcome.SELF_TARGET

        if guild.is_owner(target.id):
            await ctx.response.send(OWNER_BAN_MESSAGE, ephemeral=True)
            return BanOutcome.OWNER_TARGET

        # Users outside the guild can still be banned by id
        target_member = await ctx.api.resolve_member(guild.id, target.id)
        if target_member is None:
            self.logger.debug(f"User {target.id} is not a member of {guild.id}, skipping hierarchy check")
        elif not self.outranks(invoker, target_member, guild):
            await ctx.response.send(INSUFFICIENT_PRIVILEGE_MESSAGE, ephemeral=True)
            return BanOutcome.INSUFFICIENT_PRIVILEGE

        reason = ValidationUtils.validate_ban_reason(ctx.options.get("reason"))
        if not reason:
            raise MalformedInvocation(f"Failed to get ban reason arg: {reason.error}")

        try:
            if reason.value is not None:
                await ctx.api.ban_with_reason(guild.id, target.id, self.delete_message_days, reason.value)
            else:
                await ctx.api.ban(guild.id, target.id, self.delete_message_days)
        except RemoteOperationFailure as error:
            error.user_message = f"Failed to ban {target.display_name}"
            raise

        self.logger.info(
            f"User {ctx.user.id} banned {target.id} from guild {guild.id}"
            + (f" (reason: {reason.value})" if reason.value else "")
        )

        # The ban is applied at this point; a lost confirmation is only logged
        try:
            await ctx.response.send(f"Banned {target.display_name}", ephemeral=True)
        except RemoteOperationFailure as error:
            self.logger.warning(f"Banned {target.id} but could not confirm to {ctx.user.id}: {error}")
        return BanOutcome.BANNED

    @staticmethod
    def outranks(invoker: MemberRecord, target: MemberRecord, guild: GuildRecord) -> bool:
        """
        Check whether the invoker may moderate the target.

        The guild owner outranks everyone; anyone else needs a strictly
        higher top role.
        """
        if guild.is_owner(invoker.user_id):
            return True
        return target.top_role_position < invoker.top_role_position
