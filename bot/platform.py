"""
Discord Platform Adapter
Converts discord.py objects to command records and performs remote operations
"""

from typing import Any, Dict, List, Optional, Union

import discord

from commands.errors import RemoteOperationFailure
from commands.models import (
    GuildRecord,
    InteractionEvent,
    InteractionKind,
    MemberRecord,
    ReadyEvent,
    RemoteAPI,
    ReplyTransport,
    ResponseChannel,
    UserRecord,
)
from utils.logger import get_logger

logger = get_logger("Platform")

SECONDS_PER_DAY = 86400

INTERACTION_KINDS = {
    discord.InteractionType.application_command: InteractionKind.COMMAND,
    discord.InteractionType.component: InteractionKind.COMPONENT,
    discord.InteractionType.autocomplete: InteractionKind.AUTOCOMPLETE,
    discord.InteractionType.modal_submit: InteractionKind.MODAL,
    discord.InteractionType.ping: InteractionKind.PING,
}

# Option types whose values arrive as snowflake strings
SNOWFLAKE_OPTION_TYPES = (
    discord.AppCommandOptionType.user,
    discord.AppCommandOptionType.channel,
    discord.AppCommandOptionType.role,
    discord.AppCommandOptionType.mentionable,
    discord.AppCommandOptionType.attachment,
)

NESTED_OPTION_TYPES = (
    discord.AppCommandOptionType.subcommand,
    discord.AppCommandOptionType.subcommand_group,
)


def user_record(user: Union[discord.abc.User, Any]) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        global_name=getattr(user, "global_name", None),
    )


def top_role_position(member: discord.Member) -> int:
    """Position of the member's most senior role; 0 when only @everyone."""
    return max((role.position for role in member.roles), default=0)


def member_record(member: discord.Member) -> MemberRecord:
    return MemberRecord(user_id=member.id, top_role_position=top_role_position(member))


def parse_options(raw_options: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Convert raw interaction options to a name -> typed value mapping.

    Args:
        raw_options: The "options" list of an application command payload

    Returns:
        Dict of option name to value
    """
    options: Dict[str, Any] = {}

    for option in raw_options or []:
        name = option.get("name")
        if not name:
            continue

        try:
            option_type = discord.AppCommandOptionType(option.get("type"))
        except ValueError:
            logger.debug(f"Unknown option type for {name!r}: {option.get('type')!r}")
            continue

        if option_type in NESTED_OPTION_TYPES:
            options[name] = parse_options(option.get("options", []))
            continue

        value = option.get("value")
        try:
            if option_type in SNOWFLAKE_OPTION_TYPES or option_type is discord.AppCommandOptionType.integer:
                value = int(value)
            elif option_type is discord.AppCommandOptionType.number:
                value = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Could not convert option {name!r} value {value!r}")

        options[name] = value

    return options


class DiscordReplyTransport(ReplyTransport):
    """Sends responses for one discord.py interaction."""

    def __init__(self, interaction: discord.Interaction):
        self.interaction = interaction

    async def initial(self, content: str, ephemeral: bool) -> None:
        try:
            await self.interaction.response.send_message(content, ephemeral=ephemeral)
        except (discord.HTTPException, discord.InteractionResponded) as error:
            raise RemoteOperationFailure("send_interaction_reply", self.interaction.id, str(error)) from error

    async def followup(self, content: str, ephemeral: bool) -> None:
        try:
            await self.interaction.followup.send(content, ephemeral=ephemeral)
        except discord.HTTPException as error:
            raise RemoteOperationFailure("send_interaction_followup", self.interaction.id, str(error)) from error

    async def defer(self, ephemeral: bool) -> None:
        # thinking=True shows a loading state that the first followup replaces
        try:
            await self.interaction.response.defer(ephemeral=ephemeral, thinking=True)
        except (discord.HTTPException, discord.InteractionResponded) as error:
            raise RemoteOperationFailure("defer_interaction", self.interaction.id, str(error)) from error


class DiscordRemoteAPI(RemoteAPI):
    """Remote operations backed by a discord.py client."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def resolve_user(self, user_id: int) -> UserRecord:
        try:
            user = await self.client.fetch_user(user_id)
        except discord.HTTPException as error:
            raise RemoteOperationFailure("resolve_user", user_id, str(error)) from error
        return user_record(user)

    async def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self.client.get_guild(guild_id)
        if guild is not None:
            return guild
        try:
            return await self.client.fetch_guild(guild_id)
        except discord.HTTPException as error:
            raise RemoteOperationFailure("resolve_guild", guild_id, str(error)) from error

    async def resolve_guild(self, guild_id: int) -> GuildRecord:
        guild = await self._get_guild(guild_id)
        if guild.owner_id is None:
            raise RemoteOperationFailure("resolve_guild", guild_id, "guild has no owner information")
        return GuildRecord(id=guild.id, owner_id=guild.owner_id, name=guild.name)

    async def resolve_member(self, guild_id: int, user_id: int) -> Optional[MemberRecord]:
        guild = await self._get_guild(guild_id)
        try:
            member = await guild.fetch_member(user_id)
        except discord.NotFound:
            return None
        except discord.HTTPException as error:
            raise RemoteOperationFailure("resolve_member", user_id, str(error)) from error
        return member_record(member)

    async def ban(self, guild_id: int, user_id: int, delete_message_days: int) -> None:
        await self._ban(guild_id, user_id, delete_message_days, None)

    async def ban_with_reason(
        self,
        guild_id: int,
        user_id: int,
        delete_message_days: int,
        reason: str,
    ) -> None:
        await self._ban(guild_id, user_id, delete_message_days, reason)

    async def _ban(
        self,
        guild_id: int,
        user_id: int,
        delete_message_days: int,
        reason: Optional[str],
    ) -> None:
        guild = await self._get_guild(guild_id)
        try:
            await guild.ban(
                discord.Object(id=user_id),
                reason=reason,
                delete_message_seconds=delete_message_days * SECONDS_PER_DAY,
            )
        except discord.HTTPException as error:
            raise RemoteOperationFailure("ban_member", user_id, str(error)) from error

    async def set_guild_commands(self, guild_id: int, payloads: List[Dict[str, Any]]) -> None:
        application_id = self.client.application_id
        if application_id is None:
            raise RemoteOperationFailure("set_guild_commands", guild_id, "application ID unknown, not logged in")
        try:
            await self.client.http.bulk_upsert_guild_commands(application_id, guild_id, payloads)
        except discord.HTTPException as error:
            raise RemoteOperationFailure("set_guild_commands", guild_id, str(error)) from error


def event_from_interaction(interaction: discord.Interaction) -> Optional[InteractionEvent]:
    """
    Build an InteractionEvent from a discord.py interaction.

    Returns:
        The event, or None for interaction types the bot does not know
    """
    kind = INTERACTION_KINDS.get(interaction.type)
    if kind is None:
        return None

    data: Dict[str, Any] = dict(interaction.data or {})

    invoker_member = None
    if isinstance(interaction.user, discord.Member):
        invoker_member = member_record(interaction.user)

    return InteractionEvent(
        kind=kind,
        command_name=data.get("name", ""),
        invoker=user_record(interaction.user),
        response=ResponseChannel(DiscordReplyTransport(interaction)),
        options=parse_options(data.get("options", [])),
        guild_id=interaction.guild_id,
        invoker_member=invoker_member,
        interaction_id=interaction.id,
    )


def ready_from_user(user: discord.ClientUser) -> ReadyEvent:
    return ReadyEvent(bot_user=user_record(user))
