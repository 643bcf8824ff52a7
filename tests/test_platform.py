"""Tests for the discord.py adapter."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bot.platform import (
    DiscordRemoteAPI,
    DiscordReplyTransport,
    event_from_interaction,
    parse_options,
    top_role_position,
)
from commands.errors import RemoteOperationFailure
from commands.models import InteractionKind

GUILD_ID = 300000000000000001
USER_ID = 100000000000000003


def http_error(cls=discord.HTTPException, status=500, message="Internal Server Error"):
    return cls(MagicMock(status=status, reason=message), message)


def make_member(user_id, positions):
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.name = f"user{user_id}"
    member.global_name = None
    member.roles = [MagicMock(position=p) for p in positions]
    return member


def make_client(guild=None):
    client = MagicMock(spec=discord.Client)
    client.get_guild.return_value = guild
    client.fetch_guild = AsyncMock(return_value=guild)
    client.fetch_user = AsyncMock()
    client.application_id = 42
    client.http = MagicMock()
    client.http.bulk_upsert_guild_commands = AsyncMock()
    return client


def make_guild(owner_id=1):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.owner_id = owner_id
    guild.name = "Test Guild"
    guild.fetch_member = AsyncMock()
    guild.ban = AsyncMock()
    return guild


class TestParseOptions:
    def test_snowflakes_become_ints(self):
        options = parse_options(
            [
                {"name": "user", "type": 6, "value": str(USER_ID)},
                {"name": "reason", "type": 3, "value": "spam"},
                {"name": "count", "type": 4, "value": 3},
                {"name": "ratio", "type": 10, "value": 0.5},
            ]
        )

        assert options == {"user": USER_ID, "reason": "spam", "count": 3, "ratio": 0.5}

    def test_subcommands_are_nested(self):
        options = parse_options(
            [{"name": "add", "type": 1, "options": [{"name": "role", "type": 8, "value": "55555555555555555"}]}]
        )

        assert options == {"add": {"role": 55555555555555555}}

    def test_bad_entries_are_skipped_or_kept_raw(self):
        options = parse_options(
            [
                {"type": 3, "value": "nameless"},
                {"name": "weird", "type": 99, "value": "x"},
                {"name": "user", "type": 6, "value": "not-a-number"},
            ]
        )

        assert options == {"user": "not-a-number"}

    def test_missing_options(self):
        assert parse_options(None) == {}


def test_top_role_position():
    assert top_role_position(make_member(USER_ID, [0, 7, 3])) == 7
    assert top_role_position(make_member(USER_ID, [])) == 0


class TestEventFromInteraction:
    def make_interaction(self, interaction_type=discord.InteractionType.application_command, user=None):
        interaction = MagicMock(spec=discord.Interaction)
        interaction.type = interaction_type
        interaction.id = 900
        interaction.guild_id = GUILD_ID
        interaction.user = user or make_member(1, [4])
        interaction.data = {"name": "ban", "options": [{"name": "user", "type": 6, "value": str(USER_ID)}]}
        return interaction

    def test_command_interaction(self):
        event = event_from_interaction(self.make_interaction())

        assert event.kind is InteractionKind.COMMAND
        assert event.command_name == "ban"
        assert event.options == {"user": USER_ID}
        assert event.guild_id == GUILD_ID
        assert event.invoker.id == 1
        assert event.invoker_member.top_role_position == 4
        assert event.interaction_id == 900
        assert not event.response.responded

    def test_user_outside_guild_has_no_member(self):
        user = MagicMock(spec=discord.User)
        user.id = 1
        user.name = "dm-user"
        user.global_name = "DM User"

        event = event_from_interaction(self.make_interaction(user=user))

        assert event.invoker_member is None
        assert event.invoker.display_name == "DM User"

    def test_component_interaction(self):
        event = event_from_interaction(self.make_interaction(discord.InteractionType.component))

        assert event.kind is InteractionKind.COMPONENT


class TestReplyTransport:
    async def test_initial_and_followup(self):
        interaction = MagicMock()
        interaction.response.send_message = AsyncMock()
        interaction.followup.send = AsyncMock()
        transport = DiscordReplyTransport(interaction)

        await transport.initial("hello", True)
        await transport.followup("again", False)

        interaction.response.send_message.assert_awaited_once_with("hello", ephemeral=True)
        interaction.followup.send.assert_awaited_once_with("again", ephemeral=False)

    async def test_http_errors_are_wrapped(self):
        interaction = MagicMock()
        interaction.id = 900
        interaction.response.send_message = AsyncMock(side_effect=http_error(discord.NotFound, 404, "Unknown interaction"))
        transport = DiscordReplyTransport(interaction)

        with pytest.raises(RemoteOperationFailure) as exc_info:
            await transport.initial("hello", True)

        assert exc_info.value.operation == "send_interaction_reply"
        assert exc_info.value.target == 900

    async def test_defer_shows_thinking_state(self):
        interaction = MagicMock()
        interaction.response.defer = AsyncMock()

        await DiscordReplyTransport(interaction).defer(True)

        interaction.response.defer.assert_awaited_once_with(ephemeral=True, thinking=True)

    async def test_defer_errors_are_wrapped(self):
        interaction = MagicMock()
        interaction.id = 900
        interaction.response.defer = AsyncMock(side_effect=http_error(discord.NotFound, 404, "Unknown interaction"))

        with pytest.raises(RemoteOperationFailure) as exc_info:
            await DiscordReplyTransport(interaction).defer(True)

        assert exc_info.value.operation == "defer_interaction"


class TestDiscordRemoteAPI:
    async def test_resolve_user(self):
        client = make_client()
        client.fetch_user.return_value = make_member(USER_ID, [])

        user = await DiscordRemoteAPI(client).resolve_user(USER_ID)

        assert user.id == USER_ID
        assert user.name == f"user{USER_ID}"

    async def test_resolve_user_failure(self):
        client = make_client()
        client.fetch_user.side_effect = http_error(discord.NotFound, 404, "Unknown User")

        with pytest.raises(RemoteOperationFailure) as exc_info:
            await DiscordRemoteAPI(client).resolve_user(USER_ID)

        assert exc_info.value.operation == "resolve_user"

    async def test_resolve_guild_prefers_cache(self):
        guild = make_guild(owner_id=7)
        client = make_client(guild)

        record = await DiscordRemoteAPI(client).resolve_guild(GUILD_ID)

        assert record.owner_id == 7
        client.fetch_guild.assert_not_awaited()

    async def test_resolve_guild_fetches_when_uncached(self):
        guild = make_guild()
        client = make_client()
        client.fetch_guild.return_value = guild

        record = await DiscordRemoteAPI(client).resolve_guild(GUILD_ID)

        assert record.id == GUILD_ID
        client.fetch_guild.assert_awaited_once_with(GUILD_ID)

    async def test_resolve_guild_without_owner(self):
        client = make_client(make_guild(owner_id=None))

        with pytest.raises(RemoteOperationFailure):
            await DiscordRemoteAPI(client).resolve_guild(GUILD_ID)

    async def test_resolve_member_not_found_is_none(self):
        guild = make_guild()
        guild.fetch_member.side_effect = http_error(discord.NotFound, 404, "Unknown Member")

        assert await DiscordRemoteAPI(make_client(guild)).resolve_member(GUILD_ID, USER_ID) is None

    async def test_resolve_member_other_errors_fail(self):
        guild = make_guild()
        guild.fetch_member.side_effect = http_error()

        with pytest.raises(RemoteOperationFailure) as exc_info:
            await DiscordRemoteAPI(make_client(guild)).resolve_member(GUILD_ID, USER_ID)

        assert exc_info.value.operation == "resolve_member"

    async def test_resolve_member(self):
        guild = make_guild()
        guild.fetch_member.return_value = make_member(USER_ID, [2, 9])

        member = await DiscordRemoteAPI(make_client(guild)).resolve_member(GUILD_ID, USER_ID)

        assert member.user_id == USER_ID
        assert member.top_role_position == 9

    async def test_ban_converts_days_to_seconds(self):
        guild = make_guild()
        api = DiscordRemoteAPI(make_client(guild))

        await api.ban_with_reason(GUILD_ID, USER_ID, 2, "spam")

        target = guild.ban.await_args.args[0]
        assert target.id == USER_ID
        assert guild.ban.await_args.kwargs == {"reason": "spam", "delete_message_seconds": 172800}

    async def test_ban_without_reason(self):
        guild = make_guild()

        await DiscordRemoteAPI(make_client(guild)).ban(GUILD_ID, USER_ID, 0)

        assert guild.ban.await_args.kwargs == {"reason": None, "delete_message_seconds": 0}

    async def test_ban_failure(self):
        guild = make_guild()
        guild.ban.side_effect = http_error(discord.Forbidden, 403, "Missing Permissions")

        with pytest.raises(RemoteOperationFailure) as exc_info:
            await DiscordRemoteAPI(make_client(guild)).ban(GUILD_ID, USER_ID, 0)

        assert exc_info.value.operation == "ban_member"
        assert exc_info.value.target == USER_ID

    async def test_set_guild_commands(self):
        client = make_client()
        payloads = [{"name": "ban"}]

        await DiscordRemoteAPI(client).set_guild_commands(GUILD_ID, payloads)

        client.http.bulk_upsert_guild_commands.assert_awaited_once_with(42, GUILD_ID, payloads)

    async def test_set_guild_commands_requires_login(self):
        client = make_client()
        client.application_id = None

        with pytest.raises(RemoteOperationFailure):
            await DiscordRemoteAPI(client).set_guild_commands(GUILD_ID, [])

        client.http.bulk_upsert_guild_commands.assert_not_awaited()
