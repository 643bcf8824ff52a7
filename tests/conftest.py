"""Shared fakes for command, router and ban tests."""

from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from commands.errors import RemoteOperationFailure
from commands.models import (
    GuildRecord,
    InteractionContext,
    InteractionEvent,
    InteractionKind,
    MemberRecord,
    RemoteAPI,
    ReplyTransport,
    ResponseChannel,
    UserRecord,
)

GUILD_ID = 300000000000000001
OWNER_ID = 100000000000000001
MOD_ID = 100000000000000002
TARGET_ID = 100000000000000003
OUTSIDER_ID = 100000000000000004


class FakeTransport(ReplyTransport):
    """Records every response sent for one interaction."""

    def __init__(self, fail: bool = False, fail_on: Tuple[str, ...] = ()):
        self.fail = fail
        # Kinds ("initial", "followup", "defer") that fail while the rest succeed
        self.fail_on = set(fail_on)
        self.messages: List[Tuple[str, Optional[str], bool]] = []

    def _send(self, kind: str, operation: str, content: Optional[str], ephemeral: bool) -> None:
        if self.fail or kind in self.fail_on:
            raise RemoteOperationFailure(operation, None, "Unknown interaction")
        self.messages.append((kind, content, ephemeral))

    async def initial(self, content: str, ephemeral: bool) -> None:
        self._send("initial", "send_interaction_reply", content, ephemeral)

    async def followup(self, content: str, ephemeral: bool) -> None:
        self._send("followup", "send_interaction_followup", content, ephemeral)

    async def defer(self, ephemeral: bool) -> None:
        self._send("defer", "defer_interaction", None, ephemeral)

    def texts(self) -> List[Optional[str]]:
        return [content for kind, content, _ in self.messages if kind != "defer"]


class FakeAPI(RemoteAPI):
    """In-memory stand-in for the Discord REST API."""

    def __init__(self):
        self.users: Dict[int, UserRecord] = {}
        self.guilds: Dict[int, GuildRecord] = {}
        self.members: Dict[Tuple[int, int], MemberRecord] = {}
        self.guild_commands: Dict[int, List[Dict[str, Any]]] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self.bans: List[Tuple[int, int, int, Optional[str]]] = []
        self.failing: Set[str] = set()
        # Number of set_guild_commands calls to fail before succeeding
        self.sync_failures_left: Dict[int, int] = {}

    def _check(self, operation: str, target: Any) -> None:
        if operation in self.failing:
            raise RemoteOperationFailure(operation, target, "503 Service Unavailable")

    async def resolve_user(self, user_id: int) -> UserRecord:
        self.calls.append(("resolve_user", user_id))
        self._check("resolve_user", user_id)
        if user_id not in self.users:
            raise RemoteOperationFailure("resolve_user", user_id, "404 Unknown User")
        return self.users[user_id]

    async def resolve_guild(self, guild_id: int) -> GuildRecord:
        self.calls.append(("resolve_guild", guild_id))
        self._check("resolve_guild", guild_id)
        if guild_id not in self.guilds:
            raise RemoteOperationFailure("resolve_guild", guild_id, "404 Unknown Guild")
        return self.guilds[guild_id]

    async def resolve_member(self, guild_id: int, user_id: int) -> Optional[MemberRecord]:
        self.calls.append(("resolve_member", guild_id, user_id))
        self._check("resolve_member", user_id)
        return self.members.get((guild_id, user_id))

    async def ban(self, guild_id: int, user_id: int, delete_message_days: int) -> None:
        self.calls.append(("ban", guild_id, user_id, delete_message_days))
        self._check("ban_member", user_id)
        self.bans.append((guild_id, user_id, delete_message_days, None))

    async def ban_with_reason(
        self,
        guild_id: int,
        user_id: int,
        delete_message_days: int,
        reason: str,
    ) -> None:
        self.calls.append(("ban_with_reason", guild_id, user_id, delete_message_days, reason))
        self._check("ban_member", user_id)
        self.bans.append((guild_id, user_id, delete_message_days, reason))

    async def set_guild_commands(self, guild_id: int, payloads: List[Dict[str, Any]]) -> None:
        self.calls.append(("set_guild_commands", guild_id))
        remaining = self.sync_failures_left.get(guild_id, 0)
        if remaining:
            self.sync_failures_left[guild_id] = remaining - 1
            raise RemoteOperationFailure("set_guild_commands", guild_id, "500 Internal Server Error")
        self._check("set_guild_commands", guild_id)
        self.guild_commands[guild_id] = [dict(p) for p in payloads]

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def api() -> FakeAPI:
    """A guild with an owner, a moderator (position 5) and a target (position 3)."""
    fake = FakeAPI()
    fake.users[OWNER_ID] = UserRecord(OWNER_ID, "owner", "The Owner")
    fake.users[MOD_ID] = UserRecord(MOD_ID, "moderator", "Mod")
    fake.users[TARGET_ID] = UserRecord(TARGET_ID, "spammer", "Spam Account")
    fake.users[OUTSIDER_ID] = UserRecord(OUTSIDER_ID, "outsider")
    fake.guilds[GUILD_ID] = GuildRecord(GUILD_ID, OWNER_ID, "Test Guild")
    fake.members[(GUILD_ID, OWNER_ID)] = MemberRecord(OWNER_ID, 1)
    fake.members[(GUILD_ID, MOD_ID)] = MemberRecord(MOD_ID, 5)
    fake.members[(GUILD_ID, TARGET_ID)] = MemberRecord(TARGET_ID, 3)
    return fake


def make_event(
    api: FakeAPI,
    invoker_id: int = MOD_ID,
    options: Optional[Dict[str, Any]] = None,
    command_name: str = "ban",
    guild_id: Optional[int] = GUILD_ID,
    with_member: bool = True,
    transport: Optional[FakeTransport] = None,
    kind: InteractionKind = InteractionKind.COMMAND,
    interaction_id: int = 900000000000000001,
) -> InteractionEvent:
    invoker = api.users.get(invoker_id) or UserRecord(invoker_id, f"user{invoker_id}")
    member = None
    if with_member:
        member = api.members.get((GUILD_ID, invoker_id)) or MemberRecord(invoker_id, 0)
    return InteractionEvent(
        kind=kind,
        command_name=command_name,
        invoker=invoker,
        response=ResponseChannel(transport or FakeTransport()),
        options=options if options is not None else {},
        guild_id=guild_id,
        invoker_member=member,
        interaction_id=interaction_id,
    )


def make_context(api: FakeAPI, **kwargs: Any) -> InteractionContext:
    return InteractionContext.from_event(make_event(api, **kwargs), api)
