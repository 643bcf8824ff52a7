"""
Interaction Models
Typed records passed between the Discord adapter, the router and command handlers
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from commands.errors import InteractionNotAcknowledged, ResponseAlreadySent


@dataclass(frozen=True)
class UserRecord:
    """A resolved Discord user."""

    id: int
    name: str
    global_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.global_name or self.name


@dataclass(frozen=True)
class GuildRecord:
    """A resolved guild with its owner."""

    id: int
    owner_id: int
    name: str = ""

    def is_owner(self, user_id: int) -> bool:
        return self.owner_id == user_id


@dataclass(frozen=True)
class MemberRecord:
    """A guild member and the position of their most senior role."""

    user_id: int
    top_role_position: int = 0


class InteractionKind(Enum):
    """Interaction types the gateway can deliver."""

    COMMAND = "command"
    COMPONENT = "component"
    AUTOCOMPLETE = "autocomplete"
    MODAL = "modal"
    PING = "ping"


class ReplyTransport(ABC):
    """Sends interaction responses to the platform."""

    @abstractmethod
    async def initial(self, content: str, ephemeral: bool) -> None:
        """Send the initial response to the interaction."""

    @abstractmethod
    async def followup(self, content: str, ephemeral: bool) -> None:
        """Send a followup message after the initial response."""

    @abstractmethod
    async def defer(self, ephemeral: bool) -> None:
        """Acknowledge the interaction without content; a followup completes it."""


class ResponseChannel:
    """
    Reply capability for one interaction.

    An interaction accepts exactly one initial response, either a message or
    a deferral. Anything sent after that is a followup.
    """

    def __init__(self, transport: ReplyTransport):
        self._transport = transport
        self._responded = False
        self._deferred = False

    @property
    def responded(self) -> bool:
        return self._responded

    @property
    def deferred(self) -> bool:
        """Acknowledged by a deferral and still waiting for its first message."""
        return self._deferred

    async def defer(self, *, ephemeral: bool = False) -> None:
        """
        Acknowledge the interaction now and reply later with a followup.

        Raises:
            ResponseAlreadySent: if the interaction was already replied to
        """
        if self._responded:
            raise ResponseAlreadySent("Interaction has already been replied to")
        await self._transport.defer(ephemeral)
        self._responded = True
        self._deferred = True

    async def reply(self, content: str, *, ephemeral: bool = False) -> None:
        """
        Send the initial response.

        Raises:
            ResponseAlreadySent: if the interaction was already replied to
        """
        if self._responded:
            raise ResponseAlreadySent("Interaction has already been replied to")
        await self._transport.initial(content, ephemeral)
        self._responded = True

    async def followup(self, content: str, *, ephemeral: bool = False) -> None:
        """
        Append a followup message.

        Raises:
            InteractionNotAcknowledged: if no initial response was sent yet
        """
        if not self._responded:
            raise InteractionNotAcknowledged("Cannot follow up before the initial reply")
        await self._transport.followup(content, ephemeral)
        self._deferred = False

    async def send(self, content: str, *, ephemeral: bool = False) -> None:
        """Reply if nothing was sent yet, otherwise follow up."""
        if self._responded:
            await self.followup(content, ephemeral=ephemeral)
        else:
            await self.reply(content, ephemeral=ephemeral)


class RemoteAPI(ABC):
    """
    Remote operations commands may perform against the platform.

    Implementations raise RemoteOperationFailure when a call fails.
    """

    @abstractmethod
    async def resolve_user(self, user_id: int) -> UserRecord:
        ...

    @abstractmethod
    async def resolve_guild(self, guild_id: int) -> GuildRecord:
        ...

    @abstractmethod
    async def resolve_member(self, guild_id: int, user_id: int) -> Optional[MemberRecord]:
        """Return the member, or None if the user is not in the guild."""

    @abstractmethod
    async def ban(self, guild_id: int, user_id: int, delete_message_days: int) -> None:
        ...

    @abstractmethod
    async def ban_with_reason(
        self,
        guild_id: int,
        user_id: int,
        delete_message_days: int,
        reason: str,
    ) -> None:
        ...

    @abstractmethod
    async def set_guild_commands(self, guild_id: int, payloads: List[Dict[str, Any]]) -> None:
        """Replace the guild's command set with the given payloads."""


@dataclass(frozen=True)
class ReadyEvent:
    """The gateway session is ready."""

    bot_user: UserRecord


@dataclass
class InteractionEvent:
    """One inbound interaction as delivered by the gateway."""

    kind: InteractionKind
    command_name: str
    invoker: UserRecord
    response: ResponseChannel
    options: Mapping[str, Any] = field(default_factory=dict)
    guild_id: Optional[int] = None
    invoker_member: Optional[MemberRecord] = None
    interaction_id: Optional[int] = None


@dataclass
class InteractionContext:
    """Everything a handler may use while executing one interaction."""

    command_name: str
    user: UserRecord
    response: ResponseChannel
    api: RemoteAPI
    options: Mapping[str, Any] = field(default_factory=dict)
    guild_id: Optional[int] = None
    member: Optional[MemberRecord] = None
    interaction_id: Optional[int] = None

    @classmethod
    def from_event(cls, event: InteractionEvent, api: RemoteAPI) -> "InteractionContext":
        return cls(
            command_name=event.command_name,
            user=event.invoker,
            response=event.response,
            api=api,
            options=dict(event.options),
            guild_id=event.guild_id,
            member=event.invoker_member,
            interaction_id=event.interaction_id,
        )
