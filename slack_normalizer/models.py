"""Pydantic models for normalized Slack messages."""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class MentionKind(str, Enum):
    """What a mention refers to."""

    USER = 'user'
    CONVERSATION = 'conversation'


class User(BaseModel):
    """A Slack user as returned by the lookup service."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    real_name: str | None = None
    display_name: str | None = None
    is_bot: bool = False

    @classmethod
    def from_slack(cls, data: dict[str, Any]) -> 'User':
        """Create from a users.info payload."""
        return cls(
            id=data['id'],
            name=data.get('name') or data['id'],
            real_name=data.get('real_name'),
            display_name=data.get('profile', {}).get('display_name') or None,
            is_bot=data.get('is_bot', False),
        )

    @classmethod
    def placeholder(cls, user_id: str) -> 'User':
        """User known only by id (lookup skipped or failed)."""
        return cls(id=user_id, name=user_id)


class Conversation(BaseModel):
    """A Slack conversation (channel, group or DM)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_im: bool = False
    is_private: bool = False

    @classmethod
    def from_slack(cls, data: dict[str, Any]) -> 'Conversation':
        """Create from a conversations.info payload.

        DMs have no name, so the other party's user id is used instead.
        """
        return cls(
            id=data['id'],
            name=data.get('name') or data.get('user') or data['id'],
            is_im=data.get('is_im', False),
            is_private=data.get('is_private', False),
        )


class Mention(BaseModel):
    """A user or conversation referenced in message text.

    Attributes:
        id: Referenced Slack id.
        kind: Whether the reference is a user or a conversation.
        resolved_entity: The looked-up entity, or None when the markup
            carried its own label and no lookup was made.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: MentionKind
    resolved_entity: User | Conversation | None = None


class TextMessage(BaseModel):
    """An ordinary text message with markup already resolved.

    Instances are only built once resolution has finished, so ``text``
    and ``mentions`` never change after construction.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal['text'] = 'text'
    user: User
    channel_id: str
    ts: str | None = None
    thread_ts: str | None = None
    text: str
    raw_text: str | None = None
    mentions: tuple[Mention, ...] = ()
    raw_message: dict[str, Any] = Field(default_factory=dict, repr=False)


class ReactionMessage(BaseModel):
    """An emoji reaction added to or removed from an item."""

    model_config = ConfigDict(frozen=True)

    type: Literal['reaction'] = 'reaction'
    reaction_type: Literal['added', 'removed']
    user: User
    reaction: str
    item: dict[str, Any]
    item_user: User | None = None
    event_ts: str
    ts: str | None = None


class FileSharedMessage(BaseModel):
    """A file shared by a user."""

    model_config = ConfigDict(frozen=True)

    type: Literal['file_shared'] = 'file_shared'
    user: User
    file_id: str
    event_ts: str
    ts: str | None = None


class PresenceMessage(BaseModel):
    """A presence change for one or more users."""

    model_config = ConfigDict(frozen=True)

    type: Literal['presence'] = 'presence'
    users: list[User]
    presence: Literal['active', 'away']
    ts: str | None = None

    @property
    def user(self) -> User | None:
        """First affected user, standing in as the sender."""
        return self.users[0] if self.users else None


Message = Annotated[
    TextMessage | ReactionMessage | FileSharedMessage | PresenceMessage,
    Field(discriminator='type'),
]
