"""Normalization of raw Slack events into typed messages."""

from slack_normalizer.events import normalize_event
from slack_normalizer.messages import MessageState, TextMessageBuilder, build_text_message, create_text_message
from slack_normalizer.models import (
    Conversation,
    FileSharedMessage,
    Mention,
    MentionKind,
    Message,
    PresenceMessage,
    ReactionMessage,
    TextMessage,
    User,
)


__all__ = [
    'Conversation',
    'FileSharedMessage',
    'Mention',
    'MentionKind',
    'Message',
    'MessageState',
    'PresenceMessage',
    'ReactionMessage',
    'TextMessage',
    'TextMessageBuilder',
    'User',
    'build_text_message',
    'create_text_message',
    'normalize_event',
]
