"""Dispatch of raw Slack events to normalized messages."""

import asyncio
import logging
from typing import Any

from slack_normalizer.errors import EntityLookupError, UnsupportedEventError
from slack_normalizer.formatting.resolver import LookupService
from slack_normalizer.messages import build_text_message
from slack_normalizer.models import FileSharedMessage, Message, PresenceMessage, ReactionMessage, User


logger = logging.getLogger(__name__)

# Edits, deletions and bot chatter are not dispatched as commands
SKIPPED_SUBTYPES = frozenset({'bot_message', 'message_changed', 'message_deleted', 'message_replied'})

REACTION_TYPES = {
    'reaction_added': 'added',
    'reaction_removed': 'removed',
}


async def resolve_user(lookup: LookupService, user_id: str) -> User:
    """Look up a user, falling back to a placeholder carrying only the id."""
    try:
        return await lookup.fetch_user(user_id)
    except EntityLookupError as e:
        logger.warning(f'Using placeholder for user {user_id}: {e.reason}')
        return User.placeholder(user_id)


async def normalize_event(
    event: dict[str, Any],
    lookup: LookupService,
    bot_name: str,
    bot_alias: str | None = None,
) -> Message | None:
    """Turn a raw Slack event into a message.

    Args:
        event: Raw event payload from the Events API or RTM.
        lookup: Service used to resolve users and conversations.
        bot_name: Name the bot answers to.
        bot_alias: Alternative name the bot answers to.

    Returns:
        The normalized message, or None for message subtypes that are
        deliberately ignored.

    Raises:
        UnsupportedEventError: For event types that are not modeled.
        LookupUnavailableError: If the lookup service cannot be reached.
    """
    event_type = event.get('type')

    if event_type == 'message':
        if event.get('subtype') in SKIPPED_SUBTYPES:
            logger.debug(f'Skipping message subtype {event["subtype"]}')
            return None
        user = await resolve_user(lookup, event['user'])
        return await build_text_message(
            user,
            None,
            event.get('text', ''),
            event,
            event['channel'],
            bot_name,
            bot_alias,
            lookup,
        )

    if event_type in REACTION_TYPES:
        return await _reaction_message(event, lookup)

    if event_type == 'file_shared':
        user = await resolve_user(lookup, event.get('user_id') or event['user'])
        return FileSharedMessage(
            user=user,
            file_id=event.get('file_id') or event['file']['id'],
            event_ts=event['event_ts'],
            ts=event['event_ts'],
        )

    if event_type == 'presence_change':
        user_ids = event.get('users') or [event['user']]
        users = await asyncio.gather(*(resolve_user(lookup, user_id) for user_id in user_ids))
        return PresenceMessage(users=list(users), presence=event['presence'])

    raise UnsupportedEventError(event_type)


async def _reaction_message(event: dict[str, Any], lookup: LookupService) -> ReactionMessage:
    user = await resolve_user(lookup, event['user'])
    item_user = await resolve_user(lookup, event['item_user']) if event.get('item_user') else None
    return ReactionMessage(
        reaction_type=REACTION_TYPES[event['type']],
        user=user,
        reaction=event['reaction'],
        item=event.get('item', {}),
        item_user=item_user,
        event_ts=event['event_ts'],
        ts=event['event_ts'],
    )
