"""Slack Web API implementation of the lookup service."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from slack_normalizer.config import get_config
from slack_normalizer.errors import EntityLookupError, LookupUnavailableError
from slack_normalizer.models import Conversation, User


logger = logging.getLogger(__name__)

T = TypeVar('T')

# API errors that mean the service is unusable, not that one entity is missing
SERVICE_ERRORS = frozenset({'invalid_auth', 'not_authed', 'account_inactive', 'token_revoked', 'ratelimited'})

TRANSPORT_ERRORS = (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError)


@dataclass
class _CacheEntry(Generic[T]):
    """Internal cache entry with expiration."""

    value: T
    expires_at: datetime


class _TTLCache(Generic[T]):
    """Small in-memory cache keyed by Slack id."""

    def __init__(self, ttl: timedelta):
        self.ttl = ttl
        self._entries: dict[str, _CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= datetime.now():
            del self._entries[key]
            return None
        return entry.value

    def __len__(self) -> int:
        return len(self._entries)

    def put(self, key: str, value: T) -> None:
        self._entries[key] = _CacheEntry(value=value, expires_at=datetime.now() + self.ttl)

    def clear(self) -> None:
        self._entries.clear()


def _api_error(e: SlackApiError) -> str:
    return e.response.get('error', 'unknown')


class SlackLookup:
    """Resolves users and conversations through the Slack Web API.

    Results are cached in memory for ``cache_ttl_seconds``.

    Usage:
        lookup = SlackLookup(token)
        user = await lookup.fetch_user('U123')
    """

    def __init__(
        self,
        token: str | None = None,
        cache_ttl_seconds: int | None = None,
        client: AsyncWebClient | None = None,
    ):
        """Initialize lookup.

        Args:
            token: Slack bot token (xoxb-...). Defaults to the configured token.
            cache_ttl_seconds: Cache TTL. Defaults to the configured TTL.
            client: Preconfigured web client, mainly for tests.
        """
        config = get_config()
        self.client = client or AsyncWebClient(token=token or config.slack_bot_token)
        if cache_ttl_seconds is None:
            cache_ttl_seconds = config.lookup_cache_ttl_seconds
        ttl = timedelta(seconds=cache_ttl_seconds)
        self._users: _TTLCache[User] = _TTLCache(ttl)
        self._conversations: _TTLCache[Conversation] = _TTLCache(ttl)
        self._dm_flags: _TTLCache[bool] = _TTLCache(ttl)

    async def fetch_user(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            EntityLookupError: If Slack cannot return this user.
            LookupUnavailableError: If Slack cannot be reached.
        """
        cached = self._users.get(user_id)
        if cached is not None:
            logger.debug(f'User cache hit for {user_id}')
            return cached

        response = await self._call(user_id, self.client.users_info, user=user_id)
        user = User.from_slack(response['user'])
        self._users.put(user_id, user)
        return user

    async def fetch_conversation(self, conversation_id: str) -> Conversation | None:
        """Get a conversation by id, or None if Slack does not know it.

        Raises:
            EntityLookupError: If Slack refuses to return this conversation.
            LookupUnavailableError: If Slack cannot be reached.
        """
        cached = self._conversations.get(conversation_id)
        if cached is not None:
            logger.debug(f'Conversation cache hit for {conversation_id}')
            return cached

        try:
            response = await self._call(conversation_id, self.client.conversations_info, channel=conversation_id)
        except EntityLookupError as e:
            if e.reason == 'channel_not_found':
                return None
            raise

        conversation = Conversation.from_slack(response['channel'])
        self._conversations.put(conversation_id, conversation)
        self._dm_flags.put(conversation_id, conversation.is_im)
        return conversation

    async def is_direct_message(self, conversation_id: str) -> bool:
        """Whether the conversation is a one-to-one DM with the bot.

        Raises:
            LookupUnavailableError: If the conversation cannot be classified.
        """
        cached = self._dm_flags.get(conversation_id)
        if cached is not None:
            return cached

        try:
            conversation = await self.fetch_conversation(conversation_id)
        except EntityLookupError as e:
            raise LookupUnavailableError(f'Cannot classify conversation {conversation_id}: {e.reason}') from e

        is_dm = conversation.is_im if conversation else False
        self._dm_flags.put(conversation_id, is_dm)
        return is_dm

    def clear_cache(self) -> None:
        """Clear all cached entries."""
        self._users.clear()
        self._conversations.clear()
        self._dm_flags.clear()

    async def _call(self, entity_id: str, func, **kwargs) -> Any:
        """Call a Slack API method, translating SDK errors.

        Args:
            entity_id: Id being looked up, for error reporting.
            func: Bound AsyncWebClient method.
            **kwargs: Method arguments.

        Returns:
            Response payload.
        """
        try:
            response = await func(**kwargs)
        except SlackApiError as e:
            error = _api_error(e)
            if error in SERVICE_ERRORS:
                raise LookupUnavailableError(f'Slack API unavailable: {error}') from e
            raise EntityLookupError(entity_id, error) from e
        except TRANSPORT_ERRORS as e:
            raise LookupUnavailableError(f'Slack API unreachable: {e}') from e
        return response
