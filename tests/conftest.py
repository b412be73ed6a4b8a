"""Shared pytest fixtures for normalizer tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from slack_normalizer.errors import EntityLookupError
from tests.fixtures.entities import CONVERSATIONS, USERS


@pytest.fixture
def mock_lookup():
    """Lookup service backed by the in-memory USERS and CONVERSATIONS tables."""

    async def fetch_user(user_id):
        if user_id in USERS:
            return USERS[user_id]
        raise EntityLookupError(user_id, 'user_not_found')

    async def fetch_conversation(conversation_id):
        return CONVERSATIONS.get(conversation_id)

    async def is_direct_message(conversation_id):
        conversation = CONVERSATIONS.get(conversation_id)
        return bool(conversation and conversation.is_im)

    lookup = MagicMock()
    lookup.fetch_user = AsyncMock(side_effect=fetch_user)
    lookup.fetch_conversation = AsyncMock(side_effect=fetch_conversation)
    lookup.is_direct_message = AsyncMock(side_effect=is_direct_message)
    return lookup


@pytest.fixture
def sender():
    """User who sent the message under test."""
    return USERS['U456']


@pytest.fixture
def mock_slack_web_client():
    """Mocked AsyncWebClient for testing."""
    client = MagicMock()
    client.users_info = AsyncMock(return_value={'ok': True, 'user': {}})
    client.conversations_info = AsyncMock(return_value={'ok': True, 'channel': {}})
    return client
