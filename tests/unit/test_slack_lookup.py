"""Tests for the Slack Web API lookup service."""

import aiohttp
import pytest
from slack_sdk.errors import SlackApiError

from slack_normalizer.errors import EntityLookupError, LookupUnavailableError
from slack_normalizer.models import Conversation, User
from slack_normalizer.slack.lookup import SlackLookup
from tests.fixtures.slack_responses import SAMPLE_CHANNEL_INFO, SAMPLE_IM_INFO, SAMPLE_USER_INFO


def _api_error(error: str) -> SlackApiError:
    return SlackApiError(message=error, response={'ok': False, 'error': error})


@pytest.fixture
def lookup(mock_slack_web_client):
    return SlackLookup(token='xoxb-test', cache_ttl_seconds=300, client=mock_slack_web_client)


class TestFetchUser:
    """Tests for SlackLookup.fetch_user."""

    async def test_fetches_user(self, lookup, mock_slack_web_client):
        mock_slack_web_client.users_info.return_value = SAMPLE_USER_INFO
        user = await lookup.fetch_user('U123')
        assert user == User(id='U123', name='bob', real_name='Bob Smith', display_name='Bobby')
        mock_slack_web_client.users_info.assert_awaited_once_with(user='U123')

    async def test_caches_user(self, lookup, mock_slack_web_client):
        mock_slack_web_client.users_info.return_value = SAMPLE_USER_INFO
        await lookup.fetch_user('U123')
        await lookup.fetch_user('U123')
        assert mock_slack_web_client.users_info.await_count == 1

    async def test_zero_ttl_disables_cache(self, mock_slack_web_client):
        lookup = SlackLookup(token='xoxb-test', cache_ttl_seconds=0, client=mock_slack_web_client)
        mock_slack_web_client.users_info.return_value = SAMPLE_USER_INFO
        await lookup.fetch_user('U123')
        await lookup.fetch_user('U123')
        assert mock_slack_web_client.users_info.await_count == 2

    async def test_expired_entries_are_evicted(self, mock_slack_web_client):
        lookup = SlackLookup(token='xoxb-test', cache_ttl_seconds=0, client=mock_slack_web_client)
        mock_slack_web_client.users_info.return_value = SAMPLE_USER_INFO
        await lookup.fetch_user('U123')
        assert len(lookup._users) == 1

        assert lookup._users.get('U123') is None
        assert len(lookup._users) == 0

    async def test_clear_cache(self, lookup, mock_slack_web_client):
        mock_slack_web_client.users_info.return_value = SAMPLE_USER_INFO
        await lookup.fetch_user('U123')
        lookup.clear_cache()
        await lookup.fetch_user('U123')
        assert mock_slack_web_client.users_info.await_count == 2

    async def test_user_not_found(self, lookup, mock_slack_web_client):
        mock_slack_web_client.users_info.side_effect = _api_error('user_not_found')
        with pytest.raises(EntityLookupError) as exc_info:
            await lookup.fetch_user('U999')
        assert exc_info.value.entity_id == 'U999'
        assert exc_info.value.reason == 'user_not_found'

    @pytest.mark.parametrize('error', ['invalid_auth', 'ratelimited'])
    async def test_service_errors(self, lookup, mock_slack_web_client, error):
        mock_slack_web_client.users_info.side_effect = _api_error(error)
        with pytest.raises(LookupUnavailableError):
            await lookup.fetch_user('U123')

    async def test_transport_error(self, lookup, mock_slack_web_client):
        mock_slack_web_client.users_info.side_effect = aiohttp.ClientConnectionError('connection refused')
        with pytest.raises(LookupUnavailableError):
            await lookup.fetch_user('U123')


class TestFetchConversation:
    """Tests for SlackLookup.fetch_conversation."""

    async def test_fetches_channel(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.return_value = SAMPLE_CHANNEL_INFO
        conversation = await lookup.fetch_conversation('C123')
        assert conversation == Conversation(id='C123', name='general')
        mock_slack_web_client.conversations_info.assert_awaited_once_with(channel='C123')

    async def test_im_named_after_user(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.return_value = SAMPLE_IM_INFO
        conversation = await lookup.fetch_conversation('D123')
        assert conversation.name == 'U123'
        assert conversation.is_im

    async def test_not_found_is_none(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.side_effect = _api_error('channel_not_found')
        assert await lookup.fetch_conversation('C999') is None

    async def test_other_api_error(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.side_effect = _api_error('missing_scope')
        with pytest.raises(EntityLookupError):
            await lookup.fetch_conversation('C123')


class TestIsDirectMessage:
    """Tests for SlackLookup.is_direct_message."""

    async def test_im(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.return_value = SAMPLE_IM_INFO
        assert await lookup.is_direct_message('D123') is True

    async def test_channel(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.return_value = SAMPLE_CHANNEL_INFO
        assert await lookup.is_direct_message('C123') is False

    async def test_unknown_conversation(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.side_effect = _api_error('channel_not_found')
        assert await lookup.is_direct_message('C999') is False

    async def test_reuses_fetched_conversation(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.return_value = SAMPLE_IM_INFO
        await lookup.fetch_conversation('D123')
        assert await lookup.is_direct_message('D123') is True
        assert mock_slack_web_client.conversations_info.await_count == 1

    async def test_classification_failure_is_unavailable(self, lookup, mock_slack_web_client):
        mock_slack_web_client.conversations_info.side_effect = _api_error('missing_scope')
        with pytest.raises(LookupUnavailableError):
            await lookup.is_direct_message('C123')
