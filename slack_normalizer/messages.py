"""Construction of text messages from raw Slack events."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from slack_normalizer.config import get_config
from slack_normalizer.errors import MessageStateError
from slack_normalizer.formatting.assembler import TextAssembler
from slack_normalizer.formatting.resolver import LookupService
from slack_normalizer.models import Mention, TextMessage, User


logger = logging.getLogger(__name__)

MessageCallback = Callable[[Exception | None, TextMessage | None], None]


class MessageState(Enum):
    """Lifecycle of a text message build."""

    PENDING = 'pending'
    RESOLVING = 'resolving'
    COMPLETE = 'complete'
    FAILED = 'failed'


class TextMessageBuilder:
    """Builds a single TextMessage, resolving its markup at most once.

    When ``text`` is given the markup is assumed to be resolved already and
    the build completes without any lookups.
    """

    def __init__(
        self,
        user: User,
        channel_id: str,
        raw_message: dict[str, Any],
        lookup: LookupService,
        *,
        text: str | None = None,
        raw_text: str | None = None,
        mentions: Sequence[Mention] | None = None,
        bot_name: str,
        bot_alias: str | None = None,
        include_attachments: bool | None = None,
    ):
        self.user = user
        self.channel_id = channel_id
        self.raw_message = raw_message
        self.lookup = lookup
        self.text = text
        self.raw_text = raw_text if raw_text is not None else raw_message.get('text')
        self.mentions = tuple(mentions or ())
        self.bot_name = bot_name
        self.bot_alias = bot_alias
        if include_attachments is None:
            include_attachments = get_config().attachments_enabled_for(channel_id)
        self.include_attachments = include_attachments
        self.state = MessageState.PENDING

    async def build(self) -> TextMessage:
        """Resolve the message text and return the finished message.

        Returns:
            The completed TextMessage.

        Raises:
            MessageStateError: If build() was already called.
            LookupUnavailableError: If the lookup service cannot be reached.
        """
        if self.state is not MessageState.PENDING:
            raise MessageStateError(f'Message in {self.channel_id} already {self.state.value}')

        if self.text is not None:
            self.state = MessageState.COMPLETE
            return self._make_message(self.text, self.mentions)

        self.state = MessageState.RESOLVING
        assembler = TextAssembler(self.lookup, bot_name=self.bot_name, bot_alias=self.bot_alias)
        attachments = self.raw_message.get('attachments') if self.include_attachments else None
        try:
            assembled = await assembler.assemble(self.raw_text or '', self.channel_id, attachments)
        except Exception:
            self.state = MessageState.FAILED
            raise

        self.state = MessageState.COMPLETE
        return self._make_message(assembled.text, assembled.mentions)

    def _make_message(self, text: str, mentions: Sequence[Mention]) -> TextMessage:
        return TextMessage(
            user=self.user,
            channel_id=self.channel_id,
            ts=self.raw_message.get('ts'),
            thread_ts=self.raw_message.get('thread_ts'),
            text=text,
            raw_text=self.raw_text,
            mentions=tuple(mentions),
            raw_message=self.raw_message,
        )


async def build_text_message(
    user: User,
    text: str | None,
    raw_text: str | None,
    raw_message: dict[str, Any],
    channel_id: str,
    bot_name: str,
    bot_alias: str | None,
    lookup: LookupService,
) -> TextMessage:
    """Build a TextMessage, awaiting any lookups its markup needs."""
    builder = TextMessageBuilder(
        user,
        channel_id,
        raw_message,
        lookup,
        text=text,
        raw_text=raw_text,
        bot_name=bot_name,
        bot_alias=bot_alias,
    )
    return await builder.build()


def create_text_message(
    user: User,
    text: str | None,
    raw_text: str | None,
    raw_message: dict[str, Any],
    channel_id: str,
    bot_name: str,
    bot_alias: str | None,
    lookup: LookupService,
    callback: MessageCallback,
) -> asyncio.Task:
    """Build a TextMessage in the background and report it via callback.

    The callback receives ``(error, message)`` exactly once and never before
    this function returns, even when no lookups are needed. Must be called
    with an event loop running.

    Returns:
        The task driving the build.
    """

    async def run() -> None:
        try:
            message = await build_text_message(
                user, text, raw_text, raw_message, channel_id, bot_name, bot_alias, lookup
            )
        except Exception as e:
            logger.warning(f'Failed to build message in {channel_id}: {e}')
            callback(e, None)
            return
        callback(None, message)

    return asyncio.ensure_future(run())
