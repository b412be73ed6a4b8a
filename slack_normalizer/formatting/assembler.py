"""Assembly of readable message text from Slack markup."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from slack_normalizer.formatting.patterns import LiteralSpan, MarkupToken, Span, iter_spans, unescape_html
from slack_normalizer.formatting.resolver import LookupService, ResolvedToken, TokenResolver
from slack_normalizer.models import Mention


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssembledText:
    """Final display text and the mentions found in it, in text order."""

    text: str
    mentions: tuple[Mention, ...] = ()


def merge_attachments(text: str, attachments: Sequence[dict[str, Any]] | None) -> str:
    """Append attachment fallback text to the message body.

    Args:
        text: Message body.
        attachments: Raw Slack attachments, each optionally carrying ``fallback``.

    Returns:
        The body, followed by a newline and the newline-joined fallbacks when
        there are any.
    """
    if not attachments:
        return text
    fallback = '\n'.join(a['fallback'] for a in attachments if a.get('fallback'))
    if not fallback:
        return text
    return f'{text}\n{fallback}'


def _token_key(token: MarkupToken) -> tuple[str | None, str, str | None]:
    return token.sigil, token.reference, token.label


def address_to_bot(text: str, bot_name: str, bot_alias: str | None = None) -> str:
    """Prefix the bot name unless the text already starts by naming the bot.

    A leading '@' is skipped when checking, so '@bot help' counts as addressed.
    """
    start = 1 if text.startswith('@') else 0
    if text.startswith(bot_name, start):
        return text
    if bot_alias and text.startswith(bot_alias, start):
        return text
    return f'{bot_name} {text}'


class TextAssembler:
    """Builds display text for a message, resolving markup concurrently.

    All tokens of a message are resolved at once, each distinct token only
    once; the results are joined by their position in the original text,
    not by completion order.

    Usage:
        assembler = TextAssembler(lookup, bot_name='hubot')
        assembled = await assembler.assemble(raw_text, channel_id)
    """

    def __init__(self, lookup: LookupService, bot_name: str, bot_alias: str | None = None):
        self.lookup = lookup
        self.bot_name = bot_name
        self.bot_alias = bot_alias
        self._resolver = TokenResolver(lookup)

    async def assemble(
        self,
        text: str,
        channel_id: str,
        attachments: Sequence[dict[str, Any]] | None = None,
    ) -> AssembledText:
        """Resolve markup, unescape entities and apply DM addressing.

        Args:
            text: Raw Slack message text.
            channel_id: Conversation the message was posted in.
            attachments: Raw attachments whose fallback text is appended.

        Returns:
            AssembledText with the final text and ordered mentions.

        Raises:
            LookupUnavailableError: If the conversation cannot be classified.
        """
        source = merge_attachments(text, attachments)

        # Tokens are scanned before unescaping so &lt;...&gt; never becomes markup
        spans = list(iter_spans(source))
        resolved = await self._resolve_spans(spans)

        mentions = tuple(r.mention for r in resolved if r.mention is not None)
        assembled = unescape_html(''.join(r.text for r in resolved))

        if await self.lookup.is_direct_message(channel_id):
            assembled = address_to_bot(assembled, self.bot_name, self.bot_alias)

        logger.debug(f'Assembled {len(spans)} spans with {len(mentions)} mentions in {channel_id}')
        return AssembledText(text=assembled, mentions=mentions)

    async def _resolve_spans(self, spans: list[Span]) -> list[ResolvedToken]:
        """Resolve all tokens concurrently, one lookup per distinct token.

        Results are mapped back onto the spans by position.
        """
        distinct: dict[tuple[str | None, str, str | None], MarkupToken] = {}
        for span in spans:
            if isinstance(span, MarkupToken):
                distinct.setdefault(_token_key(span), span)

        results = await asyncio.gather(*(self._resolver.resolve(token) for token in distinct.values()))
        by_key = dict(zip(distinct, results))

        return [
            ResolvedToken(text=span.text) if isinstance(span, LiteralSpan) else by_key[_token_key(span)]
            for span in spans
        ]
