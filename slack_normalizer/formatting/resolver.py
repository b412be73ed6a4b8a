"""Resolution of individual markup tokens into display text."""

import logging
from dataclasses import dataclass
from typing import Protocol

from slack_normalizer.formatting.patterns import (
    CONVERSATION_SIGIL,
    KEYWORD_SIGIL,
    USER_SIGIL,
    MarkupToken,
)
from slack_normalizer.models import Conversation, Mention, MentionKind, User


logger = logging.getLogger(__name__)

# <!channel>, <!here> etc. are broadcasts, not references to an entity
RESERVED_KEYWORDS = frozenset({'channel', 'group', 'everyone', 'here'})

MAILTO_SCHEME = 'mailto:'


class LookupService(Protocol):
    """Resolves Slack ids to users and conversations.

    Implementations raise EntityLookupError when a single entity cannot be
    resolved and LookupUnavailableError when the service itself is down.
    Only is_direct_message failures abort a message; token lookups fall back.
    """

    async def fetch_user(self, user_id: str) -> User: ...

    async def fetch_conversation(self, conversation_id: str) -> Conversation | None: ...

    async def is_direct_message(self, conversation_id: str) -> bool: ...


@dataclass(frozen=True)
class ResolvedToken:
    """Replacement text for one token plus the mention it produced, if any."""

    text: str
    mention: Mention | None = None


class TokenResolver:
    """Turns markup tokens into readable text.

    Usage:
        resolver = TokenResolver(lookup)
        resolved = await resolver.resolve(token)
    """

    def __init__(self, lookup: LookupService):
        self.lookup = lookup

    async def resolve(self, token: MarkupToken) -> ResolvedToken:
        """Resolve a single token.

        Any lookup failure for the referenced entity is logged and replaced
        by the original markup, so one bad token never fails the message.

        Args:
            token: Token produced by the scanner.

        Returns:
            ResolvedToken with the replacement text and optional mention.
        """
        if token.sigil == USER_SIGIL:
            return await self._resolve_user(token)
        if token.sigil == CONVERSATION_SIGIL:
            return await self._resolve_conversation(token)
        if token.sigil == KEYWORD_SIGIL:
            return self._resolve_keyword(token)
        return self._resolve_link(token)

    async def _resolve_user(self, token: MarkupToken) -> ResolvedToken:
        if token.label:
            return ResolvedToken(
                text=f'@{token.label}',
                mention=Mention(id=token.reference, kind=MentionKind.USER),
            )

        try:
            user = await self.lookup.fetch_user(token.reference)
        except Exception as e:
            logger.error(f'Error getting user info {token.reference}: {e}')
            return ResolvedToken(text=f'<@{token.reference}>')

        return ResolvedToken(
            text=f'@{user.name}',
            mention=Mention(id=user.id, kind=MentionKind.USER, resolved_entity=user),
        )

    async def _resolve_conversation(self, token: MarkupToken) -> ResolvedToken:
        if token.label:
            return ResolvedToken(
                text=f'#{token.label}',
                mention=Mention(id=token.reference, kind=MentionKind.CONVERSATION),
            )

        fallback = ResolvedToken(text=f'<#{token.reference}>')
        try:
            conversation = await self.lookup.fetch_conversation(token.reference)
        except Exception as e:
            logger.error(f'Error getting conversation info {token.reference}: {e}')
            return fallback

        if conversation is None:
            logger.error(f'Conversation {token.reference} not found')
            return fallback

        return ResolvedToken(
            text=f'#{conversation.name}',
            mention=Mention(id=conversation.id, kind=MentionKind.CONVERSATION, resolved_entity=conversation),
        )

    @staticmethod
    def _resolve_keyword(token: MarkupToken) -> ResolvedToken:
        if token.reference in RESERVED_KEYWORDS:
            return ResolvedToken(text=f'@{token.reference}')
        if token.label:
            return ResolvedToken(text=token.label)
        return ResolvedToken(text=token.raw)

    @staticmethod
    def _resolve_link(token: MarkupToken) -> ResolvedToken:
        link = token.reference
        if link.startswith(MAILTO_SCHEME):
            link = link[len(MAILTO_SCHEME) :]
        if token.label and token.label not in link:
            return ResolvedToken(text=f'{token.label} ({link})')
        return ResolvedToken(text=link)
