"""Slack message markup scanning."""

import re
from collections.abc import Iterator
from dataclasses import dataclass


# <@U123>, <@U123|bob>, <#C123|general>, <!here>, <https://example.com|label>
MARKUP_TOKEN = re.compile(r'<([@#!])?([^>|]+)(?:\|([^>]+))?>')

USER_SIGIL = '@'
CONVERSATION_SIGIL = '#'
KEYWORD_SIGIL = '!'

# Replaced in this order, each over the whole string
HTML_ENTITIES = (
    ('&lt;', '<'),
    ('&gt;', '>'),
    ('&amp;', '&'),
)


@dataclass(frozen=True)
class LiteralSpan:
    """Plain text between markup tokens."""

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class MarkupToken:
    """A bracketed markup reference.

    Attributes:
        sigil: '@', '#', '!' or None for a bare link.
        reference: Id, keyword or URL inside the brackets.
        label: Display text after the pipe, if any.
        raw: The full matched markup, brackets included.
        start: Offset of the opening bracket.
        end: Offset just past the closing bracket.
    """

    sigil: str | None
    reference: str
    label: str | None
    raw: str
    start: int
    end: int

    @property
    def needs_lookup(self) -> bool:
        """True for user/conversation references without an inline label."""
        return self.sigil in (USER_SIGIL, CONVERSATION_SIGIL) and self.label is None


Span = LiteralSpan | MarkupToken


def next_token(text: str, pos: int) -> tuple[MarkupToken | None, int]:
    """Find the next markup token at or after ``pos``.

    Args:
        text: Text to scan.
        pos: Cursor to start scanning from.

    Returns:
        The token (or None when there are no more) and the cursor to resume
        from. The cursor always moves forward by at least one character
        after a match.
    """
    match = MARKUP_TOKEN.search(text, pos)
    if match is None:
        return None, len(text)

    token = MarkupToken(
        sigil=match.group(1),
        reference=match.group(2),
        label=match.group(3),
        raw=match.group(0),
        start=match.start(),
        end=match.end(),
    )
    return token, max(match.end(), match.start() + 1)


def iter_spans(text: str) -> Iterator[Span]:
    """Split text into literal spans and markup tokens, left to right.

    The spans cover the input exactly once. An unclosed ``<`` is left as
    literal text.
    """
    pos = 0
    while pos < len(text):
        token, cursor = next_token(text, pos)
        if token is None:
            break
        if token.start > pos:
            yield LiteralSpan(text=text[pos : token.start], start=pos, end=token.start)
        yield token
        pos = cursor

    if pos < len(text):
        yield LiteralSpan(text=text[pos:], start=pos, end=len(text))


def unescape_html(text: str) -> str:
    """Decode the HTML entities Slack escapes in message text."""
    for entity, char in HTML_ENTITIES:
        text = text.replace(entity, char)
    return text
