"""Slack markup scanning and resolution."""

from slack_normalizer.formatting.assembler import AssembledText, TextAssembler, address_to_bot, merge_attachments
from slack_normalizer.formatting.patterns import LiteralSpan, MarkupToken, iter_spans, next_token, unescape_html
from slack_normalizer.formatting.resolver import LookupService, ResolvedToken, TokenResolver


__all__ = [
    'AssembledText',
    'LiteralSpan',
    'LookupService',
    'MarkupToken',
    'ResolvedToken',
    'TextAssembler',
    'TokenResolver',
    'address_to_bot',
    'iter_spans',
    'merge_attachments',
    'next_token',
    'unescape_html',
]
