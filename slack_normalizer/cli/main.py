"""Command line entry point: normalize raw Slack events from a file or stdin."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Iterable, Iterator
from typing import Any, TextIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from slack_normalizer.config import get_config
from slack_normalizer.errors import LookupServiceError, UnsupportedEventError
from slack_normalizer.events import normalize_event
from slack_normalizer.formatting.resolver import LookupService
from slack_normalizer.models import PresenceMessage, ReactionMessage, TextMessage
from slack_normalizer.slack.lookup import SlackLookup


logger = logging.getLogger(__name__)

console = Console()


def read_events(stream: TextIO) -> Iterator[dict[str, Any]]:
    """Yield one event per non-blank JSON line, skipping lines that fail to parse."""
    for lineno, line in enumerate(stream, 1):
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f'Skipping line {lineno}: {e}')


def render_message(message, out: Console) -> None:
    """Print a normalized message with rich formatting."""
    if isinstance(message, TextMessage):
        out.print(Panel(Text(message.text), title=f'@{message.user.name} in {message.channel_id}', border_style='blue'))
        if message.mentions:
            table = Table('id', 'kind', 'resolved', box=None)
            for mention in message.mentions:
                table.add_row(mention.id, mention.kind.value, 'yes' if mention.resolved_entity else 'no')
            out.print(table)
    elif isinstance(message, ReactionMessage):
        out.print(f'[dim]{message.user.name} {message.reaction_type} :{message.reaction}:[/dim]', emoji=False)
    elif isinstance(message, PresenceMessage):
        names = ', '.join(u.name for u in message.users)
        out.print(f'[dim]{names} is now {message.presence}[/dim]')
    else:
        out.print(f'[dim]{message.user.name} shared file {message.file_id}[/dim]')


async def normalize_all(
    events: Iterable[dict[str, Any]],
    lookup: LookupService,
    bot_name: str,
    bot_alias: str | None = None,
    as_json: bool = False,
    out: Console | None = None,
) -> int:
    """Normalize and print events one by one.

    Returns:
        Number of events that failed.
    """
    out = out or console
    failures = 0
    for event in events:
        try:
            message = await normalize_event(event, lookup, bot_name, bot_alias)
        except UnsupportedEventError as e:
            logger.warning(str(e))
            continue
        except LookupServiceError as e:
            logger.error(f'Failed to normalize event {event.get("ts") or event.get("event_ts")}: {e}')
            failures += 1
            continue

        if message is None:
            continue
        if as_json:
            out.print_json(message.model_dump_json(exclude={'raw_message'}))
        else:
            render_message(message, out)
    return failures


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    config = get_config()

    parser = argparse.ArgumentParser(description='Normalize raw Slack events')
    parser.add_argument('input', nargs='?', help='File with one JSON event per line (default: stdin)')
    parser.add_argument('--json', action='store_true', help='Print messages as JSON')
    parser.add_argument('--bot-name', default=config.bot_name, help=f'Bot name (default: {config.bot_name})')
    parser.add_argument('--bot-alias', default=config.bot_alias, help='Bot alias')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    if not config.slack_bot_token:
        logger.error('SLACK_NORMALIZER_SLACK_BOT_TOKEN environment variable is not set')
        return 1

    lookup = SlackLookup(config.slack_bot_token)
    stream = open(args.input) if args.input else sys.stdin
    try:
        failures = asyncio.run(
            normalize_all(read_events(stream), lookup, args.bot_name, args.bot_alias, as_json=args.json)
        )
    finally:
        if stream is not sys.stdin:
            stream.close()

    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
