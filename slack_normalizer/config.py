"""Runtime configuration loaded from the environment."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NormalizerConfig(BaseSettings):
    """Normalizer settings.

    Every field can be overridden with a ``SLACK_NORMALIZER_``-prefixed
    environment variable, e.g. ``SLACK_NORMALIZER_BOT_NAME=bot``.
    """

    model_config = SettingsConfigDict(env_prefix='SLACK_NORMALIZER_', env_file='.env', extra='ignore')

    slack_bot_token: str = Field(default='', description='Slack bot token (xoxb-...)')
    bot_name: str = Field(default='hubot', description='Name the bot answers to')
    bot_alias: str | None = Field(default=None, description='Alternative name the bot answers to')
    lookup_cache_ttl_seconds: int = Field(default=300, ge=0, description='TTL for cached lookups')
    # None means attachments are folded into the text for every conversation
    attachment_channels: list[str] | None = Field(
        default=None,
        description='Conversations whose attachment fallback text is appended to the message',
    )
    log_level: str = Field(default='INFO', description='Logging level for the CLI')

    def attachments_enabled_for(self, channel_id: str) -> bool:
        """Whether attachment fallback text should be folded in for a conversation."""
        if self.attachment_channels is None:
            return True
        return channel_id in self.attachment_channels


@lru_cache
def get_config() -> NormalizerConfig:
    """Get the process-wide configuration."""
    return NormalizerConfig()
