"""Exceptions raised by the normalizer."""


class NormalizerError(Exception):
    """Base class for all normalizer errors."""


class LookupServiceError(NormalizerError):
    """Base class for errors coming from the lookup collaborator."""


class EntityLookupError(LookupServiceError):
    """A single user or conversation could not be resolved.

    Raised per entity. The token resolver absorbs it and falls back to
    the original markup.
    """

    def __init__(self, entity_id: str, reason: str):
        super().__init__(f'Failed to look up {entity_id}: {reason}')
        self.entity_id = entity_id
        self.reason = reason


class LookupUnavailableError(LookupServiceError):
    """The lookup collaborator itself is unreachable.

    Aborts assembly of the whole message.
    """


class MessageStateError(NormalizerError):
    """A message was driven through an invalid state transition."""


class UnsupportedEventError(NormalizerError):
    """Raised for raw events the normalizer does not model."""

    def __init__(self, event_type: str | None):
        super().__init__(f'Unsupported event type: {event_type!r}')
        self.event_type = event_type
