"""Error taxonomy for one processing cycle.

Only ``QueueReadError`` is fatal to a cycle. Every other error is scoped to a
single message and is captured by the reconciler instead of propagating.
"""

from __future__ import annotations


class EmbedQError(Exception):
    """Base class for embedq errors."""


class QueueReadError(EmbedQError):
    """The batch could not be read from the queue."""


class QueueDeleteError(EmbedQError):
    """An acknowledged message could not be deleted from the queue."""


class MalformedMessageError(EmbedQError):
    """The message payload is missing a record id or text."""


class ProviderError(EmbedQError):
    """The embedding provider failed or returned an unusable vector."""


class StoreError(EmbedQError):
    """The vector could not be written to the record store."""
