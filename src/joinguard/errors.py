"""Exception types raised by the join classification pipeline.

Every per-event failure is one of these; the join handler catches them,
logs a diagnostic and drops the event.
"""


class JoinguardError(Exception):
    """Base class for all Joinguard pipeline errors."""


class NoHostInfo(JoinguardError):
    """The join event carried no host information."""


class ResolutionFailed(JoinguardError):
    """A hostname could not be resolved to a network address."""


class ReputationQueryFailed(JoinguardError):
    """The reputation service did not return a usable verdict."""


class PersistenceFailed(JoinguardError):
    """The reputation cache could not be written to disk."""


class TransportError(JoinguardError):
    """A moderation command or notification could not be sent."""
