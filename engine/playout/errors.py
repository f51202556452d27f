"""
Error hierarchy for playout.

All custom exceptions inherit from PlayoutError so callers can catch the
whole family at once. Running out of thinking time is not an error: the
timed players resolve it with their fallback move chooser.
"""

__all__ = [
    "PlayoutError",
    "ConfigurationError",
    "InvalidIndividualError",
    "EmptyPopulationError",
    "EvaluationError",
    "PersistenceError",
]


class PlayoutError(Exception):
    """Base exception for all playout errors."""


class ConfigurationError(PlayoutError):
    """A component is missing a collaborator or was configured inconsistently."""


class InvalidIndividualError(PlayoutError):
    """A spawned genotype cannot be part of a population (e.g. zero length)."""


class EmptyPopulationError(PlayoutError):
    """An operation needs at least one individual but the population is empty."""


class EvaluationError(PlayoutError):
    """Encoding, computing or decoding a move rating failed."""


class PersistenceError(PlayoutError):
    """A stored genotype list could not be decoded."""
