"""Exceptions and warnings raised by the heliacal engine."""

from __future__ import annotations


class HeliacalError(Exception):
    """Base class for every error raised by this package."""


class HeliacalValidationError(HeliacalError, ValueError):
    """The request cannot be answered as posed."""


class CircumpolarError(HeliacalValidationError):
    """The object never rises or never sets at the given latitude."""


class ComputationError(HeliacalError, RuntimeError):
    """A numerical step failed."""


class EphemerisError(ComputationError):
    """A position, rise/set or Delta-T service could not answer."""


class LoopGuardError(HeliacalError, RuntimeError):
    """An iteration budget was exceeded."""


class SearchCancelled(HeliacalError):
    """The caller's cancellation hook asked the search to stop."""


class EventNotFound(HeliacalError):
    """No event inside the interval being searched.

    Used for control flow between the search layers; public entry points
    turn it into a ``not_found`` result.
    """


class UncertainResultWarning(UserWarning):
    """A reported time sits where the vision model switches regime."""
