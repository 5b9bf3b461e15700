"""Error taxonomy shared by the scheduling engine and the API layer."""
from __future__ import annotations


class DayFlowError(Exception):
    """Base class for engine errors carrying a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DayFlowError):
    """Caller input is malformed or under-specified; never delegated."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ParseError(DayFlowError):
    """Time or schedule text could not be interpreted."""


class GenerationFailure(DayFlowError):
    """The text-generation collaborator failed or returned nothing usable."""


class AuthRequired(DayFlowError):
    """The calendar provider is not linked for the calling identity."""
