"""
Domain exceptions for the survey engine.

Validation failures are strict and abort the whole operation; precondition and
computation failures are recoverable and surfaced to the caller.
"""
from typing import Optional


class SurveyEngineError(Exception):
    """Base class for all survey engine errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CoordinateValidationError(SurveyEngineError, ValueError):
    """A coordinate record failed ingestion.

    Attributes:
        index: Position of the offending record in the input sequence,
            or None when the input as a whole is malformed.
    """

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class SurveyPreconditionError(SurveyEngineError):
    """An operation was requested before its preconditions were met."""
    pass


class AreaComputationError(SurveyEngineError):
    """The polygon area could not be computed."""
    pass


class InsufficientVerticesError(AreaComputationError):
    """Fewer than three vertices were supplied for an area computation."""

    def __init__(self, vertex_count: int):
        super().__init__(
            f"At least 3 vertices are required to compute an area (got {vertex_count})"
        )
        self.vertex_count = vertex_count


class CoordinateSourceError(SurveyEngineError):
    """A remote coordinate source could not be fetched or decoded."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code
