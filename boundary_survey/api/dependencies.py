"""
Dependency injection for FastAPI.
"""
from typing import Annotated, Optional
from fastapi import Depends

from boundary_survey.infrastructure.coordinate_source_client import (
    CoordinateSourceClient,
    get_source_client,
)
from boundary_survey.services.application.survey_session import SurveySession


# Single-surveyor service: one session per process
_session: Optional[SurveySession] = None


def get_survey_session() -> SurveySession:
    """
    Get or create the process-wide survey session.

    Returns:
        SurveySession instance
    """
    global _session
    if _session is None:
        _session = SurveySession()
    return _session


def reset_survey_session() -> SurveySession:
    """
    Discard the current session and start a fresh one.

    Returns:
        The new SurveySession instance
    """
    global _session
    _session = SurveySession()
    return _session


# Type aliases for cleaner route signatures
SurveySessionDep = Annotated[SurveySession, Depends(get_survey_session)]
SourceClientDep = Annotated[CoordinateSourceClient, Depends(get_source_client)]
