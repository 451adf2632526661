"""
API router for the field survey.
"""
from typing import Annotated

from fastapi import APIRouter, Path

from boundary_survey.api.dependencies import SurveySessionDep
from boundary_survey.api.v1.models.requests import ThresholdUpdate
from boundary_survey.api.v1.models.responses import ErrorResponse, SurveyCommandResponse
from boundary_survey.domain.models import SurveyState


router = APIRouter(
    prefix="/survey",
    tags=["survey"],
)


@router.get(
    "",
    response_model=SurveyState,
    summary="Get the field survey state",
)
async def get_survey_state(session: SurveySessionDep) -> SurveyState:
    return session.survey.snapshot()


@router.post(
    "/start",
    response_model=SurveyState,
    summary="Start the field survey",
    description="""
    Start walking the active boundary points from point 1. Requires loaded
    coordinates and a running position feed. Restarting clears found points.
    """,
    responses={409: {"model": ErrorResponse, "description": "No coordinates or GPS tracking is off"}},
)
async def start_survey(session: SurveySessionDep) -> SurveyState:
    session.start_survey()
    return session.survey.snapshot()


@router.post(
    "/stop",
    response_model=SurveyState,
    summary="Stop the field survey",
)
async def stop_survey(session: SurveySessionDep) -> SurveyState:
    session.survey.stop()
    return session.survey.snapshot()


@router.post(
    "/found",
    response_model=SurveyCommandResponse,
    summary="Mark the current target as found",
)
async def mark_found(session: SurveySessionDep) -> SurveyCommandResponse:
    applied = session.survey.mark_current_as_found()
    return SurveyCommandResponse(applied=applied, state=session.survey.snapshot())


@router.post(
    "/skip",
    response_model=SurveyCommandResponse,
    summary="Skip to the next unfound target",
)
async def skip_target(session: SurveySessionDep) -> SurveyCommandResponse:
    applied = session.survey.skip()
    return SurveyCommandResponse(applied=applied, state=session.survey.snapshot())


@router.post(
    "/goto/{index}",
    response_model=SurveyCommandResponse,
    summary="Jump to a specific target",
)
async def go_to_target(
    index: Annotated[int, Path(description="0-based target index")],
    session: SurveySessionDep,
) -> SurveyCommandResponse:
    applied = session.survey.go_to(index)
    return SurveyCommandResponse(applied=applied, state=session.survey.snapshot())


@router.put(
    "/threshold",
    response_model=SurveyState,
    summary="Set the arrival radius",
)
async def set_threshold(body: ThresholdUpdate, session: SurveySessionDep) -> SurveyState:
    session.survey.set_proximity_threshold(body.threshold)
    return session.survey.snapshot()
