"""
API router for the location feed.

A client that owns the device GPS posts every fix here; the response carries
the derived state for that fix, including the one-shot arrival flag.
"""
from fastapi import APIRouter

from boundary_survey.api.dependencies import SurveySessionDep
from boundary_survey.api.v1.models.requests import FeedErrorReport
from boundary_survey.domain.models import FixOutcome, LocationFix, LocationStatus


router = APIRouter(
    prefix="/location",
    tags=["location"],
)


@router.get(
    "",
    response_model=LocationStatus,
    summary="Get the location feed status",
)
async def get_location_status(session: SurveySessionDep) -> LocationStatus:
    return session.location_status()


@router.post(
    "/tracking/start",
    response_model=LocationStatus,
    summary="Mark the position feed as running",
)
async def start_tracking(session: SurveySessionDep) -> LocationStatus:
    session.start_tracking()
    return session.location_status()


@router.post(
    "/tracking/stop",
    response_model=LocationStatus,
    summary="Mark the position feed as stopped",
)
async def stop_tracking(session: SurveySessionDep) -> LocationStatus:
    session.stop_tracking()
    return session.location_status()


@router.post(
    "/fix",
    response_model=FixOutcome,
    summary="Deliver a position fix",
    description="""
    Deliver one fix from the device.

    While tracking, the fix is rated for accuracy, checked against unplotted
    boundary points, and, during a field survey, evaluated against the current
    target. `proximity.just_arrived` is true only on the fix that first comes
    within the arrival radius. Fixes sent while tracking is stopped are
    returned with `accepted: false`.
    """,
)
async def post_fix(fix: LocationFix, session: SurveySessionDep) -> FixOutcome:
    return session.on_fix(fix)


@router.post(
    "/error",
    response_model=LocationStatus,
    summary="Report a position feed failure",
)
async def post_feed_error(body: FeedErrorReport, session: SurveySessionDep) -> LocationStatus:
    session.on_feed_error(body.reason)
    return session.location_status()
