"""
API router for boundary coordinate endpoints.
"""
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, File, Path, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from boundary_survey.api.dependencies import SourceClientDep, SurveySessionDep
from boundary_survey.api.rate_limit import IMPORT_RATE_LIMIT, limiter
from boundary_survey.api.v1.models.requests import ImportUrlRequest, PlottedUpdate
from boundary_survey.api.v1.models.responses import (
    ErrorResponse,
    ImportResponse,
    PlottedResponse,
    RecordResponse,
    RemoveLastResponse,
)
from boundary_survey.domain.errors import CoordinateValidationError
from boundary_survey.domain.models import AreaSummary, Bounds, CoordinateSnapshot


router = APIRouter(
    prefix="/coordinates",
    tags=["coordinates"],
)

IMPORT_RESPONSES = {
    422: {"model": ErrorResponse, "description": "A coordinate record is invalid"},
    429: {"description": "Rate limit exceeded"},
}


@router.get(
    "",
    response_model=CoordinateSnapshot,
    summary="Get the active coordinate set",
)
async def get_coordinates(session: SurveySessionDep) -> CoordinateSnapshot:
    return session.coordinates_snapshot()


@router.post(
    "",
    response_model=ImportResponse,
    summary="Import coordinates from a JSON array",
    description="""
    Replace the imported coordinates with the request body.

    The body must be a JSON array of objects. Each object needs a numeric
    latitude under `lat` or `latitude` and a numeric longitude under `lng`,
    `longitude` or `long` (first key present wins). A single invalid record
    rejects the whole import and the error reports its index.
    """,
    responses=IMPORT_RESPONSES,
)
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_coordinates(
    request: Request,
    records: Annotated[Any, Body(examples=[[{"lat": 40.7128, "lng": -74.0060}, {"latitude": 40.7130, "longitude": -74.0058}]])],
    session: SurveySessionDep,
    source_name: Annotated[Optional[str], Query(description="Label for the imported data")] = None,
) -> ImportResponse:
    vertices = session.import_records(records, source_name=source_name)
    return ImportResponse(vertex_count=len(vertices), coordinates=session.coordinates_snapshot())


@router.post(
    "/upload",
    response_model=ImportResponse,
    summary="Import coordinates from an uploaded .json file",
    responses=IMPORT_RESPONSES,
)
@limiter.limit(IMPORT_RATE_LIMIT)
async def upload_coordinates(
    request: Request,
    file: Annotated[UploadFile, File(description="JSON file containing an array of coordinates")],
    session: SurveySessionDep,
) -> ImportResponse:
    filename = file.filename or ""
    if file.content_type != "application/json" and not filename.endswith(".json"):
        raise CoordinateValidationError("Please upload a JSON file")

    content = await file.read()
    vertices = session.import_json(content, source_name=filename or None)
    return ImportResponse(vertex_count=len(vertices), coordinates=session.coordinates_snapshot())


@router.post(
    "/import-url",
    response_model=ImportResponse,
    summary="Import coordinates from a remote JSON file",
    responses={
        **IMPORT_RESPONSES,
        502: {"model": ErrorResponse, "description": "The remote file could not be fetched"},
    },
)
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_coordinates_from_url(
    request: Request,
    body: ImportUrlRequest,
    session: SurveySessionDep,
    client: SourceClientDep,
) -> ImportResponse:
    vertices = await session.import_from_url(str(body.url), client)
    return ImportResponse(vertex_count=len(vertices), coordinates=session.coordinates_snapshot())


@router.delete(
    "",
    response_model=CoordinateSnapshot,
    summary="Clear all coordinates",
)
async def clear_coordinates(session: SurveySessionDep) -> CoordinateSnapshot:
    session.clear_coordinates()
    return session.coordinates_snapshot()


@router.post(
    "/recording/start",
    response_model=CoordinateSnapshot,
    summary="Enter manual plotting mode",
)
async def start_recording(session: SurveySessionDep) -> CoordinateSnapshot:
    session.start_recording()
    return session.coordinates_snapshot()


@router.post(
    "/recording/complete",
    response_model=CoordinateSnapshot,
    summary="Leave manual plotting mode",
)
async def complete_recording(session: SurveySessionDep) -> CoordinateSnapshot:
    session.complete_recording()
    return session.coordinates_snapshot()


@router.post(
    "/record",
    response_model=RecordResponse,
    summary="Record the current location as a boundary point",
    responses={409: {"model": ErrorResponse, "description": "Not recording, or no GPS fix available"}},
)
async def record_current_location(session: SurveySessionDep) -> RecordResponse:
    vertex = session.record_current_location()
    return RecordResponse(vertex=vertex, coordinates=session.coordinates_snapshot())


@router.delete(
    "/last",
    response_model=RemoveLastResponse,
    summary="Remove the last boundary point",
)
async def remove_last(session: SurveySessionDep) -> RemoveLastResponse:
    removed = session.remove_last()
    return RemoveLastResponse(removed=removed, coordinates=session.coordinates_snapshot())


@router.put(
    "/{vertex_id}/plotted",
    response_model=PlottedResponse,
    summary="Set the plotted flag of a boundary point",
)
async def set_plotted(
    vertex_id: Annotated[int, Path(description="Vertex id")],
    body: PlottedUpdate,
    session: SurveySessionDep,
) -> PlottedResponse:
    updated = session.set_plotted(vertex_id, body.plotted)
    return PlottedResponse(updated=updated, coordinates=session.coordinates_snapshot())


@router.post(
    "/plotted/reset",
    response_model=CoordinateSnapshot,
    summary="Clear the plotted flag on every boundary point",
)
async def reset_plotted(session: SurveySessionDep) -> CoordinateSnapshot:
    session.reset_plotted()
    return session.coordinates_snapshot()


@router.get(
    "/export",
    summary="Download the active coordinates as JSON",
    response_description="JSON array of {lat, lng, accuracy?, timestamp?}",
    responses={409: {"model": ErrorResponse, "description": "No coordinates to export"}},
)
async def export_coordinates(
    session: SurveySessionDep,
    filename: Annotated[Optional[str], Query(description="Base name of the downloaded file")] = None,
) -> JSONResponse:
    name, data = session.export(filename)
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


@router.get(
    "/area",
    response_model=AreaSummary,
    summary="Get the enclosed boundary area",
    description="""
    Geodesic area of the active boundary ring in m², ft², acres, hectares and
    km². With fewer than 3 points the status is `insufficient_vertices`; if the
    computation fails the status is `unavailable`.
    """,
)
async def get_area(session: SurveySessionDep) -> AreaSummary:
    return session.area_summary()


@router.get(
    "/bounds",
    response_model=Optional[Bounds],
    summary="Get the bounding box of the active coordinates",
)
async def get_bounds(session: SurveySessionDep) -> Optional[Bounds]:
    return session.bounds()
