"""
Domain service: boundary area report in surveying units.
"""
import logging
from typing import Sequence

from boundary_survey.domain.errors import AreaComputationError, InsufficientVerticesError
from boundary_survey.domain.models import AreaResult, AreaStatus, AreaSummary
from boundary_survey.utils.geo_math import LatLng, polygon_area_perimeter

logger = logging.getLogger(__name__)

SQUARE_FEET_PER_SQUARE_METER = 10.764
ACRES_PER_SQUARE_METER = 0.000247105
HECTARES_PER_SQUARE_METER = 0.0001
SQUARE_KILOMETERS_PER_SQUARE_METER = 0.000001

MIN_VERTICES = 3


def convert_area(square_meters: float, perimeter_meters: float = 0.0, vertex_count: int = 0) -> AreaResult:
    """
    Express an area given in square meters in every reported unit.
    """
    return AreaResult(
        square_meters=square_meters,
        square_feet=square_meters * SQUARE_FEET_PER_SQUARE_METER,
        acres=square_meters * ACRES_PER_SQUARE_METER,
        hectares=square_meters * HECTARES_PER_SQUARE_METER,
        square_kilometers=square_meters * SQUARE_KILOMETERS_PER_SQUARE_METER,
        perimeter_meters=perimeter_meters,
        vertex_count=vertex_count,
    )


def compute_area_report(vertices: Sequence[LatLng]) -> AreaResult:
    """
    Compute the area of the boundary ring.

    Args:
        vertices: Boundary vertices in ring order

    Returns:
        AreaResult in m², ft², acres, hectares and km²

    Raises:
        InsufficientVerticesError: If fewer than 3 vertices are supplied
        AreaComputationError: If the underlying area computation fails
    """
    if len(vertices) < MIN_VERTICES:
        raise InsufficientVerticesError(len(vertices))

    square_meters, perimeter = polygon_area_perimeter(vertices)
    return convert_area(square_meters, perimeter, len(vertices))


def summarize_area(vertices: Sequence[LatLng]) -> AreaSummary:
    """
    Area report that reports failures as a status instead of raising.
    """
    count = len(vertices)
    try:
        area = compute_area_report(vertices)
    except InsufficientVerticesError as e:
        return AreaSummary(
            status=AreaStatus.INSUFFICIENT_VERTICES,
            vertex_count=count,
            points_needed=MIN_VERTICES - count,
            detail=e.message,
        )
    except AreaComputationError as e:
        logger.error(f"Error calculating area: {e.message}")
        return AreaSummary(
            status=AreaStatus.UNAVAILABLE,
            vertex_count=count,
            detail="Unable to calculate area for these coordinates",
        )

    return AreaSummary(status=AreaStatus.OK, vertex_count=count, area=area)
