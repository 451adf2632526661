"""
Great-circle distance and geodesic area utilities.
"""
import math
import logging
from functools import lru_cache
from typing import Optional, Protocol, Sequence

import numpy as np
from pyproj import Geod
from shapely.geometry import Polygon

from boundary_survey.config import settings
from boundary_survey.domain.errors import AreaComputationError, InsufficientVerticesError
from boundary_survey.domain.models import Bounds

logger = logging.getLogger(__name__)


class LatLng(Protocol):
    lat: float
    lng: float


def haversine_m(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    radius: Optional[float] = None,
) -> float:
    """
    Compute the haversine distance in meters between two lat/lng points.

    Args:
        lat1: Latitude of the first point in degrees
        lng1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lng2: Longitude of the second point in degrees
        radius: Sphere radius in meters (defaults to the configured mean Earth radius)

    Returns:
        Distance in meters
    """
    r = radius or settings.earth_radius_m
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # rounding can push a just outside [0, 1] for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return r * c


def distance(a: LatLng, b: LatLng) -> float:
    """
    Great-circle distance in meters between two points exposing lat/lng.

    Symmetric, and exactly 0 for identical points.
    """
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def haversine_many(
    lat: float,
    lng: float,
    lats: Sequence[float],
    lngs: Sequence[float],
    radius: Optional[float] = None,
) -> np.ndarray:
    """
    Vectorised haversine distance from one point to many.

    Args:
        lat: Latitude of the origin in degrees
        lng: Longitude of the origin in degrees
        lats: Latitudes of the targets in degrees
        lngs: Longitudes of the targets in degrees
        radius: Sphere radius in meters

    Returns:
        Array of distances in meters, in target order
    """
    r = radius or settings.earth_radius_m
    phi1 = np.radians(lat)
    phi2 = np.radians(np.asarray(lats, dtype=float))
    d_phi = np.radians(np.asarray(lats, dtype=float) - lat)
    d_lambda = np.radians(np.asarray(lngs, dtype=float) - lng)

    a = np.sin(d_phi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    a = np.clip(a, 0.0, 1.0)
    c = 2.0 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))
    return r * c


@lru_cache(maxsize=8)
def get_geod(figure: str, radius: float) -> Geod:
    """
    Build the pyproj Geod used for area computations.

    Args:
        figure: 'sphere' for a sphere of the given radius, otherwise a pyproj
            ellipsoid name (e.g. 'WGS84')
        radius: Sphere radius in meters (ignored for ellipsoids)

    Returns:
        Geod instance
    """
    if figure.lower() == "sphere":
        return Geod(a=radius, b=radius)
    return Geod(ellps=figure)


def polygon_area_perimeter(vertices: Sequence[LatLng]) -> tuple[float, float]:
    """
    Compute the geodesic area and perimeter of a closed ring.

    The ring is closed implicitly; vertex order defines the ring and the
    winding direction does not affect the result.

    Args:
        vertices: Ordered ring vertices exposing lat/lng in degrees

    Returns:
        Tuple of (area in m², perimeter in m)

    Raises:
        InsufficientVerticesError: If fewer than 3 vertices are supplied
        AreaComputationError: If the geodesic computation fails
    """
    if len(vertices) < 3:
        raise InsufficientVerticesError(len(vertices))

    try:
        # Shapely and pyproj both expect (lon, lat) order
        ring = Polygon([(v.lng, v.lat) for v in vertices])
        geod = get_geod(settings.area_ellipsoid, settings.earth_radius_m)
        area, perimeter = geod.geometry_area_perimeter(ring)
    except Exception as e:
        raise AreaComputationError(f"Polygon area computation failed: {e}") from e

    if not math.isfinite(area) or not math.isfinite(perimeter):
        raise AreaComputationError("Polygon area computation produced a non-finite value")

    logger.debug(f"Computed area {abs(area):.2f}m² over {len(vertices)} vertices")
    return abs(area), float(perimeter)


def polygon_area(vertices: Sequence[LatLng]) -> float:
    """
    Geodesic area in square meters of the ring defined by the vertices.

    Raises:
        InsufficientVerticesError: If fewer than 3 vertices are supplied
        AreaComputationError: If the geodesic computation fails
    """
    area, _ = polygon_area_perimeter(vertices)
    return area


def bounds(vertices: Sequence[LatLng]) -> Optional[Bounds]:
    """
    Bounding box of a set of vertices, or None when empty.
    """
    if not vertices:
        return None

    lats = [v.lat for v in vertices]
    lngs = [v.lng for v in vertices]
    min_lat, max_lat = min(lats), max(lats)
    min_lng, max_lng = min(lngs), max(lngs)
    return Bounds(
        min_lat=min_lat,
        min_lng=min_lng,
        max_lat=max_lat,
        max_lng=max_lng,
        center_lat=(min_lat + max_lat) / 2,
        center_lng=(min_lng + max_lng) / 2,
    )
