"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample boundary records and vertices
- Square boundaries of known area
- Location fix factory
- Survey session with tracking enabled
- FastAPI test client with a fresh session per test
"""
import math
import pytest
from typing import Callable
from fastapi.testclient import TestClient

from boundary_survey.main import app
from boundary_survey.api.dependencies import reset_survey_session
from boundary_survey.domain.models import LocationFix, Vertex
from boundary_survey.services.application.survey_session import SurveySession
from boundary_survey.services.domain.survey_state_machine import SurveyConfig, SurveyStateMachine
from boundary_survey.services.domain.location_monitor import LocationMonitor, LocationMonitorConfig

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180.0


def offset(lat: float, lng: float, north_m: float = 0.0, east_m: float = 0.0) -> tuple[float, float]:
    """Move a point by a distance in meters on the mean-radius sphere."""
    new_lat = lat + north_m / METERS_PER_DEGREE
    new_lng = lng + east_m / (METERS_PER_DEGREE * math.cos(math.radians(lat)))
    return new_lat, new_lng


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def sample_records() -> list[dict]:
    """A small boundary in mixed key spellings."""
    return [
        {"lat": 40.7128, "lng": -74.0060},
        {"latitude": 40.7130, "longitude": -74.0058},
        {"lat": 40.7131, "long": -74.0062, "accuracy": 4.2, "timestamp": 1700000000000},
        {"lat": 40.7127, "lng": -74.0063},
    ]


@pytest.fixture
def sample_vertices() -> list[Vertex]:
    """Three vertices spaced roughly 20m apart."""
    base_lat, base_lng = -32.328, 18.826
    points = [
        (base_lat, base_lng),
        offset(base_lat, base_lng, east_m=20.0),
        offset(base_lat, base_lng, north_m=20.0, east_m=20.0),
    ]
    return [Vertex(id=i, lat=lat, lng=lng) for i, (lat, lng) in enumerate(points)]


@pytest.fixture
def square_factory() -> Callable[[float, float], list[Vertex]]:
    """Build a square of a given side length in meters at a given latitude."""
    def _square(side_m: float, lat: float = 40.0) -> list[Vertex]:
        lng = -74.0
        corners = [
            (lat, lng),
            offset(lat, lng, east_m=side_m),
            offset(lat, lng, north_m=side_m, east_m=side_m),
            offset(lat, lng, north_m=side_m),
        ]
        return [Vertex(id=i, lat=la, lng=ln) for i, (la, ln) in enumerate(corners)]
    return _square


@pytest.fixture
def make_fix() -> Callable[..., LocationFix]:
    """Build a fix, optionally offset in meters from a vertex."""
    def _fix(
        vertex: Vertex,
        north_m: float = 0.0,
        east_m: float = 0.0,
        accuracy: float = 2.0,
        timestamp: float = 1700000000000.0,
    ) -> LocationFix:
        lat, lng = offset(vertex.lat, vertex.lng, north_m=north_m, east_m=east_m)
        return LocationFix(lat=lat, lng=lng, accuracy=accuracy, timestamp=timestamp)
    return _fix


# ============================================================
# Service Fixtures
# ============================================================

@pytest.fixture
def survey_config() -> SurveyConfig:
    """Survey configuration independent of environment settings."""
    return SurveyConfig(default_threshold_m=1.0, min_threshold_m=1.0, max_threshold_m=50.0)


@pytest.fixture
def state_machine(survey_config) -> SurveyStateMachine:
    """Inactive survey state machine."""
    return SurveyStateMachine(config=survey_config)


@pytest.fixture
def session(survey_config) -> SurveySession:
    """Survey session with explicit configuration and tracking running."""
    session = SurveySession(
        survey=SurveyStateMachine(config=survey_config),
        monitor=LocationMonitor(LocationMonitorConfig()),
    )
    session.start_tracking()
    return session


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture(autouse=True)
def fresh_session() -> SurveySession:
    """Replace the process-wide session so API tests never share state."""
    return reset_survey_session()


@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)
