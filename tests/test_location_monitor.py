"""
Unit tests for per-fix accuracy rating and nearby point detection.
"""
import pytest

from boundary_survey.domain.models import FeedErrorReason, FixQuality, LocationFix, Vertex
from boundary_survey.services.domain.location_monitor import (
    LocationMonitor,
    LocationMonitorConfig,
    describe_feed_error,
)


@pytest.fixture
def monitor() -> LocationMonitor:
    return LocationMonitor(LocationMonitorConfig())


class TestFixRating:
    """Tests for fix accuracy rating."""

    @pytest.mark.parametrize("accuracy, quality", [
        (0.5, FixQuality.EXCELLENT),
        (3.0, FixQuality.EXCELLENT),
        (3.1, FixQuality.GOOD),
        (10.0, FixQuality.GOOD),
        (10.1, FixQuality.POOR),
    ])
    def test_rate_fix(self, monitor, accuracy, quality):
        """Accuracy bands: <=3m excellent, <=10m good, otherwise poor."""
        fix = LocationFix(lat=0.0, lng=0.0, accuracy=accuracy, timestamp=0)

        assert monitor.rate_fix(fix) is quality


class TestNearbyUnplotted:
    """Tests for flagging nearby unplotted points."""

    def test_finds_point_within_radius(self, monitor, sample_vertices, make_fix):
        """An unplotted vertex within 10m is reported."""
        nearby = monitor.find_nearby_unplotted(make_fix(sample_vertices[1], north_m=6.0), sample_vertices)

        assert nearby.id == 1

    def test_ignores_plotted_points(self, monitor, sample_vertices, make_fix):
        """Plotted vertices are never reported."""
        vertices = [v.model_copy(update={"plotted": v.id == 1}) for v in sample_vertices]

        nearby = monitor.find_nearby_unplotted(make_fix(vertices[1]), vertices)

        assert nearby is None

    def test_nothing_nearby(self, monitor, sample_vertices, make_fix):
        """Fixes far from every vertex report nothing."""
        assert monitor.find_nearby_unplotted(make_fix(sample_vertices[0], north_m=-50.0), sample_vertices) is None

    def test_empty_vertex_list(self, monitor, make_fix):
        """No vertices means nothing nearby."""
        fix = make_fix(Vertex(id=0, lat=0.0, lng=0.0))

        assert monitor.find_nearby_unplotted(fix, []) is None

    def test_first_in_ring_order_wins(self, monitor, make_fix):
        """With several candidates in range the first in ring order is reported."""
        vertices = [
            Vertex(id=0, lat=0.0, lng=0.0),
            Vertex(id=1, lat=0.0, lng=0.00001),
        ]

        nearby = monitor.find_nearby_unplotted(make_fix(vertices[1]), vertices)

        assert nearby.id == 0


class TestFeedErrors:
    """Tests for feed error messages."""

    def test_every_reason_has_a_message(self):
        """Each feed failure reason maps to a user-facing message."""
        for reason in FeedErrorReason:
            assert describe_feed_error(reason)

    def test_permission_denied_message(self):
        assert describe_feed_error(FeedErrorReason.PERMISSION_DENIED).startswith("GPS permission denied")
