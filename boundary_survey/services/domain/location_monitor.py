"""
Domain service: per-fix checks that run whether or not a survey is active.

- Accuracy rating of each fix
- Nearest unplotted boundary point within a fixed radius
"""
from dataclasses import dataclass
from typing import Optional, Sequence
import logging

import numpy as np

from boundary_survey.config import settings
from boundary_survey.domain.models import FeedErrorReason, FixQuality, LocationFix, Vertex
from boundary_survey.utils.geo_math import haversine_many

logger = logging.getLogger(__name__)

FEED_ERROR_MESSAGES = {
    FeedErrorReason.PERMISSION_DENIED: "GPS permission denied. Please enable location access.",
    FeedErrorReason.POSITION_UNAVAILABLE: (
        "GPS position unavailable. Try moving to an open area with clear sky view."
    ),
    FeedErrorReason.TIMEOUT: "GPS timeout. Trying again with high accuracy mode...",
    FeedErrorReason.UNSUPPORTED: "GPS not supported on this device",
}


def describe_feed_error(reason: FeedErrorReason) -> str:
    return FEED_ERROR_MESSAGES.get(reason, "GPS error")


@dataclass
class LocationMonitorConfig:
    """Thresholds for per-fix checks."""

    nearby_threshold_m: float = 10.0
    """Radius for flagging a nearby unplotted point"""

    excellent_accuracy_m: float = 3.0
    """Fixes at or below this accuracy are excellent"""

    poor_accuracy_m: float = 10.0
    """Fixes above this accuracy are poor"""

    @classmethod
    def from_settings(cls) -> "LocationMonitorConfig":
        return cls(
            nearby_threshold_m=settings.nearby_point_threshold_m,
            excellent_accuracy_m=settings.gps_excellent_accuracy_m,
            poor_accuracy_m=settings.gps_poor_accuracy_m,
        )


class LocationMonitor:
    """Rates fixes and finds nearby unplotted boundary points."""

    def __init__(self, config: Optional[LocationMonitorConfig] = None):
        self.config = config or LocationMonitorConfig.from_settings()

    def rate_fix(self, fix: LocationFix) -> FixQuality:
        if fix.accuracy > self.config.poor_accuracy_m:
            logger.warning(
                f"GPS accuracy is {fix.accuracy:.1f}m - consider improving conditions"
            )
            return FixQuality.POOR
        if fix.accuracy <= self.config.excellent_accuracy_m:
            return FixQuality.EXCELLENT
        return FixQuality.GOOD

    def find_nearby_unplotted(
        self,
        fix: LocationFix,
        vertices: Sequence[Vertex],
    ) -> Optional[Vertex]:
        """
        First unplotted vertex (in ring order) within the nearby radius.

        Args:
            fix: Latest device position
            vertices: Active boundary vertices

        Returns:
            The matching vertex, or None
        """
        candidates = [v for v in vertices if not v.plotted]
        if not candidates:
            return None

        distances = haversine_many(
            fix.lat,
            fix.lng,
            [v.lat for v in candidates],
            [v.lng for v in candidates],
        )
        within = np.flatnonzero(distances <= self.config.nearby_threshold_m)
        if within.size == 0:
            return None

        nearby = candidates[int(within[0])]
        logger.info(f"Near point {nearby.id + 1}! Distance: {distances[within[0]]:.1f}m")
        return nearby
