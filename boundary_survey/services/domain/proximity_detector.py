"""
Domain service: edge-triggered arrival detection.

Separates the one-time "arrived" notification from the continuous
"currently near" state a UI renders.
"""
import logging
from typing import Optional

from boundary_survey.domain.models import LocationFix, ProximityResult, Vertex
from boundary_survey.utils.geo_math import distance

logger = logging.getLogger(__name__)


class ProximityDetector:
    """
    Classifies fixes as near / not near a target and reports arrivals.

    Retains one bit of state (the previous classification) for the target it
    last evaluated. Evaluating a different target, or calling `reset`, clears
    that bit, so a surveyor already standing inside the radius of a new
    target gets a fresh arrival.
    """

    def __init__(self):
        self._target_id: Optional[int] = None
        self._was_near = False

    @property
    def target_id(self) -> Optional[int]:
        return self._target_id

    @property
    def was_near(self) -> bool:
        return self._was_near

    def reset(self) -> None:
        """Forget the previous classification."""
        self._target_id = None
        self._was_near = False

    def evaluate(
        self,
        fix: LocationFix,
        target: Vertex,
        threshold_m: float,
    ) -> ProximityResult:
        """
        Evaluate a fix against a target.

        Args:
            fix: Latest device position
            target: Vertex the surveyor is walking to
            threshold_m: Arrival radius in meters (inclusive)

        Returns:
            ProximityResult with the distance, the level-triggered `is_near`
            and the edge-triggered `just_arrived`
        """
        if target.id != self._target_id:
            self._target_id = target.id
            self._was_near = False

        dist = distance(fix, target)
        is_near = dist <= threshold_m
        just_arrived = is_near and not self._was_near
        self._was_near = is_near

        logger.debug(
            f"Target {target.id}: {dist:.1f}m (threshold {threshold_m:.1f}m, near={is_near})"
        )
        return ProximityResult(distance=dist, is_near=is_near, just_arrived=just_arrived)
