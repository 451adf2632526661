"""
Domain service: field survey state machine.

Sequences the surveyor through the boundary vertices, detects arrival at the
current target from live fixes and tracks completion.

States:
- INACTIVE: created, or after `stop`
- ACTIVE: after `start`; sub-states "has current target" and "all found"

Commands issued in the wrong state are ignored rather than raised, so a
caller error can never leave the machine inconsistent. Only `start` raises,
when its preconditions are not met.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
import logging

from boundary_survey.config import settings
from boundary_survey.domain.errors import SurveyPreconditionError
from boundary_survey.domain.models import (
    ArrivalEvent,
    LocationFix,
    ProximityResult,
    SurveyPhase,
    SurveyProgress,
    SurveyState,
    SurveyTarget,
    Vertex,
)
from boundary_survey.services.domain.proximity_detector import ProximityDetector

logger = logging.getLogger(__name__)

ArrivalListener = Callable[[ArrivalEvent], None]


@dataclass
class SurveyConfig:
    """Configuration for the field survey."""

    default_threshold_m: float = 1.0
    """Arrival radius a new machine starts with"""

    min_threshold_m: float = 1.0
    """Lower clamp for the arrival radius"""

    max_threshold_m: float = 50.0
    """Upper clamp for the arrival radius"""

    @classmethod
    def from_settings(cls) -> "SurveyConfig":
        return cls(
            default_threshold_m=settings.default_proximity_threshold_m,
            min_threshold_m=settings.min_proximity_threshold_m,
            max_threshold_m=settings.max_proximity_threshold_m,
        )


class SurveyStateMachine:
    """
    Field survey over a snapshot of the boundary vertices.

    The vertex list is captured when the survey starts; later changes to the
    coordinate set do not affect the running survey or its progress totals.
    Not thread-safe: fixes and commands must be delivered from one thread.
    """

    def __init__(
        self,
        config: Optional[SurveyConfig] = None,
        detector: Optional[ProximityDetector] = None,
    ):
        self.config = config or SurveyConfig.from_settings()
        self.detector = detector or ProximityDetector()

        self._phase = SurveyPhase.INACTIVE
        self._vertices: tuple[Vertex, ...] = ()
        self._current_index = 0
        self._found: set[int] = set()
        self._threshold = self._clamp(self.config.default_threshold_m)
        self._is_near = False
        self._distance: Optional[float] = None
        self._last_arrival: Optional[ArrivalEvent] = None
        self._listeners: list[ArrivalListener] = []

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SurveyPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase is SurveyPhase.ACTIVE

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def current_target_index(self) -> int:
        return self._current_index

    @property
    def found_indices(self) -> frozenset[int]:
        return frozenset(self._found)

    @property
    def proximity_threshold(self) -> float:
        return self._threshold

    @property
    def is_near_target(self) -> bool:
        return self._is_near

    @property
    def distance_to_target(self) -> Optional[float]:
        return self._distance

    @property
    def last_arrival(self) -> Optional[ArrivalEvent]:
        return self._last_arrival

    @property
    def all_found(self) -> bool:
        return self.vertex_count > 0 and len(self._found) >= self.vertex_count

    def progress(self) -> SurveyProgress:
        completed = len(self._found)
        total = self.vertex_count
        return SurveyProgress(
            completed=completed,
            total=total,
            percentage=(completed / total) * 100 if total > 0 else 0.0,
            remaining=total - completed,
        )

    def is_complete(self) -> bool:
        completed = len(self._found)
        total = self.vertex_count
        return completed >= total and total > 0

    def current_target(self) -> Optional[SurveyTarget]:
        """The vertex being walked to, or None while inactive."""
        if not self.is_active or not self._vertices:
            return None
        index = self._current_index
        return SurveyTarget(
            index=index,
            number=index + 1,
            vertex=self._vertices[index],
            is_found=index in self._found,
        )

    def snapshot(self) -> SurveyState:
        return SurveyState(
            phase=self._phase,
            active=self.is_active,
            current_target_index=self._current_index,
            found_indices=sorted(self._found),
            proximity_threshold=self._threshold,
            is_near_target=self._is_near,
            distance_to_target=self._distance,
            all_found=self.all_found,
            is_complete=self.is_complete(),
            current_target=self.current_target(),
            progress=self.progress(),
            last_arrival=self._last_arrival,
        )

    # ------------------------------------------------------------------
    # Arrival notifications
    # ------------------------------------------------------------------

    def add_arrival_listener(self, listener: ArrivalListener) -> None:
        self._listeners.append(listener)

    def remove_arrival_listener(self, listener: ArrivalListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, vertices: Sequence[Vertex], feed_available: bool) -> None:
        """
        Start (or restart) the survey over a snapshot of the vertices.

        Args:
            vertices: Current boundary vertices in ring order
            feed_available: Whether a live position feed is running

        Raises:
            SurveyPreconditionError: If there are no vertices or no position feed
        """
        if not vertices:
            raise SurveyPreconditionError("No coordinates available for field survey")
        if not feed_available:
            raise SurveyPreconditionError("GPS tracking must be enabled for field survey")

        self._vertices = tuple(vertices)
        self._current_index = 0
        self._found = set()
        self._is_near = False
        self._distance = None
        self._last_arrival = None
        self.detector.reset()
        self._phase = SurveyPhase.ACTIVE

        logger.info(f"Field survey started: navigate to point 1 of {self.vertex_count}")

    def stop(self) -> None:
        """Deactivate the survey. Found points and progress are kept until the next start."""
        self._phase = SurveyPhase.INACTIVE
        self._is_near = False
        self._distance = None
        self.detector.reset()
        logger.info("Field survey stopped")

    def mark_current_as_found(self) -> bool:
        """
        Mark the current target as found and advance to the next unfound one.

        Returns:
            True if the state changed; False when inactive or already all found
        """
        if not self.is_active or self.all_found:
            return False

        found_index = self._current_index
        self._found.add(found_index)
        self._move_to(self._next_unfound(found_index))

        completed = len(self._found)
        logger.info(f"Point {found_index + 1} marked as found ({completed}/{self.vertex_count})")
        if self.all_found:
            logger.info("All boundary points found, survey complete")
        return True

    def skip(self) -> bool:
        """
        Advance to the next unfound target without marking the current one.

        Returns:
            True if the command was applied
        """
        if not self.is_active:
            return False
        self._move_to(self._next_unfound(self._current_index))
        logger.info(f"Skipped to point {self._current_index + 1}")
        return True

    def go_to(self, index: int) -> bool:
        """
        Jump directly to a target. Out-of-range indices are ignored.

        Returns:
            True if the command was applied
        """
        if not self.is_active or not 0 <= index < self.vertex_count:
            return False
        self._move_to(index)
        logger.info(f"Navigating to point {index + 1}")
        return True

    def set_proximity_threshold(self, threshold_m: float) -> float:
        """
        Set the arrival radius, clamped to the configured bounds.

        Returns:
            The threshold actually applied
        """
        self._threshold = self._clamp(threshold_m)
        logger.debug(f"Proximity threshold set to {self._threshold:.1f}m")
        return self._threshold

    # ------------------------------------------------------------------
    # Location feed
    # ------------------------------------------------------------------

    def on_fix(self, fix: LocationFix) -> Optional[ProximityResult]:
        """
        Evaluate a new fix against the current target.

        Returns:
            The proximity evaluation, or None when the survey is inactive
        """
        if not self.is_active or not self._vertices:
            return None

        index = self._current_index
        target = self._vertices[index]
        result = self.detector.evaluate(fix, target, self._threshold)

        self._distance = result.distance
        self._is_near = result.is_near

        if result.just_arrived:
            event = ArrivalEvent(
                target_index=index,
                vertex_id=target.id,
                distance=result.distance,
                timestamp=fix.timestamp,
            )
            self._last_arrival = event
            logger.info(f"Arrived within {result.distance:.1f}m of point {index + 1}")
            self._emit(event)

        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clamp(self, threshold_m: float) -> float:
        return max(self.config.min_threshold_m, min(self.config.max_threshold_m, float(threshold_m)))

    def _next_unfound(self, from_index: int) -> int:
        """
        Circular scan for the next unfound index.

        Prefers indices after `from_index`, then wraps to the start up to and
        including `from_index`. Returns `from_index` when everything is found.
        """
        n = self.vertex_count
        for step in range(1, n + 1):
            candidate = (from_index + step) % n
            if candidate not in self._found:
                return candidate
        return from_index

    def _move_to(self, index: int) -> None:
        self.detector.reset()
        self._current_index = index
        self._is_near = False
        self._distance = None

    def _emit(self, event: ArrivalEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Arrival listener failed for point {event.target_index + 1}")
