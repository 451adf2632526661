"""
Application service: one surveyor's working session.

Orchestrates the coordinate sets, the location feed status and the field
survey. No geometry or sequencing logic lives here, only coordination between
the domain services.
"""
from typing import Any, Optional
import logging

from boundary_survey.config import settings
from boundary_survey.domain.errors import SurveyPreconditionError
from boundary_survey.domain.models import (
    AreaSummary,
    Bounds,
    CoordinateOrigin,
    CoordinateSnapshot,
    FeedErrorReason,
    FixOutcome,
    FixQuality,
    LocationFix,
    LocationStatus,
    PlotProgress,
    Vertex,
    VertexSource,
)
from boundary_survey.infrastructure.coordinate_source_client import CoordinateSourceClient
from boundary_survey.services.domain.area_report import summarize_area
from boundary_survey.services.domain.coordinate_set import (
    CoordinateSet,
    export_filename,
    ingest_json,
    ingest_records,
)
from boundary_survey.services.domain.location_monitor import LocationMonitor, describe_feed_error
from boundary_survey.services.domain.survey_state_machine import SurveyStateMachine
from boundary_survey.utils import geo_math

logger = logging.getLogger(__name__)


class SurveySession:
    """
    Application service for a boundary survey session.

    Holds two coordinate sets, one populated by import and one by GPS
    recording. They are never merged: importing discards recorded points, and
    recording is refused while imported coordinates are loaded. Whichever set
    has vertices is the active one.
    """

    def __init__(
        self,
        survey: Optional[SurveyStateMachine] = None,
        monitor: Optional[LocationMonitor] = None,
    ):
        """
        Initialize the session with its domain services.

        Args:
            survey: Field survey state machine
            monitor: Per-fix accuracy and nearby point checks
        """
        self.survey = survey or SurveyStateMachine()
        self.monitor = monitor or LocationMonitor()

        self.imported = CoordinateSet()
        self.recorded = CoordinateSet()
        self.source_name: Optional[str] = None
        self.recording = False

        self.tracking = False
        self.latest_fix: Optional[LocationFix] = None
        self.fix_quality: Optional[FixQuality] = None
        self.tracking_error: Optional[str] = None
        self.nearby_vertex: Optional[Vertex] = None

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    @property
    def active_coordinates(self) -> CoordinateSet:
        return self.recorded if len(self.recorded) > 0 else self.imported

    @property
    def active_origin(self) -> Optional[CoordinateOrigin]:
        if len(self.recorded) > 0:
            return CoordinateOrigin.RECORDED
        if len(self.imported) > 0:
            return CoordinateOrigin.IMPORTED
        return None

    def coordinates_snapshot(self) -> CoordinateSnapshot:
        active = self.active_coordinates
        return CoordinateSnapshot(
            origin=self.active_origin,
            source_name=self.source_name if self.active_origin is CoordinateOrigin.IMPORTED else None,
            recording=self.recording,
            vertices=list(active.vertices),
            plot_progress=active.plot_progress(),
        )

    def import_records(self, records: Any, source_name: Optional[str] = None) -> list[Vertex]:
        """
        Replace the imported coordinates with an ingested array.

        Ingestion is all-or-nothing: on a validation error the session is left
        untouched.

        Raises:
            CoordinateValidationError: If the records fail ingestion
        """
        vertices = ingest_records(records)
        self._load_imported(vertices, source_name)
        return vertices

    def import_json(self, text: str | bytes, source_name: Optional[str] = None) -> list[Vertex]:
        """
        Replace the imported coordinates with a JSON document.

        Raises:
            CoordinateValidationError: If the document is not valid JSON or fails ingestion
        """
        vertices = ingest_json(text)
        self._load_imported(vertices, source_name)
        return vertices

    async def import_from_url(self, url: str, client: CoordinateSourceClient) -> list[Vertex]:
        """
        Fetch a remote coordinate file and import it.

        Raises:
            CoordinateSourceError: If the file cannot be fetched
            CoordinateValidationError: If its records fail ingestion
        """
        records = await client.fetch_records(url)
        return self.import_records(records, source_name=url)

    def _load_imported(self, vertices: list[Vertex], source_name: Optional[str]) -> None:
        self.imported.replace_all(vertices)
        self.recorded.clear()
        self.recording = False
        self.source_name = source_name
        self.nearby_vertex = None
        logger.info(f"Loaded {len(vertices)} coordinates from {source_name or 'request body'}")

    def clear_coordinates(self) -> None:
        self.imported.clear()
        self.recorded.clear()
        self.source_name = None
        self.nearby_vertex = None
        logger.info("Cleared all coordinates")

    def start_recording(self) -> None:
        self.recording = True
        logger.info("Started manual plotting mode")

    def complete_recording(self) -> None:
        self.recording = False
        logger.info("Completed manual plotting mode")

    def record_current_location(self) -> Vertex:
        """
        Append the latest fix as a new recorded boundary vertex.

        Returns:
            The new vertex (already marked plotted)

        Raises:
            SurveyPreconditionError: If not recording, imported coordinates are
                loaded, or no fix is available
        """
        if not self.recording:
            raise SurveyPreconditionError("Start manual plotting before recording points")
        if len(self.imported) > 0:
            raise SurveyPreconditionError(
                "Imported coordinates are loaded; clear them before recording points"
            )
        fix = self.latest_fix
        if fix is None:
            raise SurveyPreconditionError("GPS location not available. Please enable GPS tracking first.")

        vertex = Vertex(
            id=self.recorded.next_id(),
            lat=fix.lat,
            lng=fix.lng,
            plotted=True,
            source=VertexSource(
                raw={"lat": fix.lat, "lng": fix.lng, "manually_created": True},
                accuracy=fix.accuracy,
                timestamp=fix.timestamp,
                manual=True,
            ),
        )
        self.recorded.append(vertex)
        logger.info(
            f"Plotted point {len(self.recorded)}: {fix.lat:.6f}, {fix.lng:.6f} ±{fix.accuracy:.0f}m"
        )
        return vertex

    def remove_last(self) -> Optional[Vertex]:
        return self.active_coordinates.remove_last()

    def set_plotted(self, vertex_id: int, plotted: bool) -> bool:
        return self.active_coordinates.set_plotted(vertex_id, plotted)

    def reset_plotted(self) -> None:
        self.active_coordinates.reset_plotted()
        logger.info("Plot progress reset")

    def plot_progress(self) -> PlotProgress:
        return self.active_coordinates.plot_progress()

    def export(self, filename: Optional[str] = None) -> tuple[str, list[dict[str, float]]]:
        """
        Export the active coordinates.

        Returns:
            Tuple of (download filename, export array)

        Raises:
            SurveyPreconditionError: If there are no coordinates to export
        """
        if len(self.active_coordinates) == 0:
            raise SurveyPreconditionError("No coordinates to export")
        name = export_filename(filename, settings.export_default_filename)
        data = self.active_coordinates.to_export_array()
        logger.info(f"Exported {len(data)} coordinates to {name}")
        return name, data

    def area_summary(self) -> AreaSummary:
        return summarize_area(self.active_coordinates.vertices)

    def bounds(self) -> Optional[Bounds]:
        return geo_math.bounds(self.active_coordinates.vertices)

    # ------------------------------------------------------------------
    # Location feed
    # ------------------------------------------------------------------

    def start_tracking(self) -> None:
        self.tracking = True
        self.tracking_error = None
        logger.info("GPS tracking started")

    def stop_tracking(self) -> None:
        self.tracking = False
        self.latest_fix = None
        self.fix_quality = None
        self.tracking_error = None
        self.nearby_vertex = None
        logger.info("GPS tracking stopped")

    def location_status(self) -> LocationStatus:
        return LocationStatus(
            tracking=self.tracking,
            latest_fix=self.latest_fix,
            fix_quality=self.fix_quality,
            tracking_error=self.tracking_error,
            nearby_vertex=self.nearby_vertex,
        )

    def on_fix(self, fix: LocationFix) -> FixOutcome:
        """
        Deliver one position fix.

        Fixes arriving while tracking is stopped are ignored.
        """
        if not self.tracking:
            logger.debug("Ignoring fix received while tracking is stopped")
            return FixOutcome(accepted=False)

        self.latest_fix = fix
        self.tracking_error = None
        self.fix_quality = self.monitor.rate_fix(fix)
        logger.debug(f"GPS update: {fix.lat:.6f}, {fix.lng:.6f} (±{fix.accuracy:.1f}m)")

        self.nearby_vertex = self.monitor.find_nearby_unplotted(
            fix, self.active_coordinates.vertices
        )
        proximity = self.survey.on_fix(fix)

        return FixOutcome(
            accepted=True,
            fix_quality=self.fix_quality,
            proximity=proximity,
            nearby_vertex=self.nearby_vertex,
        )

    def on_feed_error(self, reason: FeedErrorReason) -> str:
        """
        Record a location feed failure.

        Returns:
            The human-readable tracking error
        """
        self.tracking_error = describe_feed_error(reason)
        logger.warning(f"GPS error: {self.tracking_error}")
        return self.tracking_error

    # ------------------------------------------------------------------
    # Field survey
    # ------------------------------------------------------------------

    def start_survey(self) -> None:
        """
        Raises:
            SurveyPreconditionError: If there are no coordinates or tracking is off
        """
        self.survey.start(self.active_coordinates.vertices, feed_available=self.tracking)
