"""
Domain models for boundary vertices, location fixes and survey state.

These models represent the core domain entities and should be independent
of any infrastructure concerns (HTTP, location hardware, map widgets, etc.).
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class VertexSource(BaseModel):
    """Originating record of a vertex."""
    raw: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Record exactly as ingested (imports only)"
    )
    accuracy: Optional[float] = Field(
        default=None,
        description="Fix accuracy in meters when the vertex was recorded"
    )
    timestamp: Optional[float] = Field(
        default=None,
        description="Epoch milliseconds when the vertex was recorded"
    )
    manual: bool = False


class Vertex(BaseModel):
    """One boundary point with stable identity."""
    id: int
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    plotted: bool = False
    source: VertexSource = Field(default_factory=VertexSource)


class LocationFix(BaseModel):
    """One reported device position."""
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    accuracy: float = Field(ge=0.0, description="1-sigma horizontal accuracy in meters")
    timestamp: float = Field(description="Epoch milliseconds")


class FixQuality(str, Enum):
    """Coarse rating of a fix's horizontal accuracy."""
    EXCELLENT = "excellent"
    GOOD = "good"
    POOR = "poor"


class FeedErrorReason(str, Enum):
    """Reasons a location feed can report for failing to deliver fixes."""
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


class ProximityResult(BaseModel):
    """Outcome of evaluating one fix against one target."""
    distance: float = Field(description="Great-circle distance in meters")
    is_near: bool
    just_arrived: bool = Field(
        description="True only on the fix that crossed into the threshold radius"
    )


class ArrivalEvent(BaseModel):
    """Emitted once each time the surveyor enters the current target's radius."""
    target_index: int
    vertex_id: int
    distance: float
    timestamp: float


class SurveyPhase(str, Enum):
    """Top-level survey state."""
    INACTIVE = "inactive"
    ACTIVE = "active"


class SurveyProgress(BaseModel):
    """Completion counters for a survey."""
    completed: int
    total: int
    percentage: float
    remaining: int


class SurveyTarget(BaseModel):
    """The vertex the surveyor is currently walking to."""
    index: int
    number: int = Field(description="1-based position for display")
    vertex: Vertex
    is_found: bool


class SurveyState(BaseModel):
    """Read-only snapshot of the field survey state machine."""
    phase: SurveyPhase
    active: bool
    current_target_index: int
    found_indices: List[int]
    proximity_threshold: float
    is_near_target: bool
    distance_to_target: Optional[float] = None
    all_found: bool
    is_complete: bool
    current_target: Optional[SurveyTarget] = None
    progress: SurveyProgress
    last_arrival: Optional[ArrivalEvent] = None


class AreaResult(BaseModel):
    """Enclosed area of the boundary in several units."""
    square_meters: float
    square_feet: float
    acres: float
    hectares: float
    square_kilometers: float
    perimeter_meters: float
    vertex_count: int


class AreaStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_VERTICES = "insufficient_vertices"
    UNAVAILABLE = "unavailable"


class AreaSummary(BaseModel):
    """Area report as surfaced to callers; never raises."""
    status: AreaStatus
    vertex_count: int
    points_needed: int = Field(
        default=0,
        description="Additional vertices required before an area can be computed"
    )
    area: Optional[AreaResult] = None
    detail: Optional[str] = None


class Bounds(BaseModel):
    """Bounding box of a vertex set."""
    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float
    center_lat: float
    center_lng: float


class PlotProgress(BaseModel):
    """How many vertices of the active set are plotted."""
    plotted: int
    total: int
    percentage: float


class CoordinateOrigin(str, Enum):
    """Where the active coordinate set came from."""
    IMPORTED = "imported"
    RECORDED = "recorded"


class LocationStatus(BaseModel):
    """Read-only snapshot of the location feed as seen by the engine."""
    tracking: bool
    latest_fix: Optional[LocationFix] = None
    fix_quality: Optional[FixQuality] = None
    tracking_error: Optional[str] = None
    nearby_vertex: Optional[Vertex] = None


class FixOutcome(BaseModel):
    """Everything derived from delivering one fix to the engine."""
    accepted: bool
    fix_quality: Optional[FixQuality] = None
    proximity: Optional[ProximityResult] = None
    nearby_vertex: Optional[Vertex] = None


class CoordinateSnapshot(BaseModel):
    """Read-only snapshot of the active coordinate set."""
    origin: Optional[CoordinateOrigin] = None
    source_name: Optional[str] = None
    recording: bool
    vertices: List[Vertex]
    plot_progress: PlotProgress
