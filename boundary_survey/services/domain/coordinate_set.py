"""
Domain service: ordered, id-keyed collection of boundary vertices.

Also owns the ingestion contract for coordinate files and the export format.
"""
import json
import math
import logging
from typing import Any, Iterator, Optional, Sequence

from boundary_survey.domain.errors import CoordinateValidationError
from boundary_survey.domain.models import PlotProgress, Vertex, VertexSource

logger = logging.getLogger(__name__)

LATITUDE_KEYS = ("lat", "latitude")
LONGITUDE_KEYS = ("lng", "longitude", "long")


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def _resolve(record: dict, keys: Sequence[str]) -> tuple[Optional[str], Any]:
    """Return the first key from `keys` present in the record and its value."""
    for key in keys:
        if key in record:
            return key, record[key]
    return None, None


def parse_record(record: Any, index: int) -> Vertex:
    """
    Convert one ingested record into a Vertex whose id is its index.

    Args:
        record: Raw object from the coordinate file
        index: Position of the record in the input array

    Returns:
        Unplotted Vertex

    Raises:
        CoordinateValidationError: If the record lacks a numeric latitude or longitude
    """
    if not isinstance(record, dict):
        raise CoordinateValidationError(
            f"Invalid coordinate at index {index}: expected an object", index=index
        )

    lat_key, lat = _resolve(record, LATITUDE_KEYS)
    lng_key, lng = _resolve(record, LONGITUDE_KEYS)

    if lat_key is None or lng_key is None:
        missing = "latitude" if lat_key is None else "longitude"
        raise CoordinateValidationError(
            f"Invalid coordinate at index {index}: missing {missing}", index=index
        )
    if not _is_number(lat) or not _is_number(lng):
        raise CoordinateValidationError(
            f"Invalid coordinate at index {index}: '{lat_key}'/'{lng_key}' must be numeric",
            index=index,
        )
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        raise CoordinateValidationError(
            f"Invalid coordinate at index {index}: ({lat}, {lng}) is out of range",
            index=index,
        )

    accuracy = record.get("accuracy")
    timestamp = record.get("timestamp")
    return Vertex(
        id=index,
        lat=float(lat),
        lng=float(lng),
        plotted=False,
        source=VertexSource(
            raw=dict(record),
            accuracy=float(accuracy) if _is_number(accuracy) else None,
            timestamp=float(timestamp) if _is_number(timestamp) else None,
            manual=bool(record.get("manually_created", False)),
        ),
    )


def ingest_records(records: Any) -> list[Vertex]:
    """
    Convert an ingested coordinate array into vertices, all or nothing.

    Args:
        records: Decoded JSON value; must be an array of objects

    Returns:
        Vertices in input order

    Raises:
        CoordinateValidationError: If the input is not an array or any record is
            invalid; the error carries the offending index
    """
    if not isinstance(records, (list, tuple)):
        raise CoordinateValidationError("JSON should contain an array of coordinate objects")

    vertices = [parse_record(record, index) for index, record in enumerate(records)]
    logger.info(f"Ingested {len(vertices)} coordinates")
    return vertices


def ingest_json(text: str | bytes) -> list[Vertex]:
    """
    Decode a JSON document and ingest it.

    Raises:
        CoordinateValidationError: If the document is not valid JSON or fails ingestion
    """
    try:
        data = json.loads(text)
    except (ValueError, UnicodeDecodeError) as e:
        raise CoordinateValidationError(f"Error parsing JSON: {e}") from e
    return ingest_records(data)


def export_filename(name: Optional[str], default: str) -> str:
    """Build the download name for an export: the base name plus '.json'."""
    base = (name or "").strip() or default
    if base.lower().endswith(".json"):
        base = base[:-5]
    return f"{base}.json"


class CoordinateSet:
    """
    Ordered collection of boundary vertices.

    Backing order is the polygon ring order. Vertex ids are unique for the
    lifetime of the set: ids handed out by `next_id` are never reused, even
    after `remove_last` or `clear`.
    """

    def __init__(self, vertices: Optional[Sequence[Vertex]] = None):
        self._vertices: list[Vertex] = []
        self._next_id = 0
        if vertices:
            self.replace_all(vertices)

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(list(self._vertices))

    def __getitem__(self, index: int) -> Vertex:
        return self._vertices[index]

    @property
    def vertices(self) -> tuple[Vertex, ...]:
        """Immutable snapshot of the vertices in ring order."""
        return tuple(self._vertices)

    def next_id(self) -> int:
        """Reserve and return the next unused vertex id."""
        vertex_id = self._next_id
        self._next_id += 1
        return vertex_id

    def get(self, vertex_id: int) -> Optional[Vertex]:
        for vertex in self._vertices:
            if vertex.id == vertex_id:
                return vertex
        return None

    def replace_all(self, vertices: Sequence[Vertex]) -> None:
        """
        Replace the whole set.

        Raises:
            CoordinateValidationError: If the new vertices repeat an id
        """
        seen: set[int] = set()
        for index, vertex in enumerate(vertices):
            if vertex.id in seen:
                raise CoordinateValidationError(
                    f"Duplicate vertex id {vertex.id} at index {index}", index=index
                )
            seen.add(vertex.id)

        self._vertices = list(vertices)
        if seen:
            self._next_id = max(self._next_id, max(seen) + 1)
        logger.debug(f"Coordinate set replaced with {len(self._vertices)} vertices")

    def append(self, vertex: Vertex) -> None:
        """
        Append a vertex to the end of the ring.

        Raises:
            CoordinateValidationError: If the id is already present
        """
        if self.get(vertex.id) is not None:
            raise CoordinateValidationError(f"Duplicate vertex id {vertex.id}")
        self._vertices.append(vertex)
        self._next_id = max(self._next_id, vertex.id + 1)

    def remove_last(self) -> Optional[Vertex]:
        """Remove and return the last vertex; no-op on an empty set."""
        if not self._vertices:
            return None
        removed = self._vertices.pop()
        logger.info(f"Removed vertex {removed.id}")
        return removed

    def clear(self) -> None:
        self._vertices = []

    def set_plotted(self, vertex_id: int, plotted: bool) -> bool:
        """
        Set the plotted flag on a vertex.

        Returns:
            True if the vertex exists, False (no-op) otherwise
        """
        for i, vertex in enumerate(self._vertices):
            if vertex.id == vertex_id:
                self._vertices[i] = vertex.model_copy(update={"plotted": plotted})
                return True
        return False

    def reset_plotted(self) -> None:
        self._vertices = [v.model_copy(update={"plotted": False}) for v in self._vertices]

    def plot_progress(self) -> PlotProgress:
        total = len(self._vertices)
        plotted = sum(1 for v in self._vertices if v.plotted)
        return PlotProgress(
            plotted=plotted,
            total=total,
            percentage=(plotted / total) * 100 if total > 0 else 0.0,
        )

    def to_export_array(self) -> list[dict[str, float]]:
        """
        Serializable form of the set: {lat, lng, accuracy?, timestamp?} per vertex.
        """
        exported = []
        for vertex in self._vertices:
            item: dict[str, float] = {"lat": vertex.lat, "lng": vertex.lng}
            if vertex.source.accuracy is not None:
                item["accuracy"] = vertex.source.accuracy
            if vertex.source.timestamp is not None:
                item["timestamp"] = vertex.source.timestamp
            exported.append(item)
        return exported

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_export_array(), indent=indent)
