"""
API response models using Pydantic.
"""
from typing import Optional
from pydantic import BaseModel, Field

from boundary_survey.domain.models import CoordinateSnapshot, SurveyState, Vertex


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""
    error: str = Field(description="Error category")
    detail: str = Field(description="Human-readable explanation")
    index: Optional[int] = Field(
        default=None,
        description="Offending record index for coordinate validation errors"
    )


class ImportResponse(BaseModel):
    """Response model for coordinate imports."""
    vertex_count: int = Field(
        description="Number of coordinates loaded"
    )
    coordinates: CoordinateSnapshot

    class Config:
        json_schema_extra = {
            "example": {
                "vertex_count": 2,
                "coordinates": {
                    "origin": "imported",
                    "source_name": "boundary.json",
                    "recording": False,
                    "vertices": [
                        {"id": 0, "lat": 40.7128, "lng": -74.006, "plotted": False,
                         "source": {"raw": {"lat": 40.7128, "lng": -74.006}, "manual": False}},
                        {"id": 1, "lat": 40.713, "lng": -74.0058, "plotted": False,
                         "source": {"raw": {"latitude": 40.713, "longitude": -74.0058}, "manual": False}},
                    ],
                    "plot_progress": {"plotted": 0, "total": 2, "percentage": 0.0},
                }
            }
        }


class RecordResponse(BaseModel):
    """Response model for recording the current location."""
    vertex: Vertex
    coordinates: CoordinateSnapshot


class RemoveLastResponse(BaseModel):
    """Response model for removing the last vertex."""
    removed: Optional[Vertex] = Field(
        default=None,
        description="The removed vertex, or null when the set was empty"
    )
    coordinates: CoordinateSnapshot


class PlottedResponse(BaseModel):
    """Response model for plotted flag updates."""
    updated: bool = Field(
        description="False when no vertex has the requested id"
    )
    coordinates: CoordinateSnapshot


class SurveyCommandResponse(BaseModel):
    """Response model for survey commands."""
    applied: bool = Field(
        description="False when the command was ignored (e.g. survey inactive or index out of range)"
    )
    state: SurveyState
