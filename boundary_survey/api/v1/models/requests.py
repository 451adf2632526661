"""
API request models using Pydantic.
"""
from pydantic import BaseModel, Field, HttpUrl

from boundary_survey.domain.models import FeedErrorReason


class ImportUrlRequest(BaseModel):
    """Remote coordinate file to import."""
    url: HttpUrl = Field(
        description="Location of a JSON array of coordinate objects"
    )


class PlottedUpdate(BaseModel):
    """New plotted flag for one vertex."""
    plotted: bool


class ThresholdUpdate(BaseModel):
    """New arrival radius for the field survey."""
    threshold: float = Field(
        description="Arrival radius in meters; clamped to the configured range",
        examples=[5.0]
    )


class FeedErrorReport(BaseModel):
    """Failure reported by the location feed."""
    reason: FeedErrorReason
