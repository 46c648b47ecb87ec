"""
Composition job data models.

Defines CompositionRequest (what to compose) and CompositionResult (what
was rendered) for one video.
"""

from pathlib import Path
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .media import VideoType


class CompositionRequest(BaseModel):
    """Asset paths produced by upstream generators for one video."""

    model_config = ConfigDict(frozen=True)

    video_type: VideoType
    background_path: Path
    image_paths: List[Path] = Field(description="Overlay cards in display order")
    narration_paths: List[Path] = Field(description="Narration tracks in playback order")
    outro_path: Optional[Path] = None
    output_path: Path


class CompositionResult(BaseModel):
    """Rendered video summary."""

    job_id: UUID
    video_type: VideoType
    output_path: Path
    background_start: float = Field(description="Offset into the background asset in seconds")
    speedup_factor: float
    outro_compound_speedup: Optional[float] = Field(default=None, description="None when no outro was used")
    final_duration: float = Field(description="Planned output duration in seconds")
    node_count: int = Field(description="Number of filter graph nodes rendered")
    composition_time: float = Field(description="Wall-clock composition time in seconds")

    @field_serializer("job_id")
    def serialize_uuid(self, value: UUID) -> str:
        """Serialize UUID to string."""
        return str(value)

    @field_serializer("output_path")
    def serialize_path(self, value: Path) -> str:
        return str(value)
