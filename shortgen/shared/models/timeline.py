"""
Timing plan models.

A TimingPlan is the immutable result of planning one render request. All
times are float seconds on the output timeline (after speed-up) unless a
field says otherwise.
"""

from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from .media import ContentLayout


class SegmentWindow(BaseModel):
    """Interval during which an image is visible or a track plays."""

    model_config = ConfigDict(frozen=True)

    label: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


class TimingPlan(BaseModel):
    """Validated timing plan for one composition."""

    model_config = ConfigDict(frozen=True)

    layout: ContentLayout
    content_duration: float = Field(description="Raw narration-driven duration, pre-speedup")
    total_with_outro: float = Field(description="Raw duration including gap and base outro, pre-speedup")
    background_start: float = Field(ge=0, description="Offset into the background asset")
    speedup_factor: float = Field(gt=0, description="Global atempo factor")
    main_duration: float
    has_outro: bool = False
    base_outro_duration: float = 0.0
    outro_compound_speedup: float = Field(default=1.0, gt=0)
    final_outro_duration: float = 0.0
    outro_start: float = 0.0
    final_total_duration: float
    segment_windows: Tuple[SegmentWindow, ...] = ()

    def window(self, label: str) -> Optional[SegmentWindow]:
        """Return the window with the given label, or None."""
        for segment in self.segment_windows:
            if segment.label == label:
                return segment
        return None

    def image_windows(self) -> Tuple[SegmentWindow, ...]:
        return tuple(w for w in self.segment_windows if w.label.startswith("image_"))

    def narration_windows(self) -> Tuple[SegmentWindow, ...]:
        return tuple(w for w in self.segment_windows if w.label.startswith("narration_"))
