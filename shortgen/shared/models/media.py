"""
Media asset data models.

Defines role-tagged MediaAsset references and the content layouts the
compositor knows how to plan and build.
"""

from enum import Enum
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field


class AssetRole(str, Enum):
    """Role an asset plays in the composition."""

    BACKGROUND = "background"
    NARRATION = "narration"
    OVERLAY_IMAGE = "overlay_image"
    OUTRO = "outro"


class ContentLayout(str, Enum):
    """Card layout of the main content."""

    DUAL_CARD = "dual_card"
    SINGLE_CARD = "single_card"

    @property
    def narration_count(self) -> int:
        """Number of narration tracks (and overlay images) this layout uses."""
        return 2 if self is ContentLayout.DUAL_CARD else 1

    @property
    def image_count(self) -> int:
        return self.narration_count


class VideoType(str, Enum):
    """Content generator that produced the assets."""

    REDDIT = "reddit"
    AITA = "aita"
    TIL = "til"
    TODAY = "today"

    @property
    def layout(self) -> ContentLayout:
        """Question/answer content uses two cards, fact content uses one."""
        if self in (VideoType.REDDIT, VideoType.AITA):
            return ContentLayout.DUAL_CARD
        return ContentLayout.SINGLE_CARD


class MediaAsset(BaseModel):
    """Probed media file. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    path: Path
    role: AssetRole
    index: int = Field(default=0, ge=0, le=1, description="Track/card index within the role")
    duration: float = Field(ge=0, description="Probed duration in seconds (0 for still images)")

    @property
    def label(self) -> str:
        """Human-readable role label used in logs and errors (e.g. narration_1)."""
        if self.role in (AssetRole.NARRATION, AssetRole.OVERLAY_IMAGE):
            return f"{self.role.value}_{self.index}"
        return self.role.value
