"""
Composition configuration models.

CompositionConfig is the single explicit configuration value passed into
planning and graph building. All fields have documented defaults and are
validated on construction.
"""

import math
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from shortgen.shared.errors import ConfigurationError


class ChromaKey(BaseModel):
    """Colour made transparent in the outro clip."""

    model_config = ConfigDict(frozen=True)

    color: str = Field(description="Key colour in 0xRRGGBB form")
    tolerance: float = Field(default=0.1, description="Similarity, 0.01 to 1.0")
    blend: float = Field(default=0.1, description="Edge blend")

    @model_validator(mode="after")
    def validate_ranges(self) -> "ChromaKey":
        if not self.color.strip():
            raise ConfigurationError("Chroma key color must not be empty")
        if not math.isfinite(self.tolerance) or not 0 < self.tolerance <= 1:
            raise ConfigurationError(
                "Chroma key tolerance must be in (0, 1]",
                context={"tolerance": self.tolerance}
            )
        if not math.isfinite(self.blend) or not 0 <= self.blend <= 1:
            raise ConfigurationError(
                "Chroma key blend must be in [0, 1]",
                context={"blend": self.blend}
            )
        return self


class EncoderSettings(BaseModel):
    """Encoder parameters handed to the renderer."""

    model_config = ConfigDict(frozen=True)

    video_codec: str = "libx264"
    preset: str = "medium"
    crf: int = 23
    audio_codec: str = "aac"

    @model_validator(mode="after")
    def validate_quality(self) -> "EncoderSettings":
        if not 0 <= self.crf <= 51:
            raise ConfigurationError("CRF must be between 0 and 51", context={"crf": self.crf})
        if not self.video_codec or not self.preset:
            raise ConfigurationError("Video codec and preset are required")
        return self


class CompositionConfig(BaseModel):
    """Output geometry, timing limits, outro handling and encoder settings."""

    model_config = ConfigDict(frozen=True)

    width: int = 1080
    height: int = 1920
    framerate: int = 30
    padding: int = Field(default=100, description="Gap between a card and the frame edge")
    break_duration: float = Field(default=0.5, description="Pause between dual cards, in seconds")
    min_speedup: float = Field(default=1.5, description="Speed-up floor")
    max_duration: float = Field(default=60.0, description="Output duration ceiling, in seconds")
    outro_gap: float = Field(default=1.0, description="Pause before the outro, in seconds")
    outro_padding: Optional[int] = Field(default=None, description="Contain-mode outro padding (defaults to padding)")
    outro_scale: Literal["cover", "contain"] = "contain"
    outro_chroma_key: Optional[ChromaKey] = None
    outro_mute: bool = False
    outro_speedup: float = Field(default=1.0, description="Author-chosen outro speed")
    encoder: EncoderSettings = Field(default_factory=EncoderSettings)

    @model_validator(mode="after")
    def validate_numbers(self) -> "CompositionConfig":
        positive = {
            "width": self.width,
            "height": self.height,
            "framerate": self.framerate,
            "max_duration": self.max_duration,
            "min_speedup": self.min_speedup,
            "outro_speedup": self.outro_speedup,
        }
        for name, value in positive.items():
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a finite number > 0", context={name: value})

        non_negative = {
            "padding": self.padding,
            "break_duration": self.break_duration,
            "outro_gap": self.outro_gap,
            "outro_padding": self.effective_outro_padding,
        }
        for name, value in non_negative.items():
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be a finite number >= 0", context={name: value})

        if self.card_width <= 0:
            raise ConfigurationError(
                "Padding leaves no room for the cards",
                context={"width": self.width, "padding": self.padding}
            )
        if self.outro_scale == "contain":
            outro_padding = self.effective_outro_padding
            if self.width - 2 * outro_padding <= 0 or self.height - 2 * outro_padding <= 0:
                raise ConfigurationError(
                    "Outro padding leaves no room for the outro",
                    context={"width": self.width, "height": self.height, "outro_padding": outro_padding}
                )
        return self

    @property
    def effective_outro_padding(self) -> int:
        return self.padding if self.outro_padding is None else self.outro_padding

    @property
    def card_width(self) -> int:
        """Maximum width of an overlay card."""
        return self.width - 2 * self.padding
