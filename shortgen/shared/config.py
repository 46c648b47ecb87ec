"""
Configuration management.

Centralized environment variable management and validation. Settings are
only read at the edges: the compositor itself receives an explicit
CompositionConfig built by Settings.composition_config().
"""

import math
import re
import warnings
from typing import Literal, Optional
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shortgen.shared.errors import ConfigurationError
from shortgen.shared.models.composition import ChromaKey, CompositionConfig, EncoderSettings

_HEX_COLOR = re.compile(r"^[0-9A-Fa-f]{6}$")


def normalize_chroma_color(color: Optional[str]) -> Optional[str]:
    """
    Normalize a chroma key colour to the 0xRRGGBB form ffmpeg expects.

    Accepts "0x00ff00", "#00ff00" or "00ff00". Invalid values are dropped
    with a warning so a bad colour disables keying instead of failing the run.

    Args:
        color: Raw colour string (may be None or empty)

    Returns:
        Normalized colour or None
    """
    if not color or not color.strip():
        return None

    normalized = color.strip()
    if normalized.lower().startswith("0x"):
        normalized = normalized[2:]
    if normalized.startswith("#"):
        normalized = normalized[1:]

    if not _HEX_COLOR.match(normalized):
        warnings.warn(
            f"Invalid chroma color format: {color}. Expected format: 0xRRGGBB or RRGGBB",
            UserWarning
        )
        return None

    return f"0x{normalized.upper()}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Output geometry
    width: int = 1080
    height: int = 1920
    framerate: int = 30
    padding: int = 100

    # Timing
    max_duration: float = 60.0
    min_speedup: float = 1.5
    break_duration: float = 0.5

    # Encoder
    crf: int = 23
    preset: str = "medium"
    video_codec: str = "libx264"

    # Outro
    outro_video_path: Optional[str] = None
    outro_gap: float = 1.0
    # OUTRO_PADDING falls back to PADDING when unset
    outro_padding: Optional[int] = None
    outro_scale: Literal["cover", "contain"] = "contain"
    outro_chroma_color: Optional[str] = None
    outro_chroma_tolerance: float = 0.1
    outro_mute: bool = False
    outro_speedup: float = 1.0

    # External tools
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    render_timeout: int = 600
    probe_timeout: int = 10

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Optional[str] = None

    @field_validator("max_duration", "min_speedup", "outro_speedup")
    @classmethod
    def validate_positive(cls, v: float, info: ValidationInfo) -> float:
        """Timing factors must be finite and strictly positive."""
        if not math.isfinite(v) or v <= 0:
            raise ConfigurationError(f"{info.field_name.upper()} must be a finite number > 0", context={info.field_name: v})
        return v

    @field_validator("break_duration", "outro_gap")
    @classmethod
    def validate_non_negative(cls, v: float, info: ValidationInfo) -> float:
        """Gaps may be zero but never negative or non-finite."""
        if not math.isfinite(v) or v < 0:
            raise ConfigurationError(f"{info.field_name.upper()} must be a finite number >= 0", context={info.field_name: v})
        return v

    @field_validator("outro_chroma_color")
    @classmethod
    def validate_outro_chroma_color(cls, v: Optional[str]) -> Optional[str]:
        """Normalize chroma colour; invalid colours disable keying."""
        return normalize_chroma_color(v)

    @field_validator("render_timeout", "probe_timeout")
    @classmethod
    def validate_timeout(cls, v: int, info: ValidationInfo) -> int:
        """Validate subprocess timeouts."""
        if v <= 0:
            raise ConfigurationError(f"{info.field_name.upper()} must be > 0", context={info.field_name: v})
        return v

    def composition_config(self) -> CompositionConfig:
        """
        Build the explicit CompositionConfig passed into every planning call.

        Returns:
            CompositionConfig

        Raises:
            ConfigurationError: If the combined values are invalid
        """
        chroma_key = None
        if self.outro_chroma_color:
            chroma_key = ChromaKey(color=self.outro_chroma_color, tolerance=self.outro_chroma_tolerance)

        return CompositionConfig(
            width=self.width,
            height=self.height,
            framerate=self.framerate,
            padding=self.padding,
            break_duration=self.break_duration,
            min_speedup=self.min_speedup,
            max_duration=self.max_duration,
            outro_gap=self.outro_gap,
            outro_padding=self.outro_padding,
            outro_scale=self.outro_scale,
            outro_chroma_key=chroma_key,
            outro_mute=self.outro_mute,
            outro_speedup=self.outro_speedup,
            encoder=EncoderSettings(
                video_codec=self.video_codec,
                preset=self.preset,
                crf=self.crf
            )
        )


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigurationError for consistency
    if isinstance(e, ConfigurationError):
        raise
    raise ConfigurationError(f"Failed to load configuration: {str(e)}") from e
