"""
Pytest fixtures for composer tests.
"""
import random
import pytest
from pathlib import Path
from typing import Optional

from shortgen.shared.models.composition import ChromaKey, CompositionConfig
from shortgen.shared.models.media import AssetRole, MediaAsset


@pytest.fixture
def config_factory():
    """Create a CompositionConfig with overrides."""
    def _create_config(**overrides) -> CompositionConfig:
        return CompositionConfig(**overrides)
    return _create_config


@pytest.fixture
def fixed_rng():
    """Seeded random source so background offsets are reproducible."""
    return random.Random(1234)


@pytest.fixture
def make_asset():
    """Create a MediaAsset for a role."""
    def _create_asset(role: AssetRole, duration: float, index: int = 0, path: Optional[str] = None) -> MediaAsset:
        if path is None:
            suffix = ".png" if role is AssetRole.OVERLAY_IMAGE else ".mp4"
            path = f"/media/{role.value}_{index}{suffix}"
        return MediaAsset(path=Path(path), role=role, index=index, duration=duration)
    return _create_asset


@pytest.fixture
def dual_assets(make_asset):
    """Background, two narrations, two cards and an optional outro."""
    def _create(
        narration_durations=(10.0, 8.0),
        background_duration: float = 600.0,
        outro_duration: Optional[float] = None
    ):
        background = make_asset(AssetRole.BACKGROUND, background_duration)
        narrations = [make_asset(AssetRole.NARRATION, d, index=i) for i, d in enumerate(narration_durations)]
        images = [make_asset(AssetRole.OVERLAY_IMAGE, 0.0, index=i) for i in range(2)]
        outro = make_asset(AssetRole.OUTRO, outro_duration) if outro_duration is not None else None
        return background, narrations, images, outro
    return _create


@pytest.fixture
def single_assets(make_asset):
    """Background, one narration, one card and an optional outro."""
    def _create(
        narration_duration: float = 20.0,
        background_duration: float = 600.0,
        outro_duration: Optional[float] = None
    ):
        background = make_asset(AssetRole.BACKGROUND, background_duration)
        narrations = [make_asset(AssetRole.NARRATION, narration_duration)]
        images = [make_asset(AssetRole.OVERLAY_IMAGE, 0.0)]
        outro = make_asset(AssetRole.OUTRO, outro_duration) if outro_duration is not None else None
        return background, narrations, images, outro
    return _create


@pytest.fixture
def green_key():
    return ChromaKey(color="0x00FF00", tolerance=0.2)
