"""
Data models for the compositor pipeline.

This module exports all Pydantic models used across pipeline stages.
"""

from .media import AssetRole, ContentLayout, VideoType, MediaAsset
from .composition import ChromaKey, EncoderSettings, CompositionConfig
from .timeline import SegmentWindow, TimingPlan
from .graph import NodeKind, MediaType, GraphInput, FilterNode, FilterGraph
from .job import CompositionRequest, CompositionResult

__all__ = [
    # Media models
    "AssetRole",
    "ContentLayout",
    "VideoType",
    "MediaAsset",
    # Configuration models
    "ChromaKey",
    "EncoderSettings",
    "CompositionConfig",
    # Timeline models
    "SegmentWindow",
    "TimingPlan",
    # Graph models
    "NodeKind",
    "MediaType",
    "GraphInput",
    "FilterNode",
    "FilterGraph",
    # Job models
    "CompositionRequest",
    "CompositionResult",
]
