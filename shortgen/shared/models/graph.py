"""
Filter graph models.

A FilterGraph is a write-once DAG of media-transform nodes. Nodes are
stored in dependency order; a node input is either the id of an earlier
node or a source stream reference of the form "<input index>:v" or
"<input index>:a".
"""

import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

from shortgen.shared.errors import GraphBuildError
from .media import AssetRole

ParamValue = Union[bool, int, float, str]

_SOURCE_STREAM = re.compile(r"^(\d+):([va])$")


class NodeKind(str, Enum):
    """Media-transform operation performed by a node."""

    TRIM = "trim"
    SCALE = "scale"
    CROP = "crop"
    PAD = "pad"
    OVERLAY = "overlay"
    CHROMA_KEY = "chroma_key"
    FORMAT = "format"
    TIME_STRETCH = "time_stretch"
    TIME_SHIFT = "time_shift"
    DELAY = "delay"
    MIX = "mix"
    PAD_DURATION = "pad_duration"


class MediaType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


class GraphInput(BaseModel):
    """Source file fed to the renderer, in input order."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    path: Path
    role: AssetRole
    role_index: int = 0

    def stream(self, media: MediaType) -> str:
        """Source stream reference for this input."""
        return f"{self.index}:{'v' if media is MediaType.VIDEO else 'a'}"


class FilterNode(BaseModel):
    """Single operation in the graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: NodeKind
    media: MediaType
    params: Dict[str, ParamValue] = Field(default_factory=dict)
    inputs: Tuple[str, ...] = ()


class FilterGraph(BaseModel):
    """
    Validated filter graph with one final video and one final audio output.

    Construction fails with GraphBuildError if an id is duplicated, an input
    references a later or unknown node, or an output label does not resolve.
    """

    model_config = ConfigDict(frozen=True)

    inputs: Tuple[GraphInput, ...]
    nodes: Tuple[FilterNode, ...]
    video_output: str
    audio_output: str

    @model_validator(mode="after")
    def validate_structure(self) -> "FilterGraph":
        input_indexes = {graph_input.index for graph_input in self.inputs}
        if sorted(input_indexes) != list(range(len(self.inputs))):
            raise GraphBuildError(
                "Graph inputs must be numbered 0..n-1",
                context={"indexes": sorted(input_indexes)}
            )

        seen: Dict[str, FilterNode] = {}
        for node in self.nodes:
            if node.id in seen or _SOURCE_STREAM.match(node.id):
                raise GraphBuildError(f"Duplicate or reserved node id '{node.id}'")
            for ref in node.inputs:
                if not self._resolves(ref, seen, input_indexes):
                    raise GraphBuildError(
                        f"Node '{node.id}' references unknown input '{ref}'",
                        context={"node": node.id, "input": ref}
                    )
            seen[node.id] = node

        for label in (self.video_output, self.audio_output):
            if not self._resolves(label, seen, input_indexes):
                raise GraphBuildError(f"Graph output '{label}' does not resolve")
        return self

    @staticmethod
    def _resolves(ref: str, nodes: Dict[str, FilterNode], input_indexes: set) -> bool:
        match = _SOURCE_STREAM.match(ref)
        if match:
            return int(match.group(1)) in input_indexes
        return ref in nodes

    @staticmethod
    def is_source_stream(ref: str) -> bool:
        return _SOURCE_STREAM.match(ref) is not None

    def node(self, node_id: str) -> FilterNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> List[FilterNode]:
        return [node for node in self.nodes if node.kind is kind]

    def input_for(self, role: AssetRole, role_index: int = 0) -> GraphInput:
        for graph_input in self.inputs:
            if graph_input.role is role and graph_input.role_index == role_index:
                return graph_input
        raise KeyError(f"{role.value}_{role_index}")
