"""
FilterGraph to ffmpeg translation.

Pure string formatting: one filtergraph segment per node and the argv for
the final ffmpeg invocation. No numeric planning happens here.
"""
from pathlib import Path
from typing import Callable, Dict, List

from shortgen.shared.errors import GraphBuildError
from shortgen.shared.models.composition import CompositionConfig
from shortgen.shared.models.graph import FilterGraph, FilterNode, MediaType, NodeKind, ParamValue
from .config import FILTER_NUMBER_PRECISION


def format_number(value: ParamValue) -> str:
    """Fixed-point number with trailing zeros stripped (1.500000 -> 1.5, 2.0 -> 2)."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = f"{value:.{FILTER_NUMBER_PRECISION}f}".rstrip("0").rstrip(".")
        return "0" if text in ("", "-0") else text
    return str(value)


def _label(ref: str) -> str:
    return f"[{ref}]"


def _trim(node: FilterNode) -> str:
    name = "trim" if node.media is MediaType.VIDEO else "atrim"
    p = node.params
    return f"{name}=start={format_number(p['start'])}:duration={format_number(p['duration'])}"


def _scale(node: FilterNode) -> str:
    p = node.params
    aspect = "increase" if p["fit"] == "cover" else "decrease"
    return f"scale={p['width']}:{p['height']}:force_original_aspect_ratio={aspect}"


def _crop(node: FilterNode) -> str:
    return f"crop={node.params['width']}:{node.params['height']}"


def _pad(node: FilterNode) -> str:
    p = node.params
    return f"pad={p['width']}:{p['height']}:{p['x']}:{p['y']}:color={p['color']}"


def _overlay(node: FilterNode) -> str:
    p = node.params
    return (
        f"overlay=x={format_number(p['x'])}:y={format_number(p['y'])}"
        f":enable='between(t,{format_number(p['enable_start'])},{format_number(p['enable_end'])})'"
    )


def _chroma_key(node: FilterNode) -> str:
    p = node.params
    return (
        f"chromakey=color={p['color']}:similarity={format_number(p['similarity'])}"
        f":blend={format_number(p['blend'])}"
    )


def _format(node: FilterNode) -> str:
    return f"format={node.params['pix_fmt']}"


def _time_stretch(node: FilterNode) -> str:
    factor = format_number(node.params["factor"])
    if node.media is MediaType.VIDEO:
        return f"setpts=PTS/{factor}"
    return f"atempo={factor}"


def _time_shift(node: FilterNode) -> str:
    name = "setpts" if node.media is MediaType.VIDEO else "asetpts"
    offset = node.params.get("offset", 0.0)
    if offset:
        return f"{name}=PTS-STARTPTS+{format_number(offset)}/TB"
    return f"{name}=PTS-STARTPTS"


def _delay(node: FilterNode) -> str:
    delay_ms = node.params["delay_ms"]
    return f"adelay={delay_ms}|{delay_ms}"


def _mix(node: FilterNode) -> str:
    text = f"amix=inputs={node.params['inputs']}"
    if "duration" in node.params:
        text += f":duration={node.params['duration']}"
    return text


def _pad_duration(node: FilterNode) -> str:
    return f"apad=pad_dur={format_number(node.params['pad_duration'])}"


_FORMATTERS: Dict[NodeKind, Callable[[FilterNode], str]] = {
    NodeKind.TRIM: _trim,
    NodeKind.SCALE: _scale,
    NodeKind.CROP: _crop,
    NodeKind.PAD: _pad,
    NodeKind.OVERLAY: _overlay,
    NodeKind.CHROMA_KEY: _chroma_key,
    NodeKind.FORMAT: _format,
    NodeKind.TIME_STRETCH: _time_stretch,
    NodeKind.TIME_SHIFT: _time_shift,
    NodeKind.DELAY: _delay,
    NodeKind.MIX: _mix,
    NodeKind.PAD_DURATION: _pad_duration,
}


def node_to_filter(node: FilterNode) -> str:
    """Render one node as `[in]...filter=args[out]`."""
    formatter = _FORMATTERS.get(node.kind)
    if formatter is None:
        raise GraphBuildError(f"No ffmpeg translation for node kind '{node.kind.value}'")
    try:
        body = formatter(node)
    except KeyError as e:
        raise GraphBuildError(
            f"Node '{node.id}' is missing parameter {e}",
            context={"node": node.id, "kind": node.kind.value}
        ) from e
    sources = "".join(_label(ref) for ref in node.inputs)
    return f"{sources}{body}{_label(node.id)}"


def to_filter_complex(graph: FilterGraph) -> str:
    """Render the whole graph as an ffmpeg -filter_complex string."""
    return ";".join(node_to_filter(node) for node in graph.nodes)


def _map_arg(graph: FilterGraph, ref: str) -> str:
    # Source streams are mapped directly, filter outputs by label
    return ref if graph.is_source_stream(ref) else _label(ref)


def build_ffmpeg_command(
    graph: FilterGraph,
    output_path: Path,
    config: CompositionConfig,
    ffmpeg_binary: str = "ffmpeg"
) -> List[str]:
    """
    Build the ffmpeg argv for a filter graph.

    Args:
        graph: Filter graph to render
        output_path: Output media file
        config: Composition configuration (framerate and encoder settings)
        ffmpeg_binary: ffmpeg executable

    Returns:
        Command as a list of strings (no shell quoting needed)
    """
    cmd = [ffmpeg_binary]
    for graph_input in graph.inputs:
        cmd.extend(["-i", str(graph_input.path)])

    encoder = config.encoder
    cmd.extend([
        "-filter_complex", to_filter_complex(graph),
        "-map", _map_arg(graph, graph.video_output),
        "-map", _map_arg(graph, graph.audio_output),
        "-r", str(config.framerate),
        "-c:v", encoder.video_codec,
        "-preset", encoder.preset,
        "-crf", str(encoder.crf),
        "-c:a", encoder.audio_codec,
        "-y",
        str(output_path)
    ])
    return cmd
