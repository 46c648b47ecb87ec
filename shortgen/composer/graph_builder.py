"""
Filter graph builder for composer module.

Emits the FilterGraph for a TimingPlan: background trim/scale/crop, card
overlays gated by their windows, sped-up and delayed narration mixed into
one track, and the optional outro (stretched, keyed, scaled, shifted and
overlaid, with its audio mixed in or replaced by silence).
"""
from typing import Dict, List, Sequence

from shortgen.shared.errors import GraphBuildError
from shortgen.shared.logging import get_logger
from shortgen.shared.models.composition import CompositionConfig
from shortgen.shared.models.graph import (
    FilterGraph,
    FilterNode,
    GraphInput,
    MediaType,
    NodeKind,
    ParamValue,
)
from shortgen.shared.models.media import AssetRole, MediaAsset
from shortgen.shared.models.timeline import SegmentWindow, TimingPlan
from .config import (
    ALPHA_PIXEL_FORMAT,
    BOUNDS_TOLERANCE,
    OUTPUT_PIXEL_FORMAT,
    OUTRO_MIX_DURATION,
    TRANSPARENT_PAD_COLOR,
)
from .timing_planner import delay_milliseconds

logger = get_logger("composer.graph_builder")

VIDEO = MediaType.VIDEO
AUDIO = MediaType.AUDIO


class _GraphAssembler:
    """Collects nodes in dependency order, then freezes them into a FilterGraph."""

    def __init__(self, inputs: List[GraphInput]):
        self.inputs = inputs
        self.nodes: List[FilterNode] = []

    def add(
        self,
        node_id: str,
        kind: NodeKind,
        media: MediaType,
        sources: Sequence[str],
        **params: ParamValue
    ) -> str:
        self.nodes.append(FilterNode(id=node_id, kind=kind, media=media, params=params, inputs=tuple(sources)))
        return node_id

    def stream(self, role: AssetRole, media: MediaType, role_index: int = 0) -> str:
        for graph_input in self.inputs:
            if graph_input.role is role and graph_input.role_index == role_index:
                return graph_input.stream(media)
        raise GraphBuildError(f"No input for {role.value}_{role_index}")

    def freeze(self, video_output: str, audio_output: str) -> FilterGraph:
        return FilterGraph(
            inputs=tuple(self.inputs),
            nodes=tuple(self.nodes),
            video_output=video_output,
            audio_output=audio_output
        )


def _require_window(plan: TimingPlan, label: str) -> SegmentWindow:
    window = plan.window(label)
    if window is None:
        raise GraphBuildError(f"Timing plan has no '{label}' window", context={"label": label})
    if window.end <= window.start:
        raise GraphBuildError(
            f"Window '{label}' has zero or negative length",
            context={"label": label, "start": window.start, "end": window.end}
        )
    return window


def _collect_inputs(plan: TimingPlan, assets: Sequence[MediaAsset]) -> List[GraphInput]:
    """Order inputs as background, cards, narrations, outro."""
    by_role: Dict[AssetRole, List[MediaAsset]] = {role: [] for role in AssetRole}
    for asset in assets:
        by_role[asset.role].append(asset)
    for group in by_role.values():
        group.sort(key=lambda a: a.index)

    layout = plan.layout
    if len(by_role[AssetRole.BACKGROUND]) != 1:
        raise GraphBuildError("Exactly one background asset is required")
    background = by_role[AssetRole.BACKGROUND][0]
    trim_end = plan.background_start + plan.final_total_duration
    if trim_end > background.duration + BOUNDS_TOLERANCE:
        raise GraphBuildError(
            "Background trim runs past the end of the background clip",
            context={
                "background_start": plan.background_start,
                "final_total_duration": plan.final_total_duration,
                "background_duration": background.duration
            }
        )
    if len(by_role[AssetRole.OVERLAY_IMAGE]) != layout.image_count:
        raise GraphBuildError(
            f"{layout.value} layout needs {layout.image_count} overlay image(s)",
            context={"images": len(by_role[AssetRole.OVERLAY_IMAGE])}
        )
    if len(by_role[AssetRole.NARRATION]) != layout.narration_count:
        raise GraphBuildError(
            f"{layout.value} layout needs {layout.narration_count} narration track(s)",
            context={"narrations": len(by_role[AssetRole.NARRATION])}
        )
    if plan.has_outro != bool(by_role[AssetRole.OUTRO]):
        raise GraphBuildError(
            "Outro asset does not match the timing plan",
            context={"plan_has_outro": plan.has_outro, "outro_assets": len(by_role[AssetRole.OUTRO])}
        )

    ordered = (
        by_role[AssetRole.BACKGROUND]
        + by_role[AssetRole.OVERLAY_IMAGE]
        + by_role[AssetRole.NARRATION]
        + by_role[AssetRole.OUTRO][:1]
    )
    return [
        GraphInput(index=i, path=asset.path, role=asset.role, role_index=asset.index)
        for i, asset in enumerate(ordered)
    ]


def _build_background(graph: _GraphAssembler, plan: TimingPlan, config: CompositionConfig) -> str:
    trimmed = graph.add(
        "bg_trim", NodeKind.TRIM, VIDEO, [graph.stream(AssetRole.BACKGROUND, VIDEO)],
        start=plan.background_start, duration=plan.final_total_duration
    )
    scaled = graph.add(
        "bg_scale", NodeKind.SCALE, VIDEO, [trimmed],
        width=config.width, height=config.height, fit="cover"
    )
    cropped = graph.add("bg_crop", NodeKind.CROP, VIDEO, [scaled], width=config.width, height=config.height)
    return graph.add("bg_full", NodeKind.TIME_SHIFT, VIDEO, [cropped], offset=0.0)


def _build_cards(graph: _GraphAssembler, plan: TimingPlan, config: CompositionConfig, base: str) -> str:
    windows = [_require_window(plan, f"image_{i}") for i in range(plan.layout.image_count)]
    for earlier, later in zip(windows, windows[1:]):
        if later.start < earlier.end:
            raise GraphBuildError(
                f"Windows '{earlier.label}' and '{later.label}' overlap",
                context={"first_end": earlier.end, "second_start": later.start}
            )

    current = base
    for i, window in enumerate(windows):
        scaled = graph.add(
            f"img{i}_scale", NodeKind.SCALE, VIDEO, [graph.stream(AssetRole.OVERLAY_IMAGE, VIDEO, i)],
            width=config.card_width, height=config.height, fit="contain"
        )
        padded = graph.add(
            f"img{i}_pad", NodeKind.PAD, VIDEO, [scaled],
            width=config.width, height=config.height, x="(ow-iw)/2", y="(oh-ih)/2",
            color=TRANSPARENT_PAD_COLOR
        )
        card = graph.add(f"img{i}", NodeKind.TIME_SHIFT, VIDEO, [padded], offset=0.0)
        current = graph.add(
            f"card{i}_overlay", NodeKind.OVERLAY, VIDEO, [current, card],
            x=0, y=0, enable_start=window.start, enable_end=window.end
        )
    return current


def _build_narration(graph: _GraphAssembler, plan: TimingPlan) -> str:
    tracks = []
    for i in range(plan.layout.narration_count):
        window = _require_window(plan, f"narration_{i}")
        current = graph.stream(AssetRole.NARRATION, AUDIO, i)
        if plan.speedup_factor != 1.0:
            current = graph.add(
                f"narr{i}_tempo", NodeKind.TIME_STRETCH, AUDIO, [current], factor=plan.speedup_factor
            )
        delay_ms = delay_milliseconds(window.start)
        # A 0 ms delay (first or only track) is elided like a 1.0 time-stretch
        if delay_ms > 0:
            current = graph.add(f"narr{i}_delay", NodeKind.DELAY, AUDIO, [current], delay_ms=delay_ms)
        tracks.append(current)

    if len(tracks) == 1:
        return tracks[0]
    return graph.add("narration_mix", NodeKind.MIX, AUDIO, tracks, inputs=len(tracks))


def _build_outro_video(graph: _GraphAssembler, plan: TimingPlan, config: CompositionConfig, base: str) -> str:
    window = _require_window(plan, "outro_video")
    current = graph.stream(AssetRole.OUTRO, VIDEO)

    if plan.outro_compound_speedup != 1.0:
        current = graph.add(
            "outro_tempo", NodeKind.TIME_STRETCH, VIDEO, [current], factor=plan.outro_compound_speedup
        )

    chroma_key = config.outro_chroma_key
    if chroma_key is not None:
        logger.info(
            f"Applying chroma key: color={chroma_key.color}, similarity={chroma_key.tolerance}",
            extra={"color": chroma_key.color, "similarity": chroma_key.tolerance}
        )
        current = graph.add("outro_alpha", NodeKind.FORMAT, VIDEO, [current], pix_fmt=ALPHA_PIXEL_FORMAT)
        current = graph.add(
            "outro_key", NodeKind.CHROMA_KEY, VIDEO, [current],
            color=chroma_key.color, similarity=chroma_key.tolerance, blend=chroma_key.blend
        )

    if config.outro_scale == "cover":
        current = graph.add(
            "outro_scale", NodeKind.SCALE, VIDEO, [current],
            width=config.width, height=config.height, fit="cover"
        )
        current = graph.add("outro_crop", NodeKind.CROP, VIDEO, [current], width=config.width, height=config.height)
        x, y = "0", "0"
    else:
        padding = config.effective_outro_padding
        current = graph.add(
            "outro_scale", NodeKind.SCALE, VIDEO, [current],
            width=config.width - 2 * padding, height=config.height - 2 * padding, fit="contain"
        )
        x, y = "(W-w)/2", "(H-h)/2"

    timed = graph.add("outro_timed", NodeKind.TIME_SHIFT, VIDEO, [current], offset=plan.outro_start)
    main_alpha = graph.add("main_alpha", NodeKind.FORMAT, VIDEO, [base], pix_fmt=ALPHA_PIXEL_FORMAT)
    return graph.add(
        "outro_overlay", NodeKind.OVERLAY, VIDEO, [main_alpha, timed],
        x=x, y=y, enable_start=window.start, enable_end=window.end
    )


def _build_outro_audio(graph: _GraphAssembler, plan: TimingPlan, config: CompositionConfig, main_audio: str) -> str:
    padded = graph.add(
        "main_audio_padded", NodeKind.PAD_DURATION, AUDIO, [main_audio],
        pad_duration=config.outro_gap + plan.final_outro_duration
    )
    if config.outro_mute:
        return padded

    window = _require_window(plan, "outro_audio")
    current = graph.stream(AssetRole.OUTRO, AUDIO)
    if plan.outro_compound_speedup != 1.0:
        current = graph.add(
            "outro_audio_tempo", NodeKind.TIME_STRETCH, AUDIO, [current], factor=plan.outro_compound_speedup
        )
    current = graph.add(
        "outro_audio_delay", NodeKind.DELAY, AUDIO, [current], delay_ms=delay_milliseconds(window.start)
    )
    return graph.add(
        "final_audio", NodeKind.MIX, AUDIO, [padded, current], inputs=2, duration=OUTRO_MIX_DURATION
    )


def build_filter_graph(
    plan: TimingPlan,
    assets: Sequence[MediaAsset],
    config: CompositionConfig
) -> FilterGraph:
    """
    Build the filter graph for a timing plan.

    The layout decides the graph shape: one or two card overlays, one
    narration track or two mixed. A speed-up of exactly 1.0 emits no
    time-stretch node.

    Args:
        plan: Timing plan from plan_timing
        assets: Probed assets (background, overlay images, narrations, optional outro)
        config: Composition configuration the plan was computed with

    Returns:
        FilterGraph with one final video and one final audio output

    Raises:
        GraphBuildError: If a window is empty or the assets do not fit the plan
    """
    graph = _GraphAssembler(_collect_inputs(plan, assets))

    video = _build_background(graph, plan, config)
    video = _build_cards(graph, plan, config, video)
    audio = _build_narration(graph, plan)

    if plan.has_outro:
        video = _build_outro_video(graph, plan, config, video)
        audio = _build_outro_audio(graph, plan, config, audio)

    video = graph.add("final_video", NodeKind.FORMAT, VIDEO, [video], pix_fmt=OUTPUT_PIXEL_FORMAT)
    filter_graph = graph.freeze(video_output=video, audio_output=audio)

    logger.info(
        f"Built filter graph with {len(filter_graph.nodes)} nodes",
        extra={
            "layout": plan.layout.value,
            "node_count": len(filter_graph.nodes),
            "input_count": len(filter_graph.inputs),
            "has_outro": plan.has_outro
        }
    )
    return filter_graph
