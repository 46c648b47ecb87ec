"""
Timing planner for composer module.

Turns probed asset durations and a CompositionConfig into a TimingPlan:
where to start in the background clip, how much to speed everything up,
and when each card, narration track and the outro appear on the output
timeline.
"""
import random
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from shortgen.shared.errors import InsufficientBackgroundDurationError, ValidationError
from shortgen.shared.logging import get_logger
from shortgen.shared.models.composition import CompositionConfig
from shortgen.shared.models.media import AssetRole, ContentLayout, MediaAsset
from shortgen.shared.models.timeline import SegmentWindow, TimingPlan

logger = get_logger("composer.timing_planner")


def delay_milliseconds(seconds: float) -> int:
    """Convert a delay in seconds to integer milliseconds, rounding half up."""
    return int(Decimal(repr(seconds * 1000)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def content_duration(layout: ContentLayout, narration_durations: Sequence[float], break_duration: float) -> float:
    """
    Raw (pre-speedup) duration of the narration-driven content.

    Dual-card content is question, break, answer. Single-card content is
    the one narration track.
    """
    if layout is ContentLayout.DUAL_CARD:
        return narration_durations[0] + break_duration + narration_durations[1]
    return narration_durations[0]


def narration_delays(plan: TimingPlan) -> List[float]:
    """Start offset of each narration track on the output timeline, in track order."""
    return [window.start for window in plan.narration_windows()]


def _check_roles(layout: ContentLayout, background: MediaAsset, narrations: Sequence[MediaAsset],
                 outro: Optional[MediaAsset]) -> None:
    if background.role is not AssetRole.BACKGROUND:
        raise ValidationError(f"Expected a background asset, got {background.label}")
    if len(narrations) != layout.narration_count:
        raise ValidationError(
            f"{layout.value} layout needs {layout.narration_count} narration track(s), got {len(narrations)}",
            context={"layout": layout.value, "narrations": len(narrations)}
        )
    for position, narration in enumerate(narrations):
        if narration.role is not AssetRole.NARRATION:
            raise ValidationError(f"Expected a narration asset, got {narration.label}")
        if narration.index != position:
            raise ValidationError(
                f"Narration tracks must be ordered by index, got {narration.label} at position {position}"
            )
    if outro is not None and outro.role is not AssetRole.OUTRO:
        raise ValidationError(f"Expected an outro asset, got {outro.label}")


def _segment_windows(
    layout: ContentLayout,
    narration_durations: Sequence[float],
    config: CompositionConfig,
    speedup: float,
    main_duration: float
) -> List[SegmentWindow]:
    if layout is ContentLayout.DUAL_CARD:
        question, answer = narration_durations
        # Answer audio waits for the sped-up question plus the unscaled break
        answer_start = question / speedup + config.break_duration
        return [
            SegmentWindow(label="image_0", start=0.0, end=question / speedup),
            SegmentWindow(label="image_1", start=(question + config.break_duration) / speedup, end=main_duration),
            SegmentWindow(label="narration_0", start=0.0, end=question / speedup),
            SegmentWindow(label="narration_1", start=answer_start, end=answer_start + answer / speedup),
        ]
    return [
        SegmentWindow(label="image_0", start=0.0, end=main_duration),
        SegmentWindow(label="narration_0", start=0.0, end=main_duration),
    ]


def plan_timing(
    layout: ContentLayout,
    background: MediaAsset,
    narrations: Sequence[MediaAsset],
    outro: Optional[MediaAsset],
    config: CompositionConfig,
    rng: Optional[random.Random] = None
) -> TimingPlan:
    """
    Compute the timing plan for one composition.

    The global speed-up is max(min_speedup, total_with_outro / max_duration):
    the floor always holds, the ceiling is only approached. The outro is
    sped up by outro_speedup * speedup_factor.

    Args:
        layout: Dual- or single-card layout
        background: Probed background clip
        narrations: Probed narration tracks, ordered by index
        outro: Probed outro clip, or None
        config: Composition configuration
        rng: Random source for the background offset (defaults to module random)

    Returns:
        TimingPlan

    Raises:
        ValidationError: If the assets do not match the layout
        InsufficientBackgroundDurationError: If the background cannot cover
            the content plus the outro
    """
    _check_roles(layout, background, narrations, outro)
    rng = rng or random

    narration_durations = [narration.duration for narration in narrations]
    content = content_duration(layout, narration_durations, config.break_duration)

    if outro is not None:
        base_outro_duration = outro.duration / config.outro_speedup
        outro_gap = config.outro_gap
    else:
        base_outro_duration = 0.0
        outro_gap = 0.0

    total_with_outro = content + outro_gap + base_outro_duration

    speedup = max(config.min_speedup, total_with_outro / config.max_duration)
    main_duration = content / speedup

    if outro is not None:
        outro_compound_speedup = config.outro_speedup * speedup
        final_outro_duration = outro.duration / outro_compound_speedup
    else:
        outro_compound_speedup = 1.0
        final_outro_duration = 0.0

    outro_start = main_duration + outro_gap
    final_total_duration = main_duration + outro_gap + final_outro_duration

    # The background plays unstretched for the whole output, which is longer
    # than the raw timeline when min_speedup < 1
    background_span = max(total_with_outro, final_total_duration)

    if background.duration < background_span:
        logger.error(
            "Background video is too short for the narration and outro",
            extra={
                "background_path": str(background.path),
                "background_duration": background.duration,
                "total_with_outro": total_with_outro,
                "background_span": background_span
            }
        )
        raise InsufficientBackgroundDurationError(
            "Background video is too short for the narration and outro",
            context={
                "background_path": str(background.path),
                "background_duration": background.duration,
                "content_duration": content,
                "outro_gap": outro_gap,
                "base_outro_duration": base_outro_duration,
                "total_with_outro": total_with_outro,
                "final_total_duration": final_total_duration
            }
        )

    background_start = rng.uniform(0, background.duration - background_span)

    windows = _segment_windows(layout, narration_durations, config, speedup, main_duration)
    if outro is not None:
        outro_end = outro_start + final_outro_duration
        windows.append(SegmentWindow(label="outro_video", start=outro_start, end=outro_end))
        if not config.outro_mute:
            windows.append(SegmentWindow(label="outro_audio", start=outro_start, end=outro_end))

    plan = TimingPlan(
        layout=layout,
        content_duration=content,
        total_with_outro=total_with_outro,
        background_start=background_start,
        speedup_factor=speedup,
        main_duration=main_duration,
        has_outro=outro is not None,
        base_outro_duration=base_outro_duration,
        outro_compound_speedup=outro_compound_speedup,
        final_outro_duration=final_outro_duration,
        outro_start=outro_start if outro is not None else 0.0,
        final_total_duration=final_total_duration,
        segment_windows=tuple(windows)
    )

    logger.info(
        f"Planned {layout.value} timeline: speedup {speedup:.2f}x, "
        f"main {main_duration:.2f}s, total {final_total_duration:.2f}s",
        extra={
            "layout": layout.value,
            "background_start": background_start,
            "speedup_factor": speedup,
            "content_duration": content,
            "total_with_outro": total_with_outro,
            "main_duration": main_duration,
            "final_total_duration": final_total_duration
        }
    )
    if outro is not None:
        logger.info(
            f"Outro compound speedup: {outro_compound_speedup:.2f}x "
            f"({config.outro_speedup}x * {speedup:.2f}x), final outro {final_outro_duration:.2f}s",
            extra={
                "outro_compound_speedup": outro_compound_speedup,
                "final_outro_duration": final_outro_duration
            }
        )

    return plan
