"""
Main entry point for composer module.

Orchestrates one composition: probes asset durations, plans the timeline,
builds the filter graph and invokes the renderer.
"""
import random
import time
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from shortgen.shared.config import settings
from shortgen.shared.errors import CompositionError, RenderInvocationError, RetryableError, ValidationError
from shortgen.shared.logging import get_logger, set_job_id
from shortgen.shared.models.composition import CompositionConfig
from shortgen.shared.models.job import CompositionRequest, CompositionResult
from shortgen.shared.models.media import AssetRole, MediaAsset

from .graph_builder import build_filter_graph
from .renderer import render
from .timing_planner import plan_timing
from .utils import check_ffmpeg_available, probe_assets

logger = get_logger("composer.process")


def validate_request(request: CompositionRequest) -> None:
    """
    Check the request against its layout.

    Raises:
        ValidationError: If card or narration counts do not match the layout
    """
    layout = request.video_type.layout
    if len(request.image_paths) != layout.image_count:
        raise ValidationError(
            f"{request.video_type.value} videos need {layout.image_count} card image(s), "
            f"got {len(request.image_paths)}",
            context={"video_type": request.video_type.value, "images": len(request.image_paths)}
        )
    if len(request.narration_paths) != layout.narration_count:
        raise ValidationError(
            f"{request.video_type.value} videos need {layout.narration_count} narration track(s), "
            f"got {len(request.narration_paths)}",
            context={"video_type": request.video_type.value, "narrations": len(request.narration_paths)}
        )
    for image_path in request.image_paths:
        if not Path(image_path).exists():
            raise ValidationError("Card image not found", context={"path": str(image_path)})


def resolve_outro(request: CompositionRequest, job_id: UUID) -> Optional[Path]:
    """
    Outro path to use, or None.

    The request's outro wins over OUTRO_VIDEO_PATH. A configured outro
    missing on disk is skipped.
    """
    outro_path = request.outro_path or settings.outro_video_path
    if not outro_path:
        return None
    if not Path(outro_path).exists():
        logger.warning(
            "Outro video not found, composing without outro",
            extra={"job_id": str(job_id), "outro_path": str(outro_path)}
        )
        return None
    return Path(outro_path)


async def probe_request(
    request: CompositionRequest,
    outro_path: Optional[Path]
) -> Tuple[MediaAsset, List[MediaAsset], Optional[MediaAsset], List[MediaAsset]]:
    """
    Probe every timed asset concurrently.

    Card images are stills and are not probed.

    Returns:
        (background, narrations, outro, images)
    """
    targets = [(request.background_path, AssetRole.BACKGROUND, 0)]
    targets += [(path, AssetRole.NARRATION, i) for i, path in enumerate(request.narration_paths)]
    if outro_path is not None:
        targets.append((outro_path, AssetRole.OUTRO, 0))

    probed = await probe_assets(
        targets,
        timeout=settings.probe_timeout,
        ffprobe_binary=settings.ffprobe_binary
    )
    background = probed[0]
    narrations = probed[1:1 + len(request.narration_paths)]
    outro = probed[-1] if outro_path is not None else None
    images = [
        MediaAsset(path=Path(path), role=AssetRole.OVERLAY_IMAGE, index=i, duration=0.0)
        for i, path in enumerate(request.image_paths)
    ]
    return background, narrations, outro, images


async def process(
    request: CompositionRequest,
    config: CompositionConfig,
    job_id: Optional[UUID] = None,
    rng: Optional[random.Random] = None
) -> CompositionResult:
    """
    Main composition function.

    Args:
        request: Asset paths and output path for one video
        config: Explicit composition configuration
        job_id: Job identifier (generated if omitted)
        rng: Random source for the background offset

    Returns:
        CompositionResult describing the rendered video

    Raises:
        ValidationError: If the request does not match its layout
        MediaProbeError: If a duration cannot be probed
        InsufficientBackgroundDurationError: If the background is too short
        GraphBuildError: If the plan violates a graph invariant
        RenderInvocationError: If ffmpeg fails
    """
    job_id = job_id or uuid4()
    set_job_id(job_id)
    start_time = time.time()
    layout = request.video_type.layout

    logger.info(
        f"Composing {request.video_type.value} video ({layout.value})",
        extra={"job_id": str(job_id), "video_type": request.video_type.value, "layout": layout.value}
    )

    try:
        # Step 1: Input validation
        validate_request(request)
        if not check_ffmpeg_available(settings.ffmpeg_binary):
            raise RenderInvocationError(
                "FFmpeg not found. Please install FFmpeg:\n"
                "  macOS: brew install ffmpeg\n"
                "  Linux: apt-get install ffmpeg or yum install ffmpeg\n"
                "  Windows: Download from https://ffmpeg.org/",
                job_id=job_id
            )
        outro_path = resolve_outro(request, job_id)

        # Step 2: Probe durations
        background, narrations, outro, images = await probe_request(request, outro_path)

        # Step 3: Plan the timeline
        plan = plan_timing(layout, background, narrations, outro, config, rng=rng)
        logger.info(
            f"Background start offset: {plan.background_start:.3f}s",
            extra={"job_id": str(job_id), "background_start": plan.background_start}
        )

        # Step 4: Build the filter graph
        assets = [background, *images, *narrations] + ([outro] if outro is not None else [])
        graph = build_filter_graph(plan, assets, config)

        # Step 5: Render
        Path(request.output_path).parent.mkdir(parents=True, exist_ok=True)
        output_path = await render(
            graph,
            Path(request.output_path),
            config,
            job_id=job_id,
            ffmpeg_binary=settings.ffmpeg_binary,
            timeout=settings.render_timeout
        )

        composition_time = time.time() - start_time
        result = CompositionResult(
            job_id=job_id,
            video_type=request.video_type,
            output_path=output_path,
            background_start=plan.background_start,
            speedup_factor=plan.speedup_factor,
            outro_compound_speedup=plan.outro_compound_speedup if plan.has_outro else None,
            final_duration=plan.final_total_duration,
            node_count=len(graph.nodes),
            composition_time=composition_time
        )

        logger.info(
            f"Composition complete: {plan.final_total_duration:.2f}s video in {composition_time:.2f}s",
            extra={
                "job_id": str(job_id),
                "output_path": str(output_path),
                "final_duration": plan.final_total_duration,
                "composition_time": composition_time
            }
        )
        return result

    except (CompositionError, ValidationError):
        # Permanent failure - log and re-raise
        logger.error("Composition failed", exc_info=True, extra={"job_id": str(job_id)})
        raise
    except RetryableError:
        logger.warning("Composition retryable error", exc_info=True, extra={"job_id": str(job_id)})
        raise
    except Exception as e:
        logger.error(f"Unexpected composition error: {e}", exc_info=True, extra={"job_id": str(job_id)})
        raise CompositionError(f"Unexpected error during composition: {e}", job_id=job_id) from e
