"""
Render invocation for composer module.

Translates a FilterGraph to an ffmpeg command and runs it as a subprocess.
Success or failure is all that is read back from the renderer.
"""
import asyncio
from pathlib import Path
from typing import Optional
from uuid import UUID

from shortgen.shared.errors import RenderInvocationError
from shortgen.shared.logging import get_logger
from shortgen.shared.models.composition import CompositionConfig
from shortgen.shared.models.graph import FilterGraph
from .config import FFMPEG_TIMEOUT, STDERR_TAIL_CHARS
from .translator import build_ffmpeg_command

logger = get_logger("composer.renderer")


def _tail(stderr: Optional[bytes]) -> str:
    if not stderr:
        return ""
    return stderr.decode(errors="replace")[-STDERR_TAIL_CHARS:]


async def render(
    graph: FilterGraph,
    output_path: Path,
    config: CompositionConfig,
    job_id: Optional[UUID] = None,
    ffmpeg_binary: str = "ffmpeg",
    timeout: int = FFMPEG_TIMEOUT
) -> Path:
    """
    Render a filter graph to `output_path` with ffmpeg.

    Not retried: a failed render is surfaced to the caller as-is.

    Args:
        graph: Filter graph to render
        output_path: Output media file
        config: Composition configuration
        job_id: Job ID for logging
        ffmpeg_binary: ffmpeg executable
        timeout: Timeout in seconds; the process is killed when exceeded

    Returns:
        output_path

    Raises:
        RenderInvocationError: If ffmpeg cannot be started, times out or exits non-zero
    """
    cmd = build_ffmpeg_command(graph, output_path, config, ffmpeg_binary=ffmpeg_binary)
    log_extra = {"job_id": str(job_id), "output_path": str(output_path)}

    logger.info(
        "Starting final video composition with ffmpeg",
        extra={**log_extra, "command": cmd}
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        raise RenderInvocationError(
            f"ffmpeg could not be started: {e}",
            job_id=job_id,
            context={"ffmpeg_binary": ffmpeg_binary}
        ) from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.error(f"FFmpeg timed out after {timeout}s", extra=log_extra)
        raise RenderInvocationError(
            f"ffmpeg timed out after {timeout}s",
            job_id=job_id,
            context={"output_path": str(output_path), "timeout": timeout}
        )

    if process.returncode != 0:
        error_msg = _tail(stderr)
        logger.error(
            "FFmpeg final composition failed",
            extra={**log_extra, "returncode": process.returncode, "error": error_msg}
        )
        raise RenderInvocationError(
            f"FFmpeg final composition error: {error_msg or 'Unknown FFmpeg error'}",
            returncode=process.returncode,
            stderr=error_msg,
            job_id=job_id,
            context={"output_path": str(output_path), "returncode": process.returncode}
        )

    logger.info(f"Final video saved to {output_path}", extra=log_extra)
    return output_path
