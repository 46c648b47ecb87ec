"""
Utility functions for composer module.

FFmpeg/ffprobe availability checks and the duration probe collaborator.
"""
import asyncio
import shutil
from pathlib import Path
from typing import List, Sequence

from shortgen.shared.errors import MediaProbeError, RetryableError
from shortgen.shared.logging import get_logger
from shortgen.shared.models.media import AssetRole, MediaAsset
from shortgen.shared.retry import retry_with_backoff
from .config import FFPROBE_TIMEOUT, PROBE_BASE_DELAY, PROBE_MAX_ATTEMPTS

logger = get_logger("composer.utils")


def check_ffmpeg_available(binary: str = "ffmpeg") -> bool:
    """
    Check if FFmpeg is installed and available in PATH.

    Returns:
        True if FFmpeg is available, False otherwise
    """
    return shutil.which(binary) is not None


def check_ffprobe_available(binary: str = "ffprobe") -> bool:
    """Check if ffprobe is installed and available in PATH."""
    return shutil.which(binary) is not None


@retry_with_backoff(max_attempts=PROBE_MAX_ATTEMPTS, base_delay=PROBE_BASE_DELAY)
async def probe_duration(
    path: Path,
    timeout: int = FFPROBE_TIMEOUT,
    ffprobe_binary: str = "ffprobe"
) -> float:
    """
    Get media duration using ffprobe.

    Args:
        path: Path to the media file
        timeout: Timeout in seconds
        ffprobe_binary: ffprobe executable

    Returns:
        Duration in seconds (always > 0)

    Raises:
        MediaProbeError: If ffprobe fails or reports an unusable duration
        RetryableError: If ffprobe times out (retried)
    """
    if not Path(path).exists():
        raise MediaProbeError("Media file not found", context={"path": str(path)})

    cmd = [
        ffprobe_binary,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path)
    ]

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        raise MediaProbeError(f"ffprobe could not be started: {e}", context={"path": str(path)}) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise RetryableError(f"ffprobe timeout after {timeout}s", context={"path": str(path)})

    if process.returncode != 0:
        error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown ffprobe error"
        raise MediaProbeError(
            f"ffprobe failed: {error_msg}",
            context={"path": str(path), "returncode": process.returncode}
        )

    raw = stdout.decode(errors="replace").strip() if stdout else ""
    try:
        duration = float(raw)
    except ValueError as e:
        raise MediaProbeError(
            "ffprobe returned an unparseable duration",
            context={"path": str(path), "output": raw}
        ) from e

    # float("nan") parses, so compare explicitly
    if not duration > 0:
        raise MediaProbeError(
            "ffprobe returned a non-positive duration",
            context={"path": str(path), "duration": duration}
        )
    return duration


async def probe_asset(
    path: Path,
    role: AssetRole,
    index: int = 0,
    timeout: int = FFPROBE_TIMEOUT,
    ffprobe_binary: str = "ffprobe"
) -> MediaAsset:
    """
    Probe one asset and wrap it as a MediaAsset.

    Raises:
        MediaProbeError: For every probe failure, including exhausted retries
    """
    try:
        duration = await probe_duration(Path(path), timeout=timeout, ffprobe_binary=ffprobe_binary)
    except RetryableError as e:
        raise MediaProbeError(
            f"Probe of {role.value}_{index} timed out",
            context={"path": str(path), "role": role.value, "index": index}
        ) from e
    except MediaProbeError as e:
        raise MediaProbeError(
            f"Probe of {role.value}_{index} failed: {e.message}",
            context={**e.context, "role": role.value, "index": index}
        ) from e

    asset = MediaAsset(path=Path(path), role=role, index=index, duration=duration)
    logger.debug(
        f"Probed {asset.label}: {duration:.3f}s",
        extra={"path": str(path), "role": role.value, "duration": duration}
    )
    return asset


async def probe_assets(
    assets: Sequence[tuple],
    timeout: int = FFPROBE_TIMEOUT,
    ffprobe_binary: str = "ffprobe"
) -> List[MediaAsset]:
    """
    Probe several assets concurrently. Each probe depends on one path only.

    Args:
        assets: (path, role, index) tuples

    Returns:
        MediaAssets in the same order as `assets`
    """
    tasks = [
        probe_asset(path, role, index, timeout=timeout, ffprobe_binary=ffprobe_binary)
        for path, role, index in assets
    ]
    return list(await asyncio.gather(*tasks))
