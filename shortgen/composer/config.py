"""
Composer configuration.

Module constants for ffmpeg tokens, subprocess limits and probe retries.
Per-render values live in CompositionConfig.
"""

# Pixel formats
ALPHA_PIXEL_FORMAT = "yuva444p"  # Needed for chroma keying and alpha overlay
OUTPUT_PIXEL_FORMAT = "yuv420p"

# Transparent padding colour around overlay cards
TRANSPARENT_PAD_COLOR = "black@0.0"

# Mix duration policy for outro audio ("longest stream wins")
OUTRO_MIX_DURATION = "longest"

# Subprocess limits
FFMPEG_TIMEOUT = 600  # 10 minutes
FFPROBE_TIMEOUT = 10
STDERR_TAIL_CHARS = 2000  # Diagnostic text kept on RenderInvocationError

# Probe retries (timeouts only)
PROBE_MAX_ATTEMPTS = 2
PROBE_BASE_DELAY = 1

# Decimal places used when writing numbers into the filter graph
FILTER_NUMBER_PRECISION = 6

# Float slack allowed when checking a trim against its source duration
BOUNDS_TOLERANCE = 1e-9
