"""
Composer module.

Final stage of the short-video pipeline. Plans the output timeline from
probed asset durations, builds the filter graph and renders the video
with ffmpeg. The orchestration entry point is shortgen.composer.process.process.
"""

from shortgen.composer.graph_builder import build_filter_graph
from shortgen.composer.timing_planner import plan_timing

__all__ = ["plan_timing", "build_filter_graph"]
