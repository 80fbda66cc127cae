"""
Mandelfield

Parallel escape-time field renderer. A fixed pool of worker threads
samples every grid position, a single compositor writes the colors into
a numpy-backed buffer, and pygame displays the result.

Quick Start:
    from mandelfield import PlaneWindow, render_field
    buffer = render_field(PlaneWindow(-2.5, 1.0, -2.0, 2.0), 175, 200, 60, 30)
    buffer.pixels  # (200, 175, 3) uint8

Or from command line:
    python -m mandelfield --width 350 --height 400

Package Structure:
    - config.py: PlaneWindow / RenderConfig and settings loading
    - compute.py: Coordinate mapping and JIT-compiled escape-time test
    - colormaps.py: Iteration/magnitude -> HSL -> RGB coloring
    - queues.py: Closable FIFO connecting the pipeline stages
    - buffer.py: OutputBuffer
    - renderer.py: Worker pool, compositor and two-phase shutdown
    - app.py: Pygame viewer
"""

from .buffer import OutputBuffer
from .colormaps import IN_SET_COLOR, hsl_to_rgb, result_color
from .compute import GridPosition, SampleResult, evaluate, map_position, sample_position
from .config import PlaneWindow, RenderConfig, load_config, load_settings
from .errors import (
    CompositorFault,
    ConfigurationError,
    MandelfieldError,
    RenderCancelled,
    RenderError,
    WorkerFault,
)
from .renderer import FieldRenderer, RenderStats, render_config, render_field

__version__ = "1.0.0"
__all__ = [
    "OutputBuffer",
    "IN_SET_COLOR",
    "hsl_to_rgb",
    "result_color",
    "GridPosition",
    "SampleResult",
    "evaluate",
    "map_position",
    "sample_position",
    "PlaneWindow",
    "RenderConfig",
    "load_config",
    "load_settings",
    "CompositorFault",
    "ConfigurationError",
    "MandelfieldError",
    "RenderCancelled",
    "RenderError",
    "WorkerFault",
    "FieldRenderer",
    "RenderStats",
    "render_config",
    "render_field",
]
