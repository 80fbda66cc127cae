"""
Per-sample computation for the escape-time field.

This module contains the pure functions every worker calls:
- map_position(): grid position -> point in the complex plane
- evaluate(): JIT-compiled escape-time test for one point
- sample_position(): both of the above, packaged as a SampleResult

evaluate() is compiled with nogil=True so worker threads can run it in
parallel. None of these functions touch shared state.
"""

import math
from typing import NamedTuple

from numba import jit

from .colormaps import result_color


# Escape radius 2, compared in squared units
ESCAPE_RADIUS = 2.0
ESCAPE_RADIUS_SQ = ESCAPE_RADIUS * ESCAPE_RADIUS


class GridPosition(NamedTuple):
    """One sample of the output buffer (column x, row y)."""
    x: int
    y: int


class SampleResult(NamedTuple):
    """Outcome of the escape-time test for one grid position."""
    position: GridPosition
    in_set: bool
    iterations: int
    magnitude: float


def map_position(position, window, width, height):
    """
    Map a grid position to a point in the complex plane.

    Each axis is interpolated independently: column x lands at
    x_min + x * (span_x / width), row y at y_min + y * (span_y / height).

    Args:
        position: (x, y) grid position
        window: PlaneWindow with the sampled bounds
        width, height: Buffer dimensions in pixels

    Returns:
        complex point for the position
    """
    x, y = position
    real = window.x_min + x * (window.span_x / width)
    imag = window.y_min + y * (window.span_y / height)
    return complex(real, imag)


@jit(nopython=True, nogil=True, cache=True)
def evaluate(point, max_iter):
    """
    Escape-time test for z -> z² + c starting from z = 0.

    Every round applies the recurrence once and then checks the new
    accumulator against the escape radius. On escape the result reports
    the number of rounds completed before the escaping one, so an
    exterior point always has 0 <= iterations < max_iter.

    Args:
        point: complex parameter c
        max_iter: Iteration budget (>= 1)

    Returns:
        (in_set, iterations, magnitude): magnitude is |z| at escape, or
        the final |z| for points that never escaped.
    """
    cr = point.real
    ci = point.imag
    zr, zi = 0.0, 0.0

    for i in range(max_iter):
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        mag_sq = zr * zr + zi * zi
        if mag_sq > ESCAPE_RADIUS_SQ:
            return False, i, math.sqrt(mag_sq)

    return True, max_iter, math.sqrt(zr * zr + zi * zi)


def sample_position(position, config):
    """Compute the SampleResult for one grid position under a RenderConfig."""
    point = map_position(position, config.window, config.width, config.height)
    in_set, iterations, magnitude = evaluate(point, config.max_iter)
    return SampleResult(GridPosition(*position), bool(in_set), int(iterations), float(magnitude))


def warmup_jit():
    """
    Compile the numba kernels once.

    Call this before timing a render so compilation is not counted.
    """
    evaluate(complex(0.0, 0.0), 2)
    result_color(False, 1, 2.5)
