"""
Color derivation for escape-time samples.

Points inside the set are painted with a fixed sentinel color (black).
Exterior points get a hue blended from their iteration count and escape
magnitude, at full saturation and 50% lightness, converted to RGB with
the standard piecewise-linear HSL -> RGB formula.

All functions are JIT-compiled and pure, so identical inputs always give
bit-identical colors regardless of which thread computes them.
"""

import math

from numba import jit


IN_SET_COLOR = (0, 0, 0)

# Hue blend: hue = HUE_BASE - iterations / HUE_ITER_SCALE * magnitude
HUE_BASE = 0.3
HUE_ITER_SCALE = 800.0
SATURATION = 1.0
LIGHTNESS = 0.5


@jit(nopython=True, nogil=True, cache=True)
def hue_to_rgb(p, q, t):
    """
    One RGB channel for hue position t (in turns).

    t is wrapped once into [0, 1], then falls into one of the linear
    pieces: rising below 1/6, flat at q up to 1/2, falling up to 2/3,
    flat at p after that.
    """
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 1.0 / 2.0:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


@jit(nopython=True, nogil=True, cache=True)
def hsl_to_rgb(h, s, l):
    """
    Convert hue/saturation/lightness (all in [0, 1]) to 8-bit RGB.

    Channels are scaled by 255 and truncated.

    Returns:
        (r, g, b) tuple of ints in [0, 255]
    """
    if s == 0.0:
        r = l
        g = l
        b = l
    else:
        if l < 0.5:
            q = l * (1.0 + s)
        else:
            q = l + s - l * s
        p = 2.0 * l - q
        r = hue_to_rgb(p, q, h + 1.0 / 3.0)
        g = hue_to_rgb(p, q, h)
        b = hue_to_rgb(p, q, h - 1.0 / 3.0)
    return int(r * 255.0), int(g * 255.0), int(b * 255.0)


@jit(nopython=True, nogil=True, cache=True)
def escape_hue(iterations, magnitude):
    """Hue for an exterior point; later / larger escapes push it further down."""
    hue = HUE_BASE - (iterations / HUE_ITER_SCALE * magnitude)
    # An overflowed magnitude gives inf or nan here
    if not math.isfinite(hue):
        return HUE_BASE
    # hue_to_rgb wraps only once, which covers hues down to -2/3
    if hue < -2.0 / 3.0:
        hue = hue % 1.0
    return hue


@jit(nopython=True, nogil=True, cache=True)
def result_color(in_set, iterations, magnitude):
    """
    Display color for one sample.

    Args:
        in_set: Whether the point stayed bounded
        iterations: Rounds completed before escape
        magnitude: |z| at escape

    Returns:
        (r, g, b) tuple of ints
    """
    if in_set:
        return 0, 0, 0
    return hsl_to_rgb(escape_hue(iterations, magnitude), SATURATION, LIGHTNESS)
