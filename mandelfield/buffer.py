"""
Output buffer for a rendered field.

Pixels live in a (height, width, 3) uint8 numpy array indexed [y, x],
the same layout the display code hands to pygame. Only the compositor
writes to it during a render.
"""

import numpy as np

from .errors import PositionOutOfRange


class OutputBuffer:
    """
    width x height RGB raster.

    Attributes:
        width, height: Dimensions in pixels
        pixels: (height, width, 3) uint8 array
        writes: Number of set() calls so far
    """

    def __init__(self, width, height):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self.writes = 0

    @property
    def shape(self):
        return (self.width, self.height)

    def set(self, x, y, color):
        """Write one cell. Raises PositionOutOfRange for positions outside the grid."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise PositionOutOfRange(
                f"({x}, {y}) is outside the {self.width}x{self.height} buffer"
            )
        self.pixels[y, x] = color
        self.writes += 1

    def get(self, x, y):
        """Color at (x, y) as an (r, g, b) tuple."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise PositionOutOfRange(
                f"({x}, {y}) is outside the {self.width}x{self.height} buffer"
            )
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    @property
    def complete(self):
        return self.writes == self.width * self.height

    def to_surface_array(self):
        """
        Pixels transposed to (width, height, 3) for pygame.surfarray.

        Row 0 is the bottom of the plane (y_min), so rows are flipped first
        to put it at the bottom of the window.
        """
        return np.flipud(self.pixels).swapaxes(0, 1)

    def __eq__(self, other):
        if not isinstance(other, OutputBuffer):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self.pixels, other.pixels)

    __hash__ = None
