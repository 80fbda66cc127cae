import pytest

from mandelfield.buffer import OutputBuffer
from mandelfield.config import PlaneWindow, RenderConfig


class CountingBuffer(OutputBuffer):
    """OutputBuffer that records how often each cell is written."""

    def __init__(self, width, height):
        super().__init__(width, height)
        self.counts = {}

    def set(self, x, y, color):
        super().set(x, y, color)
        self.counts[(x, y)] = self.counts.get((x, y), 0) + 1


@pytest.fixture
def window():
    return PlaneWindow(-2.5, 1.0, -2.0, 2.0)


@pytest.fixture
def small_config(window):
    """A grid small enough to render in a fraction of a second."""
    return RenderConfig(window=window, width=35, height=40, max_iter=30, workers=4)


@pytest.fixture
def counting_buffer_factory():
    return CountingBuffer
