"""
Exception types raised by the field renderer.

Configuration problems are reported before any thread starts. Everything
that goes wrong during a pass is collected by the renderer and re-raised
as a single RenderError subclass.
"""


class MandelfieldError(Exception):
    """Base class for all mandelfield errors."""


class ConfigurationError(MandelfieldError, ValueError):
    """Invalid grid dimensions, plane window, iteration budget or worker count."""


class RenderError(MandelfieldError):
    """
    A render pass failed and produced no usable buffer.

    Attributes:
        faults: Every exception collected during the pass, first one first.
    """

    def __init__(self, message, faults=()):
        super().__init__(message)
        self.faults = list(faults)

    @property
    def first_fault(self):
        return self.faults[0] if self.faults else None


class WorkerFault(RenderError):
    """A worker thread failed while sampling positions."""


class CompositorFault(RenderError):
    """The compositor failed while writing into the output buffer."""


class RenderCancelled(RenderError):
    """The pass was cancelled before every cell was written."""


class PositionOutOfRange(IndexError):
    """A write targeted a cell outside the output buffer."""
