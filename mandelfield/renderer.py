"""
Parallel escape-time field renderer.

The FieldRenderer class runs one complete pass over the grid:
- The calling thread enumerates every grid position onto a work queue
- A fixed pool of worker threads samples positions (map + escape test)
  and pushes SampleResults onto a results queue
- A single compositor thread turns results into colors and writes them
  into the OutputBuffer
- Shutdown is two-phase: join all workers, close the results queue,
  then join the compositor

Workers share nothing but the two queues. The compositor is the only
writer of the buffer, so buffer writes need no lock. The numba kernels
release the GIL, which lets worker threads sample in parallel.

Usage:
    buffer = render_field(PlaneWindow(-2.5, 1.0, -2.0, 2.0), 175, 200, 60, 30)
"""

import logging
import threading
import time
from dataclasses import dataclass, field

from .buffer import OutputBuffer
from .colormaps import result_color
from .compute import GridPosition, sample_position
from .config import PlaneWindow, RenderConfig
from .errors import (
    CompositorFault,
    ConfigurationError,
    RenderCancelled,
    RenderError,
    WorkerFault,
)
from .queues import ClosableQueue

logger = logging.getLogger(__name__)

STAGE_WORKER = 'worker'
STAGE_COMPOSITOR = 'compositor'


def iter_positions(width, height):
    """Yield every position of the [0, width) x [0, height) grid exactly once."""
    for x in range(width):
        for y in range(height):
            yield GridPosition(x, y)


@dataclass
class RenderStats:
    """Timing and throughput of the last pass."""

    elapsed: float = 0.0
    enqueued: int = 0
    composited: int = 0
    per_worker: list = field(default_factory=list)


class FieldRenderer:
    """
    Runs one render pass for a RenderConfig.

    Usage:
        renderer = FieldRenderer(config)
        buffer = renderer.render()
        print(renderer.stats.elapsed)

    Attributes:
        config: The validated RenderConfig
        buffer: OutputBuffer written by the compositor
        stats: RenderStats for the last pass
        faults: (stage, exception) pairs collected during the last pass
    """

    def __init__(self, config, buffer=None, cancel=None, work_queue_size=None,
                 result_queue_size=0):
        """
        Initialize the renderer.

        Args:
            config: RenderConfig describing the pass
            buffer: Optional OutputBuffer to fill (must match config size)
            cancel: Optional threading.Event; setting it stops the pass
            work_queue_size: Work queue capacity (default: the whole grid)
            result_queue_size: Results queue capacity (default 0 = unbounded)
        """
        self.config = config.validate()
        if buffer is None:
            buffer = OutputBuffer(config.width, config.height)
        elif buffer.shape != (config.width, config.height):
            raise ConfigurationError(
                f"Buffer is {buffer.width}x{buffer.height}, "
                f"config expects {config.width}x{config.height}"
            )
        elif buffer.writes != 0:
            raise ConfigurationError(
                f"Buffer already holds {buffer.writes} writes; each cell is written once"
            )
        self.buffer = buffer
        self.cancel = cancel
        self.work_queue_size = config.samples if work_queue_size is None else work_queue_size
        self.result_queue_size = result_queue_size

        self.stats = RenderStats()
        self.faults = []
        self._faults_lock = threading.Lock()
        self._abort = threading.Event()
        self._rendered = False

    # ------------------------------------------------------------------
    # Pass orchestration
    # ------------------------------------------------------------------

    def render(self):
        """
        Run the pass and return the completed buffer.

        Blocks until every thread has finished. Raises a RenderError
        subclass if any stage failed or the pass was cancelled.
        """
        if self._rendered:
            raise RenderError("FieldRenderer instances render exactly once")
        self._rendered = True

        config = self.config
        work = ClosableQueue(self.work_queue_size)
        results = ClosableQueue(self.result_queue_size)
        self.stats.per_worker = [0] * config.workers

        logger.debug(
            "Rendering %dx%d, max_iter=%d, workers=%d, window=%s",
            config.width, config.height, config.max_iter, config.workers,
            config.window.as_tuple(),
        )
        start = time.perf_counter()

        compositor = threading.Thread(
            target=self._compositor_loop, args=(results,),
            name='mandelfield-compositor', daemon=True,
        )
        compositor.start()

        workers = []
        for index in range(config.workers):
            thread = threading.Thread(
                target=self._worker_loop, args=(index, work, results),
                name=f'mandelfield-worker-{index}', daemon=True,
            )
            thread.start()
            workers.append(thread)

        try:
            self._generate(work)
        finally:
            work.close()

        # Phase 1: no worker will emit again once all have returned
        for thread in workers:
            thread.join()
        results.close()
        logger.debug("Workers finished, results queue closed")

        # Phase 2: every write has landed once the compositor returns
        compositor.join()
        self.stats.elapsed = time.perf_counter() - start
        logger.debug("Compositor finished after %d writes", self.stats.composited)

        self._raise_for_faults()
        logger.info("took: %.3fs", self.stats.elapsed)
        return self.buffer

    def _stopping(self):
        return self._abort.is_set() or (self.cancel is not None and self.cancel.is_set())

    def _record_fault(self, stage, exc):
        with self._faults_lock:
            self.faults.append((stage, exc))
        self._abort.set()

    def _raise_for_faults(self):
        if self.faults:
            stage, first = self.faults[0]
            errors = [exc for _, exc in self.faults]
            error_type = WorkerFault if stage == STAGE_WORKER else CompositorFault
            raise error_type(f"Render aborted, {stage} failed: {first!r}", errors) from first

        if self.stats.composited == self.config.samples:
            return

        if self.cancel is not None and self.cancel.is_set():
            raise RenderCancelled(
                f"Render cancelled after {self.stats.composited} of "
                f"{self.config.samples} cells"
            )
        raise RenderError(
            f"Render incomplete: {self.stats.composited} of "
            f"{self.config.samples} cells written"
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _generate(self, work):
        """Enqueue every grid position; stop early if the pass is aborting."""
        config = self.config
        for position in iter_positions(config.width, config.height):
            if self._stopping():
                logger.debug("Work generator stopped after %d positions", self.stats.enqueued)
                return
            work.put(position)
            self.stats.enqueued += 1

    def _worker_loop(self, index, work, results):
        """Sample positions until the work queue is closed and empty."""
        config = self.config
        processed = 0
        try:
            for position in work:
                if self._stopping():
                    continue
                results.put(sample_position(position, config))
                processed += 1
        except Exception as e:
            logger.exception("Worker %d failed", index)
            self._record_fault(STAGE_WORKER, e)
            # Keep the work queue moving so the generator never blocks
            work.drain()
        finally:
            self.stats.per_worker[index] = processed

    def _compositor_loop(self, results):
        """Write every result's color into the buffer."""
        buffer = self.buffer
        try:
            for result in results:
                if self._abort.is_set():
                    continue
                x, y = result.position
                buffer.set(x, y, result_color(result.in_set, result.iterations, result.magnitude))
                self.stats.composited += 1
        except Exception as e:
            logger.exception("Compositor failed")
            self._record_fault(STAGE_COMPOSITOR, e)
            # Keep the results queue moving so workers never block
            results.drain()


def render_config(config, buffer=None, cancel=None):
    """Render one field for a RenderConfig and return the completed OutputBuffer."""
    return FieldRenderer(config, buffer=buffer, cancel=cancel).render()


def render_field(window, width, height, max_iter, workers, buffer=None, cancel=None):
    """
    Render a complete escape-time field.

    Args:
        window: PlaneWindow, or (x_min, x_max, y_min, y_max)
        width, height: Buffer dimensions in pixels
        max_iter: Iteration budget per sample
        workers: Number of worker threads
        buffer: Optional OutputBuffer to fill
        cancel: Optional threading.Event to cancel the pass

    Returns:
        The fully written OutputBuffer

    Raises:
        ConfigurationError before any work starts for invalid arguments,
        RenderError (WorkerFault, CompositorFault, RenderCancelled) if the
        pass fails.
    """
    config = RenderConfig(
        window=PlaneWindow.from_value(window),
        width=width,
        height=height,
        max_iter=max_iter,
        workers=workers,
    )
    return render_config(config, buffer=buffer, cancel=cancel)
