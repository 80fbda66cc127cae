import threading

import numpy as np
import pytest

from mandelfield import renderer as renderer_module
from mandelfield.buffer import OutputBuffer
from mandelfield.colormaps import result_color
from mandelfield.compute import sample_position
from mandelfield.config import PlaneWindow, RenderConfig
from mandelfield.errors import (
    CompositorFault,
    ConfigurationError,
    PositionOutOfRange,
    RenderCancelled,
    RenderError,
    WorkerFault,
)
from mandelfield.renderer import FieldRenderer, iter_positions, render_config, render_field


def test_iter_positions_covers_grid_once():
    positions = list(iter_positions(7, 5))
    assert len(positions) == 35
    assert set(positions) == {(x, y) for x in range(7) for y in range(5)}


def test_every_cell_written_exactly_once(small_config, counting_buffer_factory):
    buffer = counting_buffer_factory(small_config.width, small_config.height)
    result = render_config(small_config, buffer=buffer)
    assert result is buffer
    assert buffer.complete
    assert len(buffer.counts) == small_config.samples
    assert set(buffer.counts.values()) == {1}


def test_buffer_matches_serial_computation(small_config):
    buffer = render_config(small_config)
    expected = np.zeros_like(buffer.pixels)
    for x in range(small_config.width):
        for y in range(small_config.height):
            r = sample_position((x, y), small_config)
            expected[y, x] = result_color(r.in_set, r.iterations, r.magnitude)
    assert np.array_equal(buffer.pixels, expected)


def test_worker_count_does_not_change_output(window):
    single = render_field(window, 60, 50, 40, 1)
    many = render_field(window, 60, 50, 40, 30)
    assert np.array_equal(single.pixels, many.pixels)


def test_reference_scenario(window):
    buffer = render_field(window, 175, 200, 60, 30)
    assert buffer.pixels.shape == (200, 175, 3)
    assert buffer.complete
    # Plane origin lands on column 125, row 100
    assert buffer.get(125, 100) == (0, 0, 0)
    # The far corner is well outside the set
    assert buffer.get(0, 0) != (0, 0, 0)


def test_window_can_be_given_as_tuple():
    buffer = render_field((-2.0, 0.5, -1.25, 1.25), 20, 20, 20, 3)
    assert buffer.complete


@pytest.mark.parametrize("args", [
    (PlaneWindow(), 0, 10, 10, 2),
    (PlaneWindow(), 10, 0, 10, 2),
    (PlaneWindow(), 10, 10, 0, 2),
    (PlaneWindow(), 10, 10, 10, 0),
    (PlaneWindow(1.0, -1.0, -1.0, 1.0), 10, 10, 10, 2),
])
def test_configuration_errors_before_any_work(args, monkeypatch):
    started = []
    monkeypatch.setattr(renderer_module.threading, "Thread",
                        lambda *a, **kw: started.append(1))
    with pytest.raises(ConfigurationError):
        render_field(*args)
    assert started == []


def test_buffer_size_mismatch_is_configuration_error(small_config):
    with pytest.raises(ConfigurationError):
        FieldRenderer(small_config, buffer=OutputBuffer(3, 3))


def test_worker_fault_aborts_render(small_config, monkeypatch):
    def failing_sample(position, config):
        if position == (10, 10):
            raise RuntimeError("boom")
        return sample_position(position, config)

    monkeypatch.setattr(renderer_module, "sample_position", failing_sample)
    renderer = FieldRenderer(small_config)
    with pytest.raises(WorkerFault) as excinfo:
        renderer.render()

    error = excinfo.value
    assert isinstance(error, RenderError)
    assert isinstance(error.first_fault, RuntimeError)
    assert error.__cause__ is error.first_fault
    assert renderer.faults[0][0] == "worker"


def test_every_worker_failing_still_terminates(small_config, monkeypatch):
    def always_fail(position, config):
        raise MemoryError("out of memory")

    monkeypatch.setattr(renderer_module, "sample_position", always_fail)
    renderer = FieldRenderer(small_config, work_queue_size=2)
    with pytest.raises(WorkerFault) as excinfo:
        renderer.render()
    assert all(isinstance(f, MemoryError) for f in excinfo.value.faults)
    assert len(excinfo.value.faults) <= small_config.workers


def test_compositor_fault_aborts_render(small_config):
    class BrokenBuffer(OutputBuffer):
        def set(self, x, y, color):
            if (x, y) == (5, 5):
                raise PositionOutOfRange("bad cell")
            super().set(x, y, color)

    buffer = BrokenBuffer(small_config.width, small_config.height)
    renderer = FieldRenderer(small_config, buffer=buffer, result_queue_size=4)
    with pytest.raises(CompositorFault) as excinfo:
        renderer.render()
    assert isinstance(excinfo.value.first_fault, PositionOutOfRange)
    assert renderer.faults[0][0] == "compositor"


def test_cancelled_render_raises(small_config):
    cancel = threading.Event()
    cancel.set()
    renderer = FieldRenderer(small_config, cancel=cancel)
    with pytest.raises(RenderCancelled):
        renderer.render()
    assert renderer.stats.enqueued == 0
    assert renderer.stats.composited == 0


def test_small_queues_only_affect_throughput(small_config):
    bounded = FieldRenderer(small_config, work_queue_size=1, result_queue_size=1).render()
    unbounded = render_config(small_config)
    assert bounded == unbounded


def test_stats_account_for_every_sample(small_config):
    renderer = FieldRenderer(small_config)
    renderer.render()
    stats = renderer.stats
    assert stats.enqueued == small_config.samples
    assert stats.composited == small_config.samples
    assert sum(stats.per_worker) == small_config.samples
    assert len(stats.per_worker) == small_config.workers
    assert stats.elapsed > 0


def test_renderer_runs_once(small_config):
    renderer = FieldRenderer(small_config)
    renderer.render()
    with pytest.raises(RenderError):
        renderer.render()


def test_concurrent_renders_with_different_configs(window):
    configs = [
        RenderConfig(window=window, width=30, height=20, max_iter=20, workers=3),
        RenderConfig(window=PlaneWindow(-1.0, 1.0, -1.0, 1.0), width=25, height=25,
                     max_iter=50, workers=5),
    ]
    results = [None, None]

    def run(index):
        results[index] = render_config(configs[index])

    threads = [threading.Thread(target=run, args=(i,)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for config, buffer in zip(configs, results):
        assert buffer.shape == (config.width, config.height)
        assert buffer == render_config(config.with_overrides(workers=1))


def test_cancel_during_render_stops_partway(small_config, monkeypatch):
    cancel = threading.Event()
    calls = []
    lock = threading.Lock()

    def cancelling_sample(position, config):
        with lock:
            calls.append(position)
            if len(calls) == 50:
                cancel.set()
        return sample_position(position, config)

    monkeypatch.setattr(renderer_module, "sample_position", cancelling_sample)
    renderer = FieldRenderer(small_config, cancel=cancel)
    with pytest.raises(RenderCancelled):
        renderer.render()

    assert 0 < renderer.stats.composited < small_config.samples
    assert renderer.buffer.writes == renderer.stats.composited
    assert renderer.faults == []


def test_written_buffer_cannot_be_reused(small_config, monkeypatch):
    buffer = OutputBuffer(small_config.width, small_config.height)
    render_config(small_config, buffer=buffer)
    assert buffer.complete

    started = []
    monkeypatch.setattr(renderer_module.threading, "Thread",
                        lambda *a, **kw: started.append(1))
    with pytest.raises(ConfigurationError):
        render_config(small_config, buffer=buffer)
    assert started == []
    assert buffer.writes == small_config.samples
