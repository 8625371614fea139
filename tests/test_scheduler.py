import concurrent.futures
import threading

import pytest

from chunk import Chunk, ChunkPos
from scheduler import GenerationScheduler, SchedulerSaturated

TIMEOUT = 10


class FakeGenerator(object):
    """Records calls; optionally blocks every call until the gate opens."""

    def __init__(self, gate=None, fail=None):
        self.calls = []
        self.started = threading.Event()
        self.gate = gate
        self.fail = fail
        self._lock = threading.Lock()

    def generate(self, seed, x, z):
        with self._lock:
            self.calls.append((x, z))
        self.started.set()
        if self.gate is not None:
            self.gate.wait(TIMEOUT)
        if self.fail is not None and (x, z) == self.fail:
            raise RuntimeError("boom")
        return ("chunk", seed, x, z)


def _scheduler(small_config, gen, threads=1, queue_size=8):
    return GenerationScheduler(small_config, seed=7, threads=threads, queue_size=queue_size, generator=gen)


def test_request_resolves(small_config):
    gen = FakeGenerator()
    with _scheduler(small_config, gen, threads=2) as s:
        fut = s.request_chunk(1, 2)
        assert fut.result(TIMEOUT) == ("chunk", 7, 1, 2)
        futures = s.request_region(0, 0, 1)
        assert len(futures) == 9
        results = {pos: f.result(TIMEOUT) for pos, f in futures.items()}
        assert results[ChunkPos(-1, 1)] == ("chunk", 7, -1, 1)


def test_pending_requests_are_deduplicated(small_config):
    gate = threading.Event()
    gen = FakeGenerator(gate)
    s = _scheduler(small_config, gen)
    try:
        first = s.request_chunk(0, 0)
        assert gen.started.wait(TIMEOUT)
        a = s.request_chunk(1, 1)
        b = s.request_chunk(1, 1)
        assert a is b
        assert s.is_pending(1, 1)
        assert s.pending == 2
        gate.set()
        assert a.result(TIMEOUT) == ("chunk", 7, 1, 1)
        first.result(TIMEOUT)
    finally:
        gate.set()
        s.shutdown()
    assert gen.calls.count((1, 1)) == 1
    assert s.pending == 0


def test_full_queue_is_rejected(small_config):
    gate = threading.Event()
    gen = FakeGenerator(gate)
    s = _scheduler(small_config, gen, queue_size=1)
    try:
        s.request_chunk(0, 0)
        assert gen.started.wait(TIMEOUT)
        s.request_chunk(1, 1)
        with pytest.raises(SchedulerSaturated):
            s.request_chunk(2, 2, block=False)
        with pytest.raises(SchedulerSaturated):
            s.request_chunk(2, 2, timeout=0.05)
        assert not s.is_pending(2, 2)
    finally:
        gate.set()
        s.shutdown()


def test_cancel_drops_queued_but_not_running(small_config):
    gate = threading.Event()
    gen = FakeGenerator(gate)
    s = _scheduler(small_config, gen)
    try:
        running = s.request_chunk(0, 0)
        assert gen.started.wait(TIMEOUT)
        queued = s.request_chunk(1, 1)
        assert s.cancel(1, 1)
        assert queued.cancelled()
        assert not s.cancel(0, 0)
        assert not s.cancel(5, 5)
        gate.set()
        assert running.result(TIMEOUT) == ("chunk", 7, 0, 0)
    finally:
        gate.set()
        s.shutdown()
    assert gen.calls == [(0, 0)]


def test_failure_is_reported_on_the_future(small_config):
    gen = FakeGenerator(fail=(3, 3))
    with _scheduler(small_config, gen) as s:
        bad = s.request_chunk(3, 3)
        good = s.request_chunk(4, 4)
        with pytest.raises(RuntimeError, match="boom"):
            bad.result(TIMEOUT)
        assert good.result(TIMEOUT) == ("chunk", 7, 4, 4)


def test_shutdown_stops_workers(small_config):
    gate = threading.Event()
    gen = FakeGenerator(gate)
    s = _scheduler(small_config, gen, threads=2)
    s.request_chunk(0, 0)
    assert gen.started.wait(TIMEOUT)
    queued = [s.request_chunk(i, 0) for i in range(1, 5)]
    gate.set()
    s.shutdown(cancel_pending=True)
    assert all(not w.is_alive() for w in s._workers)
    for fut in queued:
        assert fut.done()
    with pytest.raises(RuntimeError):
        s.request_chunk(9, 9)


def test_real_generator(small_config):
    with GenerationScheduler(small_config, seed=42, threads=2) as s:
        futures = s.request_region(0, 0, 1)
        done, not_done = concurrent.futures.wait(list(futures.values()), timeout=120)
        assert not not_done
        for pos, fut in futures.items():
            chunk = fut.result()
            assert isinstance(chunk, Chunk)
            assert chunk.pos == pos
