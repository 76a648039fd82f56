"""Tests for the random allocate/free workload."""

import random

from engine import Algorithm, MemoryEngine
from workload import MAX_REQUEST_KB, MIN_REQUEST_KB, random_step, run_workload


class _AlwaysFree(random.Random):
    def random(self):
        return 0.99


class TestRandomWorkload:

    def test_seeded_runs_are_reproducible(self) -> None:
        a = run_workload(MemoryEngine(), 50, seed=7)
        b = run_workload(MemoryEngine(), 50, seed=7)
        assert a == b

    def test_long_run_keeps_region_consistent(self) -> None:
        engine = MemoryEngine()
        history = run_workload(engine, 500, seed=1234)
        assert history
        engine.check_invariants()
        view = engine.snapshot()
        assert sum(b.size for b in view.blocks) == view.total_memory
        owners = [b.id for b in view.blocks if b.id is not None]
        assert len(owners) == len(set(owners))

    def test_allocations_stay_in_range(self) -> None:
        history = run_workload(MemoryEngine(), 200, seed=3)
        for step in history:
            if step.action == "allocate":
                assert MIN_REQUEST_KB <= step.size <= MAX_REQUEST_KB
                assert step.algorithm in (
                    Algorithm.FIRST_FIT, Algorithm.BEST_FIT, Algorithm.WORST_FIT
                )

    def test_free_picks_allocated_process(self) -> None:
        engine = MemoryEngine()
        engine.allocate(100)
        engine.allocate(100)
        step = random_step(engine, _AlwaysFree(0))
        assert step.action == "free"
        assert step.owner_id in (1, 2)
        assert engine.find_block(step.owner_id) is None

    def test_nothing_to_free_returns_none(self) -> None:
        engine = MemoryEngine()
        assert random_step(engine, _AlwaysFree(0)) is None
