# workload.py
#
# Random allocate/free traffic used by the "simulate" controls.

import random
from dataclasses import dataclass
from typing import List, Optional

from engine import Algorithm, MemoryEngine

ALLOCATE_PROBABILITY = 0.5
MIN_FREE_KB = 50
MIN_REQUEST_KB = 20
MAX_REQUEST_KB = 120
RANDOM_ALGORITHMS = (Algorithm.FIRST_FIT, Algorithm.BEST_FIT, Algorithm.WORST_FIT)


@dataclass(frozen=True)
class WorkloadStep:
    action: str  # allocate/free
    owner_id: int
    size: Optional[int] = None
    algorithm: Optional[Algorithm] = None


def random_step(engine: MemoryEngine, rng: random.Random) -> Optional[WorkloadStep]:
    """Issue one random allocation or free against ``engine``.

    Allocates while there is headroom and the coin says so, otherwise frees a
    random allocated process. Returns None when there is nothing to free.
    """
    view = engine.snapshot()
    if rng.random() < ALLOCATE_PROBABILITY and view.free_memory > MIN_FREE_KB:
        size = rng.randint(MIN_REQUEST_KB, MAX_REQUEST_KB)
        algorithm = rng.choice(RANDOM_ALGORITHMS)
        outcome = engine.allocate(size, algorithm)
        return WorkloadStep("allocate", outcome.owner_id, size, algorithm)

    owners = engine.allocated_ids()
    if not owners:
        return None
    owner_id = rng.choice(owners)
    engine.free(owner_id)
    return WorkloadStep("free", owner_id)


def run_workload(engine: MemoryEngine, steps: int, seed=None) -> List[WorkloadStep]:
    rng = random.Random(seed)
    history = []
    for _ in range(steps):
        step = random_step(engine, rng)
        if step is not None:
            history.append(step)
    return history
