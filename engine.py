# engine.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_KB = 1024
FIXED_PARTITION_KB = 256


class BlockStatus(Enum):
    FREE = "free"
    ALLOCATED = "allocated"
    FRAGMENTED = "fragmented"


class Algorithm(Enum):
    FIRST_FIT = "first-fit"
    BEST_FIT = "best-fit"
    WORST_FIT = "worst-fit"
    FIXED_PARTITIONING = "fixed-partitioning"

    @classmethod
    def parse(cls, token):
        """Map a wire token or display label to an Algorithm.

        Unknown tokens fall back to FIRST_FIT ("dynamic-partitioning" is an
        alias for it).
        """
        if isinstance(token, cls):
            return token
        key = str(token).strip().lower().replace("_", "-").replace(" ", "-")
        for algo in cls:
            if algo.value == key:
                return algo
        return cls.FIRST_FIT

    @property
    def label(self):
        return self.value.title()


class RetryPolicy(Enum):
    HEAD_ONLY = "head-only"
    SCAN_QUEUE = "scan-queue"


class Block:
    def __init__(self, start, size, status=BlockStatus.FREE, block_id=None, requested=None):
        self.start = start
        self.size = size
        self.status = status
        self.block_id = block_id
        # KB the owner asked for; smaller than size inside a fixed partition
        self.requested = requested

    @property
    def wasted(self):
        if not self.allocated or self.requested is None:
            return 0
        return self.size - self.requested

    @property
    def end(self):
        return self.start + self.size

    @property
    def is_free(self):
        return self.status is BlockStatus.FREE

    @property
    def allocated(self):
        return self.status is BlockStatus.ALLOCATED

    def __repr__(self):
        state = {
            BlockStatus.FREE: "F",
            BlockStatus.ALLOCATED: "A",
            BlockStatus.FRAGMENTED: "X",
        }[self.status]
        return f"[{state}|{self.start}|{self.size}]"


@dataclass(frozen=True)
class PendingRequest:
    id: int
    requested_size: int


@dataclass(frozen=True)
class BlockView:
    id: Optional[int]
    start: int
    size: int
    status: BlockStatus


@dataclass(frozen=True)
class AllocationOutcome:
    owner_id: int
    placed: bool
    start: Optional[int] = None

    @property
    def queued(self):
        return not self.placed


@dataclass(frozen=True)
class MemoryView:
    """Read-only picture of the region; statistics are derived from blocks."""

    total_memory: int
    used_memory: int
    free_memory: int
    fragmentation: float
    blocks: Tuple[BlockView, ...]
    waiting_queue: Tuple[PendingRequest, ...]


class MemoryEngine:
    def __init__(
        self,
        total_size=DEFAULT_TOTAL_KB,
        retry_policy=RetryPolicy.HEAD_ONLY,
        partition_on_demand=False,
    ):
        if not isinstance(total_size, int) or total_size <= 0:
            raise ValueError(f"total_size must be a positive integer, got {total_size!r}")
        self.total_size = total_size
        self.retry_policy = retry_policy
        self.partition_on_demand = partition_on_demand
        self.event_log: List[str] = []
        self.reset()

    def reset(self):
        self.blocks: List[Block] = [Block(0, self.total_size)]
        self.waiting_queue: List[PendingRequest] = []
        self.next_id = 1
        self.event_log.append(f"Reset: one free block of {self.total_size}KB")
        logger.info("memory region reset to %dKB", self.total_size)

    def set_retry_policy(self, policy):
        self.retry_policy = RetryPolicy(policy)

    # -----------------------------
    # Allocate Dispatcher
    # -----------------------------
    def allocate(self, req_size, algorithm=Algorithm.FIRST_FIT):
        """Place a request of ``req_size`` KB or append it to the waiting queue.

        Never fails: the outcome says whether the request was placed or queued.
        """
        algo = Algorithm.parse(algorithm)
        owner_id = self.next_id
        self.next_id += 1

        if algo is Algorithm.FIXED_PARTITIONING:
            index = self._fixed_partition(req_size)
            if index is not None:
                block = self.blocks[index]
                block.status = BlockStatus.ALLOCATED
                block.block_id = owner_id
                block.requested = req_size
        else:
            index = {
                Algorithm.FIRST_FIT: self._first_fit,
                Algorithm.BEST_FIT: self._best_fit,
                Algorithm.WORST_FIT: self._worst_fit,
            }[algo](req_size)
            if index is not None:
                self._split_block(index, req_size, owner_id)

        if index is None:
            self.waiting_queue.append(PendingRequest(owner_id, req_size))
            self.event_log.append(f"Queued: P{owner_id} ({req_size}KB, {algo.label})")
            logger.debug("queued P%d size=%d algorithm=%s", owner_id, req_size, algo.value)
            outcome = AllocationOutcome(owner_id, placed=False)
        else:
            start = self.blocks[index].start
            self.event_log.append(
                f"Allocated: P{owner_id} -> {start}KB ({req_size}KB, {algo.label})"
            )
            logger.debug("allocated P%d start=%d size=%d algorithm=%s", owner_id, start, req_size, algo.value)
            outcome = AllocationOutcome(owner_id, placed=True, start=start)

        self.check_invariants()
        return outcome

    # -----------------------------
    # Algorithms
    # -----------------------------
    def _first_fit(self, req):
        for i, block in enumerate(self.blocks):
            if block.is_free and block.size >= req:
                return i
        return None

    def _best_fit(self, req):
        best_index = None
        best_waste = None

        for i, block in enumerate(self.blocks):
            if block.is_free and block.size >= req:
                waste = block.size - req
                if best_waste is None or waste < best_waste:
                    best_waste = waste
                    best_index = i
        return best_index

    def _worst_fit(self, req):
        worst_index = None
        worst_waste = -1

        for i, block in enumerate(self.blocks):
            if block.is_free and block.size >= req:
                waste = block.size - req
                if waste > worst_waste:
                    worst_waste = waste
                    worst_index = i
        return worst_index

    def _fixed_partition(self, req):
        if req > FIXED_PARTITION_KB:
            return None
        for i, block in enumerate(self.blocks):
            if block.is_free and block.size == FIXED_PARTITION_KB:
                return i
        if self.partition_on_demand and self._is_pristine():
            self._carve_partitions()
            return self._fixed_partition(req)
        return None

    def _is_pristine(self):
        return (
            self.total_size >= FIXED_PARTITION_KB
            and len(self.blocks) == 1
            and self.blocks[0].is_free
            and self.blocks[0].size == self.total_size
        )

    def _carve_partitions(self):
        count = self.total_size // FIXED_PARTITION_KB
        blocks = [Block(i * FIXED_PARTITION_KB, FIXED_PARTITION_KB) for i in range(count)]
        tail = self.total_size - count * FIXED_PARTITION_KB
        if tail:
            blocks.append(Block(count * FIXED_PARTITION_KB, tail))
        self.blocks = blocks
        self.event_log.append(f"Partitioned: {count} x {FIXED_PARTITION_KB}KB")

    # -----------------------------
    # Helpers
    # -----------------------------
    def _split_block(self, index, req_size, block_id):
        block = self.blocks[index]
        remainder = block.size - req_size

        block.size = req_size
        block.status = BlockStatus.ALLOCATED
        block.block_id = block_id
        block.requested = req_size

        if remainder > 0:
            self.blocks.insert(index + 1, Block(block.start + req_size, remainder))
        return block_id

    def free(self, block_id):
        """Release the block owned by ``block_id``; unknown ids are ignored."""
        block = self.find_block(block_id)
        if block is None:
            logger.debug("free of unknown P%s ignored", block_id)
            return

        block.status = BlockStatus.FREE
        block.block_id = None
        block.requested = None
        self.event_log.append(f"Freed: P{block_id} ({block.size}KB at {block.start}KB)")
        logger.debug("freed P%d start=%d size=%d", block_id, block.start, block.size)

        self.coalesce()
        self._retry_waiting()
        self.check_invariants()

    deallocate = free

    def coalesce(self):
        i = 0
        merges = 0
        while i < len(self.blocks) - 1:
            current, nxt = self.blocks[i], self.blocks[i + 1]
            if current.is_free and nxt.is_free:
                current.size += nxt.size
                del self.blocks[i + 1]
                merges += 1
            else:
                i += 1
        if merges:
            self.event_log.append(f"Coalesced: {merges} merge(s)")
        return merges

    def _retry_waiting(self):
        if not self.waiting_queue:
            return

        if self.retry_policy is RetryPolicy.HEAD_ONLY:
            if self._place_pending(self.waiting_queue[0]):
                self.waiting_queue.pop(0)
            return

        still_waiting = []
        for pending in self.waiting_queue:
            if not self._place_pending(pending):
                still_waiting.append(pending)
        self.waiting_queue = still_waiting

    def _place_pending(self, pending):
        index = self._first_fit(pending.requested_size)
        if index is None:
            return False
        self._split_block(index, pending.requested_size, pending.id)
        self.event_log.append(
            f"From queue: P{pending.id} -> {self.blocks[index].start}KB ({pending.requested_size}KB)"
        )
        logger.debug("placed queued P%d size=%d", pending.id, pending.requested_size)
        return True

    # -----------------------------
    # Fragmented blocks
    # -----------------------------
    def mark_fragmented(self, start):
        for block in self.blocks:
            if block.start == start and block.is_free:
                block.status = BlockStatus.FRAGMENTED
                self.event_log.append(f"Fragmented: {block.size}KB at {start}KB")
                self.check_invariants()
                return block
        raise KeyError(f"no free block starts at {start}KB")

    def release_fragmented(self):
        released = 0
        for block in self.blocks:
            if block.status is BlockStatus.FRAGMENTED:
                block.status = BlockStatus.FREE
                released += 1
        if released:
            self.coalesce()
            self._retry_waiting()
            self.check_invariants()
        return released

    # -----------------------------
    # Queries
    # -----------------------------
    def find_block(self, block_id) -> Optional[Block]:
        for block in self.blocks:
            if block.allocated and block.block_id == block_id:
                return block
        return None

    def allocated_ids(self) -> List[int]:
        return [b.block_id for b in self.blocks if b.allocated]

    def get_state(self):
        return self.blocks

    def snapshot(self) -> MemoryView:
        used = 0
        fragmented = 0
        for block in self.blocks:
            if block.status is BlockStatus.ALLOCATED:
                used += block.size
            elif block.status is BlockStatus.FRAGMENTED:
                fragmented += block.size

        return MemoryView(
            total_memory=self.total_size,
            used_memory=used,
            free_memory=self.total_size - used,
            fragmentation=100.0 * fragmented / self.total_size,
            blocks=tuple(
                BlockView(b.block_id, b.start, b.size, b.status) for b in self.blocks
            ),
            waiting_queue=tuple(self.waiting_queue),
        )

    def check_invariants(self):
        cursor = 0
        owners = set()
        for block in self.blocks:
            if block.start != cursor:
                raise AssertionError(
                    f"block {block!r} starts at {block.start}KB, expected {cursor}KB"
                )
            if block.size <= 0:
                raise AssertionError(f"block {block!r} has non-positive size")
            if block.allocated:
                if block.block_id is None:
                    raise AssertionError(f"allocated block {block!r} has no owner")
                if block.block_id in owners:
                    raise AssertionError(f"owner P{block.block_id} labels two blocks")
                owners.add(block.block_id)
            elif block.block_id is not None:
                raise AssertionError(f"unallocated block {block!r} has owner P{block.block_id}")
            cursor = block.end
        if cursor != self.total_size:
            raise AssertionError(f"blocks cover {cursor}KB of {self.total_size}KB")

    # --------------------------------------
    # Fragmentation Metrics
    # --------------------------------------
    def get_fragmentation_metrics(self):
        free_blocks = [b.size for b in self.blocks if b.is_free]
        allocated_blocks = [b.size for b in self.blocks if b.allocated]

        total_free = sum(free_blocks)
        total_alloc = sum(allocated_blocks)

        # External fragmentation: share of free space outside the largest hole
        if total_free == 0:
            external_frag = 0
        else:
            external_frag = 1 - (max(free_blocks) / total_free)

        # Internal fragmentation: space handed out but not asked for
        internal_frag = sum(b.wasted for b in self.blocks) / self.total_size

        utilization = total_alloc / self.total_size

        return {
            "external": round(external_frag, 4),
            "internal": round(internal_frag, 4),
            "utilization": round(utilization, 4),
        }
