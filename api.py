"""
Request handling for the memory simulator.

Validates allocate/deallocate payloads, serializes engine state to the JSON
shape the front end renders, and serializes access to the shared engine.
No web framework is involved: a server only needs to pass decoded request
bodies in and send the returned dictionaries back out.
"""

import logging
import threading
from typing import Any, Dict, Optional

from engine import Algorithm, BlockStatus, MemoryEngine, MemoryView

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """A request rejected before it reaches the engine."""

    status_code = 400

    def to_dict(self) -> Dict[str, str]:
        return {"error": str(self)}


def serialize_view(view: MemoryView) -> Dict[str, Any]:
    """
    Convert a MemoryView into the status payload.

    Args:
        view (MemoryView): Snapshot taken from the engine

    Returns:
        Dict[str, Any]: totals, fragmentation percent, blocks and queue
    """
    return {
        "totalMemory": view.total_memory,
        "usedMemory": view.used_memory,
        "freeMemory": view.free_memory,
        "fragmentation": round(view.fragmentation, 2),
        "blocks": [
            {
                "id": b.id,
                "start": b.start,
                "size": b.size,
                "status": BlockStatus(b.status).value,
            }
            for b in view.blocks
        ],
        "processQueue": [
            {"id": p.id, "size": p.requested_size} for p in view.waiting_queue
        ],
    }


def _require_positive_int(payload: Dict[str, Any], key: str, message: str) -> int:
    value = payload.get(key)
    if value is None or value == "":
        raise ValidationError(message)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a positive integer")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ValidationError(f"{key} must be a positive integer") from None
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{key} must be a positive integer")
    return value


class MemoryService:
    """
    Owns one MemoryEngine and serializes every call into it.

    The engine itself takes no locks, so all access from request handlers
    goes through this object.
    """

    def __init__(self, engine: Optional[MemoryEngine] = None):
        self.engine = engine if engine is not None else MemoryEngine()
        self._lock = threading.Lock()

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return serialize_view(self.engine.snapshot())

    def allocate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not payload or payload.get("size") in (None, "") or not payload.get("algorithm"):
            raise ValidationError("Size and algorithm are required")
        size = _require_positive_int(payload, "size", "Size and algorithm are required")
        algorithm = Algorithm.parse(payload["algorithm"])

        with self._lock:
            outcome = self.engine.allocate(size, algorithm)
            memory = serialize_view(self.engine.snapshot())
        logger.debug(
            "allocate size=%d algorithm=%s -> P%d %s",
            size,
            algorithm.value,
            outcome.owner_id,
            "placed" if outcome.placed else "queued",
        )
        return {"status": "success", "memory": memory}

    def deallocate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not payload:
            raise ValidationError("Process ID is required")
        process_id = _require_positive_int(payload, "processId", "Process ID is required")

        with self._lock:
            self.engine.free(process_id)
            memory = serialize_view(self.engine.snapshot())
        logger.debug("deallocate P%d", process_id)
        return {"status": "success", "memory": memory}

    def reset(self) -> Dict[str, Any]:
        with self._lock:
            self.engine.reset()
            return serialize_view(self.engine.snapshot())
