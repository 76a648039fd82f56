# utils.py

from engine import BlockStatus

OWNER_PALETTE = 12


def get_color(status, owner_id=None):
    """Return a color for a block of the given status."""
    if status is BlockStatus.FREE:
        return "#d3d3d3"  # light grey
    if status is BlockStatus.FRAGMENTED:
        return "#e57373"  # muted red
    if status is BlockStatus.ALLOCATED:
        # stable pastel hue per owner so a process keeps its color across reruns
        hue = ((owner_id or 0) % OWNER_PALETTE) * (360 // OWNER_PALETTE)
        return f"hsl({hue}, 70%, 75%)"
    raise ValueError(f"unknown block status: {status!r}")


def block_label(block):
    if block.status is BlockStatus.ALLOCATED:
        return f"P{block.id} ({block.size}KB)"
    if block.status is BlockStatus.FRAGMENTED:
        return f"Fragmented ({block.size}KB)"
    if block.status is BlockStatus.FREE:
        return f"Free ({block.size}KB)"
    raise ValueError(f"unknown block status: {block.status!r}")
