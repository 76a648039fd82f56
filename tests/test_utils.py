import pytest

from engine import BlockStatus, BlockView
from utils import block_label, get_color


class TestColors:

    def test_each_status_has_a_color(self) -> None:
        colors = {get_color(status, 1) for status in BlockStatus}
        assert len(colors) == len(BlockStatus)

    def test_owner_color_is_stable(self) -> None:
        assert get_color(BlockStatus.ALLOCATED, 5) == get_color(BlockStatus.ALLOCATED, 5)

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValueError):
            get_color("allocated")


class TestLabels:

    @pytest.mark.parametrize(
        "view,expected",
        [
            (BlockView(3, 0, 120, BlockStatus.ALLOCATED), "P3 (120KB)"),
            (BlockView(None, 120, 80, BlockStatus.FREE), "Free (80KB)"),
            (BlockView(None, 200, 16, BlockStatus.FRAGMENTED), "Fragmented (16KB)"),
        ],
    )
    def test_label(self, view, expected) -> None:
        assert block_label(view) == expected
