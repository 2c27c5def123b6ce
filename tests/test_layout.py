"""Tests for treemap layout."""

import pytest

from diskmap.layout import DEFAULT_INSET, hit_test, layout
from diskmap.models import Rect, TreeNode


def leaves(*sizes):
    return [TreeNode.leaf(f"/r/n{i}", size) for i, size in enumerate(sizes)]


def frames(rects):
    return [(r.frame.x, r.frame.y, r.frame.width, r.frame.height) for r in rects]


class TestLayout:
    def test_two_nodes_without_inset(self):
        nodes = leaves(700, 300)
        rects = layout(nodes, Rect(width=100, height=100), inset=0)

        assert [r.node for r in rects] == nodes
        assert frames(rects) == [
            pytest.approx((0, 0, 70, 100)),
            pytest.approx((70, 0, 30, 100)),
        ]

    def test_two_nodes_with_default_inset(self):
        rects = layout(leaves(700, 300), Rect(width=100, height=100))

        assert DEFAULT_INSET == 2.0
        assert frames(rects) == [
            pytest.approx((2, 2, 66, 96)),
            pytest.approx((72, 2, 26, 96)),
        ]

    def test_single_node_fills_rect(self):
        rects = layout(leaves(5), Rect(x=10, y=20, width=50, height=30), inset=2)
        assert frames(rects) == [pytest.approx((12, 22, 46, 26))]

    def test_single_node_too_small_for_inset(self):
        assert layout(leaves(5), Rect(width=3, height=30), inset=2) == []

    def test_empty_input(self):
        assert layout([], Rect(width=100, height=100)) == []

    def test_zero_sized_nodes_dropped(self):
        nodes = leaves(0, 40, 0, 60)
        rects = layout(nodes, Rect(width=100, height=10), inset=0)

        assert [r.node for r in rects] == [nodes[1], nodes[3]]
        assert frames(rects) == [
            pytest.approx((0, 0, 40, 10)),
            pytest.approx((40, 0, 60, 10)),
        ]

    def test_all_zero(self):
        assert layout(leaves(0, 0), Rect(width=100, height=100)) == []

    def test_tall_rect_slices_vertically(self):
        rects = layout(leaves(1, 3), Rect(width=50, height=200), inset=0)
        assert frames(rects) == [
            pytest.approx((0, 0, 50, 50)),
            pytest.approx((0, 50, 50, 150)),
        ]

    def test_square_rect_slices_horizontally(self):
        rects = layout(leaves(1, 1), Rect(width=10, height=10), inset=0)
        assert frames(rects) == [pytest.approx((0, 0, 5, 10)), pytest.approx((5, 0, 5, 10))]

    def test_order_is_preserved(self):
        nodes = leaves(10, 50, 20, 80)
        rects = layout(nodes, Rect(width=160, height=40), inset=0)
        assert [r.node for r in rects] == nodes

    def test_strips_tile_parent_exactly(self):
        sizes = (313, 17, 29, 1000, 3, 251, 97)
        parent = Rect(x=7, y=3, width=333.3, height=91)
        rects = layout(leaves(*sizes), parent, inset=0)

        assert len(rects) == len(sizes)
        assert rects[0].frame.min_x == pytest.approx(parent.min_x)
        assert rects[-1].frame.max_x == pytest.approx(parent.max_x)
        for left, right in zip(rects, rects[1:]):
            assert right.frame.min_x == pytest.approx(left.frame.max_x)
        assert sum(r.frame.area for r in rects) == pytest.approx(parent.area)

    def test_area_proportional_to_size(self):
        sizes = (5, 15, 30, 50)
        parent = Rect(width=400, height=100)
        rects = layout(leaves(*sizes), parent, inset=0)

        total = sum(sizes)
        for rect, size in zip(rects, sizes):
            assert rect.frame.area == pytest.approx(parent.area * size / total)

    def test_frames_stay_inside_parent(self):
        parent = Rect(x=1, y=1, width=120, height=40)
        for rect in layout(leaves(9, 7, 5, 3, 1), parent):
            assert rect.frame.min_x >= parent.min_x
            assert rect.frame.min_y >= parent.min_y
            assert rect.frame.max_x <= parent.max_x + 1e-9
            assert rect.frame.max_y <= parent.max_y + 1e-9

    def test_slivers_dropped_after_inset(self):
        nodes = leaves(1000, 1)
        rects = layout(nodes, Rect(width=100, height=100), inset=2)
        assert [r.node for r in rects] == [nodes[0]]

    def test_directory_uses_total_size(self):
        folder = TreeNode.directory("/r/dir", children=leaves(30, 30))
        file = TreeNode.leaf("/r/file", 40)
        rects = layout([folder, file], Rect(width=100, height=10), inset=0)
        assert rects[0].frame.width == pytest.approx(60)

    def test_depth_recorded(self):
        rects = layout(leaves(1, 2, 3), Rect(width=100, height=100), depth=3)
        assert {r.depth for r in rects} == {3}

    def test_idempotent(self):
        nodes = leaves(3, 1, 4, 1, 5)
        rect = Rect(width=80, height=24)
        assert layout(nodes, rect) == layout(nodes, rect)


class TestHitTest:
    def test_finds_node_under_point(self):
        nodes = leaves(700, 300)
        rects = layout(nodes, Rect(width=100, height=100), inset=0)

        assert hit_test(rects, 10, 50) is nodes[0]
        assert hit_test(rects, 70, 50) is nodes[1]
        assert hit_test(rects, 99.5, 99.5) is nodes[1]

    def test_miss(self):
        rects = layout(leaves(700, 300), Rect(width=100, height=100))
        assert hit_test(rects, 1, 1) is None
        assert hit_test(rects, 69, 50) is None
        assert hit_test(rects, 500, 500) is None
        assert hit_test([], 0, 0) is None
