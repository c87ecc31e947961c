"""Box geometry unit tests."""

import pytest

from inkora.core.geometry import (
    DisplayRect,
    Rect,
    ResizeHandle,
    handle_positions,
    hit_test_boxes,
    hit_test_handle,
    normalize_rect,
    point_in_box,
    resize_rect,
    to_logical_point,
)


# ===================
# Fixtures
# ===================


@pytest.fixture
def box():
    """200x100 box at (100, 100)."""
    return Rect(100, 100, 200, 100)


# ===================
# Coordinate transforms
# ===================


class TestToLogicalPoint:
    """Client to image coordinate conversion."""

    def test_should_map_identity_viewport(self):
        """A 1:1 display at the origin maps points unchanged."""
        rect = DisplayRect(0, 0, 400, 300)
        assert to_logical_point(120, 80, rect, (400, 300)) == (120, 80)

    def test_should_undo_offset_and_scale(self):
        """A half-size display offset by (10, 20) doubles the local offset."""
        rect = DisplayRect(10, 20, 200, 150)
        assert to_logical_point(110, 95, rect, (400, 300)) == (200, 150)

    def test_should_be_exact_at_one_to_one(self):
        rect = DisplayRect(0, 0, 400, 300)
        for value in range(0, 400):
            assert to_logical_point(value, value % 300, rect, (400, 300)) == (value, value % 300)

    def test_should_ignore_display_scale_argument(self):
        """The display rect already reflects zoom."""
        rect = DisplayRect(0, 0, 800, 600)
        assert to_logical_point(400, 300, rect, (400, 300), display_scale=2.0) == (200, 150)


class TestNormalizeRect:
    """Rectangles from drag gestures."""

    def test_should_normalize_reverse_drag(self):
        """Dragging up and left gives a positive size."""
        rect = normalize_rect((210, 60), (10, 10))
        assert rect == Rect(10, 10, 200, 50)

    def test_should_compute_right_and_bottom(self):
        rect = normalize_rect((10, 10), (30, 50))
        assert rect.right == 30
        assert rect.bottom == 50


# ===================
# Hit testing
# ===================


class TestPointInBox:
    """Containment."""

    def test_should_include_edges(self, box):
        assert point_in_box((100, 100), box)
        assert point_in_box((300, 200), box)

    def test_should_exclude_outside(self, box):
        assert not point_in_box((99.9, 150), box)
        assert not point_in_box((150, 200.1), box)


class TestHitTestHandle:
    """Resize handle detection."""

    def test_should_detect_se_corner_exactly(self, box):
        """A point exactly on the bottom-right corner is the se handle."""
        assert hit_test_handle((300, 200), box) == ResizeHandle.SE

    def test_should_detect_each_handle_at_its_center(self, box):
        for handle, point in handle_positions(box).items():
            assert hit_test_handle(point, box) == handle

    def test_should_use_strict_tolerance(self, box):
        """The distance must be strictly below the tolerance."""
        assert hit_test_handle((111.9, 100), box, tolerance=12) == ResizeHandle.NW
        assert hit_test_handle((112, 100), box, tolerance=12) is None

    def test_should_prefer_corners_on_small_boxes(self):
        """Corners are checked before edges when handles overlap."""
        small = Rect(0, 0, 10, 10)
        assert hit_test_handle((5, 0), small) == ResizeHandle.NW

    def test_should_return_none_inside_box(self, box):
        assert hit_test_handle((200, 150), box) is None


class TestHitTestBoxes:
    """Topmost box search."""

    def test_should_return_topmost_box(self):
        bottom = Rect(0, 0, 100, 100)
        top = Rect(50, 50, 100, 100)
        assert hit_test_boxes((75, 75), [bottom, top]) is top

    def test_should_return_lower_box_outside_top(self):
        bottom = Rect(0, 0, 100, 100)
        top = Rect(50, 50, 100, 100)
        assert hit_test_boxes((10, 10), [bottom, top]) is bottom

    def test_should_return_none_on_miss(self):
        assert hit_test_boxes((500, 500), [Rect(0, 0, 10, 10)]) is None


# ===================
# Resizing
# ===================


class TestResizeRect:
    """Handle drag rules."""

    def test_should_grow_from_se(self, box):
        assert resize_rect(box, ResizeHandle.SE, 50, 20) == Rect(100, 100, 250, 120)

    def test_should_move_origin_from_nw(self, box):
        assert resize_rect(box, ResizeHandle.NW, 30, 10) == Rect(130, 110, 170, 90)

    def test_should_only_change_height_from_n(self, box):
        assert resize_rect(box, ResizeHandle.N, 999, 30) == Rect(100, 130, 200, 70)

    def test_should_only_change_width_from_e(self, box):
        assert resize_rect(box, ResizeHandle.E, 40, 999) == Rect(100, 100, 240, 100)

    def test_should_keep_right_edge_when_left_hits_floor(self, box):
        """Shrinking past the floor from the left keeps the right edge fixed."""
        result = resize_rect(box, ResizeHandle.W, 500, 0, min_size=20)
        assert result.width == 20
        assert result.right == box.right

    def test_should_clamp_right_handle(self, box):
        result = resize_rect(box, ResizeHandle.SE, -1000, -1000, min_size=20)
        assert result == Rect(100, 100, 20, 20)

    def test_should_never_go_below_floor(self, box):
        """Any sequence of drags keeps both sides at or above the floor."""
        deltas = [(-150, -80), (40, -200), (-500, 300), (25, 25), (-30, -90), (600, -700)]
        rect = box
        for handle in ResizeHandle:
            for dx, dy in deltas:
                rect = resize_rect(rect, handle, dx, dy, min_size=20)
                assert rect.width >= 20
                assert rect.height >= 20
