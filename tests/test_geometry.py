"""Tests for quad types and geometric validation."""

import numpy as np
import pytest

from docquad.detection.geometry import (
    ImageQuad,
    WorkingQuad,
    corner_cosine,
    count_border_corners,
    is_valid_quad,
    max_corner_cosine,
    order_corners,
)

# Working image used by the validation tests
WIDTH, HEIGHT = 600, 450
AREA = float(WIDTH * HEIGHT)


def _valid(points) -> bool:
    return is_valid_quad(np.array(points), AREA, WIDTH, HEIGHT)


class TestOrderCorners:
    """Test corner ordering utility."""

    def test_already_ordered(self) -> None:
        pts = np.array([[10, 10], [90, 10], [90, 90], [10, 90]], dtype=np.int32)
        ordered = order_corners(pts)
        np.testing.assert_array_equal(ordered[0], [10, 10])  # TL
        np.testing.assert_array_equal(ordered[1], [90, 10])  # TR
        np.testing.assert_array_equal(ordered[2], [90, 90])  # BR
        np.testing.assert_array_equal(ordered[3], [10, 90])  # BL

    def test_shuffled_corners(self) -> None:
        pts = np.array([[90, 90], [10, 10], [10, 90], [90, 10]], dtype=np.int32)
        ordered = order_corners(pts)
        np.testing.assert_array_equal(ordered, [[10, 10], [90, 10], [90, 90], [10, 90]])

    def test_moderately_rotated(self) -> None:
        # Square rotated by roughly 15 degrees
        pts = np.array([[130, 60], [60, 110], [10, 40], [80, -10]], dtype=np.int32)
        ordered = order_corners(pts)
        np.testing.assert_array_equal(ordered[0], [10, 40])
        np.testing.assert_array_equal(ordered[1], [80, -10])
        np.testing.assert_array_equal(ordered[2], [130, 60])
        np.testing.assert_array_equal(ordered[3], [60, 110])

    def test_preserves_dtype(self) -> None:
        pts = np.array([[0.5, 0.5], [9.5, 0.5], [9.5, 9.5], [0.5, 9.5]], dtype=np.float32)
        assert order_corners(pts).dtype == np.float32


class TestCornerCosine:
    """Test corner angle measurement."""

    def test_right_angle(self) -> None:
        cos = corner_cosine(np.array([10, 0]), np.array([0, 10]), np.array([0, 0]))
        assert cos == pytest.approx(0.0, abs=1e-9)

    def test_sixty_degrees(self) -> None:
        p1 = np.array([10.0, 0.0])
        p2 = np.array([5.0, 5.0 * np.sqrt(3.0)])
        cos = corner_cosine(p1, p2, np.array([0.0, 0.0]))
        assert cos == pytest.approx(0.5, abs=1e-6)

    def test_rectangle_max_cosine_is_zero(self) -> None:
        rect = np.array([[0, 0], [40, 0], [40, 20], [0, 20]])
        assert max_corner_cosine(rect) == pytest.approx(0.0, abs=1e-9)

    def test_parallelogram_max_cosine(self) -> None:
        skewed = np.array([[100, 100], [400, 100], [550, 350], [250, 350]])
        expected = 150.0 / np.hypot(150.0, 250.0)
        assert max_corner_cosine(skewed) == pytest.approx(expected, abs=1e-6)


class TestBorderCorners:
    """Test border-corner counting."""

    def test_interior_quad(self) -> None:
        pts = np.array([[100, 100], [500, 100], [500, 350], [100, 350]])
        assert count_border_corners(pts, WIDTH, HEIGHT) == 0

    def test_margin_is_inclusive(self) -> None:
        pts = np.array([[5, 100], [594, 100], [500, 444], [100, 6]])
        # x=5 <= 5, x=594 >= 600-5-1, y=444 >= 450-5-1; y=6 is inside
        assert count_border_corners(pts, WIDTH, HEIGHT) == 3


class TestIsValidQuad:
    """Test the candidate invariants."""

    def test_plain_rectangle_accepted(self) -> None:
        assert _valid([[100, 100], [500, 100], [500, 350], [100, 350]])

    def test_too_small_rejected(self) -> None:
        assert not _valid([[100, 100], [150, 100], [150, 150], [100, 150]])

    def test_too_large_rejected(self) -> None:
        assert not _valid([[10, 10], [590, 10], [590, 440], [10, 440]])

    def test_non_convex_rejected(self) -> None:
        assert not _valid([[100, 100], [500, 100], [300, 200], [100, 350]])

    def test_two_border_corners_accepted(self) -> None:
        assert _valid([[3, 100], [300, 100], [300, 350], [3, 350]])

    def test_three_border_corners_rejected(self) -> None:
        assert not _valid([[3, 3], [300, 3], [300, 350], [3, 350]])

    def test_skewed_corners_rejected(self) -> None:
        assert not _valid([[100, 100], [400, 100], [550, 350], [250, 350]])

    def test_mild_skew_accepted(self) -> None:
        # |cos| ~= 0.37 at the sharpest corner
        assert _valid([[100, 100], [400, 100], [500, 350], [200, 350]])

    def test_custom_bounds(self) -> None:
        small = np.array([[100, 100], [150, 100], [150, 150], [100, 150]])
        assert is_valid_quad(small, AREA, WIDTH, HEIGHT, min_area_ratio=0.005)


class TestQuadTypes:
    """Test the coordinate-space quad types."""

    def test_working_quad_is_read_only(self) -> None:
        quad = WorkingQuad(np.array([[[1, 2]], [[3, 4]], [[5, 6]], [[7, 8]]]))
        assert quad.points.shape == (4, 2)
        with pytest.raises(ValueError):
            quad.points[0, 0] = 99

    def test_image_quad_accessors(self) -> None:
        quad = ImageQuad(np.array([[1, 2], [30, 2], [30, 40], [1, 40]]))
        assert quad.top_left == (1, 2)
        assert quad.top_right == (30, 2)
        assert quad.bottom_right == (30, 40)
        assert quad.bottom_left == (1, 40)
        assert quad.as_list() == [[1, 2], [30, 2], [30, 40], [1, 40]]

    def test_image_quad_equality(self) -> None:
        a = ImageQuad(np.array([[1, 2], [30, 2], [30, 40], [1, 40]]))
        b = ImageQuad([[1, 2], [30, 2], [30, 40], [1, 40]])
        c = ImageQuad([[0, 2], [30, 2], [30, 40], [1, 40]])
        assert a == b
        assert a != c

    def test_image_quad_rejects_wrong_shape(self) -> None:
        with pytest.raises(ValueError):
            ImageQuad(np.zeros((3, 2)))
