"""Quad types and geometric sanity checks.

Two coordinate spaces are kept apart by type: WorkingQuad lives on the
downscaled working image, ImageQuad on the caller's original image. Only
mapper.to_image_space turns one into the other.
"""

from dataclasses import dataclass
from typing import List, Tuple

import cv2
import numpy as np

# Corners within this many pixels of the frame count as "on the border".
BORDER_MARGIN = 5


@dataclass(frozen=True, eq=False)
class WorkingQuad:
    """Four integer vertices in working-image pixels, in contour order."""

    points: np.ndarray  # int32 (4, 2)

    def __post_init__(self) -> None:
        pts = np.asarray(self.points, dtype=np.int32).reshape(4, 2)
        pts.flags.writeable = False
        object.__setattr__(self, "points", pts)


@dataclass(frozen=True, eq=False)
class ImageQuad:
    """Four integer corners in original-image pixels, ordered TL, TR, BR, BL."""

    points: np.ndarray  # int32 (4, 2)

    def __post_init__(self) -> None:
        pts = np.asarray(self.points, dtype=np.int32).reshape(4, 2)
        pts.flags.writeable = False
        object.__setattr__(self, "points", pts)

    @property
    def top_left(self) -> Tuple[int, int]:
        return int(self.points[0, 0]), int(self.points[0, 1])

    @property
    def top_right(self) -> Tuple[int, int]:
        return int(self.points[1, 0]), int(self.points[1, 1])

    @property
    def bottom_right(self) -> Tuple[int, int]:
        return int(self.points[2, 0]), int(self.points[2, 1])

    @property
    def bottom_left(self) -> Tuple[int, int]:
        return int(self.points[3, 0]), int(self.points[3, 1])

    def as_list(self) -> List[List[int]]:
        """Corners as plain [[x, y], ...] lists, e.g. for JSON output."""
        return self.points.tolist()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageQuad):
            return NotImplemented
        return bool(np.array_equal(self.points, other.points))

    __hash__ = None


def order_corners(pts: np.ndarray) -> np.ndarray:
    """Order four corner points as: top-left, top-right, bottom-right, bottom-left.

    TL has the smallest x+y, BR the largest; TR has the smallest y-x, BL the
    largest. Robust to arbitrary input order and moderate rotation.

    Args:
        pts: Array of shape (4, 2) with (x, y) coordinates.

    Returns:
        Ordered array of shape (4, 2), same dtype as the input.
    """
    pts = np.asarray(pts).reshape(4, 2)
    s = pts.sum(axis=1)
    d = np.diff(pts, axis=1).flatten()

    ordered = np.zeros_like(pts)
    ordered[0] = pts[np.argmin(s)]   # top-left
    ordered[1] = pts[np.argmin(d)]   # top-right
    ordered[2] = pts[np.argmax(s)]   # bottom-right
    ordered[3] = pts[np.argmax(d)]   # bottom-left

    return ordered


def corner_cosine(p1: np.ndarray, p2: np.ndarray, p0: np.ndarray) -> float:
    """Cosine of the angle at p0 between the edges p0->p1 and p0->p2."""
    dx1, dy1 = float(p1[0] - p0[0]), float(p1[1] - p0[1])
    dx2, dy2 = float(p2[0] - p0[0]), float(p2[1] - p0[1])
    return (dx1 * dx2 + dy1 * dy2) / np.sqrt(
        (dx1 * dx1 + dy1 * dy1) * (dx2 * dx2 + dy2 * dy2) + 1e-10
    )


def max_corner_cosine(points: np.ndarray) -> float:
    """Largest |cos| over all four corners of a quad."""
    pts = np.asarray(points).reshape(4, 2)
    return max(
        abs(corner_cosine(pts[(i - 1) % 4], pts[(i + 1) % 4], pts[i]))
        for i in range(4)
    )


def count_border_corners(points: np.ndarray, width: int, height: int,
                         margin: int = BORDER_MARGIN) -> int:
    """Number of corners lying within margin pixels of the image frame."""
    pts = np.asarray(points).reshape(4, 2)
    x, y = pts[:, 0], pts[:, 1]
    on_border = (
        (x <= margin)
        | (y <= margin)
        | (x >= width - margin - 1)
        | (y >= height - margin - 1)
    )
    return int(np.count_nonzero(on_border))


def is_valid_quad(
    points: np.ndarray,
    image_area: float,
    width: int,
    height: int,
    min_area_ratio: float = 0.05,
    max_area_ratio: float = 0.85,
    border_margin: int = BORDER_MARGIN,
    max_cosine: float = 0.4,
) -> bool:
    """Check a 4-vertex polygon against the document-candidate invariants.

    A quad is accepted when its area lies within the ratio bounds, it is
    convex, fewer than three corners sit on the image border, and every
    corner is close to a right angle (|cos| below max_cosine).
    """
    pts = np.asarray(points, dtype=np.int32).reshape(4, 2)

    area = cv2.contourArea(pts)
    if area < image_area * min_area_ratio or area > image_area * max_area_ratio:
        return False

    if not cv2.isContourConvex(pts):
        return False

    if count_border_corners(pts, width, height, border_margin) >= 3:
        return False

    return max_corner_cosine(pts) < max_cosine
