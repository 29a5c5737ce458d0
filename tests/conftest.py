"""Shared synthetic images for detection tests."""

import numpy as np
import pytest


def make_document_canvas(
    width: int = 600,
    height: int = 800,
    doc_width_ratio: float = 0.6,
    doc_height_ratio: float = 0.7,
    bg_value: int = 255,
    doc_value: int = 128,
) -> tuple:
    """White canvas with a centered gray rectangle.

    Returns:
        (uint8 RGB image, true corners as (4, 2) int array ordered TL, TR, BR, BL)
    """
    image = np.full((height, width, 3), bg_value, dtype=np.uint8)

    doc_w = int(round(width * doc_width_ratio))
    doc_h = int(round(height * doc_height_ratio))
    x1 = (width - doc_w) // 2
    y1 = (height - doc_h) // 2
    x2 = x1 + doc_w
    y2 = y1 + doc_h
    image[y1:y2, x1:x2] = doc_value

    corners = np.array([[x1, y1], [x2, y1], [x2, y2], [x1, y2]], dtype=np.int32)
    return image, corners


@pytest.fixture
def document_canvas():
    """600x800 white canvas with a 60% x 70% centered gray document."""
    return make_document_canvas()


@pytest.fixture
def uniform_canvas():
    """Featureless 600x800 gray image."""
    return np.full((800, 600, 3), 200, dtype=np.uint8)


@pytest.fixture
def make_canvas():
    """Factory for custom document canvases, see make_document_canvas."""
    return make_document_canvas
