"""Mapping from working-image quads to original-image corners."""

import numpy as np

from docquad.detection.geometry import ImageQuad, WorkingQuad, order_corners

# Inset of the fallback region on each side, as a fraction of the image size.
DEFAULT_REGION_INSET = 0.15


def to_image_space(quad: WorkingQuad, scale_factor: float) -> ImageQuad:
    """Rescale a working-image quad to original pixels and order it TL, TR, BR, BL.

    Coordinates are divided by the preprocessor's scale factor and rounded
    half away from zero.
    """
    if scale_factor <= 0:
        raise ValueError(f"Scale factor must be positive, got {scale_factor}")

    scaled = quad.points.astype(np.float64) / scale_factor
    rounded = (np.sign(scaled) * np.floor(np.abs(scaled) + 0.5)).astype(np.int32)
    return ImageQuad(order_corners(rounded))


def default_region(width: int, height: int, inset: float = DEFAULT_REGION_INSET) -> ImageQuad:
    """Centered inset rectangle to show when no document was found.

    Args:
        width: Original image width.
        height: Original image height.
        inset: Fraction of each dimension left free on every side.

    Returns:
        ImageQuad ordered TL, TR, BR, BL.
    """
    if not 0.0 <= inset < 0.5:
        raise ValueError(f"Inset must be in [0, 0.5), got {inset}")

    left = int(round(width * inset))
    top = int(round(height * inset))
    right = int(round(width * (1 - inset)))
    bottom = int(round(height * (1 - inset)))

    return ImageQuad(np.array([
        [left, top],
        [right, top],
        [right, bottom],
        [left, bottom],
    ], dtype=np.int32))
