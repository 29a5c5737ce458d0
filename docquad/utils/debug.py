"""Debug visualization and output utilities."""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from docquad.detection.geometry import ImageQuad
from docquad.preprocessing.normalizer import to_rgb_uint8

logger = logging.getLogger(__name__)

DETECTED_COLOR = (0, 255, 0)
FALLBACK_COLOR = (255, 160, 0)


def draw_quad(
    image: np.ndarray,
    quad: ImageQuad,
    color: Tuple[int, int, int] = DETECTED_COLOR,
    label: Optional[str] = None,
) -> np.ndarray:
    """Draw a quad outline with corner markers on a copy of the image.

    Args:
        image: Gray, RGB or RGBA image as uint8, uint16 or float [0, 1].
        quad: Corners in the image's own pixel coordinates.
        color: RGB line color.
        label: Optional text drawn in the top-left corner.

    Returns:
        Annotated uint8 RGB image.
    """
    # to_rgb_uint8 may hand back the caller's array
    canvas = to_rgb_uint8(image).copy()
    thickness = max(2, int(max(canvas.shape[:2]) / 300))
    pts = np.array(quad.points, dtype=np.int32).reshape(-1, 1, 2)

    cv2.polylines(canvas, [pts], isClosed=True, color=color, thickness=thickness)
    for x, y in quad.points:
        cv2.circle(canvas, (int(x), int(y)), thickness * 3, color, -1)

    if label:
        cv2.putText(canvas, label, (20, 40), cv2.FONT_HERSHEY_SIMPLEX, 1.0, color, 2)

    return canvas


def save_debug_image(
    image: np.ndarray,
    output_path: Union[str, Path],
    description: Optional[str] = None,
    quality: int = 95
) -> Path:
    """Save an RGB debug image, always as JPEG for easy viewing.

    Args:
        image: Gray, RGB or RGBA image as uint8, uint16 or float [0, 1]
        output_path: Destination; the suffix is forced to .jpg
        description: Optional description to log
        quality: JPEG quality (0-100)

    Returns:
        The path actually written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.suffix.lower() not in ['.jpg', '.jpeg']:
        output_path = output_path.with_suffix('.jpg')

    img_bgr = cv2.cvtColor(to_rgb_uint8(image), cv2.COLOR_RGB2BGR)
    cv2.imwrite(str(output_path), img_bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])

    if description:
        logger.debug(f"Saved debug image: {output_path} - {description}")
    else:
        logger.debug(f"Saved debug image: {output_path}")

    return output_path
