"""Image normalization: canonical RGB input, working resolution and gradient map."""

import logging
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Longest side of the working image. All detection runs at this size.
DEFAULT_TARGET_SIZE = 600


@dataclass(frozen=True, eq=False)
class GradientMap:
    """Per-pixel gradient magnitude of the grayscale working image.

    The array is read-only; every scorer shares the same instance.
    """

    magnitude: np.ndarray  # float32 (H, W)

    @classmethod
    def from_gray(cls, gray: np.ndarray) -> "GradientMap":
        """Build the map from Sobel x/y derivatives combined as Euclidean magnitude."""
        grad_x = cv2.Sobel(gray, cv2.CV_32F, 1, 0)
        grad_y = cv2.Sobel(gray, cv2.CV_32F, 0, 1)
        magnitude = cv2.magnitude(grad_x, grad_y)
        magnitude.flags.writeable = False
        return cls(magnitude=magnitude)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.magnitude.shape[:2]


@dataclass(eq=False)
class WorkingImage:
    """Downscaled copy of the input on which every detection step runs."""

    image: np.ndarray  # uint8 RGB (H, W, 3)
    scale_factor: float  # working / original
    original_size: Tuple[int, int]  # (width, height)
    gradient: GradientMap

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def area(self) -> float:
        return float(self.width * self.height)


def to_rgb_uint8(image: np.ndarray, color_order: str = "rgb") -> np.ndarray:
    """Convert an input array to 3-channel RGB uint8.

    Args:
        image: Grayscale (H, W) or (H, W, 1), color (H, W, 3) or (H, W, 4).
            uint8 is used as is, uint16 is scaled down, floats are treated as [0, 1].
        color_order: Channel order of color input, "rgb" or "bgr". A fourth
            channel is dropped.

    Returns:
        Contiguous uint8 RGB array of shape (H, W, 3).

    Raises:
        ValueError: If the array is empty, has an unsupported channel count,
            or color_order is unknown.
    """
    if color_order not in ("rgb", "bgr"):
        raise ValueError(f"Unknown color order: {color_order!r}. Use 'rgb' or 'bgr'.")

    if image is None or image.size == 0 or image.ndim not in (2, 3):
        raise ValueError("Expected a non-empty 2-D or 3-D image array")

    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError(f"Image has zero area: shape={image.shape}")

    if image.dtype == np.uint8:
        img_uint8 = image
    elif image.dtype == np.uint16:
        img_uint8 = (image // 257).astype(np.uint8)
    elif np.issubdtype(image.dtype, np.floating):
        img_uint8 = (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    else:
        raise ValueError(f"Unsupported image dtype: {image.dtype}")

    if img_uint8.ndim == 2 or img_uint8.shape[2] == 1:
        gray = img_uint8.reshape(img_uint8.shape[0], img_uint8.shape[1])
        return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)

    channels = img_uint8.shape[2]
    if channels == 3:
        rgb = img_uint8 if color_order == "rgb" else cv2.cvtColor(img_uint8, cv2.COLOR_BGR2RGB)
    elif channels == 4:
        code = cv2.COLOR_RGBA2RGB if color_order == "rgb" else cv2.COLOR_BGRA2RGB
        rgb = cv2.cvtColor(img_uint8, code)
    else:
        raise ValueError(f"Unsupported number of channels: {channels}")

    return np.ascontiguousarray(rgb)


def prepare(image: np.ndarray, target_size: int = DEFAULT_TARGET_SIZE) -> WorkingImage:
    """Downscale an RGB uint8 image to the working resolution and compute its gradient map.

    Images whose longer side is already within target_size are copied, never upscaled.

    Args:
        image: RGB uint8 array (H, W, 3), as returned by to_rgb_uint8.
        target_size: Maximum length of the working image's longer side.

    Returns:
        WorkingImage holding the downscaled image, its scale factor and gradient map.
    """
    height, width = image.shape[:2]
    longest = max(height, width)

    if longest > target_size:
        scale_factor = target_size / longest
        working = cv2.resize(
            image,
            None,
            fx=scale_factor,
            fy=scale_factor,
            interpolation=cv2.INTER_AREA,
        )
        logger.debug(
            f"Resized image from {width}x{height} to {working.shape[1]}x{working.shape[0]} "
            f"(scale: {scale_factor:.4f})"
        )
    else:
        scale_factor = 1.0
        working = image.copy()
        logger.debug(f"Image {width}x{height} within working resolution, no resize needed")

    gray = cv2.cvtColor(working, cv2.COLOR_RGB2GRAY)

    return WorkingImage(
        image=working,
        scale_factor=scale_factor,
        original_size=(width, height),
        gradient=GradientMap.from_gray(gray),
    )
