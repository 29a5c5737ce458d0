"""Image loading adapter for JPEG, PNG, TIFF, HEIC and DNG files.

Loading sits outside the detection core: it turns a file into the float32 RGB
array the detector accepts and rejects anything it cannot read.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

STANDARD_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.tiff', '.tif', '.bmp', '.webp')
HEIC_EXTENSIONS = ('.heic', '.heif')
RAW_EXTENSIONS = ('.dng', '.cr2', '.nef', '.arw')

SUPPORTED_EXTENSIONS = STANDARD_EXTENSIONS + HEIC_EXTENSIONS + RAW_EXTENSIONS


@dataclass
class ImageMetadata:
    """Metadata extracted from a loaded image."""

    original_size: Tuple[int, int]  # (width, height) after EXIF orientation
    format: str
    bit_depth: int


def _pil_to_rgb_array(img: Image.Image) -> np.ndarray:
    """Apply EXIF orientation and return float32 RGB [0, 1]."""
    img = ImageOps.exif_transpose(img)
    if img.mode != "RGB":
        img = img.convert("RGB")
    return np.asarray(img, dtype=np.float32) / 255.0


def _load_pil(path: Path, format_name: str) -> Tuple[np.ndarray, ImageMetadata]:
    with Image.open(path) as img:
        arr = _pil_to_rgb_array(img)

    metadata = ImageMetadata(
        original_size=(arr.shape[1], arr.shape[0]),
        format=format_name,
        bit_depth=8,
    )
    logger.info(f"Loaded {format_name}: {path} ({arr.shape[1]}x{arr.shape[0]})")
    return arr, metadata


def load_heic(path: Path) -> Tuple[np.ndarray, ImageMetadata]:
    """Load a HEIC/HEIF image through pillow-heif."""
    try:
        from pillow_heif import register_heif_opener
    except ImportError as e:
        raise ImportError(
            "pillow-heif is required for HEIC support. "
            "Install with: pip install 'docquad[heic]'"
        ) from e

    register_heif_opener()
    return _load_pil(path, "HEIC")


def load_raw(path: Path) -> Tuple[np.ndarray, ImageMetadata]:
    """Load a DNG/RAW image through rawpy, demosaiced to 16-bit sRGB."""
    try:
        import rawpy
    except ImportError as e:
        raise ImportError(
            "rawpy is required for DNG/RAW support. "
            "Install with: pip install 'docquad[raw]'"
        ) from e

    with rawpy.imread(str(path)) as raw:
        rgb = raw.postprocess(
            use_camera_wb=True,
            output_color=rawpy.ColorSpace.sRGB,
            output_bps=16,
        )

    arr = rgb.astype(np.float32) / 65535.0
    metadata = ImageMetadata(
        original_size=(arr.shape[1], arr.shape[0]),
        format="DNG",
        bit_depth=16,
    )
    logger.info(f"Loaded DNG: {path} ({arr.shape[1]}x{arr.shape[0]}, 16-bit)")
    return arr, metadata


def load_image(path: Union[str, Path]) -> Tuple[np.ndarray, ImageMetadata]:
    """Load an image file as float32 RGB [0, 1] with shape (H, W, 3).

    Args:
        path: Path to the image file.

    Returns:
        Tuple of (RGB array, metadata).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the extension is not supported.
    """
    path_obj = Path(path)

    if not path_obj.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    ext = path_obj.suffix.lower()

    if ext in HEIC_EXTENSIONS:
        return load_heic(path_obj)
    if ext in RAW_EXTENSIONS:
        return load_raw(path_obj)
    if ext in STANDARD_EXTENSIONS:
        return _load_pil(path_obj, ext.lstrip('.').upper())

    raise ValueError(f"Unsupported image format: {ext}")
