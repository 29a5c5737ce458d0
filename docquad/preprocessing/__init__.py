"""Input adaptation: loading, canonicalizing and downsizing images."""

from docquad.preprocessing.loader import ImageMetadata, load_image
from docquad.preprocessing.normalizer import GradientMap, WorkingImage, prepare, to_rgb_uint8

__all__ = [
    "GradientMap",
    "ImageMetadata",
    "WorkingImage",
    "load_image",
    "prepare",
    "to_rgb_uint8",
]
