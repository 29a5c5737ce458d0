"""Candidate mask generators.

Six independent segmentation strategies each turn the working image into one
or more binary masks. No single method is robust across lighting, background
texture and document colour, so every strategy proposes quads and a shared
validator and scorer judge them all the same way.

- MULTI_CHANNEL: per RGB channel, one Canny pass and six intensity thresholds.
- MORPH_GRADIENT: dilation minus erosion on a median-blurred gray image.
- SATURATION: Otsu split of the HSV saturation channel, both polarities.
- COLOR_DISTANCE: distance from the mean colour of the image border.
- LAB_EDGES: Canny on each Lab channel at three sensitivities, OR-ed.
- CLAHE_EDGES: Canny after local contrast equalization at three sensitivities.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Tuple

import cv2
import numpy as np

from docquad.preprocessing.normalizer import WorkingImage


@dataclass(frozen=True)
class GeneratorSettings:
    """Transform parameters of one generator. Unused fields stay at their defaults."""

    mask_count: int
    blur_kernel: int = 0
    canny_lows: Tuple[int, ...] = ()
    canny_ratio: float = 3.0
    threshold_levels: int = 0
    kernel_sizes: Tuple[int, ...] = ()
    close_kernel: int = 0
    close_iterations: int = 0
    open_kernel: int = 0
    open_iterations: int = 0
    dilate_kernel: int = 0
    clahe_clip_limit: float = 0.0
    clahe_grid_size: int = 0
    border_step: int = 0


class GeneratorKind(Enum):
    """Closed set of mask-generation strategies, iterated in declaration order."""

    MULTI_CHANNEL = "multi_channel"
    MORPH_GRADIENT = "morph_gradient"
    SATURATION = "saturation"
    COLOR_DISTANCE = "color_distance"
    LAB_EDGES = "lab_edges"
    CLAHE_EDGES = "clahe_edges"

    @property
    def settings(self) -> GeneratorSettings:
        return GENERATOR_SETTINGS[self]

    @property
    def mask_count(self) -> int:
        return self.settings.mask_count

    def generate(self, working: WorkingImage) -> List[np.ndarray]:
        """Produce this strategy's binary uint8 masks (0/255) for the working image."""
        return _MASK_BUILDERS[self](working.image, self.settings)

    @classmethod
    def from_label(cls, label: str) -> "GeneratorKind":
        try:
            return cls(label.strip().lower())
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown generator: {label!r}. Use one of: {valid}") from None


GENERATOR_SETTINGS: Dict[GeneratorKind, GeneratorSettings] = {
    GeneratorKind.MULTI_CHANNEL: GeneratorSettings(
        mask_count=21,
        canny_lows=(20,),
        canny_ratio=4.0,
        threshold_levels=6,
        dilate_kernel=3,
    ),
    GeneratorKind.MORPH_GRADIENT: GeneratorSettings(
        mask_count=2,
        blur_kernel=7,
        kernel_sizes=(3, 5),
        close_kernel=3,
        close_iterations=2,
    ),
    GeneratorKind.SATURATION: GeneratorSettings(
        mask_count=2,
        blur_kernel=7,
        close_kernel=9,
        close_iterations=3,
        open_kernel=5,
        open_iterations=1,
    ),
    GeneratorKind.COLOR_DISTANCE: GeneratorSettings(
        mask_count=1,
        close_kernel=9,
        close_iterations=3,
        border_step=2,
    ),
    GeneratorKind.LAB_EDGES: GeneratorSettings(
        mask_count=3,
        blur_kernel=5,
        canny_lows=(10, 25, 45),
        canny_ratio=3.0,
        dilate_kernel=5,
    ),
    GeneratorKind.CLAHE_EDGES: GeneratorSettings(
        mask_count=3,
        blur_kernel=5,
        canny_lows=(20, 40, 70),
        canny_ratio=2.5,
        dilate_kernel=5,
        clahe_clip_limit=3.0,
        clahe_grid_size=8,
    ),
}

DEFAULT_GENERATORS: Tuple[GeneratorKind, ...] = tuple(GeneratorKind)


def _rect(size: int) -> np.ndarray:
    return cv2.getStructuringElement(cv2.MORPH_RECT, (size, size))


def _ellipse(size: int) -> np.ndarray:
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))


def _otsu(channel: np.ndarray, inverse: bool = False) -> np.ndarray:
    mode = cv2.THRESH_BINARY_INV if inverse else cv2.THRESH_BINARY
    _, binary = cv2.threshold(channel, 0, 255, mode | cv2.THRESH_OTSU)
    return binary


def _multi_channel_masks(image: np.ndarray, settings: GeneratorSettings) -> List[np.ndarray]:
    h, w = image.shape[:2]
    # Pyramid down and up again: a light blur that suppresses sensor noise
    filtered = cv2.pyrUp(cv2.pyrDown(image), dstsize=(w, h))

    low = settings.canny_lows[0]
    high = low * settings.canny_ratio
    dilate_elem = _rect(settings.dilate_kernel)
    step_count = settings.threshold_levels + 1

    masks: List[np.ndarray] = []
    for channel in cv2.split(filtered):
        edges = cv2.Canny(channel, low, high, apertureSize=3)
        masks.append(cv2.dilate(edges, dilate_elem))

        for level in range(1, step_count):
            cutoff = level * 255 // step_count
            masks.append(np.where(channel >= cutoff, 255, 0).astype(np.uint8))

    return masks


def _morph_gradient_masks(image: np.ndarray, settings: GeneratorSettings) -> List[np.ndarray]:
    gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    blurred = cv2.medianBlur(gray, settings.blur_kernel)
    close_elem = _rect(settings.close_kernel)

    masks: List[np.ndarray] = []
    for size in settings.kernel_sizes:
        elem = _rect(size)
        gradient = cv2.subtract(cv2.dilate(blurred, elem), cv2.erode(blurred, elem))
        binary = _otsu(gradient)
        masks.append(
            cv2.morphologyEx(binary, cv2.MORPH_CLOSE, close_elem,
                             iterations=settings.close_iterations)
        )

    return masks


def _saturation_masks(image: np.ndarray, settings: GeneratorSettings) -> List[np.ndarray]:
    hsv = cv2.cvtColor(image, cv2.COLOR_RGB2HSV)
    k = settings.blur_kernel
    saturation = cv2.GaussianBlur(cv2.split(hsv)[1], (k, k), 0)

    close_elem = _rect(settings.close_kernel)
    open_elem = _rect(settings.open_kernel)

    masks: List[np.ndarray] = []
    # Document may be the less or the more saturated region
    for inverse in (True, False):
        binary = _otsu(saturation, inverse=inverse)
        cleaned = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, close_elem,
                                   iterations=settings.close_iterations)
        cleaned = cv2.morphologyEx(cleaned, cv2.MORPH_OPEN, open_elem,
                                   iterations=settings.open_iterations)
        masks.append(cleaned)

    return masks


def _border_mean_color(image: np.ndarray, step: int) -> np.ndarray:
    """Mean colour of every step-th pixel along the four image edges."""
    h, w = image.shape[:2]
    samples = [
        image[0, 0:w:step],
        image[h - 1, 0:w:step],
        image[1:h - 1:step, 0],
        image[1:h - 1:step, w - 1],
    ]
    return np.concatenate(samples, axis=0).astype(np.float64).mean(axis=0)


def _color_distance_masks(image: np.ndarray, settings: GeneratorSettings) -> List[np.ndarray]:
    background = _border_mean_color(image, settings.border_step)

    diff = image.astype(np.float32) - background.astype(np.float32)
    dist = np.sqrt(np.sum(diff ** 2, axis=2))
    dist_u8 = cv2.normalize(dist, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

    binary = _otsu(dist_u8)
    binary = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, _rect(settings.close_kernel),
                              iterations=settings.close_iterations)
    return [binary]


def _lab_edge_masks(image: np.ndarray, settings: GeneratorSettings) -> List[np.ndarray]:
    lab = cv2.cvtColor(image, cv2.COLOR_RGB2LAB)
    k = settings.blur_kernel
    channels = [cv2.GaussianBlur(ch, (k, k), 0) for ch in cv2.split(lab)]
    dilate_elem = _ellipse(settings.dilate_kernel)

    masks: List[np.ndarray] = []
    for low in settings.canny_lows:
        high = low * settings.canny_ratio
        combined = np.zeros(image.shape[:2], dtype=np.uint8)
        for ch in channels:
            combined = cv2.bitwise_or(combined, cv2.Canny(ch, low, high))
        masks.append(cv2.dilate(combined, dilate_elem))

    return masks


def _clahe_edge_masks(image: np.ndarray, settings: GeneratorSettings) -> List[np.ndarray]:
    gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    grid = settings.clahe_grid_size
    clahe = cv2.createCLAHE(clipLimit=settings.clahe_clip_limit, tileGridSize=(grid, grid))
    enhanced = clahe.apply(gray)

    k = settings.blur_kernel
    dilate_elem = _ellipse(settings.dilate_kernel)

    masks: List[np.ndarray] = []
    for low in settings.canny_lows:
        blurred = cv2.GaussianBlur(enhanced, (k, k), 0)
        edges = cv2.Canny(blurred, low, low * settings.canny_ratio)
        masks.append(cv2.dilate(edges, dilate_elem))

    return masks


_MASK_BUILDERS: Dict[GeneratorKind, Callable[[np.ndarray, GeneratorSettings], List[np.ndarray]]] = {
    GeneratorKind.MULTI_CHANNEL: _multi_channel_masks,
    GeneratorKind.MORPH_GRADIENT: _morph_gradient_masks,
    GeneratorKind.SATURATION: _saturation_masks,
    GeneratorKind.COLOR_DISTANCE: _color_distance_masks,
    GeneratorKind.LAB_EDGES: _lab_edge_masks,
    GeneratorKind.CLAHE_EDGES: _clahe_edge_masks,
}
