"""Quad extraction from binary masks.

Every generator's masks go through the same routine: outer contours, largest
first, approximated to polygons at two tolerances; 4-vertex polygons that pass
the geometric checks become scored Candidates.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import cv2
import numpy as np

from docquad.detection.generators import GeneratorKind
from docquad.detection.geometry import BORDER_MARGIN, WorkingQuad, is_valid_quad
from docquad.detection.scoring import MIN_EDGE_SAMPLES, edge_support
from docquad.preprocessing.normalizer import WorkingImage

# Only the largest contours of each mask are approximated.
MAX_CONTOURS = 20

# Polygon approximation tolerances as fractions of the contour perimeter.
APPROX_EPSILONS = (0.02, 0.04)


@dataclass(frozen=True, eq=False)
class Candidate:
    """A validated quad proposed by one generator."""

    quad: WorkingQuad
    area: float  # working-image pixels
    edge_score: float  # mean gradient magnitude along the boundary
    source: GeneratorKind
    score: float = field(default=0.0)  # area-weighted score, set by fusion

    def area_ratio(self, image_area: float) -> float:
        return self.area / image_area


def clear_border(mask: np.ndarray, margin: int = BORDER_MARGIN) -> np.ndarray:
    """Copy of mask with a margin-wide frame zeroed, so no contour spans the frame."""
    clean = mask.copy()
    clean[:margin, :] = 0
    clean[-margin:, :] = 0
    clean[:, :margin] = 0
    clean[:, -margin:] = 0
    return clean


def collect_quads(
    mask: np.ndarray,
    working: WorkingImage,
    source: GeneratorKind,
    min_area_ratio: float = 0.05,
    max_area_ratio: float = 0.85,
    border_margin: int = BORDER_MARGIN,
    max_cosine: float = 0.4,
    max_contours: int = MAX_CONTOURS,
    epsilons: Sequence[float] = APPROX_EPSILONS,
    min_edge_samples: int = MIN_EDGE_SAMPLES,
) -> List[Candidate]:
    """Extract scored quad candidates from one binary mask.

    Args:
        mask: Binary uint8 mask (0/255) with the working image's dimensions.
        working: Working image; supplies dimensions, area and gradient map.
        source: Generator that produced the mask, recorded on each candidate.
        min_area_ratio: Lower area bound as fraction of the working image area.
        max_area_ratio: Upper area bound as fraction of the working image area.
        border_margin: Width of the zeroed frame and of the border-corner test.
        max_cosine: Upper bound (exclusive) on |cos| at every corner.
        max_contours: Number of largest contours examined.
        epsilons: Approximation tolerances, tried in order for every contour.
        min_edge_samples: Minimum samples per side for edge scoring.

    Returns:
        Candidates in extraction order; empty when nothing passes.
    """
    clean = clear_border(mask, border_margin)
    contours, _ = cv2.findContours(clean, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    if not contours:
        return []

    contours = sorted(contours, key=cv2.contourArea, reverse=True)[:max_contours]
    perimeters = [cv2.arcLength(contour, True) for contour in contours]

    candidates: List[Candidate] = []
    for eps in epsilons:
        for contour, peri in zip(contours, perimeters):
            approx = cv2.approxPolyDP(contour, eps * peri, True)
            if len(approx) != 4:
                continue

            points = approx.reshape(4, 2)
            if not is_valid_quad(
                points,
                working.area,
                working.width,
                working.height,
                min_area_ratio=min_area_ratio,
                max_area_ratio=max_area_ratio,
                border_margin=border_margin,
                max_cosine=max_cosine,
            ):
                continue

            candidates.append(Candidate(
                quad=WorkingQuad(points),
                area=float(cv2.contourArea(points)),
                edge_score=edge_support(points, working.gradient, min_edge_samples),
                source=source,
            ))

    return candidates
