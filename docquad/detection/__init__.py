"""Document boundary detection: generators, extraction, scoring and selection."""

from docquad.detection.extractor import Candidate, collect_quads
from docquad.detection.generators import DEFAULT_GENERATORS, GeneratorKind, GeneratorSettings
from docquad.detection.geometry import ImageQuad, WorkingQuad, is_valid_quad, order_corners
from docquad.detection.mapper import default_region, to_image_space
from docquad.detection.scoring import edge_support
from docquad.detection.selector import fuse, rank, select_best, weighted_score

__all__ = [
    "Candidate",
    "DEFAULT_GENERATORS",
    "GeneratorKind",
    "GeneratorSettings",
    "ImageQuad",
    "WorkingQuad",
    "collect_quads",
    "default_region",
    "edge_support",
    "fuse",
    "is_valid_quad",
    "order_corners",
    "rank",
    "select_best",
    "to_image_space",
    "weighted_score",
]
