"""Candidate fusion and selection."""

from dataclasses import replace
from typing import Iterable, List, Optional

from docquad.detection.extractor import Candidate


def weighted_score(candidate: Candidate, image_area: float) -> float:
    """Edge score scaled linearly by the candidate's area ratio.

    Larger quads are favoured while edge quality still separates
    similar-sized ones:
      - small sharp quad (7% area, edge 260):  260 * 0.07 = 18.2
      - real document   (40% area, edge 60):    60 * 0.40 = 24.0
    """
    return candidate.edge_score * candidate.area_ratio(image_area)


def fuse(pool: Iterable[Candidate], image_area: float) -> List[Candidate]:
    """Return the pooled candidates with their area-weighted score filled in."""
    return [replace(c, score=weighted_score(c, image_area)) for c in pool]


def select_best(scored: Iterable[Candidate]) -> Optional[Candidate]:
    """Highest-scoring candidate, or None for an empty pool.

    A single pass with a strict comparison, so on an exact tie the first
    candidate encountered wins.
    """
    best: Optional[Candidate] = None
    for candidate in scored:
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def rank(scored: Iterable[Candidate], limit: int = 5) -> List[Candidate]:
    """Top candidates by score, highest first. Stable for equal scores."""
    return sorted(scored, key=lambda c: c.score, reverse=True)[:limit]
