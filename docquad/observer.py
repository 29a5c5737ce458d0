"""Stage observers for the detection pipeline.

The detector reports progress through an injected observer instead of
logging from inside the pipeline, so a detection call has no side effects
beyond what the caller plugs in.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from docquad.detection.extractor import Candidate

logger = logging.getLogger(__name__)


class StageObserver:
    """Receives pipeline progress. The base class ignores everything."""

    def on_stage_completed(self, stage: str, candidate_count: int) -> None:
        """Called after each stage with the size of the candidate pool so far."""

    def on_result(
        self,
        best: Optional["Candidate"],
        ranked: Sequence["Candidate"],
        image_area: float,
    ) -> None:
        """Called once with the winning candidate (None if the pool was empty)."""


class LoggingStageObserver(StageObserver):
    """Writes stages at DEBUG and the outcome at INFO through the logging module."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def on_stage_completed(self, stage: str, candidate_count: int) -> None:
        self.log.debug(f"after {stage}: {candidate_count} candidates")

    def on_result(self, best, ranked, image_area) -> None:
        if best is None:
            self.log.info("No document boundary found")
            return

        self.log.info(
            f"Document detected via {best.source.value}: score={best.score:.1f}, "
            f"area_ratio={best.area_ratio(image_area):.3f}, "
            f"edge_score={best.edge_score:.1f}"
        )
        for i, candidate in enumerate(ranked, 1):
            self.log.debug(
                f"  top{i}: score={candidate.score:.1f} "
                f"area={candidate.area_ratio(image_area) * 100:.1f}% "
                f"source={candidate.source.value}"
            )


class RecordingStageObserver(StageObserver):
    """Keeps every reported stage in memory."""

    def __init__(self) -> None:
        self.stages: List[Tuple[str, int]] = []
        self.best: Optional["Candidate"] = None
        self.ranked: List["Candidate"] = []

    def on_stage_completed(self, stage: str, candidate_count: int) -> None:
        self.stages.append((stage, candidate_count))

    def on_result(self, best, ranked, image_area) -> None:
        self.best = best
        self.ranked = list(ranked)

    @property
    def stage_names(self) -> List[str]:
        return [name for name, _ in self.stages]
