"""Detection pipeline: preprocess, generate, extract, fuse, select, map back."""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Tuple

import numpy as np

from docquad.detection.extractor import collect_quads
from docquad.detection.generators import DEFAULT_GENERATORS, GeneratorKind
from docquad.detection.geometry import ImageQuad
from docquad.detection.mapper import to_image_space
from docquad.detection.selector import fuse, rank, select_best
from docquad.observer import StageObserver
from docquad.preprocessing.normalizer import DEFAULT_TARGET_SIZE, prepare, to_rgb_uint8


@dataclass(frozen=True)
class DetectionConfig:
    """All tunable parameters in one place."""

    # Working resolution
    target_size: int = DEFAULT_TARGET_SIZE  # px, longest side

    # Quad validation
    min_area_ratio: float = 0.05
    max_area_ratio: float = 0.85
    border_margin: int = 5
    max_corner_cosine: float = 0.4

    # Extraction
    max_contours: int = 20
    approx_epsilons: Tuple[float, ...] = (0.02, 0.04)

    # Scoring
    min_edge_samples: int = 10

    # Strategies, run in this order
    generators: Tuple[GeneratorKind, ...] = DEFAULT_GENERATORS

    # Diagnostics: candidates reported to the observer alongside the winner
    ranked_count: int = 5

    def __post_init__(self) -> None:
        if self.target_size <= 0:
            raise ValueError(f"target_size must be positive, got {self.target_size}")
        if not 0.0 <= self.min_area_ratio < self.max_area_ratio <= 1.0:
            raise ValueError(
                f"Area bounds must satisfy 0 <= min < max <= 1, "
                f"got [{self.min_area_ratio}, {self.max_area_ratio}]"
            )
        if self.border_margin < 1:
            raise ValueError(f"border_margin must be at least 1, got {self.border_margin}")
        if not 0.0 < self.max_corner_cosine <= 1.0:
            raise ValueError(
                f"max_corner_cosine must be in (0, 1], got {self.max_corner_cosine}"
            )
        if self.max_contours < 1:
            raise ValueError(f"max_contours must be at least 1, got {self.max_contours}")
        if not self.approx_epsilons:
            raise ValueError("approx_epsilons must not be empty")
        if any(eps <= 0 for eps in self.approx_epsilons):
            raise ValueError(f"approx_epsilons must be positive, got {self.approx_epsilons}")
        if self.min_edge_samples < 1:
            raise ValueError(f"min_edge_samples must be at least 1, got {self.min_edge_samples}")
        if self.ranked_count < 0:
            raise ValueError(f"ranked_count must not be negative, got {self.ranked_count}")
        if not self.generators:
            raise ValueError("At least one generator is required")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DetectionConfig":
        """Build a config from plain values, e.g. parsed JSON or environment strings.

        Generators may be given as GeneratorKind members, labels, or one
        comma-separated string of labels.

        Raises:
            ValueError: On unknown keys or values that cannot be converted.
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"Unknown detection config keys: {', '.join(unknown)}")

        defaults = cls()
        values = {}
        for name, raw in data.items():
            if name == "generators":
                values[name] = _parse_generators(raw)
            elif name == "approx_epsilons":
                if isinstance(raw, str):
                    items = raw.split(",")
                elif isinstance(raw, (int, float)):
                    items = [raw]
                else:
                    items = raw
                values[name] = tuple(_parse_number(name, v, float) for v in items)
            else:
                values[name] = _parse_number(name, raw, type(getattr(defaults, name)))

        return cls(**values)


def _parse_number(name: str, raw: Any, kind: type) -> Any:
    """Convert one scalar setting, refusing lossy or boolean values."""
    if isinstance(raw, bool):
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if isinstance(raw, str):
        raw = raw.strip()
    try:
        value = kind(raw)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"{name} must be {kind.__name__}, got {raw!r}") from None
    if kind is int and isinstance(raw, float) and not raw.is_integer():
        raise ValueError(f"{name} must be a whole number, got {raw!r}")
    return value


def _parse_generators(raw: Any) -> Tuple[GeneratorKind, ...]:
    items = raw.split(",") if isinstance(raw, str) else raw
    return tuple(
        item if isinstance(item, GeneratorKind) else GeneratorKind.from_label(item)
        for item in items
        if not (isinstance(item, str) and not item.strip())
    )


class DocumentDetector:
    """Locates the document quadrilateral in one image per call.

    Holds only configuration; every call to detect is independent, so one
    detector can serve a background worker indefinitely.
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        observer: Optional[StageObserver] = None,
    ) -> None:
        """Initialize the detector.

        Args:
            config: Detection configuration. If None, uses defaults.
            observer: Receives stage progress and the outcome. If None, nothing is reported.
        """
        self.config = config or DetectionConfig()
        self.observer = observer or StageObserver()

    def detect(self, image: np.ndarray, color_order: str = "rgb") -> Optional[ImageQuad]:
        """Detect the document boundary.

        Args:
            image: Grayscale, 3-channel or 4-channel image of any size. uint8,
                uint16 or float [0, 1].
            color_order: "rgb" or "bgr" for color input.

        Returns:
            Four corners in original-image pixels ordered TL, TR, BR, BL, or
            None when no candidate survives validation.

        Raises:
            ValueError: If the image violates the input contract.
        """
        cfg = self.config
        working = prepare(to_rgb_uint8(image, color_order), cfg.target_size)
        self.observer.on_stage_completed("preprocess", 0)

        pool = []
        for kind in cfg.generators:
            for mask in kind.generate(working):
                pool.extend(collect_quads(
                    mask,
                    working,
                    kind,
                    min_area_ratio=cfg.min_area_ratio,
                    max_area_ratio=cfg.max_area_ratio,
                    border_margin=cfg.border_margin,
                    max_cosine=cfg.max_corner_cosine,
                    max_contours=cfg.max_contours,
                    epsilons=cfg.approx_epsilons,
                    min_edge_samples=cfg.min_edge_samples,
                ))
            self.observer.on_stage_completed(kind.value, len(pool))

        scored = fuse(pool, working.area)
        self.observer.on_stage_completed("fusion", len(scored))

        best = select_best(scored)
        self.observer.on_result(best, rank(scored, cfg.ranked_count), working.area)

        if best is None:
            return None

        return to_image_space(best.quad, working.scale_factor)


def detect_document(
    image: np.ndarray,
    config: Optional[DetectionConfig] = None,
    observer: Optional[StageObserver] = None,
    color_order: str = "rgb",
) -> Optional[ImageQuad]:
    """Detect the document quadrilateral in an image.

    Stateless convenience wrapper around DocumentDetector.detect.

    Returns:
        ImageQuad ordered TL, TR, BR, BL, or None if no document was found.
    """
    return DocumentDetector(config, observer).detect(image, color_order=color_order)
