"""docquad - locate the quadrilateral boundary of a document in a photo."""

from docquad.detection.geometry import ImageQuad, WorkingQuad
from docquad.detection.generators import GeneratorKind
from docquad.detection.mapper import default_region
from docquad.observer import LoggingStageObserver, RecordingStageObserver, StageObserver
from docquad.pipeline import DetectionConfig, DocumentDetector, detect_document

__version__ = "0.1.0"

__all__ = [
    "DetectionConfig",
    "DocumentDetector",
    "GeneratorKind",
    "ImageQuad",
    "LoggingStageObserver",
    "RecordingStageObserver",
    "StageObserver",
    "WorkingQuad",
    "default_region",
    "detect_document",
]
