from .assessment import AssessmentOrchestrator
from .listener import AssessmentListener
from .segments import normalize_segments, slugify
from .stages import SEGMENT_STAGES, SEGMENTATION_STAGE, StageDefinition

__all__ = [
    "AssessmentOrchestrator",
    "AssessmentListener",
    "normalize_segments",
    "slugify",
    "SEGMENT_STAGES",
    "SEGMENTATION_STAGE",
    "StageDefinition",
]
