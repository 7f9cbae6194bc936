"""Essay answer quality assessment engine."""

from __future__ import annotations

from .concepts import KeyConceptCache
from .engine import EssayScoringEngine
from .errors import InvalidRequestError, ScoringConfigurationError
from .models import AssessmentRequest, AssessmentResult, QuestionMetadata

__all__ = [
    "AssessmentRequest",
    "AssessmentResult",
    "EssayScoringEngine",
    "InvalidRequestError",
    "KeyConceptCache",
    "QuestionMetadata",
    "ScoringConfigurationError",
]
