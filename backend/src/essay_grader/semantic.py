"""Meaning-overlap estimators behind a single strategy interface."""
from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Protocol

import numpy as np

from .config import SemanticSettings
from .models import KeyConceptSet
from .text import NormalizedText

logger = logging.getLogger(__name__)


class SimilarityEstimator(Protocol):
    """Returns a similarity in [0, 1] between a student and a reference answer."""

    name: str

    def similarity(self, student: NormalizedText, reference: NormalizedText, concepts: KeyConceptSet) -> float:
        ...


def shares_concepts(student: NormalizedText, concepts: KeyConceptSet) -> bool:
    return bool(student.token_set() & concepts.unigrams().keys())


class LexicalSimilarityEstimator:
    """Cosine over salience-weighted, synonym-canonicalized term vectors."""

    name = "lexical"

    def __init__(self, background_weight: float = 0.25) -> None:
        self.background_weight = background_weight

    def _weights(self, text: NormalizedText, salience: dict[str, float]) -> dict[str, float]:
        counts = Counter(text.tokens)
        return {
            term: (1 + math.log(count)) * salience.get(term, self.background_weight) for term, count in counts.items()
        }

    def similarity(self, student: NormalizedText, reference: NormalizedText, concepts: KeyConceptSet) -> float:
        if student.is_empty or reference.is_empty or not shares_concepts(student, concepts):
            return 0.0
        salience = {stem: concept.base_salience for stem, concept in concepts.unigrams().items()}
        student_weights = self._weights(student, salience)
        reference_weights = self._weights(reference, salience)
        terms = sorted(student_weights.keys() | reference_weights.keys())
        student_vector = np.array([student_weights.get(term, 0.0) for term in terms])
        reference_vector = np.array([reference_weights.get(term, 0.0) for term in terms])
        norm = float(np.linalg.norm(student_vector) * np.linalg.norm(reference_vector))
        if norm == 0:
            return 0.0
        return float(np.clip(student_vector @ reference_vector / norm, 0.0, 1.0))


def build_estimator(config: SemanticSettings | None = None) -> SimilarityEstimator:
    config = config or SemanticSettings()
    if config.strategy == "embedding":
        from .embeddings import EmbeddingSimilarityEstimator

        logger.info("Using embedding similarity with %s", config.embed_model)
        return EmbeddingSimilarityEstimator(model_name=config.embed_model)
    return LexicalSimilarityEstimator(background_weight=config.background_weight)
