"""Sentence-embedding similarity using a HuggingFace model via LangChain."""
from __future__ import annotations

from functools import lru_cache
from typing import Any

import numpy as np
from langchain_community.embeddings import HuggingFaceEmbeddings

from .models import KeyConceptSet
from .semantic import shares_concepts
from .text import NormalizedText


class EmbeddingSimilarityEstimator:
    """Cosine similarity between normalized answer embeddings.

    Answers sharing no key concept with the reference still score zero so
    that a fluent off-topic essay cannot borrow credit from the embedding.
    """

    name = "embedding"

    def __init__(self, model_name: str | None = None, embedder: Any | None = None) -> None:
        if embedder is None:
            embedder = HuggingFaceEmbeddings(
                model_name=model_name or "sentence-transformers/all-MiniLM-L6-v2",
                encode_kwargs={"normalize_embeddings": True},
            )
        self.embedder = embedder
        self._embed = lru_cache(maxsize=512)(self._embed_uncached)

    def _embed_uncached(self, text: str) -> tuple[float, ...]:
        return tuple(self.embedder.embed_query(text))

    def similarity(self, student: NormalizedText, reference: NormalizedText, concepts: KeyConceptSet) -> float:
        if student.is_empty or reference.is_empty or not shares_concepts(student, concepts):
            return 0.0
        student_vector = np.array(self._embed(student.raw))
        reference_vector = np.array(self._embed(reference.raw))
        norm = float(np.linalg.norm(student_vector) * np.linalg.norm(reference_vector))
        if norm == 0:
            return 0.0
        return float(np.clip(student_vector @ reference_vector / norm, 0.0, 1.0))
