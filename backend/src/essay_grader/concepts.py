"""Reference key-concept extraction and the per-question concept cache."""
from __future__ import annotations

import hashlib
import logging
import math
import threading
from collections import Counter, OrderedDict
from collections.abc import Callable

from .config import ConceptSettings
from .models import KeyConcept, KeyConceptSet
from .observability import CONCEPT_CACHE
from .synonyms import CONFUSION_PAIRS
from .text import LexicalNormalizer, NormalizedText

logger = logging.getLogger(__name__)

TECHNICAL_SUFFIXES = ("tion", "sion", "ism", "ity", "ology", "ance", "ence", "ment")


def looks_technical(surface: str) -> bool:
    """Acronyms, terminology suffixes and long words are treated as domain terms."""

    if len(surface) >= 2 and surface.isalpha() and surface.isupper():
        return True
    lowered = surface.lower()
    return lowered.endswith(TECHNICAL_SUFFIXES) or len(lowered) >= 10


class KeyConceptExtractor:
    """Builds the weighted concept set that defines a correct answer."""

    def __init__(self, normalizer: LexicalNormalizer, config: ConceptSettings | None = None) -> None:
        self.normalizer = normalizer
        self.config = config or ConceptSettings()
        self.known_terms = {normalizer.canonical(term) for term in CONFUSION_PAIRS}

    def extract(self, reference: NormalizedText, question_text: str = "") -> KeyConceptSet:
        question = self.normalizer.normalize(question_text)
        question_tokens = question.token_set()
        question_pairs = {frozenset(bigram) for bigram in question.bigrams}

        tokens = reference.tokens
        counts = Counter(tokens)
        first_seen: dict[str, int] = {}
        for index, token in enumerate(tokens):
            first_seen.setdefault(token, index)

        ranked: list[tuple[float, float, KeyConcept]] = []
        for token, position in first_seen.items():
            surface = reference.surfaces.get(token, token)
            technical_form = looks_technical(surface)
            in_question = token in question_tokens
            base = 1.0
            if in_question:
                base *= self.config.question_boost
            if technical_form:
                base *= self.config.technical_boost
            weight = round((1 + math.log(counts[token])) * base, 4)
            concept = KeyConcept(
                stems=(token,),
                surface=surface,
                weight=weight,
                base_salience=round(base, 4),
                technical=technical_form or token in self.known_terms or (in_question and len(surface) >= 5),
            )
            ranked.append((weight, float(position), concept))

        bigram_counts = Counter(reference.bigrams)
        for bigram in dict.fromkeys(reference.bigrams):
            in_question = frozenset(bigram) in question_pairs
            if bigram_counts[bigram] < 2 and not in_question:
                continue
            base = self.config.question_boost if in_question else 1.0
            weight = round((1 + math.log(bigram_counts[bigram])) * base, 4)
            surface = " ".join(reference.surfaces.get(stem, stem) for stem in bigram)
            concept = KeyConcept(stems=bigram, surface=surface, weight=weight, base_salience=round(base, 4))
            ranked.append((weight, first_seen[bigram[0]] + 0.5, concept))

        ranked.sort(key=lambda item: (-item[0], item[1]))
        concepts = tuple(concept for _, _, concept in ranked[: self.config.max_concepts])
        logger.debug("Extracted %d key concepts from %d reference tokens", len(concepts), len(tokens))
        return KeyConceptSet(concepts=concepts)


class KeyConceptCache:
    """Read-through cache of concept sets, computed at most once per key.

    Instances are injected into the engine so tests and isolated scoring
    runs can use their own cache.
    """

    def __init__(self, max_entries: int = 1024) -> None:
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, KeyConceptSet] = OrderedDict()
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    @staticmethod
    def key_for(reference_answer: str, question_text: str = "", fingerprint: str = "") -> str:
        """Key a concept set by its inputs and the settings it was extracted under."""

        digest = hashlib.sha256()
        digest.update(fingerprint.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(reference_answer.strip().encode("utf-8"))
        digest.update(b"\x00")
        digest.update(question_text.strip().encode("utf-8"))
        return digest.hexdigest()

    def _lookup(self, key: str) -> KeyConceptSet | None:
        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            logger.debug("Concept cache hit for %s", key[:12])
            CONCEPT_CACHE.labels("hit").inc()
        return cached

    def get_or_compute(self, key: str, factory: Callable[[], KeyConceptSet]) -> KeyConceptSet:
        with self._lock:
            cached = self._lookup(key)
            if cached is not None:
                return cached
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                cached = self._lookup(key)
                if cached is not None:
                    return cached
            try:
                value = factory()
            except Exception:
                with self._lock:
                    self._key_locks.pop(key, None)
                raise
            with self._lock:
                self.misses += 1
                logger.debug("Concept cache miss for %s", key[:12])
                CONCEPT_CACHE.labels("miss").inc()
                self._entries[key] = value
                self._key_locks.pop(key, None)
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
