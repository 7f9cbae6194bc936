"""The five quality dimensions an essay answer is scored on.

Every scorer returns a ratio in [0, 1] for its own dimension plus the
finer-grained metrics it measured. Scorers never look at each other's
results; the aggregator combines them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from statistics import mean
from typing import Protocol

from .models import (
    CONTENT_ACCURACY,
    CRITICAL_THINKING,
    SEMANTIC_UNDERSTANDING,
    TECHNICAL_PRECISION,
    WRITING_QUALITY,
    AssessmentRequest,
    KeyConcept,
    KeyConceptSet,
)
from .semantic import SimilarityEstimator
from .synonyms import CONFUSION_PAIRS
from .text import WORD_RE, LexicalNormalizer, NormalizedText, Sentence


@dataclass(frozen=True, slots=True)
class ScoringContext:
    request: AssessmentRequest
    student: NormalizedText
    reference: NormalizedText
    concepts: KeyConceptSet
    normalizer: LexicalNormalizer


@dataclass(frozen=True, slots=True)
class DimensionOutcome:
    ratio: float
    metrics: dict[str, float] = field(default_factory=dict)
    notes: tuple[str, ...] = ()


class DimensionScorer(Protocol):
    name: str

    def score(self, context: ScoringContext) -> DimensionOutcome:
        ...


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def concept_stems(concepts: KeyConceptSet) -> set[str]:
    return set(concepts.unigrams())


def contains_phrase(words: tuple[str, ...], phrase: tuple[str, ...]) -> bool:
    size = len(phrase)
    return any(words[index : index + size] == phrase for index in range(len(words) - size + 1))


class ContentAccuracyScorer:
    """Salience-weighted coverage of the reference's key concepts."""

    name = CONTENT_ACCURACY

    def score(self, context: ScoringContext) -> DimensionOutcome:
        total = context.concepts.total_weight
        if total <= 0 or context.student.is_empty:
            return DimensionOutcome(0.0, {"keywordCoverage": 0.0, "matchedConcepts": 0})
        tokens = context.student.token_set()
        sentence_sets = [set(sentence.tokens) for sentence in context.student.sentences]
        covered = 0.0
        matched = 0
        for concept in context.concepts:
            if concept.is_phrase:
                present = any(all(stem in sentence for stem in concept.stems) for sentence in sentence_sets)
            else:
                present = concept.stems[0] in tokens
            if present:
                covered += concept.weight
                matched += 1
        coverage = clamp(covered / total)
        return DimensionOutcome(coverage, {"keywordCoverage": coverage, "matchedConcepts": matched})


class SemanticUnderstandingScorer:
    """Paraphrase-tolerant meaning overlap, delegated to a similarity estimator."""

    name = SEMANTIC_UNDERSTANDING

    def __init__(self, estimator: SimilarityEstimator) -> None:
        self.estimator = estimator

    def score(self, context: ScoringContext) -> DimensionOutcome:
        similarity = clamp(self.estimator.similarity(context.student, context.reference, context.concepts))
        stems = concept_stems(context.concepts)
        sentences = context.student.sentences
        on_topic = sum(1 for sentence in sentences if stems.intersection(sentence.tokens))
        consistency = on_topic / len(sentences) if sentences else 0.0
        return DimensionOutcome(similarity, {"semanticSimilarity": similarity, "topicConsistency": consistency})


GIBBERISH_PATTERNS = (
    re.compile(r"(.)\1{3,}"),
    re.compile(r"[a-z]{3,}[0-9]{3,}"),
)
KEYBOARD_ROWS = ("qwertyuiop", "asdfghjkl", "zxcvbnm")
KEYBOARD_RUN = 5
VOWELS = frozenset("aeiouy")
# shorter vowel-less words are usually lowercase acronyms (html, http, https)
NO_VOWEL_MIN = 6


def _keyboard_run(word: str) -> bool:
    for start in range(len(word) - KEYBOARD_RUN + 1):
        window = word[start : start + KEYBOARD_RUN]
        if any(window in row or window in row[::-1] for row in KEYBOARD_ROWS):
            return True
    return False


def looks_like_gibberish(word: str, known: frozenset[str] | set[str] = frozenset()) -> bool:
    """Flag keyboard mashing and random strings; words from ``known`` never count."""

    if word.isupper() or word.isdigit():
        return False
    lowered = word.lower()
    if lowered in known:
        return False
    if len(lowered) > 25:
        return True
    if len(lowered) >= NO_VOWEL_MIN and not VOWELS.intersection(lowered):
        return True
    return _keyboard_run(lowered) or any(pattern.search(lowered) for pattern in GIBBERISH_PATTERNS)


class WritingQualityScorer:
    """Surface-form quality, independent of whether the content is right."""

    name = WRITING_QUALITY

    IDEAL_MIN_WORDS = 8
    IDEAL_MAX_WORDS = 30
    FRAGMENT_WORDS = 3
    RUN_ON_WORDS = 50
    DIVERSITY_TARGET = 0.6

    def _length_score(self, average: float) -> float:
        if average < self.IDEAL_MIN_WORDS:
            return average / self.IDEAL_MIN_WORDS
        if average > self.IDEAL_MAX_WORDS:
            return clamp(1 - (average - self.IDEAL_MAX_WORDS) / self.IDEAL_MAX_WORDS)
        return 1.0

    @staticmethod
    def _capitalised(sentence: Sentence) -> bool:
        for char in sentence.text:
            if char.isalpha():
                return char.isupper()
            if char.isdigit():
                return True
        return False

    def score(self, context: ScoringContext) -> DimensionOutcome:
        sentences = context.student.sentences
        if not sentences:
            return DimensionOutcome(0.0, {"sentenceStructure": 0.0, "grammar": 0.0, "vocabulary": 0.0})

        counts = [sentence.word_count for sentence in sentences]
        length = self._length_score(mean(counts))
        formed = sum(1 for count in counts if self.FRAGMENT_WORDS <= count <= self.RUN_ON_WORDS) / len(counts)

        tokens = context.student.tokens
        diversity = clamp(len(set(tokens)) / len(tokens) / self.DIVERSITY_TARGET) if tokens else 0.0

        capitalised = sum(1 for sentence in sentences if self._capitalised(sentence)) / len(sentences)
        terminated = 1.0 if context.student.raw.rstrip()[-1] in ".!?" else 0.0
        mechanics = 0.7 * capitalised + 0.3 * terminated

        originals = [word for sentence in sentences for word in WORD_RE.findall(sentence.text)]
        known = set(context.reference.words)
        gibberish = sum(1 for word in originals if looks_like_gibberish(word, known)) / len(originals)

        ratio = (0.30 * length + 0.25 * formed + 0.25 * diversity + 0.20 * mechanics) * (1 - gibberish)
        return DimensionOutcome(
            clamp(ratio),
            {
                "sentenceStructure": (0.30 * length + 0.25 * formed) / 0.55,
                "grammar": mechanics * (1 - gibberish),
                "vocabulary": diversity,
                "gibberish": gibberish,
            },
        )


EXAMPLE_MARKERS: tuple[tuple[str, ...], ...] = (
    ("for", "example"),
    ("for", "instance"),
    ("such", "as"),
    ("eg",),
    ("example",),
    ("consider",),
    ("imagine",),
)
CONNECTIVES = frozenset(
    {
        "because", "therefore", "however", "unlike", "whereas", "although", "though", "thus", "hence",
        "consequently", "since", "but", "so", "instead", "similarly", "conversely", "otherwise",
    }
)
ORDINALS = frozenset({"first", "firstly", "second", "secondly", "third", "thirdly", "finally", "lastly", "next"})
NUMBERED_ITEM_RE = re.compile(r"(?:^|\s|\()\d{1,2}[.)](?=\s)")
BULLET_RE = re.compile(r"^\s*[-*•]\s+\S", re.MULTILINE)


class CriticalThinkingScorer:
    """Rhetorical markers of analysis, counted only where the answer is on topic."""

    name = CRITICAL_THINKING

    REFERENCE_FLOOR = 0.5

    def strength(self, text: NormalizedText, concepts: KeyConceptSet) -> tuple[float, dict[str, float]]:
        stems = concept_stems(concepts)
        relevant = [sentence for sentence in text.sentences if stems.intersection(sentence.tokens)]
        if not relevant:
            return 0.0, {"examples": 0, "connectives": 0, "enumerated": 0, "relationalSentences": 0}

        examples = sum(
            1 for sentence in relevant if any(contains_phrase(sentence.words, marker) for marker in EXAMPLE_MARKERS)
        )
        connectives = {word for sentence in relevant for word in sentence.words if word in CONNECTIVES}
        ordinals = {word for sentence in relevant for word in sentence.words if word in ORDINALS}
        listed = len(NUMBERED_ITEM_RE.findall(text.raw)) + len(BULLET_RE.findall(text.raw))
        enumerated = listed >= 2 or len(ordinals) >= 2
        relational = sum(1 for sentence in relevant if len(stems.intersection(sentence.tokens)) >= 2)

        total = 0.0
        if examples:
            total += min(0.35, 0.25 + 0.10 * (examples - 1))
        total += min(0.30, 0.10 * len(connectives))
        if enumerated:
            total += 0.20
        total += 0.40 * relational / max(len(text.sentences), 3)
        return clamp(total), {
            "examples": examples,
            "connectives": len(connectives),
            "enumerated": int(enumerated),
            "relationalSentences": relational,
        }

    def score(self, context: ScoringContext) -> DimensionOutcome:
        student_strength, metrics = self.strength(context.student, context.concepts)
        reference_strength, _ = self.strength(context.reference, context.concepts)
        target = max(reference_strength, self.REFERENCE_FLOOR)
        return DimensionOutcome(clamp(student_strength / target), {**metrics, "signalStrength": student_strength})


NEGATORS = frozenset(
    {"not", "no", "never", "cannot", "cant", "dont", "doesnt", "isnt", "arent", "wont", "neither", "nor", "without"}
)
CLAUSE_BREAK_RE = re.compile(r"[,;:()]|\b(?:and|but|while|whereas|whilst)\b", re.IGNORECASE)


class TechnicalPrecisionChecker:
    """Correct and consistent use of the reference's terminology.

    A misused term costs half its weight, so an answer that misapplies a
    term scores below one that simply leaves it out.
    """

    name = TECHNICAL_PRECISION

    MISUSE_PENALTY = 0.5
    IDENTICAL_THRESHOLD = 0.75
    MIN_DESCRIPTION_TOKENS = 3

    def _terms(self, context: ScoringContext) -> list[KeyConcept]:
        terms = context.concepts.technical_terms()
        if terms:
            return terms
        return [concept for concept in context.concepts if not concept.is_phrase]

    def _confusions(self, context: ScoringContext, present: set[str]) -> dict[str, str]:
        normalizer = context.normalizer
        found: dict[str, str] = {}
        for term, descriptors in CONFUSION_PAIRS.items():
            term_key = normalizer.canonical(term)
            if term_key not in present:
                continue
            descriptor_keys = {normalizer.canonical(descriptor) for descriptor in descriptors}
            for sentence in context.student.sentences:
                if term_key not in sentence.tokens:
                    continue
                for clause in CLAUSE_BREAK_RE.split(sentence.text):
                    clause_tokens = set(normalizer.normalize(clause).tokens)
                    hits = descriptor_keys & clause_tokens
                    if term_key in clause_tokens and hits:
                        found[term_key] = "confused"
                        for hit in hits:
                            found[hit] = "confused"
        return found

    def _identical(self, context: ScoringContext, terms: set[str]) -> dict[str, str]:
        descriptions: dict[str, set[str]] = {}
        for sentence in context.student.sentences:
            mentioned = terms.intersection(sentence.tokens)
            if len(mentioned) != 1:
                continue
            (term,) = mentioned
            descriptions.setdefault(term, set()).update(set(sentence.tokens) - terms)
        found: dict[str, str] = {}
        ordered = sorted(descriptions)
        for index, left in enumerate(ordered):
            for right in ordered[index + 1 :]:
                a, b = descriptions[left], descriptions[right]
                if min(len(a), len(b)) < self.MIN_DESCRIPTION_TOKENS:
                    continue
                if len(a & b) / len(a | b) >= self.IDENTICAL_THRESHOLD:
                    found[left] = found[right] = "indistinct"
        return found

    @staticmethod
    def _negated(sentence: Sentence, normalizer: LexicalNormalizer) -> set[str]:
        """Content stems that directly follow a negating word within one clause."""

        negated: set[str] = set()
        for clause in CLAUSE_BREAK_RE.split(sentence.text):
            pending = False
            for word in (word.lower() for word in WORD_RE.findall(clause)):
                if word in NEGATORS:
                    pending = True
                elif pending and normalizer.is_content_word(word):
                    negated.add(normalizer.canonical(word))
                    pending = False
        return negated

    def _contradictions(self, context: ScoringContext, terms: set[str]) -> dict[str, str]:
        stems = concept_stems(context.concepts)
        found: dict[str, str] = {}
        for sentence in context.student.sentences:
            negated = self._negated(sentence, context.normalizer)
            if not negated:
                continue
            for term in terms.intersection(sentence.tokens):
                claims = [ref for ref in context.reference.sentences if term in ref.tokens]
                if not claims or any(NEGATORS.intersection(ref.words) for ref in claims):
                    continue
                supporting = (stems & negated) - {term}
                if any(supporting.intersection(ref.tokens) for ref in claims):
                    found[term] = "contradicted"
        return found

    def score(self, context: ScoringContext) -> DimensionOutcome:
        terms = self._terms(context)
        total = sum(term.weight for term in terms)
        if total <= 0 or context.student.is_empty:
            return DimensionOutcome(0.0, {"terminologyCoverage": 0.0, "misusedTerms": 0})

        present = context.student.token_set()
        term_keys = {term.stems[0] for term in terms}
        misused: dict[str, str] = {}
        misused.update(self._contradictions(context, term_keys & present))
        misused.update(self._identical(context, term_keys & present))
        misused.update(self._confusions(context, present))

        credit = 0.0
        used = 0.0
        for term in terms:
            key = term.stems[0]
            if key in misused:
                credit -= self.MISUSE_PENALTY * term.weight
            elif key in present:
                credit += term.weight
                used += term.weight

        surfaces = context.student.surfaces
        notes = tuple(sorted(surfaces.get(key, key).lower() for key in misused))
        return DimensionOutcome(
            clamp(credit / total),
            {"terminologyCoverage": used / total, "misusedTerms": len(misused)},
            notes,
        )
