"""Lexical normalization shared by every scorer."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

from nltk.stem import PorterStemmer

from .config import TextSettings
from .synonyms import SynonymTable

STOP_WORDS = frozenset(
    """
    a about above after again against all also am an and any are as at be because been before being below
    between both but by can could did do does doing done down during each either else etc even ever every few
    for from further had has have having he her here hers herself him himself his how however i if in into is
    it its itself just let lets like may me might more most much must my myself neither no nor not now of off
    often on once only or other others otherwise our ours ourselves out over own per quite rather really same
    shall she should since so some such than that thats the their theirs them themselves then there therefore
    these they thing things this those though through thus to too under until up upon us use used uses using
    very via was we well were what whatever when where whereas whether which while who whom whose why will
    with within without would yet you your yours yourself yourselves
    eg ie vs
    explain explains describe describes discuss discusses define defines outline briefly
    first firstly second secondly third thirdly finally lastly
    dont doesnt didnt isnt arent wasnt werent cant cannot wont im ive youre
    """.split()
)

WORD_RE = re.compile(r"[A-Za-z0-9]+")
SENTENCE_BREAK_RE = re.compile(r"(?<=[A-Za-z)\]\"'][.!?])\s+|\n+")
APOSTROPHE_RE = re.compile(r"['’‘`]")
ABBREVIATIONS = (
    (re.compile(r"\be\.g\.", re.IGNORECASE), "eg"),
    (re.compile(r"\bi\.e\.", re.IGNORECASE), "ie"),
    (re.compile(r"\bvs\.", re.IGNORECASE), "vs"),
)

_stemmer = PorterStemmer()


@lru_cache(maxsize=16384)
def stem(word: str) -> str:
    return _stemmer.stem(word)


@dataclass(frozen=True, slots=True)
class Sentence:
    text: str
    words: tuple[str, ...]
    tokens: tuple[str, ...]

    @property
    def word_count(self) -> int:
        return len(self.words)


@dataclass(frozen=True, slots=True)
class NormalizedText:
    raw: str
    sentences: tuple[Sentence, ...] = ()
    bigrams: tuple[tuple[str, str], ...] = ()
    surfaces: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.sentences

    @property
    def tokens(self) -> list[str]:
        return [token for sentence in self.sentences for token in sentence.tokens]

    @property
    def words(self) -> list[str]:
        return [word for sentence in self.sentences for word in sentence.words]

    def token_set(self) -> set[str]:
        return set(self.tokens)


class LexicalNormalizer:
    """Tokenizes text into sentences, words and canonical content stems."""

    def __init__(self, config: TextSettings | None = None) -> None:
        self.config = config or TextSettings()
        self.synonyms = SynonymTable(self.reduce)

    def reduce(self, word: str) -> str:
        word = word.lower()
        return stem(word) if self.config.stem else word

    def is_content_word(self, word: str) -> bool:
        return len(word) >= self.config.min_token_length and not word.isdigit() and word not in STOP_WORDS

    def canonical(self, word: str) -> str:
        return self.synonyms.canonical(self.reduce(word))

    def split_sentences(self, text: str) -> list[str]:
        for pattern, replacement in ABBREVIATIONS:
            text = pattern.sub(replacement, text)
        return [part.strip() for part in SENTENCE_BREAK_RE.split(text) if part and part.strip()]

    def normalize(self, text: str | None) -> NormalizedText:
        raw = (text or "").strip()
        if not raw:
            return NormalizedText(raw="")

        sentences: list[Sentence] = []
        bigrams: list[tuple[str, str]] = []
        surfaces: dict[str, str] = {}
        for chunk in self.split_sentences(APOSTROPHE_RE.sub("", raw)):
            originals = WORD_RE.findall(chunk)
            if not originals:
                continue
            words = tuple(word.lower() for word in originals)
            tokens: list[str] = []
            previous: str | None = None
            for original, word in zip(originals, words, strict=True):
                if not self.is_content_word(word):
                    previous = None
                    continue
                token = self.canonical(word)
                surfaces.setdefault(token, original)
                tokens.append(token)
                if previous is not None and previous != token:
                    bigrams.append((previous, token))
                previous = token
            sentences.append(Sentence(text=chunk, words=words, tokens=tuple(tokens)))

        return NormalizedText(raw=raw, sentences=tuple(sentences), bigrams=tuple(bigrams), surfaces=surfaces)
