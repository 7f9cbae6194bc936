"""Alternate-form table and known terminology confusions.

Each group lists surface words that express the same idea in a model
answer; the first word is the group head. Stack/LIFO and queue/FIFO are
kept apart on purpose so that swapping them can be flagged as a
misconception rather than credited as a synonym.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable

SYNONYM_GROUPS: tuple[tuple[str, ...], ...] = (
    ("object", "instance", "entity"),
    ("class", "blueprint", "template"),
    ("method", "function", "procedure", "routine", "behaviour", "behavior", "behaviours", "behaviors"),
    ("attribute", "property", "properties", "field", "fields"),
    ("inheritance", "inherit", "inherits", "inheriting", "inherited", "subclass", "subclasses", "extend", "extends", "derive", "derives", "derived", "derivation"),
    ("encapsulation", "encapsulate", "encapsulates", "bundle", "bundles", "bundling", "wrap", "wraps"),
    ("polymorphism", "polymorphic", "override", "overrides", "overriding", "overridden"),
    ("abstraction", "abstract", "abstracts"),
    ("hide", "hides", "hiding", "hidden", "conceal", "conceals"),
    ("reuse", "reusable", "reusability", "reused"),
    ("parent", "superclass"),
    ("complex", "complicated", "intricate"),
    ("feature", "functionality", "capability", "capabilities"),
    ("paradigm", "approach"),
    ("data", "information"),
    ("allow", "allows", "enable", "enables", "permit", "permits"),
    ("show", "shows", "display", "displays", "expose", "exposes", "reveal", "reveals"),
    ("create", "creates", "build", "builds", "construct", "constructs", "instantiate", "instantiates"),
    ("important", "crucial", "essential", "vital"),
    ("produce", "produces", "generate", "generates", "yield", "yields"),
    ("sunlight", "light"),
    ("glucose", "sugar"),
    ("evaporation", "evaporate", "evaporates", "vaporise", "vaporize"),
    ("precipitation", "rainfall", "rain"),
)

# term -> descriptors that belong to a different, commonly conflated term
CONFUSION_PAIRS: dict[str, tuple[str, ...]] = {
    "stack": ("fifo",),
    "queue": ("lifo",),
    "mitosis": ("haploid", "gametes"),
    "tcp": ("connectionless",),
    "udp": ("handshake",),
    "virus": ("antibiotics",),
}


class SynonymTable:
    """Maps normalized word forms onto the head form of their group."""

    def __init__(self, normalize: Callable[[str], str], groups: Iterable[tuple[str, ...]] = SYNONYM_GROUPS) -> None:
        self._canonical: dict[str, str] = {}
        for group in groups:
            head = normalize(group[0])
            for word in group:
                self._canonical.setdefault(normalize(word), head)

    def canonical(self, form: str) -> str:
        return self._canonical.get(form, form)

    def __contains__(self, form: str) -> bool:
        return form in self._canonical

    def __len__(self) -> int:
        return len(self._canonical)
