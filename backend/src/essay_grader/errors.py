"""Exceptions raised before an answer can be scored.

Scorer failures never surface as exceptions: the engine degrades the
affected dimension instead. The errors here mean the request itself is
unusable and must be fixed by the caller.
"""
from __future__ import annotations


class ScoringConfigurationError(ValueError):
    """The question is not configured well enough to grade against."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class InvalidRequestError(ValueError):
    """A request field has a value the engine does not understand."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")
