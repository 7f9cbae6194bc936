"""Centralized configuration and scoring policy for the essay grader."""
from __future__ import annotations

import math
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DOTENV_PATH = Path(__file__).resolve().parents[2] / ".env"
if DOTENV_PATH.exists():
    load_dotenv(dotenv_path=DOTENV_PATH, override=False)
else:
    load_dotenv()


class Paths(BaseModel):
    project_root: Path = Field(default=Path(__file__).resolve().parents[2])
    data_dir: Path = Field(default=Path("data"))
    samples_path: Path = Field(default=Path("sample_data/sample_answers.json"))


class TextSettings(BaseModel):
    stem: bool = Field(default=True)
    min_token_length: int = Field(default=2, ge=1)


class ConceptSettings(BaseModel):
    max_concepts: int = Field(default=40, ge=1)
    question_boost: float = Field(default=1.5, ge=1.0)
    technical_boost: float = Field(default=1.25, ge=1.0)
    cache_max_entries: int = Field(default=1024, ge=1)


class SemanticSettings(BaseModel):
    strategy: Literal["lexical", "embedding"] = Field(default="lexical")
    background_weight: float = Field(default=0.25, ge=0.0)
    embed_model: str = Field(default="sentence-transformers/all-MiniLM-L6-v2")


class DimensionWeights(BaseModel):
    content_accuracy: float = Field(default=0.30, ge=0.0)
    semantic_understanding: float = Field(default=0.25, ge=0.0)
    writing_quality: float = Field(default=0.15, ge=0.0)
    critical_thinking: float = Field(default=0.15, ge=0.0)
    technical_precision: float = Field(default=0.15, ge=0.0)

    @model_validator(mode="after")
    def _sum_to_one(self) -> "DimensionWeights":
        total = sum(self.as_dict().values())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"dimension weights must sum to 1.0, got {total:.4f}")
        return self

    def as_dict(self) -> dict[str, float]:
        return {
            "content_accuracy": self.content_accuracy,
            "semantic_understanding": self.semantic_understanding,
            "writing_quality": self.writing_quality,
            "critical_thinking": self.critical_thinking,
            "technical_precision": self.technical_precision,
        }


class GradeBand(BaseModel):
    min_percentage: float = Field(ge=0.0, le=100.0)
    grade: str
    band: str


class AssessmentLabel(BaseModel):
    min_percentage: float = Field(ge=0.0, le=100.0)
    label: str


def _default_grade_bands() -> list[GradeBand]:
    return [
        GradeBand(min_percentage=90, grade="A", band="Excellent"),
        GradeBand(min_percentage=75, grade="B", band="Good"),
        GradeBand(min_percentage=60, grade="C", band="Satisfactory"),
        GradeBand(min_percentage=40, grade="D", band="Weak"),
        GradeBand(min_percentage=0, grade="F", band="Poor"),
    ]


def _default_assessment_labels() -> list[AssessmentLabel]:
    tiers = [
        (90, "Expert Level Answer"),
        (80, "Excellent Answer"),
        (70, "Very Good Answer"),
        (60, "Good Answer"),
        (50, "Satisfactory Answer"),
        (40, "Basic Answer"),
        (30, "Poor Answer"),
        (20, "Very Poor Answer"),
        (0, "Inadequate Answer"),
    ]
    return [AssessmentLabel(min_percentage=floor, label=label) for floor, label in tiers]


class ScoringPolicy(BaseModel):
    """Tunable grading policy: weights, band cutoffs and rounding."""

    weights: DimensionWeights = DimensionWeights()
    grade_bands: list[GradeBand] = Field(default_factory=_default_grade_bands)
    assessment_labels: list[AssessmentLabel] = Field(default_factory=_default_assessment_labels)
    neutral_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    score_precision: int = Field(default=0, ge=0, le=4)

    @field_validator("grade_bands")
    @classmethod
    def _bands_cover_zero(cls, value: list[GradeBand]) -> list[GradeBand]:
        if not value or min(band.min_percentage for band in value) > 0:
            raise ValueError("grade_bands must include a band starting at 0")
        return sorted(value, key=lambda band: band.min_percentage, reverse=True)

    @field_validator("assessment_labels")
    @classmethod
    def _labels_cover_zero(cls, value: list[AssessmentLabel]) -> list[AssessmentLabel]:
        if not value or min(item.min_percentage for item in value) > 0:
            raise ValueError("assessment_labels must include a tier starting at 0")
        return sorted(value, key=lambda item: item.min_percentage, reverse=True)


class ObservabilitySettings(BaseModel):
    log_level: str = Field(default="INFO")
    enable_tracing: bool = Field(default=False)
    otlp_endpoint: str = Field(default="http://localhost:4318/v1/traces")
    enable_prometheus: bool = Field(default=True)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ESSAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    environment: str = Field(default="local")
    debug: bool = Field(default=False)
    paths: Paths = Paths()
    text: TextSettings = TextSettings()
    concepts: ConceptSettings = ConceptSettings()
    semantic: SemanticSettings = SemanticSettings()
    scoring: ScoringPolicy = ScoringPolicy()
    observability: ObservabilitySettings = ObservabilitySettings()


@lru_cache
def get_settings() -> AppSettings:
    """Return cached settings instance."""

    settings = AppSettings()
    if not settings.paths.data_dir.is_absolute():
        settings.paths.data_dir = settings.paths.project_root / settings.paths.data_dir
    if not settings.paths.samples_path.is_absolute():
        settings.paths.samples_path = settings.paths.project_root / settings.paths.samples_path
    return settings


settings = get_settings()
