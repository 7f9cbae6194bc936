"""FastAPI server exposing essay assessment endpoints."""
from __future__ import annotations

import asyncio
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from pydantic import BaseModel, Field

from .config import settings
from .engine import EssayScoringEngine
from .errors import InvalidRequestError, ScoringConfigurationError
from .models import AssessmentRequest, QuestionMetadata

app = FastAPI(title="Essay Answer Assessment", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
if settings.observability.enable_prometheus:
    app.mount("/metrics", make_asgi_app())

engine = EssayScoringEngine()


def get_engine() -> EssayScoringEngine:
    return engine


class QuestionData(BaseModel):
    text: str = Field(default="", description="Question prompt shown to the student")
    difficulty: str | None = Field(default=None, description="EASY, MEDIUM or HARD")
    type: str = Field(default="ESSAY")
    marks: float | None = None
    id: str | None = Field(default=None, description="Question identifier, used only for logging")


class AssessRequest(BaseModel):
    studentAnswer: str | None = Field(default="", description="The submitted answer; may be empty")
    correctAnswer: str | None = Field(default=None, description="Reference answer to grade against")
    maxMarks: float = Field(..., description="Marks available for the question")
    questionData: QuestionData | None = None

    def to_request(self) -> AssessmentRequest:
        question = self.questionData.model_dump() if self.questionData else None
        return AssessmentRequest(
            student_answer=self.studentAnswer or "",
            reference_answer=self.correctAnswer or "",
            max_marks=self.maxMarks,
            question=QuestionMetadata.from_payload(question),
        )


class BatchRequest(BaseModel):
    items: list[AssessRequest]


@app.exception_handler(ScoringConfigurationError)
@app.exception_handler(InvalidRequestError)
async def unusable_request(_: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/assess")
async def assess(payload: AssessRequest, scorer: EssayScoringEngine = Depends(get_engine)) -> dict[str, Any]:  # noqa: B008
    result = await asyncio.to_thread(scorer.assess, payload.to_request())
    return result.to_payload()


@app.post("/assess/batch")
async def assess_batch(payload: BatchRequest, scorer: EssayScoringEngine = Depends(get_engine)) -> dict:  # noqa: B008
    requests = [item.to_request() for item in payload.items]
    results = await asyncio.to_thread(scorer.assess_many, requests)
    return {"results": [result.to_payload() for result in results]}


@app.get("/cache")
def cache_stats(scorer: EssayScoringEngine = Depends(get_engine)) -> dict:  # noqa: B008
    return scorer.cache.stats()


@app.delete("/cache")
def clear_cache(scorer: EssayScoringEngine = Depends(get_engine)) -> dict:  # noqa: B008
    scorer.cache.clear()
    return scorer.cache.stats()


__all__ = ["app"]
