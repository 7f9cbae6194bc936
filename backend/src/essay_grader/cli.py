"""Typer CLI for scoring answers, calibration runs and serving the API."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .engine import EssayScoringEngine
from .errors import InvalidRequestError, ScoringConfigurationError
from .evaluation import run_batch_evaluation
from .models import AssessmentRequest, QuestionMetadata

app = typer.Typer(help="CLI for the essay answer assessment engine")
engine = EssayScoringEngine()


@app.command()
def assess(
    student_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding the student answer"),
    reference_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding the model answer"),
    max_marks: float = typer.Option(10.0, "--max-marks", help="Marks available for the question"),
    question: str = typer.Option("", "--question", help="Question text"),
    difficulty: Optional[str] = typer.Option(None, "--difficulty", help="EASY, MEDIUM or HARD"),
) -> None:
    """Score one answer and print the assessment as JSON."""

    try:
        request = AssessmentRequest(
            student_answer=student_file.read_text(encoding="utf-8"),
            reference_answer=reference_file.read_text(encoding="utf-8"),
            max_marks=max_marks,
            question=QuestionMetadata.from_payload({"text": question, "difficulty": difficulty}),
        )
        result = engine.assess(request)
    except (ScoringConfigurationError, InvalidRequestError) as exc:
        typer.echo(f"Cannot assess: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    typer.echo(json.dumps(result.to_payload(), indent=2))


@app.command()
def evaluate(
    samples: Optional[Path] = typer.Option(None, "--samples", help="Ladder file, defaults to the bundled samples"),
    output: Optional[Path] = typer.Option(None, "--output", help="Where to write the report"),
) -> None:
    """Run the calibration ladders and report monotonicity."""

    results = run_batch_evaluation(samples_path=samples, output_path=output, engine=engine)
    for result in results:
        status = "ok" if result.monotonic else "NOT MONOTONIC"
        typer.echo(f"{result.ladder_id}: {result.percentages} {status}")
    typer.echo(f"Completed evaluation for {len(results)} ladders")
    if not all(result.monotonic for result in results):
        raise typer.Exit(code=1)


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    uvicorn.run("essay_grader.server:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
