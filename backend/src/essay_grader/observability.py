"""Observability helpers for tracing, metrics, and logging."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter, Histogram

from .config import settings

logger = logging.getLogger("essay_grader")
logging.basicConfig(
    level=settings.observability.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s | %(message)s",
)

if settings.observability.enable_tracing:
    resource = Resource.create({"service.name": "essay-grader"})
    provider = TracerProvider(resource=resource)
    processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.observability.otlp_endpoint))
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
tracer = trace.get_tracer(__name__)

SCORING_LATENCY = Histogram(
    "essay_scoring_latency_ms", "Latency of essay assessments", buckets=(1, 5, 10, 25, 50, 100, 250, 1000)
)
ASSESSMENTS = Counter("essay_assessments", "Completed essay assessments", labelnames=("band",))
DIMENSION_FAILURES = Counter("essay_dimension_failures", "Dimensions degraded to the neutral score", labelnames=("dimension",))
CONCEPT_CACHE = Counter("essay_concept_cache", "Key-concept cache lookups", labelnames=("result",))


@contextmanager
def traced_span(name: str) -> Iterator[None]:
    start = perf_counter()
    try:
        with tracer.start_as_current_span(name):
            yield
    finally:
        SCORING_LATENCY.observe((perf_counter() - start) * 1000)


def record_assessment(band: str) -> None:
    ASSESSMENTS.labels(band).inc()


def record_dimension_failure(dimension: str) -> None:
    DIMENSION_FAILURES.labels(dimension).inc()
