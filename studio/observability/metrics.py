# studio/observability/metrics.py
from fastapi import APIRouter
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

router = APIRouter(tags=["observability"])

estimates_computed = Counter(
    "studio_estimates_computed_total",
    "Calculator runs",
    ["result"],  # ok|invalid
)

estimates_submitted = Counter(
    "studio_estimates_submitted_total",
    "Estimate records created",
    ["segment"],
)

configuration_gaps = Counter(
    "studio_configuration_gaps_total",
    "Soft pricing gaps reported by the calculator",
    ["code"],
)

documents_generated = Counter(
    "studio_documents_generated_total",
    "Estimate PDFs rendered and stored",
    ["result"],  # success|error
)

estimate_total_hist = Histogram(
    "studio_estimate_total_amount",
    "Quoted totals (tenant currency units)",
    buckets=(1e5, 2.5e5, 5e5, 1e6, 2.5e6, 5e6, 1e7),
)

latency_hist = Histogram(
    "studio_api_latency_seconds",
    "API latency per route",
    ["route"],
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
