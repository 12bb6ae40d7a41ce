# quotebook/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["observability"])

quotes_created_counter = Counter(
    "quotebook_quotes_created_total",
    "Aantal aangemaakte offertes (incl. kopieën)",
)

quote_transition_counter = Counter(
    "quotebook_quote_status_transitions_total",
    "Statusovergangen van offertes",
    ["from_status", "to_status"],
)

revenue_recognized_counter = Counter(
    "quotebook_revenue_recognized_won_total",
    "Erkende omzet in won",
)

notifications_counter = Counter(
    "quotebook_notifications_created_total",
    "Aangemaakte notificaties",
    ["type"],
)

latency_hist = Histogram(
    "quotebook_api_latency_seconds",
    "API latency per route",
    ["route"],  # e.g. /quotes, /quotes/{quote_id}/status
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
