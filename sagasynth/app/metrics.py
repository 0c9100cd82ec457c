"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et métier (génération, publication, transactions,
historique) et expose `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

GENERATION_ATTEMPTS = Counter(
    "generation_attempts_total",
    "Generation attempts by outcome (verified, failed, malformed, empty, error, dropped)",
    ["outcome"],
)
PUBLISH_TOTAL = Counter(
    "storage_publish_total",
    "Uploads to the permanent storage network",
    ["kind", "result"],
)
CHAIN_TX_TOTAL = Counter(
    "chain_transactions_total",
    "Registry contract transactions by operation and result",
    ["operation", "result"],
)
CHAIN_TX_LATENCY = Histogram(
    "chain_transaction_duration_seconds",
    "Time from submission to receipt",
    ["operation"],
)
HISTORY_APPENDS = Counter(
    "history_appends_total", "History ledger appends", ["backend"]
)
ENRICHMENT_TOTAL = Counter(
    "metadata_enrichment_total",
    "Best-effort token document fetches",
    ["result"],
)


@metrics_router.get("/metrics")
def metrics():
    """Expose les métriques Prometheus au format texte."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def route_label(request: Request) -> str:
    """Gabarit de route (`/api/nft/{token_id}`) pour limiter la cardinalité."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """Traite une requête HTTP et collecte les métriques."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = route_label(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
