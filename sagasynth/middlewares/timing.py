"""Middleware Starlette pour mesurer le temps de traitement des requêtes.

Ajoute l'en-tête `X-Process-Time-ms` et journalise chaque requête avec son gabarit de route.
Les transactions on-chain attendent leur reçu dans la requête: au-delà de `slow_ms`, la
requête est journalisée en `warning` (`request_slow`).
"""

import time
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from sagasynth.app.metrics import route_label

log = structlog.get_logger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        header_name: str = "X-Process-Time-ms",
        slow_ms: int = 5000,
    ) -> None:
        super().__init__(app)
        self.header_name = header_name
        self.slow_ms = slow_ms

    async def dispatch(self, request, call_next: Callable):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers[self.header_name] = str(duration_ms)
        fields = {
            "method": request.method,
            "route": route_label(request),
            "status": response.status_code,
            "duration_ms": duration_ms,
        }
        if duration_ms >= self.slow_ms:
            log.warning("request_slow", threshold_ms=self.slow_ms, **fields)
        else:
            log.info("request_completed", **fields)
        return response
