"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares, gestionnaires
d'erreurs, routes et métriques.

Responsabilités du module:
- Initialiser le logging structuré et le tracing
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (CORS, request id, métriques, timing)
- Monter les routers (santé, génération, jeux de données, NFT, bounties, métriques)
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sagasynth.api.errors import install_error_handlers
from sagasynth.api.routes_bounty import router as bounty_router
from sagasynth.api.routes_dataset import router as dataset_router
from sagasynth.api.routes_generate import router as generate_router
from sagasynth.api.routes_health import router as health_router
from sagasynth.api.routes_nft import router as nft_router
from sagasynth.app.metrics import PrometheusMiddleware, metrics_router
from sagasynth.app.tracing import setup_tracing
from sagasynth.core.container import container
from sagasynth.core.logging import setup_logging
from sagasynth.middlewares.request_id import RequestIDMiddleware
from sagasynth.middlewares.timing import TimingMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) et le tracing OTLP
    - Ajoute les middlewares utiles au debug/traçabilité
    - Installe l'enveloppe d'erreurs commune
    - Publie les routes
    """
    settings = container.settings
    json_logs = settings.LOG_JSON if settings.LOG_JSON is not None else settings.APP_ENV != "dev"
    setup_logging(settings.LOG_LEVEL, json_logs=json_logs)
    setup_tracing(settings)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware, slow_ms=settings.SLOW_REQUEST_MS)
    app.add_middleware(RequestIDMiddleware)
    install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(generate_router)
    app.include_router(dataset_router)
    app.include_router(nft_router)
    app.include_router(bounty_router)
    app.include_router(metrics_router)
    return app


app = create_app()
