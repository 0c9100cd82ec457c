"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Toutes les erreurs sont rendues sous la forme
`{"error", "code", "details", "trace_id"}` (+ `fields` pour les erreurs de validation).
Le statut HTTP est choisi d'après la catégorie de l'erreur métier uniquement.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from sagasynth.core.http_constants import (
    HTTP_BAD_GATEWAY,
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    STATUS_BY_KIND,
)
from sagasynth.domain.errors import SagaError

log = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
}


def extract_trace_id(request: Request) -> str | None:
    """Identifiant de trace: en-tête `X-Trace-ID`, sinon l'identifiant de requête."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "request_id", None)


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: Any = None,
    fields: list[str] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {
        "error": message,
        "code": code,
        "details": details,
        "trace_id": trace_id,
    }
    if fields:
        content["fields"] = fields
    return JSONResponse(status_code=status_code, content=content)


def handle_saga_error(request: Request, exc: SagaError) -> JSONResponse:
    """Rend une erreur métier avec le statut associé à sa catégorie."""
    trace_id = extract_trace_id(request)
    status_code = STATUS_BY_KIND.get(exc.kind, HTTP_BAD_GATEWAY)
    log.warning(
        "Domain error",
        extra={
            "code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "trace_id": trace_id,
            "details": exc.details,
        },
    )
    body = exc.to_dict()
    return create_error_response(
        status_code=status_code,
        code=body["code"],
        message=body["error"],
        trace_id=trace_id,
        details=body["details"],
        fields=body.get("fields"),
    )


def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Erreurs de schéma FastAPI -> 400 avec la liste des champs fautifs."""
    trace_id = extract_trace_id(request)
    fields = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    log.info("Request validation failed", extra={"fields": fields, "trace_id": trace_id})
    return create_error_response(
        status_code=HTTP_BAD_REQUEST,
        code="VALIDATION_ERROR",
        message="Invalid request",
        trace_id=trace_id,
        details="; ".join(str(e.get("msg")) for e in exc.errors()) or None,
        fields=fields,
    )


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    trace_id = extract_trace_id(request)
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    log.error(
        "HTTP exception occurred",
        extra={
            "code": code,
            "error_message": str(exc.detail),
            "status_code": exc.status_code,
            "trace_id": trace_id,
        },
    )
    return create_error_response(
        status_code=exc.status_code, code=code, message=str(exc.detail), trace_id=trace_id
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Erreur inattendue: 500 sans exposer la cause au client."""
    trace_id = extract_trace_id(request)
    log.error(
        "Unexpected error occurred",
        extra={
            "code": "INTERNAL_ERROR",
            "trace_id": trace_id,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=True,
    )
    return create_error_response(
        status_code=HTTP_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        trace_id=trace_id,
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SagaError, handle_saga_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)
