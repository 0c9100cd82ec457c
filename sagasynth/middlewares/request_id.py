"""Identifiant de requête propagé de bout en bout.

L'identifiant entrant (`X-Request-ID`) est repris s'il est bien formé, sinon remplacé par un
UUID; il est exposé dans `request.state` (repli du `trace_id` des enveloppes d'erreur), lié
aux contextvars structlog pendant la requête et renvoyé dans la réponse.
"""

import re
from collections.abc import Callable
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# Caractères admis: l'identifiant finit dans les logs et les corps d'erreur
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def accept_request_id(raw: str | None) -> str:
    if raw and _VALID_ID.match(raw):
        return raw
    return str(uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next: Callable):
        request_id = accept_request_id(request.headers.get(self.header_name))
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        response.headers[self.header_name] = request_id
        return response
