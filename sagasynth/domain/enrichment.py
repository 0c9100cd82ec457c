"""Augmentation optionnelle: document de métadonnées hors-chaîne d'un jeton.

Le résultat est soit une valeur, soit l'erreur ignorée; l'opération principale ne dépend
jamais de son issue.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from sagasynth.app.metrics import ENRICHMENT_TOTAL

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Enrichment:
    """Résultat d'une augmentation best-effort."""

    value: dict[str, Any] | None = None
    ignored_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    def get(self, key: str, default: Any = None) -> Any:
        if not self.value:
            return default
        return self.value.get(key) or default


def fetch_token_document(client: httpx.Client, uri: str | None, timeout: float = 5.0) -> Enrichment:
    """Télécharge le document JSON pointé par `tokenURI`, borné par `timeout`."""
    if not uri:
        return Enrichment(ignored_error="empty token URI")
    try:
        res = client.get(uri, timeout=timeout)
        res.raise_for_status()
        body = res.json()
    except (httpx.HTTPError, ValueError) as exc:
        log.info("enrichment_failed", uri=uri, error=str(exc))
        ENRICHMENT_TOTAL.labels(result="ignored").inc()
        return Enrichment(ignored_error=str(exc))
    if not isinstance(body, dict):
        ENRICHMENT_TOTAL.labels(result="ignored").inc()
        return Enrichment(ignored_error="token document is not a JSON object")
    ENRICHMENT_TOTAL.labels(result="ok").inc()
    return Enrichment(value=body)
