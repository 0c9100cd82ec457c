"""Clients HTTP externes (jeux de données publics).

Objectif du module
------------------
- Encapsuler les appels réseau vers des services tiers.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from sagasynth.domain.errors import UpstreamError, ValidationError

log = structlog.get_logger(__name__)


class HuggingFaceClient:
    """Client du serveur `datasets-server` de Hugging Face (endpoint `/rows`)."""

    def __init__(self, client: httpx.Client, rows_url: str, max_rows: int = 100):
        self.client = client
        self.rows_url = rows_url
        self.max_rows = max_rows

    def fetch_rows(self, dataset: str, sample_size: int = 5) -> list[dict[str, Any]]:
        """Retourne les `sample_size` premières lignes du split `train`.

        Chaque ligne est réduite à `{id, text, label}`.
        """
        if not dataset:
            raise ValidationError("dataset is required", fields=["dataset"])
        if isinstance(sample_size, bool) or not isinstance(sample_size, int):
            raise ValidationError("sample_size must be an integer", fields=["sample_size"])
        if not 1 <= sample_size <= self.max_rows:
            raise ValidationError(
                f"sample_size must be between 1 and {self.max_rows}", fields=["sample_size"]
            )
        params = {
            "dataset": dataset,
            "config": "default",
            "split": "train",
            "offset": 0,
            "limit": sample_size,
        }
        try:
            res = self.client.get(self.rows_url, params=params)
            res.raise_for_status()
            body = res.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("dataset_fetch_failed", dataset=dataset, error=str(exc))
            raise UpstreamError("Failed to fetch dataset", details=str(exc)) from exc
        rows = body.get("rows", []) if isinstance(body, dict) else []
        return [
            {
                "id": item.get("row_idx", item.get("id")),
                "text": (item.get("row") or {}).get("text"),
                "label": (item.get("row") or {}).get("label"),
            }
            for item in rows
        ]
