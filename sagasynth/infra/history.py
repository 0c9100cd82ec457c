"""
Registres d'historique des générations publiées.

Ce module fournit deux implémentations ajout-seul: un journal JSON Lines ouvert en mode
append (une ligne par entrée, écrite en un seul `write`), et une liste Redis (`RPUSH`).
Aucune des deux ne relit l'historique pour écrire.
"""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod

import redis
import structlog
from pydantic import ValidationError as PydanticValidationError

from sagasynth.app.metrics import HISTORY_APPENDS
from sagasynth.domain.entities import HistoryEntry

log = structlog.get_logger(__name__)


def _sort_recent(entries: list[HistoryEntry], limit: int) -> list[HistoryEntry]:
    ordered = sorted(entries, key=lambda e: e.created_at, reverse=True)
    return ordered[: max(0, limit)]


class HistoryLedger(ABC):
    """Séquence d'entrées persistée entre redémarrages."""

    backend: str = "unknown"

    @abstractmethod
    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Ajoute une entrée en fin de journal."""
        ...

    @abstractmethod
    def entries(self) -> list[HistoryEntry]:
        """Toutes les entrées, dans l'ordre d'écriture."""
        ...

    def list_recent(self, limit: int = 100) -> list[HistoryEntry]:
        """Entrées les plus récentes d'abord, plafonnées à `limit`."""
        return _sort_recent(self.entries(), limit)

    def count(self) -> int:
        return len(self.entries())


class JsonlHistoryLedger(HistoryLedger):
    """Journal JSON Lines en mode append (clé: une entrée par ligne)."""

    backend = "jsonl"

    def __init__(self, path: str):
        """Prépare le répertoire parent; le fichier est créé au premier ajout."""
        self.path = path
        self._lock = threading.Lock()
        parent = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(parent, exist_ok=True)

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        line = entry.model_dump_json() + "\n"
        with self._lock, open(self.path, "a", encoding="utf-8") as f:
            f.write(line)
        HISTORY_APPENDS.labels(backend=self.backend).inc()
        return entry

    def entries(self) -> list[HistoryEntry]:
        if not os.path.exists(self.path):
            return []
        out: list[HistoryEntry] = []
        with open(self.path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    out.append(HistoryEntry.model_validate_json(line))
                except PydanticValidationError:
                    # ligne tronquée (arrêt pendant une écriture)
                    log.warning("history_line_skipped", path=self.path, line=lineno)
        return out


class RedisHistoryLedger(HistoryLedger):
    """Journal adossé à une liste Redis (clé: `history:entries`)."""

    backend = "redis"

    def __init__(self, url: str, key: str = "history:entries"):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self.key = key

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        self.client.rpush(self.key, entry.model_dump_json())
        HISTORY_APPENDS.labels(backend=self.backend).inc()
        return entry

    def entries(self) -> list[HistoryEntry]:
        raw = self.client.lrange(self.key, 0, -1) or []
        out: list[HistoryEntry] = []
        for item in raw:
            try:
                out.append(HistoryEntry.model_validate(json.loads(item)))
            except (ValueError, PydanticValidationError):
                log.warning("history_item_skipped", key=self.key)
        return out

    def count(self) -> int:
        return int(self.client.llen(self.key))
