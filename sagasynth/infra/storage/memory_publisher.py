"""Publisher en mémoire (utilisé pour dev/tests).

Chaque publication alloue un nouvel identifiant; rien n'est jamais écrasé.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Sequence

from sagasynth.domain.entities import Tag
from sagasynth.domain.errors import UpstreamError
from sagasynth.infra.storage.base import Publisher


class InMemoryPublisher(Publisher):
    """Stockage ajout-seul indexé par URL, non persistant."""

    name = "memory"

    def __init__(self, gateway_url: str = "https://gateway.irys.xyz"):
        self.gateway_url = gateway_url.rstrip("/")
        self._objects: dict[str, tuple[bytes, tuple[Tag, ...]]] = {}
        self._lock = threading.Lock()

    def publish(self, payload: bytes, tags: Sequence[Tag]) -> str:
        url = f"{self.gateway_url}/{uuid.uuid4().hex}"
        with self._lock:
            self._objects[url] = (bytes(payload), tuple(tags))
        return url

    def fetch(self, url: str) -> bytes:
        try:
            return self._objects[url][0]
        except KeyError as exc:
            raise UpstreamError(f"Failed to fetch from {url}", details="404 not found") from exc

    def tags_for(self, url: str) -> tuple[Tag, ...]:
        return self._objects[url][1]
