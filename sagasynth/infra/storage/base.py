"""Interface des publishers vers le réseau de stockage permanent."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from sagasynth.domain.entities import Tag


class Publisher(ABC):
    """Écrit des octets étiquetés sur un stockage immuable et les relit par URL.

    Republier des octets identiques est sans danger: au pire une seconde URL est créée, les
    emplacements existants ne sont jamais modifiés.
    """

    name: str = "unknown"

    @abstractmethod
    def publish(self, payload: bytes, tags: Sequence[Tag]) -> str:
        """Publie `payload` et retourne son URL permanente (lève `PublishError`)."""
        ...

    @abstractmethod
    def fetch(self, url: str) -> bytes:
        """Retourne les octets exacts publiés à `url` (lève `UpstreamError`)."""
        ...
