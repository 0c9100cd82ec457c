"""Interface de base pour les modèles de langage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LLM(ABC):
    """Interface abstraite pour les modèles de langage."""

    model: str = "unknown"

    @abstractmethod
    def generate(
        self,
        messages: list[dict[str, str]],
        *,
        json_output: bool = False,
        **kwargs: Any,
    ) -> str:
        """Génère une réponse texte à partir d'une liste de messages.

        Avec `json_output=True`, le modèle est contraint à produire un document JSON.
        Les échecs du fournisseur sont levés (`UpstreamError`), jamais masqués.
        """
        ...
