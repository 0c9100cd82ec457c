"""
Client LLM basé sur l'API OpenAI avec fallback déterministe.

Implémente l'interface LLM en supportant:
- chat.completions (SDK OpenAI), avec sortie JSON contrainte
- fallback local déterministe quand aucune clé n'est configurée (dev)
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from openai import OpenAI, OpenAIError

from sagasynth.core.constants import REQUIRED_ROW_FIELDS
from sagasynth.domain.errors import UpstreamError
from sagasynth.infra.llm.base import LLM

log = structlog.get_logger(__name__)


class OpenAILLM(LLM):
    """
    LLM basé sur OpenAI avec fallback.

    Utilise l'API OpenAI si la clé API est disponible, sinon renvoie une réponse déterministe
    qui respecte le format structuré attendu (utile hors-ligne).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 3000,
    ) -> None:
        """Initialize the OpenAILLM client."""
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = OpenAI(api_key=api_key) if api_key else None

    def generate(
        self,
        messages: list[dict[str, str]],
        *,
        json_output: bool = False,
        **kwargs: Any,
    ) -> str:
        """Génère du texte via chat.completions (ou le fallback sans client)."""
        if self.client is None:
            return self._fallback_response(messages, json_output)

        params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", self.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
        }
        if json_output:
            params["response_format"] = {"type": "json_object"}
        params.update(kwargs)
        try:
            resp = self.client.chat.completions.create(**params)
        except OpenAIError as exc:
            raise UpstreamError("Generation call failed", details=str(exc)) from exc
        choice = resp.choices[0] if resp.choices else None
        content = getattr(getattr(choice, "message", None), "content", None)
        return str(content or "")

    def _fallback_response(self, messages: list[dict[str, str]], json_output: bool) -> str:
        """Réponse déterministe (dev sans clé API)."""
        last = messages[-1]["content"] if messages else ""
        log.warning("llm_fallback_response", model=self.model)
        if not json_output:
            return f"FAKE_OPENAI: {last[:80]}".strip()
        return json.dumps({field: f"FAKE_OPENAI {field}" for field in REQUIRED_ROW_FIELDS})
