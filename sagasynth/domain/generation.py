"""Orchestrateur de génération de données synthétiques.

Ce module pilote N appels indépendants au modèle de génération, vérifie la forme de chaque
résultat et retourne le sous-ensemble exploitable.

Politique d'échec
-----------------
- Un échec sur une tentative (réponse vide, JSON invalide, document non-objet, erreur du
  fournisseur) est journalisé puis ignoré: les tentatives suivantes continuent.
- Une ligne dont les champs requis sont absents ou vides est conservée avec le statut
  `failed` (l'échec reste observable).
- L'agrégat échoue (`GenerationFailedError`) uniquement si aucune ligne n'a été produite.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import structlog

from sagasynth.app.metrics import GENERATION_ATTEMPTS
from sagasynth.core.constants import REQUIRED_ROW_FIELDS
from sagasynth.domain.entities import DatasetRecord, GeneratedRow
from sagasynth.domain.errors import GenerationFailedError, SagaError, ValidationError
from sagasynth.infra.llm.base import LLM

log = structlog.get_logger(__name__)

SYSTEM = "You are a helpful assistant for creating synthetic {domain} data."

PROMPT = """
Based on the following {domain} text, please generate a new, paraphrased version.
The new version should be coherent for the {domain} domain but different in wording.
Also, provide a new 'medical_specialty' (the relevant specialty or category) and a brief
'explanation' for the generated text.

Original Text:
"{text}"

Please provide the output in a valid JSON format with the following keys:
- "synthetic_transcription": The new, paraphrased text.
- "medical_specialty": The relevant specialty or category.
- "explanation": A brief explanation of the synthetic text.

Example Output:
{{
    "synthetic_transcription": "The patient reports a history of chronic migraines and is currently prescribed sumatriptan.",
    "medical_specialty": "Neurology",
    "explanation": "This transcription documents a patient's history and treatment for a neurological condition."
}}
"""


def build_messages(text: str, domain: str = "medical") -> list[dict[str, str]]:
    """Construit l'instruction structurée (fixe) pour une tentative."""
    return [
        {"role": "system", "content": SYSTEM.format(domain=domain)},
        {"role": "user", "content": PROMPT.format(domain=domain, text=text)},
    ]


def verify_row(original_text: str, synthetic_output: Any) -> GeneratedRow | None:
    """Attribue un statut terminal à une ligne candidate.

    Retourne une ligne `verified` si tous les champs requis sont présents et non vides,
    `failed` sinon. Retourne None seulement si la vérification elle-même lève.
    """
    try:
        complete = all(
            field in synthetic_output and synthetic_output[field] for field in REQUIRED_ROW_FIELDS
        )
        if not complete:
            log.info("row_verification_failed", reason="missing_or_empty_fields")
        return GeneratedRow(
            original_text=original_text,
            synthetic_output=dict(synthetic_output),
            verification_status="verified" if complete else "failed",
        )
    except Exception as exc:
        log.warning("row_verification_error", error=str(exc))
        return None


class DatasetGenerator:
    """Pilote les tentatives de génération pour un texte source."""

    def __init__(self, llm: LLM, max_sample_size: int = 50):
        self.llm = llm
        self.max_sample_size = max_sample_size

    def _check_sample_size(self, sample_size: Any) -> int:
        if isinstance(sample_size, bool) or not isinstance(sample_size, int):
            raise ValidationError("sample_size must be a positive integer", fields=["sample_size"])
        if sample_size < 1 or sample_size > self.max_sample_size:
            raise ValidationError(
                f"sample_size must be between 1 and {self.max_sample_size}",
                fields=["sample_size"],
            )
        return sample_size

    def _attempt(self, index: int, total: int, text: str, domain: str) -> GeneratedRow | None:
        log.info("generation_attempt", row=index + 1, total=total)
        try:
            raw = self.llm.generate(build_messages(text, domain), json_output=True)
        except Exception as exc:
            reason = exc.message if isinstance(exc, SagaError) else str(exc)
            log.warning("generation_row_skipped", row=index + 1, reason="upstream", error=reason)
            GENERATION_ATTEMPTS.labels(outcome="error").inc()
            return None
        if not raw or not raw.strip():
            log.warning("generation_row_skipped", row=index + 1, reason="empty_response")
            GENERATION_ATTEMPTS.labels(outcome="empty").inc()
            return None
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            log.warning("generation_row_skipped", row=index + 1, reason="malformed_json", error=str(exc))
            GENERATION_ATTEMPTS.labels(outcome="malformed").inc()
            return None
        if not isinstance(parsed, dict):
            log.warning("generation_row_skipped", row=index + 1, reason="not_an_object")
            GENERATION_ATTEMPTS.labels(outcome="malformed").inc()
            return None
        row = verify_row(text, parsed)
        if row is None:
            GENERATION_ATTEMPTS.labels(outcome="dropped").inc()
            return None
        GENERATION_ATTEMPTS.labels(outcome=row.verification_status).inc()
        return row

    def iter_rows(self, text: str, sample_size: int, domain: str = "medical") -> Iterator[GeneratedRow]:
        """Produit paresseusement jusqu'à `sample_size` lignes, une tentative à la fois."""
        total = self._check_sample_size(sample_size)
        for i in range(total):
            row = self._attempt(i, total, text, domain)
            if row is not None:
                yield row

    def generate(self, text: str, sample_size: int, domain: str = "medical") -> DatasetRecord:
        """Exécute toutes les tentatives et retourne le jeu de données.

        Lève `GenerationFailedError` si aucune tentative n'a produit de ligne.
        """
        if not text or not str(text).strip():
            raise ValidationError("input_text is required", fields=["input_text"])
        rows = tuple(self.iter_rows(text, sample_size, domain))
        if not rows:
            raise GenerationFailedError(
                "Generation failed, no results.",
                details=f"0 of {sample_size} attempts produced a usable row",
            )
        log.info("generation_done", requested=sample_size, kept=len(rows))
        return DatasetRecord(input_text=text, rows=rows)
