"""Taxonomie des erreurs métier.

Chaque erreur porte une catégorie (`ErrorKind`) qui suffit à la couche HTTP pour choisir un
statut; aucune correspondance n'est faite sur le texte des messages en dehors du client
registre, qui classe les reverts du contrat une seule fois.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Catégories d'erreurs exposées par les services."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    ALREADY_DISTRIBUTED = "already_distributed"
    UPSTREAM = "upstream"


class SagaError(Exception):
    """Erreur de base de l'application."""

    kind: ErrorKind = ErrorKind.UPSTREAM
    code: str = "UPSTREAM_ERROR"

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Sérialise l'erreur pour l'enveloppe HTTP."""
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(SagaError):
    """Champs manquants ou invalides; jamais rejouée."""

    kind = ErrorKind.VALIDATION
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        fields: list[str] | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.fields = list(fields or [])

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.fields:
            data["fields"] = self.fields
        return data


class NotFoundError(SagaError):
    """Jeton ou bounty absent."""

    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"


class PermissionDeniedError(SagaError):
    """Appel réservé à l'administrateur du contrat."""

    kind = ErrorKind.PERMISSION
    code = "FORBIDDEN"


class AlreadyDistributedError(SagaError):
    """Mutation demandée sur une bounty déjà distribuée."""

    kind = ErrorKind.ALREADY_DISTRIBUTED
    code = "ALREADY_DISTRIBUTED"


class UpstreamError(SagaError):
    """Échec d'un collaborateur externe (modèle, stockage, RPC)."""

    kind = ErrorKind.UPSTREAM
    code = "UPSTREAM_ERROR"


class GenerationFailedError(UpstreamError):
    """Aucune ligne exploitable sur l'ensemble des tentatives."""

    code = "GENERATION_FAILED"


class PublishError(UpstreamError):
    """Échec d'un upload vers le réseau de stockage."""

    code = "PUBLISH_FAILED"


class ChainError(UpstreamError):
    """Échec RPC ou transaction annulée sans motif reconnu."""

    code = "CHAIN_ERROR"
