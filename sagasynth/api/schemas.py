# Schémas Pydantic exposés par l'API (requêtes).
# Les champs requis métier restent optionnels ici: leur absence est signalée par les services,
# qui listent tous les champs manquants en une seule erreur.

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sagasynth.core.constants import DEFAULT_SOURCE_DATASET


class GenerateRequest(BaseModel):
    """Requête de génération + publication.

    Champs requis (vérifiés par le pipeline): input_text, sample_size, domain, dataset_name,
    description, visibility, price_usdc, max_tokens, output_format, source_dataset, ai_model.
    """

    input_text: str | None = None
    sample_size: int | None = None
    domain: str | None = None
    dataset_name: str | None = None
    description: str | None = None
    visibility: str | None = None
    price_usdc: float | str | None = None
    max_tokens: int | None = None
    output_format: str | None = None
    source_dataset: str | None = None
    ai_model: str | None = None
    tags: list[str] | None = None


class GenerateAndMintRequest(BaseModel):
    """Génération suivie d'un mint; seuls `input_text` est obligatoire."""

    input_text: str | None = None
    sample_size: int = 3
    dataset_name: str = "Generated Dataset"
    description: str = "Synthetic dataset"
    tags: list[str] = Field(default_factory=lambda: ["synthetic"])
    domain: str = "medical"
    visibility: str = "public"
    price_usdc: float | str = 0
    max_tokens: int = 3000
    output_format: str = "Structured JSON"
    source_dataset: str = DEFAULT_SOURCE_DATASET
    ai_model: str | None = None


class PromptTestRequest(BaseModel):
    input_text: str | None = None
    domain: str | None = None


class DatasetUploadRequest(BaseModel):
    data: Any = None
    metadata: dict[str, Any] | None = None
    mint: bool = False


class FetchDatasetRequest(BaseModel):
    sample_size: int = 5
    dataset: str = DEFAULT_SOURCE_DATASET


class MintBody(BaseModel):
    """Arguments de `mintMetadataNFT` (noms camelCase du client web)."""

    model_config = ConfigDict(populate_by_name=True)

    sourceUrl: str | None = None
    contentHash: str | None = None
    contentLink: str | None = None
    embedVectorId: str | None = None
    createdAt: int | None = None
    tags: list[str] | None = None
    tokenURI: str | None = None


class DonateRequest(BaseModel):
    amount: str | float | None = None


class BountyCreateRequest(BaseModel):
    amount: str | float | None = None
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None


class ContributorRequest(BaseModel):
    contributorAddress: str | None = None
