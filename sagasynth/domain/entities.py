"""
Entités du domaine métier.

Ce module définit les modèles de données du pipeline de provenance: lignes générées, jeux de
données, références de contenu, métadonnées NFT, bounties et entrées d'historique.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from web3 import Web3

VerificationStatus = Literal["verified", "failed"]
BountyStatus = Literal["active", "distributed"]


def utc_now_iso() -> str:
    """Horodatage ISO-8601 UTC au format `2024-01-01T00:00:00.000Z`."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GeneratedRow(BaseModel):
    """Ligne synthétique et son statut terminal de vérification."""

    model_config = ConfigDict(frozen=True)

    original_text: str
    synthetic_output: dict[str, Any]
    verification_status: VerificationStatus

    @property
    def verified(self) -> bool:
        return self.verification_status == "verified"


class DatasetRecord(BaseModel):
    """Jeu de données produit par une génération; jamais modifié après publication."""

    model_config = ConfigDict(frozen=True)

    input_text: str
    rows: tuple[GeneratedRow, ...]
    created_at: str = Field(default_factory=utc_now_iso)

    @property
    def verified_count(self) -> int:
        return sum(1 for r in self.rows if r.verified)

    def rows_payload(self) -> list[dict[str, Any]]:
        """Lignes sous forme de dicts, dans l'ordre de génération."""
        return [r.model_dump() for r in self.rows]


class Tag(BaseModel):
    """Paire nom/valeur attachée à un upload."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class ContentReference(BaseModel):
    """Lien permanent et empreinte des octets exacts publiés."""

    model_config = ConfigDict(frozen=True)

    url: str
    content_hash: str
    tags: tuple[Tag, ...] = ()


class MintRequest(BaseModel):
    """Arguments de `mintMetadataNFT`."""

    source_url: str
    content_hash: str
    content_link: str
    embed_vector_id: str
    created_at: int
    tags: list[str]
    token_uri: str

    def to_prepared(self) -> dict[str, Any]:
        """Forme camelCase renvoyée aux clients (`prepared`, `ready_for_nft`)."""
        return {
            "sourceUrl": self.source_url,
            "contentHash": self.content_hash,
            "contentLink": self.content_link,
            "embedVectorId": self.embed_vector_id,
            "createdAt": self.created_at,
            "tags": self.tags,
            "tokenURI": self.token_uri,
        }


class NFTMetadata(BaseModel):
    """Métadonnées on-chain d'un jeton (lecture seule côté application)."""

    token_id: int
    source_url: str
    content_hash: str
    content_link: str
    embed_vector_id: str
    created_at: int
    tags: list[str]
    owner: str

    def to_api(self) -> dict[str, Any]:
        return {
            "tokenId": str(self.token_id),
            "sourceUrl": self.source_url,
            "contentHash": self.content_hash,
            "contentLink": self.content_link,
            "embedVectorId": self.embed_vector_id,
            "createdAt": self.created_at,
            "tags": self.tags,
            "owner": self.owner,
        }


class TxReceipt(BaseModel):
    """Résumé d'une transaction incluse."""

    hash: str
    block_number: int
    gas_used: int
    sender: str | None = None

    def to_api(self, explorer_prefix: str) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "blockNumber": self.block_number,
            "gasUsed": str(self.gas_used),
            "explorerUrl": f"{explorer_prefix}{self.hash}",
        }


class MintResult(BaseModel):
    token_id: int | None
    receipt: TxReceipt


class BountyCreated(BaseModel):
    bounty_id: int | None
    receipt: TxReceipt


class Bounty(BaseModel):
    """État on-chain d'une bounty."""

    id: int
    amount_wei: int
    creator: str
    contributors: list[str] = Field(default_factory=list)
    distributed: bool = False

    @property
    def amount_eth(self) -> Decimal:
        return Decimal(Web3.from_wei(self.amount_wei, "ether"))

    @property
    def status(self) -> BountyStatus:
        return "distributed" if self.distributed else "active"

    def to_api(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": format_eth(self.amount_eth),
            "amountWei": str(self.amount_wei),
            "creator": self.creator,
            "contributors": self.contributors,
            "contributorCount": len(self.contributors),
            "distributed": self.distributed,
            "status": self.status,
        }


class HistoryEntry(BaseModel):
    """Trace d'une génération publiée (ajout seul)."""

    model_config = ConfigDict(extra="allow")

    input_text: str
    data: list[dict[str, Any]]
    metadata: dict[str, Any] = Field(default_factory=dict)
    content_url: str | None = None
    metadata_url: str | None = None
    content_hash: str | None = None
    token_id: str | None = None
    transaction_hash: str | None = None
    created_at: str = Field(default_factory=utc_now_iso)


def format_eth(value: Decimal) -> str:
    """Rend un montant ETH sans notation exponentielle ni zéros superflus."""
    text = format(value.normalize(), "f")
    if "." not in text:
        text += ".0"
    return text
