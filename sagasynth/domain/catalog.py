"""Lectures agrégées des jetons: par créateur, vitrine et énumération complète."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from sagasynth.domain.enrichment import fetch_token_document
from sagasynth.domain.errors import ChainError, SagaError
from sagasynth.domain.validation import require_address

log = structlog.get_logger(__name__)


class CatalogService:
    def __init__(self, registry, http: httpx.Client, enrichment_timeout: float = 5.0):
        self.registry = registry
        self.http = http
        self.enrichment_timeout = enrichment_timeout

    def nft(self, token_id: int) -> dict[str, Any]:
        return self.registry.get_metadata(token_id).to_api()

    def by_creator(self, address: Any) -> dict[str, Any]:
        """Jetons mintés par `address`, avec leurs métadonnées on-chain."""
        creator = require_address(address)
        ids = self.registry.get_metadata_by_creator(creator)
        nfts = [self.registry.get_metadata(i).to_api() for i in ids]
        return {"creator": creator, "totalNFTs": len(nfts), "nfts": nfts}

    def _with_document(self, token_id: int) -> dict[str, Any] | None:
        """Métadonnées on-chain + document `tokenURI`; None si la lecture on-chain échoue."""
        try:
            item = self.registry.get_metadata(token_id).to_api()
        except SagaError as exc:
            log.warning("marketplace_token_skipped", token_id=token_id, error=exc.message)
            return None
        try:
            uri = self.registry.token_uri(token_id)
        except SagaError as exc:
            log.info("enrichment_skipped", token_id=token_id, error=exc.message)
            uri = None
        item["metadata"] = fetch_token_document(self.http, uri, self.enrichment_timeout).value
        return item

    def marketplace(self) -> dict[str, Any]:
        """Jetons du compte signataire, enrichis, du plus récent au plus ancien."""
        signer = self.registry.signer_address
        if not signer:
            raise ChainError("Signing key not configured", details="PRIVATE_KEY is not set")
        ids = self.registry.get_metadata_by_creator(signer)
        nfts = [n for n in (self._with_document(i) for i in ids) if n is not None]
        nfts.sort(key=lambda n: n["createdAt"], reverse=True)
        return {"totalNFTs": len(nfts), "nfts": nfts}

    def all_metadata(self) -> dict[str, Any]:
        """Tous les jetons existants; les lectures incomplètes sont écartées."""
        ids = self.registry.iter_token_ids()
        complete: list[dict[str, Any]] = []
        for token_id in ids:
            meta = self.registry.get_metadata(token_id)
            if not meta.content_hash or not meta.content_link:
                log.info("metadata_incomplete", token_id=token_id)
                continue
            complete.append(
                {
                    "tokenId": token_id,
                    "source_url": meta.source_url,
                    "content_hash": meta.content_hash,
                    "content_link": meta.content_link,
                    "embed_vector_id": meta.embed_vector_id,
                    "created_at": meta.created_at,
                    "tags": meta.tags,
                    "owner": meta.owner,
                    "tokenURI": self.registry.token_uri(token_id),
                }
            )
        return {
            "total_checked": len(ids),
            "total_complete": len(complete),
            "metadata": complete,
        }
