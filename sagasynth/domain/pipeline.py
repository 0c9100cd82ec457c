"""
Pipeline de provenance: génération -> publication -> (mint) -> historique.

Chaque requête exécute les étapes dans cet ordre strict; une étape en échec interrompt les
suivantes (pas de métadonnées sans URL de contenu, pas de mint sans publication).
"""

from __future__ import annotations

import json
import time
from typing import Any

import structlog
from opentelemetry import trace

from sagasynth.core.constants import (
    DEFAULT_SOURCE_DATASET,
    PREVIEW_ROWS,
    TAG_TYPE_DATASET,
    TAG_TYPE_METADATA,
    TEST_PROMPT_SAMPLE_SIZE,
)
from sagasynth.domain.entities import (
    DatasetRecord,
    HistoryEntry,
    MintRequest,
    MintResult,
    utc_now_iso,
)
from sagasynth.domain.errors import UpstreamError, ValidationError
from sagasynth.domain.generation import DatasetGenerator
from sagasynth.domain.publishing import ContentPublisher
from sagasynth.domain.validation import require_fields

log = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

GENERATE_REQUIRED = (
    "input_text",
    "sample_size",
    "domain",
    "dataset_name",
    "description",
    "visibility",
    "price_usdc",
    "max_tokens",
    "output_format",
    "source_dataset",
    "ai_model",
)

TEST_PROMPT_DEFAULTS = {
    "sample_size": TEST_PROMPT_SAMPLE_SIZE,
    "dataset_name": "Test Dataset",
    "description": "Test generation for prompt validation",
    "visibility": "private",
    "price_usdc": 0,
    "max_tokens": 3000,
    "output_format": "Structured JSON",
    "source_dataset": DEFAULT_SOURCE_DATASET,
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _price(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise ValidationError("Invalid price_usdc", fields=["price_usdc"]) from exc
    return value


def build_mint_request(
    *,
    content_hash: str,
    content_link: str,
    token_uri: str,
    source_url: str | None = None,
    embed_vector_id: str | None = None,
    created_at: int | None = None,
    tags: list[str] | None = None,
    default_source: str = "SagaSynth Dataset",
    default_tags: tuple[str, ...] = ("synthetic",),
) -> MintRequest:
    """Complète les champs optionnels du mint avec leurs valeurs par défaut."""
    return MintRequest(
        source_url=source_url or default_source,
        content_hash=content_hash,
        content_link=content_link,
        embed_vector_id=embed_vector_id or f"vector_{_now_ms()}",
        created_at=created_at or int(time.time()),
        tags=list(tags or default_tags),
        token_uri=token_uri,
    )


class DatasetPipeline:
    """Orchestration séquentielle d'une génération publiée.

    Dépendances:
    - generator: `DatasetGenerator` (appels au modèle).
    - content: `ContentPublisher` (empreinte + publication).
    - registry: client registre (mint), optionnel tant qu'aucun mint n'est demandé.
    - history: registre d'historique ajout-seul.
    """

    def __init__(
        self,
        generator: DatasetGenerator,
        content: ContentPublisher,
        registry,
        history,
        explorer_prefix: str = "https://sagascan.io/tx/",
        history_limit: int = 100,
    ):
        self.generator = generator
        self.content = content
        self.registry = registry
        self.history = history
        self.explorer_prefix = explorer_prefix
        self.history_limit = history_limit

    # -------------------- Génération --------------------

    def _metadata_document(
        self, record: DatasetRecord, content_url: str, content_hash: str, options: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "name": options["dataset_name"],
            "description": options["description"],
            "content_url": content_url,
            "content_hash": content_hash,
            "sample_size": len(record.rows),
            "verified_count": record.verified_count,
            "domain": options["domain"],
            "model": options["ai_model"],
            "max_tokens": options["max_tokens"],
            "output_format": options["output_format"],
            "source_dataset": options["source_dataset"],
            "visibility": options["visibility"],
            "price_usdc": options["price_usdc"],
            "tags": list(options.get("tags") or []),
            "input_text": record.input_text,
            "created_at": record.created_at,
        }

    def generate_and_publish(self, mint: bool = False, **options: Any) -> dict[str, Any]:
        """Génère, publie données et métadonnées, minte éventuellement, puis historise.

        Lève `ValidationError` listant tous les champs requis manquants.
        """
        require_fields({k: options.get(k) for k in GENERATE_REQUIRED}, "Missing required fields")
        options = {**options, "price_usdc": _price(options["price_usdc"])}
        with tracer.start_as_current_span("pipeline.generate"):
            record = self.generator.generate(
                options["input_text"], options["sample_size"], options["domain"]
            )
        rows = record.rows_payload()
        with tracer.start_as_current_span("pipeline.publish"):
            content_ref = self.content.publish_json(rows, TAG_TYPE_DATASET)
            metadata = self._metadata_document(record, content_ref.url, content_ref.content_hash, options)
            metadata_ref = self.content.publish_json(metadata, TAG_TYPE_METADATA)
        ready = build_mint_request(
            source_url=record.input_text,
            content_hash=content_ref.content_hash,
            content_link=content_ref.url,
            token_uri=metadata_ref.url,
            tags=options.get("tags") or None,
        )
        minted: MintResult | None = None
        if mint:
            with tracer.start_as_current_span("pipeline.mint"):
                minted = self.registry.mint(ready)
        with tracer.start_as_current_span("pipeline.history"):
            self.history.append(
                HistoryEntry(
                    input_text=record.input_text,
                    data=rows,
                    metadata=metadata,
                    content_url=content_ref.url,
                    metadata_url=metadata_ref.url,
                    content_hash=content_ref.content_hash,
                    token_id=None if minted is None or minted.token_id is None else str(minted.token_id),
                    transaction_hash=None if minted is None else minted.receipt.hash,
                )
            )
        log.info(
            "pipeline_done",
            rows=len(rows),
            content_url=content_ref.url,
            minted=minted is not None,
        )
        out: dict[str, Any] = {
            "data": rows,
            "metadata": metadata,
            "irys_links": {"content_url": content_ref.url, "metadata_url": metadata_ref.url},
            "ready_for_nft": {
                **ready.to_prepared(),
                "domain": options["domain"],
                "source_dataset": options["source_dataset"],
            },
        }
        if minted is not None:
            out["nft"] = self._mint_payload(minted)
        return out

    def test_prompt(self, input_text: str, domain: str, ai_model: str) -> dict[str, Any]:
        """Génération courte à paramètres fixes, sans publication ni historique."""
        require_fields({"input_text": input_text, "domain": domain}, "input_text and domain are required")
        record = self.generator.generate(input_text, TEST_PROMPT_SAMPLE_SIZE, domain)
        return {
            "test_parameters": {**TEST_PROMPT_DEFAULTS, "domain": domain, "ai_model": ai_model},
            "data": record.rows_payload(),
            "input_text": input_text,
        }

    # -------------------- Jeux de données existants --------------------

    def upload_dataset(self, data: Any, metadata: dict[str, Any] | None, mint: bool = False) -> dict[str, Any]:
        """Publie des données arbitraires et leurs métadonnées liées."""
        if not data or not metadata:
            raise ValidationError(
                "Data and metadata are required",
                fields=[k for k, v in (("data", data), ("metadata", metadata)) if not v],
            )
        data_ref = self.content.publish_json(data, TAG_TYPE_DATASET)
        linked = {
            **metadata,
            "dataUrl": data_ref.url,
            "contentHash": data_ref.content_hash,
            "createdAt": utc_now_iso(),
        }
        metadata_ref = self.content.publish_json(linked, TAG_TYPE_METADATA)
        prepared = build_mint_request(
            source_url=metadata.get("sourceUrl"),
            content_hash=data_ref.content_hash,
            content_link=data_ref.url,
            token_uri=metadata_ref.url,
            tags=metadata.get("tags"),
            default_source="SagaSynth Generated",
            default_tags=("synthetic", "dataset"),
        )
        out: dict[str, Any] = {
            "dataUrl": data_ref.url,
            "metadataUrl": metadata_ref.url,
            "contentHash": data_ref.content_hash,
            "prepared": prepared.to_prepared(),
            "nft": None,
        }
        if mint:
            out["nft"] = self.mint(prepared)
        return out

    def mint(self, request: MintRequest) -> dict[str, Any]:
        return self._mint_payload(self.registry.mint(request))

    def _mint_payload(self, minted: MintResult) -> dict[str, Any]:
        return {
            "tokenId": None if minted.token_id is None else str(minted.token_id),
            "transactionHash": minted.receipt.hash,
            "blockNumber": minted.receipt.block_number,
            "gasUsed": str(minted.receipt.gas_used),
            "transaction": minted.receipt.to_api(self.explorer_prefix),
        }

    def _load_json(self, url: str) -> tuple[bytes, Any]:
        raw = self.content.publisher.fetch(url)
        try:
            return raw, json.loads(raw)
        except ValueError as exc:
            raise UpstreamError(f"Content at {url} is not JSON", details=str(exc)) from exc

    def preview(self, url: str) -> dict[str, Any]:
        """Premières lignes d'un jeu de données publié."""
        require_fields({"url": url}, "URL parameter is required")
        _, data = self._load_json(url)
        if isinstance(data, list):
            head = data[:PREVIEW_ROWS]
            return {"preview": head, "totalRows": len(data), "previewRows": len(head)}
        return {"preview": data, "totalRows": 1, "previewRows": 1}

    def verify(self, url: str, expected_hash: str) -> dict[str, Any]:
        """Recalcule l'empreinte d'un contenu publié et la compare à `expected_hash`."""
        require_fields({"url": url, "content_hash": expected_hash}, "url and content_hash are required")
        result = self.content.verify(url, expected_hash)
        log.info("content_verified", url=url, match=result["match"])
        return result

    # -------------------- Historique --------------------

    def history_listing(self, limit: int | None = None) -> dict[str, Any]:
        """Entrées récentes, plafonnées à la limite configurée."""
        cap = min(limit or self.history_limit, self.history_limit)
        entries = self.history.list_recent(cap)
        formatted = []
        for e in entries:
            formatted.append(
                {
                    "metadata": {
                        **e.metadata,
                        "sample_size": len(e.data),
                        "created_at": e.created_at,
                    },
                    "data": e.data,
                    "content_url": e.content_url,
                    "metadata_url": e.metadata_url,
                    "content_hash": e.content_hash,
                    "token_id": e.token_id,
                    "transaction_hash": e.transaction_hash,
                }
            )
        return {"total_records": self.history.count(), "history": formatted}
