"""Dons directs au créateur d'un jeton."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx
import structlog
from web3 import Web3

from sagasynth.core.constants import DONATION_MAX_ETH, DONATION_MIN_ETH
from sagasynth.domain.enrichment import Enrichment, fetch_token_document
from sagasynth.domain.entities import format_eth
from sagasynth.domain.errors import NotFoundError, SagaError
from sagasynth.domain.validation import parse_eth_amount

log = structlog.get_logger(__name__)


def _eth(wei: int) -> str:
    # from_wei refuse les valeurs négatives (écart de solde)
    return format_eth(Decimal(wei).scaleb(-18))


class DonationService:
    """Valide, vérifie l'existence du jeton puis transfère le don.

    L'augmentation (document `tokenURI`) est optionnelle: son échec ne change ni l'issue
    ni le statut de l'opération principale.
    """

    def __init__(
        self,
        registry,
        http: httpx.Client,
        explorer_prefix: str = "https://sagascan.io/tx/",
        enrichment_timeout: float = 5.0,
    ):
        self.registry = registry
        self.http = http
        self.explorer_prefix = explorer_prefix
        self.enrichment_timeout = enrichment_timeout

    def _enrich(self, token_id: int) -> Enrichment:
        try:
            uri = self.registry.token_uri(token_id)
        except SagaError as exc:
            log.info("enrichment_skipped", token_id=token_id, error=exc.message)
            return Enrichment(ignored_error=exc.message)
        return fetch_token_document(self.http, uri, timeout=self.enrichment_timeout)

    def _require_token(self, token_id: int) -> None:
        if not self.registry.token_exists(token_id):
            raise NotFoundError(f"Token {token_id} does not exist")

    def donate(self, token_id: int, amount: Any) -> dict[str, Any]:
        """Envoie `amount` ETH au créateur de `token_id`.

        Le solde du créateur est lu juste avant et juste après la transaction; l'écart
        inclut tout transfert concurrent externe.
        """
        value = parse_eth_amount(amount, minimum=DONATION_MIN_ETH, maximum=DONATION_MAX_ETH)
        self._require_token(token_id)
        metadata = self.registry.get_metadata(token_id)
        extra = self._enrich(token_id)
        before = self.registry.balance_of(metadata.owner)
        log.info(
            "donation_started",
            token_id=token_id,
            amount=str(value),
            name=extra.get("name", "Unknown"),
        )
        receipt = self.registry.donate(token_id, value)
        after = self.registry.balance_of(metadata.owner)
        delta = after - before
        return {
            "donation": {
                "tokenId": str(token_id),
                "amount": format_eth(value),
                "amountWei": str(Web3.to_wei(value, "ether")),
                "recipient": metadata.owner,
                "actualReceived": _eth(delta),
            },
            "token": {
                "name": extra.get("name"),
                "description": extra.get("description"),
                "domain": extra.get("domain"),
                "creator": metadata.owner,
                "source_url": metadata.source_url,
                "tags": metadata.tags,
            },
            "enrichment": {"ok": extra.ok, "error": extra.ignored_error},
            "transaction": receipt.to_api(self.explorer_prefix),
            "balances": {
                "creator_before": _eth(before),
                "creator_after": _eth(after),
                "difference": _eth(delta),
            },
        }

    def donation_info(self, token_id: int) -> dict[str, Any]:
        self._require_token(token_id)
        metadata = self.registry.get_metadata(token_id)
        extra = self._enrich(token_id)
        balance = self.registry.balance_of(metadata.owner)
        return {
            "token": {
                "id": str(token_id),
                "name": extra.get("name", "Unnamed Dataset"),
                "description": extra.get("description", "No description available"),
                "domain": extra.get("domain"),
                "sample_size": extra.get("sample_size"),
                "price_usdc": extra.get("price_usdc"),
                "visibility": extra.get("visibility"),
                "creator": metadata.owner,
                "source_url": metadata.source_url,
                "tags": metadata.tags,
                "created_at": metadata.created_at,
                "content_link": metadata.content_link,
            },
            "creator": {"address": metadata.owner, "current_balance": _eth(balance)},
            "donation": {
                "endpoint": f"/api/nft/{token_id}/donate",
                "method": "POST",
                "body_example": {"amount": "0.001"},
                "limits": {
                    "min_amount": format_eth(DONATION_MIN_ETH),
                    "max_amount": format_eth(DONATION_MAX_ETH),
                    "currency": "ETH",
                },
            },
        }
