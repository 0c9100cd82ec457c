"""
Fakes pour les tests unitaires.

Ce module fournit des implémentations factices du modèle de génération et du client registre,
avec un comportement déterministe et les mêmes erreurs typées que les implémentations réelles.
"""

from __future__ import annotations

import json
from typing import Any

from web3 import Web3

from sagasynth.core.constants import BOUNTY_MAX_ETH, DONATION_MAX_ETH, DONATION_MIN_ETH
from sagasynth.domain import content_address
from sagasynth.domain.entities import (
    Bounty,
    BountyCreated,
    MintRequest,
    MintResult,
    NFTMetadata,
    TxReceipt,
)
from sagasynth.domain.errors import (
    AlreadyDistributedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from sagasynth.domain.validation import parse_eth_amount, require_address, require_fields
from sagasynth.infra.llm.base import LLM

ADMIN = Web3.to_checksum_address("0x" + "11" * 20)
ALICE = Web3.to_checksum_address("0x" + "22" * 20)
BOB = Web3.to_checksum_address("0x" + "33" * 20)

VALID_ROW = {
    "synthetic_transcription": "Patient reports intermittent chest pain on exertion.",
    "medical_specialty": "Cardiology",
    "explanation": "Paraphrased cardiology intake note.",
}


def row_json(**overrides: Any) -> str:
    return json.dumps({**VALID_ROW, **overrides})


def hash_of(payload: Any) -> str:
    """Empreinte `0x…` attendue pour `payload` une fois sérialisé."""
    return content_address.content_hash(content_address.serialize(payload))


class FakeLLM(LLM):
    """
    Implémentation factice de LLM pour les tests.

    Rejoue une liste de réponses scriptées (la dernière est répétée); une réponse qui est une
    exception est levée au lieu d'être retournée.
    """

    model = "fake-llm"

    def __init__(self, responses: list[Any] | None = None):
        self.responses = list(responses or [row_json()])
        self.calls: list[list[dict[str, str]]] = []

    def generate(self, messages: list[dict[str, str]], *, json_output: bool = False, **kwargs: Any) -> str:
        index = min(len(self.calls), len(self.responses) - 1)
        self.calls.append(messages)
        answer = self.responses[index]
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeRegistry:
    """Contrat registre en mémoire (jetons, soldes et bounties).

    `caller` simule le compte signataire: seules les transactions émises par `ADMIN` passent
    les fonctions réservées à l'administrateur.
    """

    def __init__(self, caller: str = ADMIN):
        self.caller = caller
        self.tokens: dict[int, NFTMetadata] = {}
        self.token_uris: dict[int, str] = {}
        self.balances: dict[str, int] = {}
        self.bounties: dict[int, Bounty] = {}
        self.transactions: list[tuple[str, tuple[Any, ...]]] = []
        self.minted: list[MintRequest] = []

    # -------------------- Plomberie --------------------

    configured = True

    @property
    def signer_address(self) -> str:
        return self.caller

    def describe(self) -> dict[str, Any]:
        return {"configured": True, "signer": self.caller}

    def _receipt(self, operation: str, *args: Any) -> TxReceipt:
        self.transactions.append((operation, args))
        n = len(self.transactions)
        return TxReceipt(hash="0x" + f"{n:064x}", block_number=100 + n, gas_used=21000, sender=self.caller)

    def _require_admin(self) -> None:
        if self.caller != ADMIN:
            raise PermissionDeniedError("Contract rejected the call: not admin", details="Not admin")

    # -------------------- NFT --------------------

    def mint(self, request: MintRequest) -> MintResult:
        require_fields(
            {
                "contentHash": request.content_hash,
                "contentLink": request.content_link,
                "tokenURI": request.token_uri,
            },
            "Missing required fields for minting",
        )
        token_id = len(self.tokens) + 1
        self.minted.append(request)
        self.tokens[token_id] = NFTMetadata(
            token_id=token_id,
            source_url=request.source_url,
            content_hash=request.content_hash,
            content_link=request.content_link,
            embed_vector_id=request.embed_vector_id,
            created_at=request.created_at,
            tags=list(request.tags),
            owner=self.caller,
        )
        self.token_uris[token_id] = request.token_uri
        return MintResult(token_id=token_id, receipt=self._receipt("mint", token_id))

    def get_metadata(self, token_id: int) -> NFTMetadata:
        try:
            return self.tokens[int(token_id)]
        except KeyError as exc:
            raise NotFoundError(f"Token {token_id} does not exist") from exc

    def get_metadata_by_creator(self, address: str) -> list[int]:
        creator = require_address(address)
        return [i for i, m in self.tokens.items() if m.owner == creator]

    def owner_of(self, token_id: int) -> str:
        return self.get_metadata(token_id).owner

    def token_exists(self, token_id: int) -> bool:
        return int(token_id) in self.tokens

    def token_uri(self, token_id: int) -> str:
        self.get_metadata(token_id)
        return self.token_uris[int(token_id)]

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def iter_token_ids(self) -> list[int]:
        return sorted(self.tokens)

    def donate(self, token_id: int, amount: Any) -> TxReceipt:
        value = parse_eth_amount(amount, minimum=DONATION_MIN_ETH, maximum=DONATION_MAX_ETH)
        owner = self.owner_of(token_id)
        self.balances[owner] = self.balances.get(owner, 0) + Web3.to_wei(value, "ether")
        return self._receipt("donate", token_id, value)

    # -------------------- Bounties --------------------

    def create_bounty(self, amount: Any) -> BountyCreated:
        value = parse_eth_amount(amount, maximum=BOUNTY_MAX_ETH, label="bounty")
        bounty_id = len(self.bounties)
        self.bounties[bounty_id] = Bounty(
            id=bounty_id, amount_wei=Web3.to_wei(value, "ether"), creator=self.caller
        )
        return BountyCreated(bounty_id=bounty_id, receipt=self._receipt("create_bounty", value))

    def get_bounty(self, bounty_id: int) -> Bounty:
        try:
            return self.bounties[int(bounty_id)].model_copy(deep=True)
        except KeyError as exc:
            raise NotFoundError(f"Bounty {bounty_id} does not exist") from exc

    def add_contributor(self, bounty_id: int, address: str) -> TxReceipt:
        contributor = require_address(address, "contributorAddress")
        bounty = self.bounties.get(int(bounty_id))
        if bounty is None:
            raise NotFoundError(f"Bounty {bounty_id} does not exist")
        self._require_admin()
        if bounty.distributed:
            raise AlreadyDistributedError("Contract rejected the call: already distributed")
        bounty.contributors.append(contributor)
        return self._receipt("add_contributor", bounty_id, contributor)

    def distribute_bounty(self, bounty_id: int) -> TxReceipt:
        bounty = self.bounties.get(int(bounty_id))
        if bounty is None:
            raise NotFoundError(f"Bounty {bounty_id} does not exist")
        self._require_admin()
        if bounty.distributed:
            raise AlreadyDistributedError("Contract rejected the call: already distributed")
        if not bounty.contributors:
            raise ValidationError("Contract rejected the call: no contributors")
        share = bounty.amount_wei // len(bounty.contributors)
        for c in bounty.contributors:
            self.balances[c] = self.balances.get(c, 0) + share
        bounty.distributed = True
        return self._receipt("distribute_bounty", bounty_id)

    def next_bounty_id(self) -> int:
        return len(self.bounties)

    def list_bounties(self) -> list[Bounty]:
        return [self.get_bounty(i) for i in sorted(self.bounties)]


def tx_count(registry: FakeRegistry, operation: str | None = None) -> int:
    return sum(1 for op, _ in registry.transactions if operation in (None, op))
