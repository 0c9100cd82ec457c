"""Façade typée du contrat registre (NFT de métadonnées + bounties).

Responsabilités du module
-------------------------
- Valider les entrées avant toute soumission (champs requis, montants, adresses).
- Soumettre les transactions signées localement et attendre leur inclusion.
- Décoder les évènements émis pour extraire les identifiants attribués.
- Classer les reverts du contrat en erreurs typées (une seule table de correspondance).
- Énumérer jetons et bounties par sondes parallèles bornées.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar

import structlog
from eth_account import Account
from web3 import Web3
from web3.contract.contract import Contract
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.logs import DISCARD

from sagasynth.app.metrics import CHAIN_TX_LATENCY, CHAIN_TX_TOTAL
from sagasynth.core.constants import BOUNTY_MAX_ETH, DONATION_MAX_ETH, DONATION_MIN_ETH, ZERO_ADDRESS
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
    ChainError,
    NotFoundError,
    PermissionDeniedError,
    SagaError,
    ValidationError,
)
from sagasynth.domain.validation import parse_eth_amount, require_address, require_fields

log = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

BUNDLED_ABI = Path(__file__).with_name("registry_abi.json")

# Motifs de revert connus -> erreur typée
REVERT_KINDS: tuple[tuple[str, type[SagaError]], ...] = (
    ("not admin", PermissionDeniedError),
    ("already distributed", AlreadyDistributedError),
    ("no contributors", ValidationError),
    ("bounty does not exist", NotFoundError),
    ("nonexistent token", NotFoundError),
    ("invalid token id", NotFoundError),
)


def classify_revert(exc: Exception, default: type[SagaError] = ChainError) -> SagaError:
    """Convertit un revert en erreur typée selon `REVERT_KINDS`, sinon `default`."""
    raw = str(getattr(exc, "message", None) or exc)
    text = raw.lower()
    for needle, kind in REVERT_KINDS:
        if needle in text:
            return kind(f"Contract rejected the call: {needle}", details=raw)
    return default("Contract call reverted", details=raw)


def load_abi(path: str | Path | None = None) -> list[dict[str, Any]]:
    """Charge une ABI brute ou un artefact Hardhat (`{"abi": [...]}`)."""
    with Path(path or BUNDLED_ABI).open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return data["abi"] if isinstance(data, dict) else data


def uint_id(value: Any, field: str) -> int:
    """Identifiant `uint256`: entier positif ou nul, sinon `ValidationError`."""
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field}", fields=[field], details=str(value)) from exc
    if isinstance(value, bool) or number < 0:
        raise ValidationError(f"Invalid {field}", fields=[field], details=str(value))
    return number


class RegistryClient:
    """Client web3 du contrat registre."""

    def __init__(
        self,
        web3: Web3,
        contract: Contract | None,
        account: Any | None = None,
        chain_id: int | None = None,
        receipt_timeout: float = 180.0,
        probe_concurrency: int = 8,
        token_scan_limit: int = 10_000,
    ) -> None:
        self.web3 = web3
        self.contract = contract
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.probe_concurrency = max(1, probe_concurrency)
        self.token_scan_limit = token_scan_limit

    @classmethod
    def from_settings(cls, settings) -> RegistryClient:
        """Construit le client; aucune requête réseau n'est émise ici."""
        web3 = Web3(Web3.HTTPProvider(settings.RPC_URL, request_kwargs={"timeout": 30}))
        contract = None
        if settings.CONTRACT_ADDRESS:
            contract = web3.eth.contract(
                address=Web3.to_checksum_address(settings.CONTRACT_ADDRESS),
                abi=load_abi(settings.CONTRACT_ABI_PATH),
            )
        account = Account.from_key(settings.PRIVATE_KEY) if settings.PRIVATE_KEY else None
        return cls(
            web3,
            contract,
            account=account,
            chain_id=settings.CHAIN_ID,
            receipt_timeout=settings.TX_RECEIPT_TIMEOUT_S,
            probe_concurrency=settings.PROBE_CONCURRENCY,
            token_scan_limit=settings.TOKEN_SCAN_LIMIT,
        )

    # -------------------- Plomberie --------------------

    @property
    def configured(self) -> bool:
        return self.contract is not None

    @property
    def signer_address(self) -> str | None:
        return self.account.address if self.account is not None else None

    def _require_contract(self) -> Contract:
        if self.contract is None:
            raise ChainError("Registry contract not configured", details="CONTRACT_ADDRESS is not set")
        return self.contract

    def _require_account(self):
        if self.account is None:
            raise ChainError("Signing key not configured", details="PRIVATE_KEY is not set")
        return self.account

    def _call(
        self,
        function_name: str,
        *args: Any,
        revert_default: type[SagaError] = ChainError,
    ) -> Any:
        contract = self._require_contract()
        function = getattr(contract.functions, function_name)
        try:
            return function(*args).call()
        except ContractLogicError as exc:
            raise classify_revert(exc, revert_default) from exc
        except (Web3Exception, OSError) as exc:
            raise ChainError(f"RPC call {function_name} failed", details=str(exc)) from exc

    def _transact(
        self,
        operation: str,
        function_name: str,
        *args: Any,
        value_wei: int = 0,
    ) -> tuple[Any, TxReceipt]:
        """Construit, signe, envoie une transaction et attend son reçu."""
        contract = self._require_contract()
        account = self._require_account()
        function = getattr(contract.functions, function_name)
        start = time.perf_counter()
        try:
            params: dict[str, Any] = {
                "from": account.address,
                "nonce": self.web3.eth.get_transaction_count(account.address, "pending"),
                "value": value_wei,
            }
            if self.chain_id:
                params["chainId"] = self.chain_id
            tx = function(*args).build_transaction(params)
            signed = account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
            log.info("chain_tx_sent", operation=operation, tx_hash=Web3.to_hex(tx_hash))
            receipt = self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except ContractLogicError as exc:
            CHAIN_TX_TOTAL.labels(operation=operation, result="reverted").inc()
            raise classify_revert(exc) from exc
        except TimeExhausted as exc:
            CHAIN_TX_TOTAL.labels(operation=operation, result="timeout").inc()
            raise ChainError("Transaction not mined in time", details=str(exc)) from exc
        except (Web3Exception, OSError) as exc:
            CHAIN_TX_TOTAL.labels(operation=operation, result="error").inc()
            raise ChainError(f"{operation} transaction failed", details=str(exc)) from exc
        CHAIN_TX_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)
        if receipt["status"] == 0:
            CHAIN_TX_TOTAL.labels(operation=operation, result="reverted").inc()
            raise ChainError("Transaction reverted", details=Web3.to_hex(tx_hash))
        CHAIN_TX_TOTAL.labels(operation=operation, result="ok").inc()
        summary = TxReceipt(
            hash=Web3.to_hex(tx_hash),
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            sender=account.address,
        )
        return receipt, summary

    def _event_arg(self, receipt: Any, event_name: str, arg: str) -> Any | None:
        contract = self._require_contract()
        event = getattr(contract.events, event_name)()
        for entry in event.process_receipt(receipt, errors=DISCARD):
            value = entry["args"].get(arg)
            if value is not None:
                return value
        return None

    def _fan_out(self, fn: Callable[[T], R], items: Sequence[T]) -> list[R]:
        """Applique `fn` en parallèle borné, en conservant l'ordre."""
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=min(self.probe_concurrency, len(items))) as pool:
            return list(pool.map(fn, items))

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
        receipt, summary = self._transact(
            "mint",
            "mintMetadataNFT",
            request.source_url,
            request.content_hash,
            request.content_link,
            request.embed_vector_id,
            int(request.created_at),
            list(request.tags),
            request.token_uri,
        )
        token_id = self._event_arg(receipt, "MetadataMinted", "tokenId")
        if token_id is None:
            log.warning("mint_event_missing", tx_hash=summary.hash)
        return MintResult(token_id=None if token_id is None else int(token_id), receipt=summary)

    def get_metadata(self, token_id: int) -> NFTMetadata:
        raw = self._call("getMetadata", uint_id(token_id, "tokenId"), revert_default=NotFoundError)
        source_url, content_hash, content_link, embed_vector_id, created_at, tags, owner = raw
        return NFTMetadata(
            token_id=int(token_id),
            source_url=source_url,
            content_hash=content_hash,
            content_link=content_link,
            embed_vector_id=embed_vector_id,
            created_at=int(created_at),
            tags=list(tags),
            owner=owner,
        )

    def get_metadata_by_creator(self, address: str) -> list[int]:
        creator = require_address(address)
        return [int(i) for i in self._call("getMetadataByCreator", creator)]

    def owner_of(self, token_id: int) -> str:
        owner = self._call("ownerOf", uint_id(token_id, "tokenId"), revert_default=NotFoundError)
        if not owner or owner == ZERO_ADDRESS:
            raise NotFoundError(f"Token {token_id} does not exist")
        return owner

    def token_exists(self, token_id: int) -> bool:
        try:
            self.owner_of(token_id)
        except NotFoundError:
            return False
        return True

    def token_uri(self, token_id: int) -> str:
        return self._call("tokenURI", uint_id(token_id, "tokenId"), revert_default=NotFoundError)

    def balance_of(self, address: str) -> int:
        try:
            return int(self.web3.eth.get_balance(Web3.to_checksum_address(address)))
        except (Web3Exception, OSError) as exc:
            raise ChainError("Balance lookup failed", details=str(exc)) from exc

    def total_supply(self) -> int | None:
        """`totalSupply()` si le contrat l'expose (ERC721Enumerable), sinon None."""
        contract = self._require_contract()
        if not any(item.get("name") == "totalSupply" for item in contract.abi):
            return None
        return int(self._call("totalSupply"))

    def iter_token_ids(self) -> list[int]:
        """Identifiants de jetons existants, à partir de 1.

        Sans `totalSupply`, sonde des fenêtres de `probe_concurrency` identifiants en parallèle
        et s'arrête à la première fenêtre contenant un identifiant absent.
        """
        supply = self.total_supply()
        if supply is not None:
            return list(range(1, supply + 1))
        found: list[int] = []
        start = 1
        while start <= self.token_scan_limit:
            stop = min(start + self.probe_concurrency, self.token_scan_limit + 1)
            window = list(range(start, stop))
            for token_id, exists in zip(window, self._fan_out(self.token_exists, window), strict=True):
                if not exists:
                    return found
                found.append(token_id)
            start = stop
        log.warning("token_scan_limit_reached", limit=self.token_scan_limit)
        return found

    def donate(self, token_id: int, amount: Any) -> TxReceipt:
        value = parse_eth_amount(amount, minimum=DONATION_MIN_ETH, maximum=DONATION_MAX_ETH)
        self.owner_of(token_id)
        _, summary = self._transact(
            "donate", "donateToCreator", uint_id(token_id, "tokenId"), value_wei=to_wei(value)
        )
        return summary

    # -------------------- Bounties --------------------

    def create_bounty(self, amount: Any) -> BountyCreated:
        value = parse_eth_amount(amount, maximum=BOUNTY_MAX_ETH, label="bounty")
        receipt, summary = self._transact("create_bounty", "createBounty", value_wei=to_wei(value))
        bounty_id = self._event_arg(receipt, "BountyCreated", "bountyId")
        if bounty_id is None:
            log.warning("bounty_event_missing", tx_hash=summary.hash)
            bounty_id = self.next_bounty_id() - 1
        return BountyCreated(bounty_id=int(bounty_id), receipt=summary)

    def add_contributor(self, bounty_id: int, address: str) -> TxReceipt:
        contributor = require_address(address, "contributorAddress")
        _, summary = self._transact("add_contributor", "addContributor", uint_id(bounty_id, "bountyId"), contributor)
        return summary

    def distribute_bounty(self, bounty_id: int) -> TxReceipt:
        _, summary = self._transact("distribute_bounty", "distributeBounty", uint_id(bounty_id, "bountyId"))
        return summary

    def get_bounty(self, bounty_id: int) -> Bounty:
        amount, creator, contributors, distributed = self._call(
            "getBounty", uint_id(bounty_id, "bountyId"), revert_default=NotFoundError
        )
        if not creator or creator == ZERO_ADDRESS:
            raise NotFoundError(f"Bounty {bounty_id} does not exist")
        return Bounty(
            id=int(bounty_id),
            amount_wei=int(amount),
            creator=creator,
            contributors=list(contributors),
            distributed=bool(distributed),
        )

    def next_bounty_id(self) -> int:
        return int(self._call("nextBountyId"))

    def list_bounties(self) -> list[Bounty]:
        """Toutes les bounties `0..nextBountyId-1`; les lectures en échec sont ignorées."""
        ids = list(range(self.next_bounty_id()))
        return [b for b in self._fan_out(self._bounty_or_none, ids) if b is not None]

    def _bounty_or_none(self, bounty_id: int) -> Bounty | None:
        try:
            return self.get_bounty(bounty_id)
        except SagaError as exc:
            log.warning("bounty_read_failed", bounty_id=bounty_id, error=exc.message)
            return None

    def describe(self) -> dict[str, Any]:
        return {"configured": self.configured, "signer": self.signer_address}


def to_wei(amount: Decimal) -> int:
    return int(Web3.to_wei(amount, "ether"))
