"""Tests des lectures agrégées (par créateur, vitrine, énumération)."""

import httpx
import pytest

from sagasynth.domain.catalog import CatalogService
from sagasynth.domain.entities import MintRequest
from sagasynth.domain.errors import ChainError, NotFoundError, ValidationError
from tests.fakes import ADMIN, ALICE, FakeRegistry


def mint(registry, n, created_at):
    return registry.mint(
        MintRequest(
            source_url=f"source {n}",
            content_hash="0x" + "ab" * 32,
            content_link=f"https://gateway.test/data-{n}",
            embed_vector_id=f"vector_{n}",
            created_at=created_at,
            tags=["synthetic"],
            token_uri=f"https://gateway.test/meta-{n}",
        )
    ).token_id


def catalog(registry, documents=None):
    def handler(request: httpx.Request) -> httpx.Response:
        doc = (documents or {}).get(str(request.url))
        return httpx.Response(200, json=doc) if doc is not None else httpx.Response(404)

    return CatalogService(registry, httpx.Client(transport=httpx.MockTransport(handler)))


def test_nft_and_missing_token():
    registry = FakeRegistry()
    token_id = mint(registry, 1, 1_700_000_000)
    svc = catalog(registry)
    assert svc.nft(token_id)["tokenId"] == str(token_id)
    with pytest.raises(NotFoundError):
        svc.nft(42)


def test_by_creator_checksums_address():
    registry = FakeRegistry()
    mint(registry, 1, 1)
    mint(registry, 2, 2)
    result = catalog(registry).by_creator(ADMIN.lower())
    assert result["creator"] == ADMIN
    assert result["totalNFTs"] == 2
    assert catalog(registry).by_creator(ALICE)["nfts"] == []
    with pytest.raises(ValidationError):
        catalog(registry).by_creator("0x123")


def test_marketplace_sorted_newest_first_with_documents():
    registry = FakeRegistry()
    mint(registry, 1, 100)
    mint(registry, 2, 300)
    mint(registry, 3, 200)
    svc = catalog(registry, {"https://gateway.test/meta-2": {"name": "Newest"}})
    result = svc.marketplace()
    assert [n["createdAt"] for n in result["nfts"]] == [300, 200, 100]
    assert result["nfts"][0]["metadata"] == {"name": "Newest"}
    assert result["nfts"][1]["metadata"] is None


def test_marketplace_requires_signer():
    registry = FakeRegistry(caller="")
    with pytest.raises(ChainError):
        catalog(registry).marketplace()


def test_all_metadata_skips_incomplete_tokens():
    registry = FakeRegistry()
    mint(registry, 1, 1)
    mint(registry, 2, 2)
    mint(registry, 3, 3)
    registry.tokens[2] = registry.tokens[2].model_copy(update={"content_hash": ""})
    result = catalog(registry).all_metadata()
    assert result["total_checked"] == 3
    assert result["total_complete"] == 2
    assert [m["tokenId"] for m in result["metadata"]] == [1, 3]
    assert result["metadata"][0]["tokenURI"] == "https://gateway.test/meta-1"


class FlakyRegistry(FakeRegistry):
    def __init__(self):
        super().__init__()
        self.broken_uri: set[int] = set()
        self.broken_metadata: set[int] = set()

    def token_uri(self, token_id):
        if token_id in self.broken_uri:
            raise ChainError("RPC call tokenURI failed")
        return super().token_uri(token_id)

    def get_metadata(self, token_id):
        if token_id in self.broken_metadata:
            raise ChainError("RPC call getMetadata failed")
        return super().get_metadata(token_id)


def test_marketplace_survives_unreadable_tokens():
    registry = FlakyRegistry()
    mint(registry, 1, 100)
    mint(registry, 2, 200)
    mint(registry, 3, 300)
    registry.broken_uri.add(2)
    registry.broken_metadata.add(3)
    result = catalog(registry, {"https://gateway.test/meta-1": {"name": "One"}}).marketplace()
    assert [n["tokenId"] for n in result["nfts"]] == ["2", "1"]
    assert result["nfts"][0]["metadata"] is None
    assert result["nfts"][1]["metadata"] == {"name": "One"}
