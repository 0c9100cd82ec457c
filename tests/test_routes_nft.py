"""Tests des routes NFT (mint, lecture, dons, vitrine)."""

from fastapi.testclient import TestClient
from web3 import Web3

from sagasynth.app.main import app
from sagasynth.core.http_constants import HTTP_BAD_REQUEST, HTTP_NOT_FOUND, HTTP_OK
from tests.fakes import ADMIN, tx_count

MINT = {
    "contentHash": "0x" + "ab" * 32,
    "contentLink": "https://gateway.test/data",
    "tokenURI": "https://gateway.test/meta",
}


def test_mint_then_read(wired):
    client = TestClient(app)
    r = client.post("/api/nft/mint", json=MINT)
    assert r.status_code == HTTP_OK
    assert r.json()["tokenId"] == "1"
    assert r.json()["transaction"]["hash"].startswith("0x")

    nft = client.get("/api/nft/1").json()
    assert nft["sourceUrl"] == "SagaSynth Dataset"
    assert nft["tags"] == ["synthetic"]
    assert nft["embedVectorId"].startswith("vector_")


def test_mint_missing_fields(wired):
    client = TestClient(app)
    r = client.post("/api/nft/mint", json={"contentHash": "0xab"})
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["fields"] == ["contentLink", "tokenURI"]
    assert tx_count(wired.registry) == 0


def test_unknown_token_and_bad_token_id(wired):
    client = TestClient(app)
    assert client.get("/api/nft/7").status_code == HTTP_NOT_FOUND
    r = client.get("/api/nft/not-a-number")
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["fields"] == ["token_id"]


def test_nfts_by_creator(wired):
    client = TestClient(app)
    client.post("/api/nft/mint", json=MINT)
    r = client.get(f"/api/nft/creator/{ADMIN}")
    assert r.status_code == HTTP_OK
    assert r.json()["totalNFTs"] == 1
    assert client.get("/api/nft/creator/0xnope").status_code == HTTP_BAD_REQUEST


def test_donate_to_missing_token_is_404_without_transaction(wired):
    client = TestClient(app)
    r = client.post("/api/nft/999/donate", json={"amount": "0.01"})
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "NOT_FOUND"
    assert tx_count(wired.registry) == 0


def test_donate_with_enrichment(wired):
    wired.documents["https://gateway.test/meta"] = {"name": "Cardio", "domain": "medical"}
    client = TestClient(app)
    client.post("/api/nft/mint", json=MINT)
    r = client.post("/api/nft/1/donate", json={"amount": "0.5"})
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["token"]["name"] == "Cardio"
    assert body["balances"]["difference"] == "0.5"
    assert wired.registry.balances[ADMIN] == Web3.to_wei("0.5", "ether")


def test_donate_amount_bounds(wired):
    client = TestClient(app)
    client.post("/api/nft/mint", json=MINT)
    assert client.post("/api/nft/1/donate", json={"amount": "11"}).status_code == HTTP_BAD_REQUEST
    assert client.post("/api/nft/1/donate", json={"amount": "0.0000001"}).status_code == HTTP_BAD_REQUEST
    assert client.post("/api/nft/1/donate", json={}).status_code == HTTP_BAD_REQUEST
    assert tx_count(wired.registry, "donate") == 0


def test_donation_info(wired):
    client = TestClient(app)
    client.post("/api/nft/mint", json=MINT)
    r = client.get("/api/nft/1/donation-info")
    assert r.status_code == HTTP_OK
    assert r.json()["donation"]["limits"]["max_amount"] == "10.0"
    assert r.json()["token"]["name"] == "Unnamed Dataset"


def test_marketplace_and_all_metadata(wired):
    client = TestClient(app)
    client.post("/api/nft/mint", json=MINT)
    client.post("/api/nft/mint", json={**MINT, "createdAt": 1})
    market = client.get("/api/marketplace/nfts").json()
    assert market["totalNFTs"] == 2
    assert market["nfts"][-1]["createdAt"] == 1
    everything = client.get("/api/metadata/all").json()
    assert everything["total_checked"] == 2
    assert everything["total_complete"] == 2


def test_negative_token_id_is_a_validation_error(wired):
    client = TestClient(app)
    client.post("/api/nft/mint", json=MINT)
    r = client.get("/api/nft/-1")
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["fields"] == ["token_id"]
    r = client.post("/api/nft/-1/donate", json={"amount": "1"})
    assert r.status_code == HTTP_BAD_REQUEST
    assert tx_count(wired.registry, "donate") == 0
