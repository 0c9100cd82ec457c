"""Tests des routes de jeux de données publiés."""

from fastapi.testclient import TestClient

from sagasynth.app.main import app
from sagasynth.core.http_constants import HTTP_BAD_GATEWAY, HTTP_BAD_REQUEST, HTTP_OK
from tests.fakes import hash_of


def test_upload_preview_verify(wired):
    client = TestClient(app)
    rows = [{"text": f"row {i}"} for i in range(7)]
    r = client.post("/api/dataset/upload", json={"data": rows, "metadata": {"name": "rows"}})
    assert r.status_code == HTTP_OK
    uploaded = r.json()
    assert uploaded["contentHash"] == hash_of(rows)
    assert uploaded["nft"] is None

    preview = client.get("/api/dataset/preview", params={"url": uploaded["dataUrl"]}).json()
    assert preview["previewRows"] == 5
    assert preview["totalRows"] == 7

    verified = client.get(
        "/api/dataset/verify",
        params={"url": uploaded["dataUrl"], "content_hash": uploaded["contentHash"]},
    ).json()
    assert verified["match"] is True


def test_upload_and_mint(wired):
    client = TestClient(app)
    r = client.post(
        "/api/dataset/upload", json={"data": [{"a": 1}], "metadata": {"name": "x"}, "mint": True}
    )
    assert r.status_code == HTTP_OK
    assert r.json()["nft"]["tokenId"] == "1"
    assert wired.registry.minted[0].token_uri == r.json()["metadataUrl"]


def test_dataset_errors(wired):
    client = TestClient(app)
    assert client.post("/api/dataset/upload", json={"data": [1]}).status_code == HTTP_BAD_REQUEST
    assert client.get("/api/dataset/preview").status_code == HTTP_BAD_REQUEST
    missing = client.get("/api/dataset/preview", params={"url": "https://gateway.test/none"})
    assert missing.status_code == HTTP_BAD_GATEWAY
