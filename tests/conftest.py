"""Configuration de test pour pytest avec gestion des chemins.

Ajoute la racine du projet au sys.path et fournit un conteneur recâblé sur des fakes
(modèle, registre, stockage en mémoire, historique dans `tmp_path`, HTTP simulé).
"""

import os
import sys
from types import SimpleNamespace

import httpx
import pytest

# Ensure project root is on sys.path so that
# imports like `from sagasynth...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sagasynth.core.container import container  # noqa: E402
from sagasynth.infra.history import JsonlHistoryLedger  # noqa: E402
from sagasynth.infra.storage.memory_publisher import InMemoryPublisher  # noqa: E402
from tests.fakes import FakeLLM, FakeRegistry  # noqa: E402


def make_handler(
    documents: dict[str, object],
    hf_rows: list[dict] | None = None,
    hf_queries: list[dict[str, str]] | None = None,
):
    """Transport httpx simulé: documents de `tokenURI` et endpoint `/rows`."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/rows":
            if hf_queries is not None:
                hf_queries.append(dict(request.url.params))
            return httpx.Response(200, json={"rows": hf_rows or []})
        doc = documents.get(str(request.url))
        if doc is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=doc)

    return handler


@pytest.fixture
def wired(tmp_path):
    """Recâble le conteneur global sur des fakes pour la durée d'un test."""
    documents: dict[str, object] = {}
    hf_rows: list[dict] = []
    hf_queries: list[dict[str, str]] = []
    ns = SimpleNamespace(
        llm=FakeLLM(),
        registry=FakeRegistry(),
        publisher=InMemoryPublisher("https://gateway.test"),
        history=JsonlHistoryLedger(str(tmp_path / "history.jsonl")),
        documents=documents,
        hf_rows=hf_rows,
        hf_queries=hf_queries,
    )
    http = httpx.Client(transport=httpx.MockTransport(make_handler(documents, hf_rows, hf_queries)))
    container.wire(
        llm=ns.llm,
        publisher=ns.publisher,
        registry=ns.registry,
        history=ns.history,
        http=http,
    )
    ns.container = container
    yield ns
    http.close()
