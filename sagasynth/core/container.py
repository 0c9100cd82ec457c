"""
Conteneur d'injection de dépendances et configuration application.

Instancie les collaborateurs (modèle, publisher, client registre, historique, client HTTP)
à partir des settings, construit les services métier qui en dépendent, et expose un
singleton `container` utilisé par le reste de l'application.
"""

from __future__ import annotations

import httpx
import redis
import structlog

from sagasynth.core.settings import Settings, get_settings
from sagasynth.domain.bounty import BountyLifecycleManager
from sagasynth.domain.catalog import CatalogService
from sagasynth.domain.donation import DonationService
from sagasynth.domain.generation import DatasetGenerator
from sagasynth.domain.pipeline import DatasetPipeline
from sagasynth.domain.publishing import ContentPublisher
from sagasynth.infra.chain.registry_client import RegistryClient
from sagasynth.infra.history import HistoryLedger, JsonlHistoryLedger, RedisHistoryLedger
from sagasynth.infra.http_clients import HuggingFaceClient
from sagasynth.infra.llm.base import LLM
from sagasynth.infra.llm.openai_client import OpenAILLM
from sagasynth.infra.storage.base import Publisher
from sagasynth.infra.storage.http_publisher import HttpPublisher
from sagasynth.infra.storage.memory_publisher import InMemoryPublisher

log = structlog.get_logger(__name__)


def build_publisher(settings: Settings) -> Publisher:
    if settings.STORAGE_BACKEND == "http":
        if not settings.STORAGE_UPLOAD_URL:
            raise RuntimeError("STORAGE_BACKEND=http requires STORAGE_UPLOAD_URL")
        return HttpPublisher(
            settings.STORAGE_UPLOAD_URL,
            settings.STORAGE_GATEWAY_URL,
            api_key=settings.STORAGE_API_KEY,
            timeout=settings.STORAGE_TIMEOUT_S,
        )
    return InMemoryPublisher(settings.STORAGE_GATEWAY_URL)


def build_history(settings: Settings) -> tuple[HistoryLedger, str]:
    """Redis si `REDIS_URL` est défini (repli fichier sauf `REQUIRE_REDIS`)."""
    if settings.REDIS_URL:
        try:
            ledger = RedisHistoryLedger(settings.REDIS_URL)
            ledger.client.ping()
            return ledger, "redis"
        except redis.RedisError as err:
            if settings.REQUIRE_REDIS:
                raise RuntimeError("Redis required but unavailable") from err
            log.warning("history_redis_unavailable", error=str(err))
            return JsonlHistoryLedger(settings.HISTORY_PATH), "jsonl-fallback"
    if settings.REQUIRE_REDIS:
        raise RuntimeError("Redis required but REDIS_URL not set")
    return JsonlHistoryLedger(settings.HISTORY_PATH), "jsonl"


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        s = self.settings
        self.http = httpx.Client(timeout=s.STORAGE_TIMEOUT_S, follow_redirects=True)
        self.llm: LLM = OpenAILLM(
            api_key=s.OPENAI_API_KEY,
            model=s.LLM_MODEL,
            temperature=s.LLM_TEMPERATURE,
            max_tokens=s.LLM_MAX_TOKENS,
        )
        self.publisher = build_publisher(s)
        self.registry = RegistryClient.from_settings(s)
        self.history, self.history_backend = build_history(s)
        self._build_services()

    def _build_services(self) -> None:
        s = self.settings
        self.generator = DatasetGenerator(self.llm, max_sample_size=s.MAX_SAMPLE_SIZE)
        self.content = ContentPublisher(self.publisher, app_tag=s.APP_TAG)
        self.pipeline = DatasetPipeline(
            self.generator,
            self.content,
            self.registry,
            self.history,
            explorer_prefix=s.EXPLORER_TX_URL,
            history_limit=s.HISTORY_LIST_LIMIT,
        )
        self.donations = DonationService(
            self.registry,
            self.http,
            explorer_prefix=s.EXPLORER_TX_URL,
            enrichment_timeout=s.ENRICHMENT_TIMEOUT_S,
        )
        self.bounties = BountyLifecycleManager(self.registry, explorer_prefix=s.EXPLORER_TX_URL)
        self.catalog = CatalogService(
            self.registry, self.http, enrichment_timeout=s.ENRICHMENT_TIMEOUT_S
        )
        self.datasets = HuggingFaceClient(self.http, s.HF_DATASETS_URL)

    def wire(
        self,
        *,
        llm: LLM | None = None,
        publisher: Publisher | None = None,
        registry=None,
        history: HistoryLedger | None = None,
        http: httpx.Client | None = None,
    ) -> Container:
        """Remplace des collaborateurs (tests, scripts) et reconstruit les services."""
        if llm is not None:
            self.llm = llm
        if publisher is not None:
            self.publisher = publisher
        if registry is not None:
            self.registry = registry
        if history is not None:
            self.history = history
            self.history_backend = history.backend
        if http is not None:
            self.http = http
        self._build_services()
        return self

    def describe(self) -> dict[str, str]:
        """Backends actifs (sans secrets)."""
        return {
            "storage": self.publisher.name,
            "history": self.history_backend,
            "llm": self.llm.model,
        }


container = Container()
