"""Publication adressée par contenu.

Sérialise un payload une seule fois, calcule l'empreinte sur ces octets exacts puis les
remet au publisher: la référence retournée et le contenu publié sont liés 1:1.
"""

from __future__ import annotations

from typing import Any

import structlog

from sagasynth.app.metrics import PUBLISH_TOTAL
from sagasynth.core.constants import CONTENT_TYPE_JSON
from sagasynth.domain import content_address
from sagasynth.domain.entities import ContentReference, Tag
from sagasynth.domain.errors import PublishError
from sagasynth.infra.storage.base import Publisher

log = structlog.get_logger(__name__)


class ContentPublisher:
    """Publie des documents JSON étiquetés et vérifie leur intégrité."""

    def __init__(self, publisher: Publisher, app_tag: str = "SagaSynth"):
        self.publisher = publisher
        self.app_tag = app_tag

    def tags_for(self, kind: str, extra: dict[str, str] | None = None) -> tuple[Tag, ...]:
        tags = [
            Tag(name="Content-Type", value=CONTENT_TYPE_JSON),
            Tag(name="App-Name", value=self.app_tag),
            Tag(name="Type", value=kind),
        ]
        tags.extend(Tag(name=k, value=v) for k, v in (extra or {}).items())
        return tuple(tags)

    def publish_bytes(self, payload: bytes, kind: str, extra: dict[str, str] | None = None) -> ContentReference:
        """Publie des octets déjà sérialisés."""
        digest = content_address.content_hash(payload)
        tags = self.tags_for(kind, {"Content-Hash": digest, **(extra or {})})
        try:
            url = self.publisher.publish(payload, tags)
        except PublishError:
            PUBLISH_TOTAL.labels(kind=kind, result="error").inc()
            log.error("publish_failed", kind=kind, content_hash=digest)
            raise
        PUBLISH_TOTAL.labels(kind=kind, result="ok").inc()
        log.info("content_published", kind=kind, url=url, content_hash=digest)
        return ContentReference(url=url, content_hash=digest, tags=tags)

    def publish_json(self, payload: Any, kind: str, extra: dict[str, str] | None = None) -> ContentReference:
        return self.publish_bytes(content_address.serialize(payload), kind, extra)

    def verify(self, url: str, expected_hash: str) -> dict[str, Any]:
        """Relit `url` et compare l'empreinte recalculée à `expected_hash`."""
        data = self.publisher.fetch(url)
        actual = content_address.content_hash(data)
        return {
            "url": url,
            "expected_hash": expected_hash,
            "actual_hash": actual,
            "size": len(data),
            "match": content_address.matches(data, expected_hash),
        }
