"""Publisher HTTP vers un noeud d'upload (bundler) du réseau permanent.

Protocole
---------
- `POST {upload_url}`: corps = octets bruts, `Content-Type` issu des tags, ensemble des tags
  encodé en JSON dans l'en-tête `X-Tags`, jeton bearer optionnel.
- Réponse JSON contenant `id` (ou directement `url`); l'URL permanente est
  `{gateway_url}/{id}`.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import httpx
import structlog

from sagasynth.core.constants import CONTENT_TYPE_JSON
from sagasynth.domain.entities import Tag
from sagasynth.domain.errors import PublishError, UpstreamError
from sagasynth.infra.storage.base import Publisher

log = structlog.get_logger(__name__)


class HttpPublisher(Publisher):
    """Upload via httpx vers un noeud compatible, lecture via la gateway."""

    name = "http"

    def __init__(
        self,
        upload_url: str,
        gateway_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.upload_url = upload_url
        self.gateway_url = gateway_url.rstrip("/")
        self.api_key = api_key
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def _headers(self, tags: Sequence[Tag]) -> dict[str, str]:
        content_type = next(
            (t.value for t in tags if t.name.lower() == "content-type"), CONTENT_TYPE_JSON
        )
        headers = {
            "Content-Type": content_type,
            "X-Tags": json.dumps([{"name": t.name, "value": t.value} for t in tags]),
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def publish(self, payload: bytes, tags: Sequence[Tag]) -> str:
        try:
            res = self.client.post(self.upload_url, content=payload, headers=self._headers(tags))
        except httpx.HTTPError as exc:
            raise PublishError("Upload failed", details=str(exc)) from exc
        if res.status_code not in (200, 201, 202):
            raise PublishError(
                "Upload failed", details=f"{res.status_code} {res.text[:200]}"
            )
        try:
            body = res.json()
        except ValueError as exc:
            raise PublishError("Upload failed", details="non-JSON upload response") from exc
        if not isinstance(body, dict):
            raise PublishError("Upload failed", details="upload response is not a JSON object")
        url = body.get("url")
        if not url:
            tx_id = body.get("id")
            if not tx_id:
                raise PublishError("Upload failed", details="missing id in upload response")
            url = f"{self.gateway_url}/{tx_id}"
        log.info("publish_ok", url=url, size=len(payload))
        return url

    def fetch(self, url: str) -> bytes:
        try:
            res = self.client.get(url)
            res.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to fetch from {url}", details=str(exc)) from exc
        return res.content
