"""Async client for the Sanity HTTP API (query, mutate, asset upload)."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from pydantic import ValidationError as PydanticValidationError

from catalogsync.adapters.http_resilience import raise_for_store_status
from catalogsync.config.sanity import sanity_base_url
from catalogsync.domain.errors import ReconciliationError, WriteRejectedError

from .schema import AssetUploadResponse, MutationResponse, QueryResponse

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx

    from catalogsync.adapters.http_resilience import ResilientClient
    from catalogsync.config.sanity import SanityConfig

log = getLogger(__name__)

_DEFAULT_IMAGE_TYPE = "image/jpeg"


class SanityClient:
    """Thin wrapper translating Sanity responses into validated payloads."""

    def __init__(
        self,
        config: SanityConfig,
        *,
        client: ResilientClient,
        asset_client: ResilientClient,
    ) -> None:
        self.config = config
        self._client = client
        self._asset_client = asset_client
        self._base_url = config.resilience.base_url or sanity_base_url(
            config.project_id, config.api_version
        )

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path}/{self.config.dataset}"

    async def query(self, groq: str, params: Mapping[str, object] | None = None) -> QueryResponse:
        query_params: dict[str, str] = {"query": groq, "perspective": "raw"}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)
        response = await self._client.get(self._url("data/query"), params=query_params)
        raise_for_store_status(response, context="sanity query")
        return _validate(QueryResponse, response, context="sanity query")

    async def mutate(self, mutations: list[dict[str, object]]) -> MutationResponse:
        response = await self._client.post(
            self._url("data/mutate"),
            params={"returnIds": "true", "visibility": "sync"},
            json={"mutations": mutations},
        )
        raise_for_store_status(response, context="sanity mutate")
        result = _validate(MutationResponse, response, context="sanity mutate")
        log.debug("Sanity transaction %s: %d result(s)", result.transaction_id, len(result.results))
        return result

    async def download_image(self, url: str) -> tuple[bytes, str, str]:
        """Fetch an image from a public URL; returns ``(body, content_type, filename)``."""

        response = await self._asset_client.get(url, follow_redirects=True)
        raise_for_store_status(response, context=f"image download {url}")
        content_type = response.headers.get("content-type", _DEFAULT_IMAGE_TYPE).split(";")[0]
        filename = urlsplit(url).path.rsplit("/", 1)[-1] or "image"
        return response.content, content_type, filename

    async def upload_image(self, body: bytes, *, content_type: str, filename: str) -> str:
        """Upload an image asset and return its document id."""

        response = await self._client.post(
            self._url("assets/images"),
            params={"filename": filename},
            content=body,
            headers={"Content-Type": content_type},
        )
        raise_for_store_status(response, context="sanity asset upload")
        upload = _validate(AssetUploadResponse, response, context="sanity asset upload")
        log.info("Uploaded image asset %s (%s)", upload.document.id, filename)
        return upload.document.id


def _validate[T: QueryResponse | MutationResponse | AssetUploadResponse](
    model: type[T], response: httpx.Response, *, context: str
) -> T:
    try:
        payload = response.json()
    except ValueError as exc:
        content_type = response.headers.get("content-type", "unknown")
        raise ReconciliationError(f"{context}: response is not JSON ({content_type})") from exc
    if isinstance(payload, dict) and "error" in payload:
        raise WriteRejectedError(f"{context}: {payload['error']}")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ReconciliationError(f"{context}: unexpected payload: {exc}") from exc
