"""Async client for the Shopify Admin GraphQL API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from catalogsync.adapters.http_resilience import raise_for_store_status
from catalogsync.domain.errors import (
    NotFoundError,
    ReconciliationError,
    TransientNetworkError,
    WriteRejectedError,
)

from .schema import GraphQLResponse, MutationPayload, ProductData, ProductsData
from .translator import PRODUCT_QUERY, PRODUCTS_QUERY

if TYPE_CHECKING:
    import httpx

    from catalogsync.adapters.http_resilience import ResilientClient
    from catalogsync.config.shopify import ShopifyConfig

    from .schema import ProductNode

log = getLogger(__name__)

_NOT_FOUND_MARKERS = ("does not exist", "not found", "could not find")


class ShopifyClient:
    """Execute GraphQL documents with throttle handling and error translation."""

    def __init__(self, config: ShopifyConfig, *, client: ResilientClient) -> None:
        self.config = config
        self._client = client
        self._url = config.resilience.base_url or config.graphql_url

    async def execute(self, document: str, variables: dict[str, object]) -> dict[str, object]:
        """Run one GraphQL document and return its ``data`` mapping.

        THROTTLED responses arrive as HTTP 200 and are invisible to the retry
        transport, so they are retried here with the same backoff schedule.
        """

        retry = self.config.resilience.retry
        attempt = 0
        while True:
            response = await self._client.post(
                self._url, json={"query": document, "variables": variables}
            )
            raise_for_store_status(response, context="shopify graphql")
            body = _decode(response, context="shopify graphql")
            payload = _validate(GraphQLResponse, body, context="shopify graphql")

            if payload.throttled:
                if attempt >= retry.total:
                    raise TransientNetworkError(
                        f"shopify graphql: still throttled after {attempt} retries"
                    )
                delay = retry.backoff_seconds(attempt)
                log.info("Shopify throttled the request; retrying in %.1fs", delay)
                await asyncio.sleep(delay)
                attempt += 1
                continue

            if payload.errors:
                messages = "; ".join(error.message for error in payload.errors)
                raise WriteRejectedError(f"shopify graphql: {messages}")
            if payload.data is None:
                raise ReconciliationError("shopify graphql: response carried no data")
            return payload.data

    def _link_variables(self) -> dict[str, object]:
        namespace, key = self.config.link_metafield_parts
        return {"namespace": namespace, "key": key}

    async def list_products(self) -> list[ProductNode]:
        products: list[ProductNode] = []
        cursor: str | None = None
        while True:
            variables: dict[str, object] = {
                "first": self.config.page_size,
                "after": cursor,
                **self._link_variables(),
            }
            data = _validate(
                ProductsData,
                await self.execute(PRODUCTS_QUERY, variables),
                context="shopify products",
            )
            products.extend(data.products.nodes)
            page_info = data.products.page_info
            if not page_info.has_next_page or page_info.end_cursor is None:
                break
            cursor = page_info.end_cursor
        return products

    async def get_product(self, product_id: str) -> ProductNode:
        variables: dict[str, object] = {"id": product_id, **self._link_variables()}
        data = _validate(
            ProductData, await self.execute(PRODUCT_QUERY, variables), context="shopify product"
        )
        if data.product is None:
            raise NotFoundError(f"Shopify product {product_id} not found")
        return data.product

    async def mutate(self, name: str, document: str, variables: dict[str, object]) -> None:
        data = await self.execute(document, variables)
        result = data.get(name)
        if result is None:
            raise NotFoundError(f"shopify {name}: no result")
        payload = _validate(MutationPayload, result, context=f"shopify {name}")
        if not payload.user_errors:
            return
        messages = "; ".join(error.message for error in payload.user_errors)
        if any(marker in messages.casefold() for marker in _NOT_FOUND_MARKERS):
            raise NotFoundError(f"shopify {name}: {messages}")
        raise WriteRejectedError(f"shopify {name}: {messages}")


def _decode(response: httpx.Response, *, context: str) -> object:
    try:
        return response.json()
    except ValueError as exc:
        content_type = response.headers.get("content-type", "unknown")
        raise ReconciliationError(f"{context}: response is not JSON ({content_type})") from exc


def _validate[T: BaseModel](model: type[T], payload: object, *, context: str) -> T:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ReconciliationError(f"{context}: unexpected payload: {exc}") from exc
