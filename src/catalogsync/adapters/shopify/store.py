"""Synchronous ``CatalogStore`` facade over the Shopify client."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.config.shopify import ShopifyConfig, get_shopify_config
from catalogsync.domain.model import StoreKind
from catalogsync.domain.ports import CatalogStore
from catalogsync.domain.reconciliation.plan import RecordDeletion

from .client import ShopifyClient
from .translator import current_value, delete_mutation, mutation_for, product_to_record

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from catalogsync.config.http_resilience import ResilienceConfig
    from catalogsync.domain.model import ProductRecord
    from catalogsync.domain.reconciliation.plan import FieldChange, FieldValue

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class ShopifyCatalogStore:
    """Commerce store backed by the Shopify Admin GraphQL API."""

    config: ShopifyConfig = field(default_factory=get_shopify_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def kind(self) -> StoreKind:
        return StoreKind.COMMERCE

    def list_records(self) -> list[ProductRecord]:
        return asyncio.run(self._list_records())

    def read_field(self, change: FieldChange) -> FieldValue:
        return asyncio.run(self._read_field(change))

    def write_field(self, change: FieldChange) -> None:
        asyncio.run(self._write_field(change))

    def delete_record(self, deletion: RecordDeletion) -> None:
        asyncio.run(self._delete_record(deletion))

    def describe(self, change: FieldChange | RecordDeletion) -> str:
        if isinstance(change, RecordDeletion):
            name, _document, variables = delete_mutation(change.record_key)
        else:
            name, _document, variables = mutation_for(
                change, link_metafield=self.config.link_metafield_parts
            )
        return f"shopify {name} {json.dumps(variables, sort_keys=True)}"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[ShopifyClient]:
        async with self.client_factory(self.config.resilience) as client:
            yield ShopifyClient(self.config, client=client)

    async def _list_records(self) -> list[ProductRecord]:
        async with self._session() as shopify:
            products = await shopify.list_products()
        log.info("Listed %d Shopify product(s)", len(products))
        return [product_to_record(product) for product in products]

    async def _read_field(self, change: FieldChange) -> FieldValue:
        async with self._session() as shopify:
            product = await shopify.get_product(change.record_key)
        return current_value(product, change)

    async def _write_field(self, change: FieldChange) -> None:
        name, document, variables = mutation_for(
            change, link_metafield=self.config.link_metafield_parts
        )
        async with self._session() as shopify:
            await shopify.mutate(name, document, variables)

    async def _delete_record(self, deletion: RecordDeletion) -> None:
        name, document, variables = delete_mutation(deletion.record_key)
        async with self._session() as shopify:
            await shopify.mutate(name, document, variables)


if TYPE_CHECKING:
    _store_check: CatalogStore = ShopifyCatalogStore()
