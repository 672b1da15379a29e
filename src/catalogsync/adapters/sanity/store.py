"""Synchronous ``CatalogStore`` facade over the Sanity client."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.config.sanity import SanityConfig, get_sanity_config
from catalogsync.domain.errors import NotFoundError, WriteRejectedError
from catalogsync.domain.model import FieldName, StoreKind
from catalogsync.domain.ports import CatalogStore
from catalogsync.domain.reconciliation.plan import RecordDeletion

from .client import SanityClient
from .translator import (
    PRODUCT_PROJECTION,
    current_value,
    delete_mutations,
    document_id,
    document_to_record,
    image_value,
    patch_mutations,
    set_operations,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from catalogsync.config.http_resilience import ResilienceConfig
    from catalogsync.domain.model import ProductRecord
    from catalogsync.domain.reconciliation.plan import FieldChange, FieldValue

    from .schema import ProductDocument

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 200

_LIST_QUERY = (
    '*[_type == "product" && _id > $lastId] | order(_id) [0...$limit]' + PRODUCT_PROJECTION
)
_BY_ID_QUERY = "*[_id == $id][0...1]" + PRODUCT_PROJECTION


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class SanityCatalogStore:
    """Content store backed by a Sanity dataset."""

    config: SanityConfig = field(default_factory=get_sanity_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def kind(self) -> StoreKind:
        return StoreKind.CONTENT

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
            mutations = delete_mutations(change.record_key)
        elif change.field is FieldName.MEDIA:
            operations = {"mainImage": image_value(f"<asset uploaded from {change.value}>")}
            mutations = patch_mutations(change, operations)
        else:
            mutations = patch_mutations(change, set_operations(change))
        return f"sanity mutate {json.dumps({'mutations': mutations}, sort_keys=True)}"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[SanityClient]:
        async with (
            self.client_factory(self.config.resilience) as client,
            self.client_factory(self.config.asset_resilience) as asset_client,
        ):
            yield SanityClient(self.config, client=client, asset_client=asset_client)

    async def _list_records(self) -> list[ProductRecord]:
        records: list[ProductRecord] = []
        last_id = ""
        async with self._session() as sanity:
            while True:
                page = await sanity.query(
                    _LIST_QUERY, {"lastId": last_id, "limit": self.page_size}
                )
                records.extend(document_to_record(document) for document in page.result)
                if len(page.result) < self.page_size:
                    break
                last_id = page.result[-1].id
        log.info("Listed %d Sanity product document(s)", len(records))
        return records

    async def _fetch_document(self, sanity: SanityClient, change: FieldChange) -> ProductDocument:
        doc_id = document_id(change.record_key, change.revisions[0])
        response = await sanity.query(_BY_ID_QUERY, {"id": doc_id})
        if not response.result:
            raise NotFoundError(f"Sanity document {doc_id} not found")
        return response.result[0]

    async def _read_field(self, change: FieldChange) -> FieldValue:
        async with self._session() as sanity:
            document = await self._fetch_document(sanity, change)
        return current_value(document, change)

    async def _write_field(self, change: FieldChange) -> None:
        async with self._session() as sanity:
            await self._fetch_document(sanity, change)
            asset_ref: str | None = None
            if change.field is FieldName.MEDIA:
                if not isinstance(change.value, str):
                    raise WriteRejectedError(
                        f"Media change needs an image URL, got {change.value!r}"
                    )
                body, content_type, filename = await sanity.download_image(change.value)
                asset_ref = await sanity.upload_image(
                    body, content_type=content_type, filename=filename
                )
            operations = set_operations(change, asset_ref=asset_ref)
            await sanity.mutate(patch_mutations(change, operations))

    async def _delete_record(self, deletion: RecordDeletion) -> None:
        async with self._session() as sanity:
            response = await sanity.mutate(delete_mutations(deletion.record_key))
        if not response.results:
            raise NotFoundError(f"Sanity document {deletion.record_key} not found")


if TYPE_CHECKING:
    _store_check: CatalogStore = SanityCatalogStore()
