"""Ports for reading and writing product catalogs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from catalogsync.domain.model import ProductRecord, StoreKind
    from catalogsync.domain.reconciliation.plan import (
        FieldChange,
        FieldValue,
        RecordDeletion,
    )


@runtime_checkable
class CatalogStore(Protocol):
    """One product store (content or commerce).

    ``list_records`` drains pagination completely. ``read_field`` returns the
    current value of the field ``change`` targets, in the same representation
    the plan uses. Writes raise ``catalogsync.domain.errors`` exceptions.
    """

    @property
    def kind(self) -> StoreKind: ...

    def list_records(self) -> list[ProductRecord]: ...

    def read_field(self, change: FieldChange) -> FieldValue: ...

    def write_field(self, change: FieldChange) -> None: ...

    def delete_record(self, deletion: RecordDeletion) -> None: ...

    def describe(self, change: FieldChange | RecordDeletion) -> str:
        """Render the mutation ``change`` would send, without sending it."""
        ...
