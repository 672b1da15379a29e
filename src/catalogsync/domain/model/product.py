"""Source-agnostic product records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import Revision, StoreKind

if TYPE_CHECKING:
    from datetime import datetime

DEFAULT_VARIANT = "default"


@dataclass(frozen=True, slots=True)
class MediaRef:
    """Primary image of a product.

    ``ref`` is an asset id in the content store or an image URL in the commerce
    store. Placeholders are non-authoritative copies (e.g. a preview URL copied
    from the commerce store) and never block a real image from being synced.
    """

    ref: str
    url: str | None = None
    placeholder: bool = False


@dataclass(frozen=True, slots=True)
class Linkage:
    """Cross-reference from a record to its counterpart in the other store."""

    target_key: str
    variant_keys: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductRecord:
    """One logical product as seen by one store."""

    store: StoreKind
    key: str
    display_name: str | None = None
    legacy_name: str | None = None
    show_legacy_name: bool = False
    collection_group: str | None = None
    stock_status: bool | None = None
    price: str | None = None
    media: MediaRef | None = None
    skus: dict[str, str] = field(default_factory=dict[str, str])
    variant_keys: dict[str, str] = field(default_factory=dict[str, str])
    linkage: Linkage | None = None
    revision: Revision = Revision.PUBLISHED
    draft_pending: bool = False
    created_at: datetime | None = None

    @property
    def label(self) -> str:
        """Human readable identification for logs and reports."""

        name = self.display_name or "<untitled>"
        return f"{name} [{self.store}:{self.key}]"

    @property
    def has_primary_image(self) -> bool:
        return self.media is not None and not self.media.placeholder

    def sku_for(self, size: str, *, single_size: bool = False) -> str | None:
        """Stored SKU for ``size``; single-size products may carry it on the default variant."""

        sku = self.skus.get(size)
        if sku is None and single_size:
            sku = self.skus.get(DEFAULT_VARIANT)
        return sku

    def variant_key_for(self, size: str, *, single_size: bool = False) -> str | None:
        variant_key = self.variant_keys.get(size)
        if variant_key is None and single_size:
            variant_key = self.variant_keys.get(DEFAULT_VARIANT)
        return variant_key
