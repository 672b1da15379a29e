"""Translate Sanity product documents to and from domain records."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from catalogsync.domain.errors import WriteRejectedError
from catalogsync.domain.model import (
    DEFAULT_VARIANT,
    FieldName,
    Linkage,
    MediaRef,
    ProductRecord,
    Revision,
    StoreKind,
)
from catalogsync.domain.reconciliation.normalize import normalize_group, normalize_price

from .schema import DRAFT_PREFIX, ProductDocument

if TYPE_CHECKING:
    from catalogsync.domain.reconciliation.plan import FieldChange, FieldValue

RELIC_COLLECTION = "relic"
SHOPIFY_PRODUCT_GID_PREFIX = "gid://shopify/Product/"
SHOPIFY_VARIANT_GID_PREFIX = "gid://shopify/ProductVariant/"

_SKU_FIELDS = {"6ml": "sku6ml", "12ml": "sku12ml"}
_VARIANT_FIELDS = {"6ml": "shopifyVariant6mlId", "12ml": "shopifyVariant12mlId"}
_DEFAULT_SKU_FIELD = "sku"
_DEFAULT_VARIANT_FIELD = "shopifyVariantId"

PRODUCT_PROJECTION = """{
  _id,
  _createdAt,
  title,
  collectionType,
  "atlasData": atlasData{atmosphere},
  legacyName,
  showLegacyName,
  inStock,
  price,
  "mainImage": mainImage{asset{_ref}},
  shopifyPreviewImageUrl,
  sku,
  sku6ml,
  sku12ml,
  shopifyProductId,
  shopifyVariantId,
  shopifyVariant6mlId,
  shopifyVariant12mlId
}"""


def normalize_gid(value: str | None, prefix: str) -> str | None:
    """Accept both numeric ids and GIDs; return the GID form."""

    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if value.isdigit():
        return f"{prefix}{value}"
    return value


def sku_field(size: str | None) -> str:
    return _SKU_FIELDS.get(size or DEFAULT_VARIANT, _DEFAULT_SKU_FIELD)


def variant_field(size: str | None) -> str:
    return _VARIANT_FIELDS.get(size or DEFAULT_VARIANT, _DEFAULT_VARIANT_FIELD)


def collection_group_of(document: ProductDocument) -> str | None:
    if (document.collection_type or "").casefold() == RELIC_COLLECTION:
        return RELIC_COLLECTION
    if document.atlas_data is not None:
        return normalize_group(document.atlas_data.atmosphere)
    return None


def document_to_record(document: ProductDocument) -> ProductRecord:
    media: MediaRef | None = None
    if document.asset_ref is not None:
        media = MediaRef(ref=document.asset_ref)
    elif document.shopify_preview_image_url is not None:
        media = MediaRef(
            ref=document.shopify_preview_image_url,
            url=document.shopify_preview_image_url,
            placeholder=True,
        )

    skus = {
        size: sku
        for size, sku in (
            ("6ml", document.sku6ml),
            ("12ml", document.sku12ml),
            (DEFAULT_VARIANT, document.sku),
        )
        if sku is not None
    }
    variant_keys = {
        size: gid
        for size, raw in (
            ("6ml", document.shopify_variant_6ml_id),
            ("12ml", document.shopify_variant_12ml_id),
            (DEFAULT_VARIANT, document.shopify_variant_id),
        )
        if (gid := normalize_gid(raw, SHOPIFY_VARIANT_GID_PREFIX)) is not None
    }
    product_gid = normalize_gid(document.shopify_product_id, SHOPIFY_PRODUCT_GID_PREFIX)
    linkage = Linkage(target_key=product_gid, variant_keys=variant_keys) if product_gid else None

    return ProductRecord(
        store=StoreKind.CONTENT,
        key=document.key,
        display_name=document.title,
        legacy_name=document.legacy_name,
        show_legacy_name=bool(document.show_legacy_name),
        collection_group=collection_group_of(document),
        stock_status=document.in_stock,
        price=normalize_price(document.price),
        media=media,
        skus=skus,
        variant_keys=variant_keys,
        linkage=linkage,
        revision=Revision.DRAFT if document.is_draft else Revision.PUBLISHED,
        created_at=document.created_at,
    )


def document_id(key: str, revision: Revision) -> str:
    return f"{DRAFT_PREFIX}{key}" if revision is Revision.DRAFT else key


def current_value(document: ProductDocument, change: FieldChange) -> FieldValue:
    """Read the value ``change`` targets from a fetched document."""

    match change.field:
        case FieldName.DISPLAY_NAME:
            return document.title
        case FieldName.STOCK_STATUS:
            return document.in_stock
        case FieldName.PRICE:
            return normalize_price(document.price)
        case FieldName.MEDIA:
            return document.asset_ref
        case FieldName.SKU:
            return getattr(document, sku_field(change.variant))
        case FieldName.LINKAGE:
            return normalize_gid(document.shopify_product_id, SHOPIFY_PRODUCT_GID_PREFIX)
        case FieldName.VARIANT_LINKAGE:
            raw = {
                "shopifyVariant6mlId": document.shopify_variant_6ml_id,
                "shopifyVariant12mlId": document.shopify_variant_12ml_id,
                "shopifyVariantId": document.shopify_variant_id,
            }[variant_field(change.variant)]
            return normalize_gid(raw, SHOPIFY_VARIANT_GID_PREFIX)
        case FieldName.LEGACY_NAME_VISIBILITY:
            return bool(document.show_legacy_name)
        case _:
            raise WriteRejectedError(f"Field {change.field} is not stored in the content store")


def image_value(asset_ref: str) -> dict[str, object]:
    return {"_type": "image", "asset": {"_type": "reference", "_ref": asset_ref}}


def set_operations(change: FieldChange, *, asset_ref: str | None = None) -> dict[str, object]:
    """Sanity ``set`` patch for ``change``; media needs the uploaded asset id."""

    match change.field:
        case FieldName.DISPLAY_NAME:
            return {"title": change.value}
        case FieldName.STOCK_STATUS:
            return {"inStock": change.value}
        case FieldName.PRICE:
            if not isinstance(change.value, str):
                raise WriteRejectedError(f"Price must be a decimal string, got {change.value!r}")
            return {"price": float(Decimal(change.value))}
        case FieldName.MEDIA:
            if asset_ref is None:
                raise WriteRejectedError("Media patch requires an uploaded asset")
            return {"mainImage": image_value(asset_ref)}
        case FieldName.SKU:
            return {sku_field(change.variant): change.value}
        case FieldName.LINKAGE:
            return {"shopifyProductId": change.value}
        case FieldName.VARIANT_LINKAGE:
            return {variant_field(change.variant): change.value}
        case FieldName.LEGACY_NAME_VISIBILITY:
            return {"showLegacyName": bool(change.value)}
        case _:
            raise WriteRejectedError(f"Field {change.field} is not stored in the content store")


def patch_mutations(change: FieldChange, operations: dict[str, object]) -> list[dict[str, object]]:
    return [
        {"patch": {"id": document_id(change.record_key, revision), "set": operations}}
        for revision in change.revisions
    ]


def delete_mutations(key: str) -> list[dict[str, object]]:
    return [
        {"delete": {"id": document_id(key, revision)}}
        for revision in (Revision.PUBLISHED, Revision.DRAFT)
    ]
