"""Translate Shopify products to domain records and changes to GraphQL mutations."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.errors import NotFoundError, WriteRejectedError
from catalogsync.domain.model import (
    DEFAULT_VARIANT,
    FieldName,
    Linkage,
    MediaRef,
    ProductRecord,
    StoreKind,
)
from catalogsync.domain.reconciliation.normalize import (
    normalize_group,
    normalize_price,
    normalize_size,
)

if TYPE_CHECKING:
    from catalogsync.domain.reconciliation.plan import FieldChange, FieldValue

    from .schema import ProductNode, VariantNode

log = getLogger(__name__)

_SIZE_OPTION_NAMES = frozenset({"size", "volume"})
LINK_METAFIELD_TYPE = "single_line_text_field"

PRODUCT_FIELDS = """
  id
  title
  handle
  productType
  status
  createdAt
  featuredImage { url }
  metafield(namespace: $namespace, key: $key) { value }
  variants(first: 50) {
    nodes {
      id
      title
      sku
      price
      availableForSale
      selectedOptions { name value }
    }
  }
"""

PRODUCTS_QUERY = (
    "query Products($first: Int!, $after: String, $namespace: String!, $key: String!) {\n"
    "  products(first: $first, after: $after, sortKey: ID) {\n"
    "    pageInfo { hasNextPage endCursor }\n"
    "    nodes {" + PRODUCT_FIELDS + "}\n"
    "  }\n"
    "}"
)

PRODUCT_QUERY = (
    "query Product($id: ID!, $namespace: String!, $key: String!) {\n"
    "  product(id: $id) {" + PRODUCT_FIELDS + "}\n"
    "}"
)

VARIANTS_BULK_UPDATE = """
mutation VariantSku($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants { id sku }
    userErrors { field message }
  }
}
"""

METAFIELDS_SET = """
mutation LinkMetafield($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id }
    userErrors { field message code }
  }
}
"""

PRODUCT_UPDATE = """
mutation ProductUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id }
    userErrors { field message }
  }
}
"""

PRODUCT_DELETE = """
mutation ProductDelete($input: ProductDeleteInput!) {
  productDelete(input: $input) {
    deletedProductId
    userErrors { field message }
  }
}
"""


def variant_size(variant: VariantNode) -> str | None:
    for option in variant.selected_options:
        if option.name.casefold() in _SIZE_OPTION_NAMES:
            size = normalize_size(option.value)
            if size is not None:
                return size
    return normalize_size(variant.title)


def product_to_record(product: ProductNode) -> ProductRecord:
    skus: dict[str, str] = {}
    variant_keys: dict[str, str] = {}
    for variant in product.variants.nodes:
        size = variant_size(variant) or DEFAULT_VARIANT
        if size in variant_keys:
            log.warning(
                "Product %s has several %s variants; keeping %s",
                product.id,
                size,
                variant_keys[size],
            )
            continue
        variant_keys[size] = variant.id
        if variant.sku:
            skus[size] = variant.sku

    variants = product.variants.nodes
    prices = [variant.price for variant in variants if variant.price is not None]
    availability = [v.available_for_sale for v in variants if v.available_for_sale is not None]
    link_value = (product.metafield.value or "").strip() if product.metafield is not None else ""
    image = product.featured_image

    return ProductRecord(
        store=StoreKind.COMMERCE,
        key=product.id,
        display_name=product.title,
        collection_group=normalize_group(product.product_type),
        stock_status=any(availability) if availability else None,
        price=normalize_price(min(prices)) if prices else None,
        media=MediaRef(ref=image.url, url=image.url) if image is not None else None,
        skus=skus,
        variant_keys=variant_keys,
        linkage=Linkage(target_key=link_value) if link_value else None,
        created_at=product.created_at,
    )


def current_value(product: ProductNode, change: FieldChange) -> FieldValue:
    """Read the value ``change`` targets from a fetched product."""

    match change.field:
        case FieldName.DISPLAY_NAME:
            return product.title
        case FieldName.COLLECTION_GROUP:
            return product.product_type
        case FieldName.SKU:
            if change.variant_key is None:
                raise WriteRejectedError(f"SKU change for {product.id} names no variant")
            variant = product.variant(change.variant_key)
            if variant is None:
                raise NotFoundError(f"Variant {change.variant_key} not found on {product.id}")
            return variant.sku
        case FieldName.LINKAGE:
            return product.metafield.value if product.metafield is not None else None
        case _:
            raise WriteRejectedError(f"Field {change.field} is not written to the commerce store")


def mutation_for(
    change: FieldChange, *, link_metafield: tuple[str, str]
) -> tuple[str, str, dict[str, object]]:
    """Return ``(mutation name, document, variables)`` for ``change``."""

    match change.field:
        case FieldName.SKU:
            return (
                "productVariantsBulkUpdate",
                VARIANTS_BULK_UPDATE,
                {
                    "productId": change.record_key,
                    "variants": [
                        {"id": change.variant_key, "inventoryItem": {"sku": change.value}}
                    ],
                },
            )
        case FieldName.LINKAGE:
            namespace, key = link_metafield
            return (
                "metafieldsSet",
                METAFIELDS_SET,
                {
                    "metafields": [
                        {
                            "ownerId": change.record_key,
                            "namespace": namespace,
                            "key": key,
                            "type": LINK_METAFIELD_TYPE,
                            "value": change.value,
                        }
                    ]
                },
            )
        case FieldName.DISPLAY_NAME:
            return (
                "productUpdate",
                PRODUCT_UPDATE,
                {"input": {"id": change.record_key, "title": change.value}},
            )
        case FieldName.COLLECTION_GROUP:
            return (
                "productUpdate",
                PRODUCT_UPDATE,
                {"input": {"id": change.record_key, "productType": change.value}},
            )
        case _:
            raise WriteRejectedError(f"Field {change.field} is not written to the commerce store")


def delete_mutation(product_id: str) -> tuple[str, str, dict[str, object]]:
    return "productDelete", PRODUCT_DELETE, {"input": {"id": product_id}}
