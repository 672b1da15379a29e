"""Public interface for the Shopify commerce store adapter."""

from __future__ import annotations

from .client import ShopifyClient
from .schema import GraphQLResponse, ProductNode
from .store import ShopifyCatalogStore
from .translator import product_to_record, variant_size

__all__ = [
    "GraphQLResponse",
    "ProductNode",
    "ShopifyCatalogStore",
    "ShopifyClient",
    "product_to_record",
    "variant_size",
]
