"""Public interface for the Sanity content store adapter."""

from __future__ import annotations

from .client import SanityClient
from .schema import ProductDocument, QueryResponse
from .store import SanityCatalogStore
from .translator import document_to_record

__all__ = [
    "ProductDocument",
    "QueryResponse",
    "SanityCatalogStore",
    "SanityClient",
    "document_to_record",
]
