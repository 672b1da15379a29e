"""Product domain model."""

from __future__ import annotations

from .enums import (
    FieldName,
    MatchKind,
    OrphanPolicy,
    PairStatus,
    Revision,
    StoreKind,
)
from .product import DEFAULT_VARIANT, Linkage, MediaRef, ProductRecord

__all__ = [
    "DEFAULT_VARIANT",
    "FieldName",
    "Linkage",
    "MatchKind",
    "MediaRef",
    "OrphanPolicy",
    "PairStatus",
    "ProductRecord",
    "Revision",
    "StoreKind",
]
