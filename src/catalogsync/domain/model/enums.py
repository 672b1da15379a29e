"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class StoreKind(StrEnum):
    """The two independently writable stores holding product records."""

    CONTENT = "content"
    COMMERCE = "commerce"

    @property
    def other(self) -> StoreKind:
        return StoreKind.COMMERCE if self is StoreKind.CONTENT else StoreKind.CONTENT


class Revision(StrEnum):
    """Revision of a content document; both revisions share one identity."""

    DRAFT = "draft"
    PUBLISHED = "published"


class FieldName(StrEnum):
    """Reconcilable product fields."""

    DISPLAY_NAME = "display_name"
    COLLECTION_GROUP = "collection_group"
    STOCK_STATUS = "stock_status"
    PRICE = "price"
    MEDIA = "media"
    SKU = "sku"

    # Content-only presentation flag:
    LEGACY_NAME_VISIBILITY = "legacy_name_visibility"

    # Identity cross-references, always converged for matched pairs:
    LINKAGE = "linkage"
    VARIANT_LINKAGE = "variant_linkage"


class PairStatus(StrEnum):
    """Classification assigned to every record pair by the identity resolver."""

    MATCHED = "matched"
    SUGGESTED = "suggested"
    AMBIGUOUS = "ambiguous"
    DUPLICATE = "duplicate"
    ORPHANED = "orphaned"
    ASYMMETRIC = "asymmetric"
    UNMATCHED = "unmatched"


class MatchKind(StrEnum):
    """How the resolver matched a content record against commerce candidates."""

    EXPLICIT = "explicit"
    EXACT = "exact"
    OVERRIDE = "override"
    FUZZY = "fuzzy"


class OrphanPolicy(StrEnum):
    """What to do with commerce records that have no content counterpart."""

    REPORT = "report"
    DELETE = "delete"
    REASSIGN = "reassign"
