"""Reconciliation policy: the configuration every stage is parameterised by.

The policy is built once (see ``catalogsync.config.reconciliation``) and then
passed down explicitly. No stage reads configuration on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from catalogsync.domain.model import FieldName, OrphanPolicy, StoreKind

DEFAULT_OWNERSHIP: dict[FieldName, StoreKind] = {
    FieldName.STOCK_STATUS: StoreKind.COMMERCE,
    FieldName.PRICE: StoreKind.COMMERCE,
    FieldName.MEDIA: StoreKind.COMMERCE,
    FieldName.SKU: StoreKind.CONTENT,
}

SUPPORTED_OWNERS: dict[FieldName, frozenset[StoreKind]] = {
    FieldName.STOCK_STATUS: frozenset({StoreKind.COMMERCE}),
    FieldName.PRICE: frozenset({StoreKind.COMMERCE}),
    FieldName.MEDIA: frozenset({StoreKind.COMMERCE}),
    FieldName.SKU: frozenset({StoreKind.CONTENT}),
    FieldName.DISPLAY_NAME: frozenset({StoreKind.CONTENT, StoreKind.COMMERCE}),
    FieldName.COLLECTION_GROUP: frozenset({StoreKind.CONTENT}),
}

DEFAULT_SIZES_BY_GROUP: dict[str, tuple[str, ...]] = {
    "ember": ("6ml", "12ml"),
    "petal": ("6ml", "12ml"),
    "tidal": ("6ml", "12ml"),
    "terra": ("6ml", "12ml"),
    "relic": ("3ml",),
}

DEFAULT_ALLOWED_PUNCTUATION = "&"
DEFAULT_ORPHAN_GROUP = "archive"
DEFAULT_FUZZY_MIN_LENGTH = 3


@dataclass(frozen=True, slots=True)
class NameOverride:
    """Manually curated pairing of a content name with a commerce name."""

    content_name: str
    commerce_name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationPolicy:
    """Ownership, size and matching rules for one reconciliation run.

    ``legacy_name_visibility`` forces the content store's legacy-name flag on
    every record that has a legacy name; ``None`` leaves the flag alone.
    """

    ownership: dict[FieldName, StoreKind] = field(
        default_factory=lambda: dict(DEFAULT_OWNERSHIP)
    )
    sizes_by_group: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_SIZES_BY_GROUP)
    )
    overrides: tuple[NameOverride, ...] = ()
    allowed_punctuation: str = DEFAULT_ALLOWED_PUNCTUATION
    fuzzy_min_length: int = DEFAULT_FUZZY_MIN_LENGTH
    orphan_policy: OrphanPolicy = OrphanPolicy.REPORT
    orphan_collection_group: str = DEFAULT_ORPHAN_GROUP
    legacy_name_visibility: bool | None = None

    def __post_init__(self) -> None:
        for field_name, owner in self.ownership.items():
            supported = SUPPORTED_OWNERS.get(field_name, frozenset())
            if owner not in supported:
                raise ValueError(f"{field_name} cannot be owned by the {owner} store")
        if self.fuzzy_min_length < 1:
            raise ValueError("fuzzy_min_length must be positive")

    def owner_of(self, field_name: FieldName) -> StoreKind | None:
        return self.ownership.get(field_name)

    def sizes_for(self, collection_group: str | None) -> tuple[str, ...]:
        if collection_group is None:
            return ()
        return self.sizes_by_group.get(collection_group.casefold(), ())
