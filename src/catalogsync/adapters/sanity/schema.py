"""Pydantic models describing the Sanity HTTP API payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from decimal import Decimal  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator

DRAFT_PREFIX = "drafts."


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class SanityBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AssetReference(SanityBaseModel):
    ref: str | None = Field(default=None, alias="_ref")


class ImagePayload(SanityBaseModel):
    asset: AssetReference | None = None


class AtlasDataPayload(SanityBaseModel):
    atmosphere: str | None = None

    _normalize_atmosphere = field_validator("atmosphere", mode="before")(_blank_to_none)


class ProductDocument(SanityBaseModel):
    id: str = Field(alias="_id")
    created_at: datetime | None = Field(default=None, alias="_createdAt")
    title: str | None = None
    collection_type: str | None = Field(default=None, alias="collectionType")
    atlas_data: AtlasDataPayload | None = Field(default=None, alias="atlasData")
    legacy_name: str | None = Field(default=None, alias="legacyName")
    show_legacy_name: bool | None = Field(default=None, alias="showLegacyName")
    in_stock: bool | None = Field(default=None, alias="inStock")
    price: Decimal | None = None
    main_image: ImagePayload | None = Field(default=None, alias="mainImage")
    shopify_preview_image_url: str | None = Field(default=None, alias="shopifyPreviewImageUrl")
    sku: str | None = None
    sku6ml: str | None = None
    sku12ml: str | None = None
    shopify_product_id: str | None = Field(default=None, alias="shopifyProductId")
    shopify_variant_id: str | None = Field(default=None, alias="shopifyVariantId")
    shopify_variant_6ml_id: str | None = Field(default=None, alias="shopifyVariant6mlId")
    shopify_variant_12ml_id: str | None = Field(default=None, alias="shopifyVariant12mlId")

    _normalize_strings = field_validator(
        "title",
        "collection_type",
        "legacy_name",
        "shopify_preview_image_url",
        "sku",
        "sku6ml",
        "sku12ml",
        "shopify_product_id",
        "shopify_variant_id",
        "shopify_variant_6ml_id",
        "shopify_variant_12ml_id",
        mode="before",
    )(_blank_to_none)

    @property
    def is_draft(self) -> bool:
        return self.id.startswith(DRAFT_PREFIX)

    @property
    def key(self) -> str:
        return self.id.removeprefix(DRAFT_PREFIX)

    @property
    def asset_ref(self) -> str | None:
        if self.main_image is None or self.main_image.asset is None:
            return None
        return self.main_image.asset.ref


class QueryResponse(SanityBaseModel):
    result: list[ProductDocument] = Field(default_factory=list[ProductDocument])
    ms: int | None = None


class MutationResult(SanityBaseModel):
    id: str
    operation: str | None = None


class MutationResponse(SanityBaseModel):
    transaction_id: str | None = Field(default=None, alias="transactionId")
    results: list[MutationResult] = Field(default_factory=list[MutationResult])


class AssetDocument(SanityBaseModel):
    id: str = Field(alias="_id")
    url: str | None = None


class AssetUploadResponse(SanityBaseModel):
    document: AssetDocument
