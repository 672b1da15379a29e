"""Pydantic models describing Shopify Admin GraphQL payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from decimal import Decimal  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

THROTTLED = "THROTTLED"


class ShopifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PageInfo(ShopifyBaseModel):
    has_next_page: bool = Field(alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class SelectedOption(ShopifyBaseModel):
    name: str
    value: str


class VariantNode(ShopifyBaseModel):
    id: str
    title: str | None = None
    sku: str | None = None
    price: Decimal | None = None
    available_for_sale: bool | None = Field(default=None, alias="availableForSale")
    selected_options: list[SelectedOption] = Field(
        default_factory=list[SelectedOption], alias="selectedOptions"
    )


class VariantConnection(ShopifyBaseModel):
    nodes: list[VariantNode] = Field(default_factory=list[VariantNode])


class ImagePayload(ShopifyBaseModel):
    url: str


class MetafieldPayload(ShopifyBaseModel):
    value: str | None = None


class ProductNode(ShopifyBaseModel):
    id: str
    title: str | None = None
    handle: str | None = None
    product_type: str | None = Field(default=None, alias="productType")
    status: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    featured_image: ImagePayload | None = Field(default=None, alias="featuredImage")
    metafield: MetafieldPayload | None = None
    variants: VariantConnection = Field(default_factory=VariantConnection)

    def variant(self, variant_id: str) -> VariantNode | None:
        for variant in self.variants.nodes:
            if variant.id == variant_id:
                return variant
        return None


class ProductConnection(ShopifyBaseModel):
    page_info: PageInfo = Field(alias="pageInfo")
    nodes: list[ProductNode] = Field(default_factory=list[ProductNode])


class ProductsData(ShopifyBaseModel):
    products: ProductConnection


class ProductData(ShopifyBaseModel):
    product: ProductNode | None = None


class UserError(ShopifyBaseModel):
    field: list[str] | None = None
    message: str
    code: str | None = None


class GraphQLError(ShopifyBaseModel):
    message: str
    extensions: dict[str, object] | None = None

    @property
    def code(self) -> str | None:
        if self.extensions is None:
            return None
        code = self.extensions.get("code")
        return code if isinstance(code, str) else None


class GraphQLResponse(ShopifyBaseModel):
    data: dict[str, object] | None = None
    errors: list[GraphQLError] = Field(default_factory=list[GraphQLError])

    @property
    def throttled(self) -> bool:
        return any(error.code == THROTTLED for error in self.errors)


class MutationPayload(ShopifyBaseModel):
    user_errors: list[UserError] = Field(default_factory=list[UserError], alias="userErrors")
