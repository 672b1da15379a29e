"""Shopify Admin API configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import ResilienceConfig, store_resilience

DEFAULT_SHOPIFY_API_VERSION = "2024-10"
DEFAULT_LINK_METAFIELD = "custom.sanity_id"
DEFAULT_PAGE_SIZE = 50
SHOPIFY_TIMEOUT_SECONDS = 30.0


def shopify_graphql_url(store_domain: str, api_version: str) -> str:
    domain = store_domain.removeprefix("https://").removeprefix("http://").rstrip("/")
    return f"https://{domain}/admin/api/{api_version}/graphql.json"


def split_metafield(identifier: str) -> tuple[str, str]:
    """Split ``namespace.key`` into its parts."""

    namespace, _, key = identifier.partition(".")
    if not namespace or not key:
        raise ConfigurationError(
            f"Metafield must be given as 'namespace.key', got {identifier!r}"
        )
    return namespace, key


@dataclass(frozen=True, slots=True)
class ShopifyConfig:
    store_domain: str
    access_token: str
    api_version: str = DEFAULT_SHOPIFY_API_VERSION
    link_metafield: str = DEFAULT_LINK_METAFIELD
    page_size: int = DEFAULT_PAGE_SIZE
    resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(name="shopify")
    )

    @property
    def graphql_url(self) -> str:
        return shopify_graphql_url(self.store_domain, self.api_version)

    @property
    def link_metafield_parts(self) -> tuple[str, str]:
        return split_metafield(self.link_metafield)


def get_shopify_config() -> ShopifyConfig:
    values = require_env_vars(("SHOPIFY_STORE_DOMAIN", "SHOPIFY_ADMIN_ACCESS_TOKEN"))
    store_domain = values["SHOPIFY_STORE_DOMAIN"]
    access_token = values["SHOPIFY_ADMIN_ACCESS_TOKEN"]
    api_version = optional_env_var("SHOPIFY_API_VERSION", DEFAULT_SHOPIFY_API_VERSION)
    link_metafield = optional_env_var("SHOPIFY_LINK_METAFIELD", DEFAULT_LINK_METAFIELD)
    split_metafield(link_metafield)

    resilience = store_resilience(
        "shopify",
        base_url=shopify_graphql_url(store_domain, api_version),
        headers={"X-Shopify-Access-Token": access_token, "Content-Type": "application/json"},
        # Admin GraphQL leaky bucket refills at 50 points/s; one call per 0.5s stays clear
        calls_per_second=2,
        retries=5,
        timeout_seconds=SHOPIFY_TIMEOUT_SECONDS,
    )
    return ShopifyConfig(
        store_domain=store_domain,
        access_token=access_token,
        api_version=api_version,
        link_metafield=link_metafield,
        resilience=resilience,
    )
