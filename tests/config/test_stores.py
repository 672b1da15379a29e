from __future__ import annotations

import pytest

from catalogsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_sanity_config,
    get_shopify_config,
)
from catalogsync.config.shopify import shopify_graphql_url, split_metafield


@pytest.fixture
def sanity_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SANITY_PROJECT_ID", "abc123")
    monkeypatch.setenv("SANITY_WRITE_TOKEN", "sk-write")
    monkeypatch.delenv("SANITY_DATASET", raising=False)
    monkeypatch.delenv("SANITY_API_VERSION", raising=False)


@pytest.fixture
def shopify_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHOPIFY_STORE_DOMAIN", "https://scents.myshopify.com/")
    monkeypatch.setenv("SHOPIFY_ADMIN_ACCESS_TOKEN", "shpat_x")
    monkeypatch.delenv("SHOPIFY_API_VERSION", raising=False)
    monkeypatch.delenv("SHOPIFY_LINK_METAFIELD", raising=False)


@pytest.mark.usefixtures("sanity_env")
def test_sanity_config_from_env() -> None:
    config = get_sanity_config()

    assert config.dataset == "production"
    assert config.resilience.base_url == "https://abc123.api.sanity.io/v2024-01-01"
    assert config.resilience.default_headers == {"Authorization": "Bearer sk-write"}
    assert config.resilience.cache is None
    assert config.asset_resilience.cache is not None
    assert config.asset_resilience.default_headers is None


@pytest.mark.usefixtures("sanity_env")
def test_sanity_config_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SANITY_WRITE_TOKEN")

    with pytest.raises(MissingConfigurationError, match="SANITY_WRITE_TOKEN"):
        get_sanity_config()


@pytest.mark.usefixtures("shopify_env")
def test_shopify_config_from_env() -> None:
    config = get_shopify_config()

    assert config.graphql_url == "https://scents.myshopify.com/admin/api/2024-10/graphql.json"
    assert config.resilience.base_url == config.graphql_url
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["X-Shopify-Access-Token"] == "shpat_x"
    assert config.link_metafield_parts == ("custom", "sanity_id")


@pytest.mark.usefixtures("shopify_env")
def test_shopify_config_rejects_bad_metafield(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHOPIFY_LINK_METAFIELD", "sanity_id")

    with pytest.raises(ConfigurationError, match="namespace.key"):
        get_shopify_config()


def test_metafield_and_url_helpers() -> None:
    assert split_metafield("links.content_id") == ("links", "content_id")
    assert shopify_graphql_url("shop.myshopify.com", "2025-01") == (
        "https://shop.myshopify.com/admin/api/2025-01/graphql.json"
    )
