"""Sanity content store configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, ResilienceConfig, store_resilience

DEFAULT_SANITY_API_VERSION = "2024-01-01"
DEFAULT_SANITY_DATASET = "production"
SANITY_TIMEOUT_SECONDS = 20.0


def sanity_base_url(project_id: str, api_version: str) -> str:
    return f"https://{project_id}.api.sanity.io/v{api_version}"


@dataclass(frozen=True, slots=True)
class SanityConfig:
    project_id: str
    dataset: str
    token: str
    api_version: str = DEFAULT_SANITY_API_VERSION
    resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(name="sanity")
    )
    asset_resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(name="sanity-assets", cache=CacheConfig())
    )


def get_sanity_config() -> SanityConfig:
    values = require_env_vars(("SANITY_PROJECT_ID", "SANITY_WRITE_TOKEN"))
    project_id = values["SANITY_PROJECT_ID"]
    token = values["SANITY_WRITE_TOKEN"]
    dataset = optional_env_var("SANITY_DATASET", DEFAULT_SANITY_DATASET)
    api_version = optional_env_var("SANITY_API_VERSION", DEFAULT_SANITY_API_VERSION)

    resilience = store_resilience(
        "sanity",
        base_url=sanity_base_url(project_id, api_version),
        headers={"Authorization": f"Bearer {token}"},
        calls_per_second=20,
        timeout_seconds=SANITY_TIMEOUT_SECONDS,
    )
    # image downloads come from the commerce CDN, so no auth header and no base url
    asset_resilience = store_resilience(
        "sanity-assets",
        calls_per_second=5,
        timeout_seconds=60.0,
        cache=CacheConfig(backend="memory"),
    )
    return SanityConfig(
        project_id=project_id,
        dataset=dataset,
        token=token,
        api_version=api_version,
        resilience=resilience,
        asset_resilience=asset_resilience,
    )
