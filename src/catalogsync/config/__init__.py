"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError, PolicyFileError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .reconciliation import get_reconciliation_policy, load_reconciliation_policy
from .sanity import SanityConfig, get_sanity_config
from .shopify import ShopifyConfig, get_shopify_config
from .storage import StorageConfig, get_ledger_uri, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "PolicyFileError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SanityConfig",
    "ShopifyConfig",
    "StorageConfig",
    "configure_logging",
    "get_ledger_uri",
    "get_reconciliation_policy",
    "get_sanity_config",
    "get_shopify_config",
    "get_storage_config",
    "load_reconciliation_policy",
    "optional_env_var",
    "require_env_vars",
]
