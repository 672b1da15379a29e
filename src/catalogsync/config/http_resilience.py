"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = field(
        default_factory=lambda: frozenset(
            {"DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"}
        )
    )
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0

    def backoff_seconds(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based), capped at ``max_backoff_wait``."""

        return min(self.backoff_factor * (2**attempt), self.max_backoff_wait)


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = True


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None


def store_resilience(
    name: str,
    *,
    base_url: str | None = None,
    headers: Mapping[str, str] | None = None,
    calls_per_second: int,
    retries: int = 4,
    timeout_seconds: float = 30.0,
    cache: CacheConfig | None = None,
) -> ResilienceConfig:
    """Resilience settings for one store API, rate limited to ``calls_per_second``."""

    return ResilienceConfig(
        name=name,
        base_url=base_url,
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(total=retries),
        ratelimit=RateLimit(max_calls=calls_per_second, per_seconds=1.0),
        cache=cache,
        default_headers=dict(headers) if headers is not None else None,
    )
