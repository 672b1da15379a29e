"""Reconciliation policy file loader.

The policy lives in a versioned TOML file (``catalogsync.toml`` by default,
or the path in ``CATALOGSYNC_CONFIG``). A missing default file means the
built-in policy; a missing explicitly configured file is an error.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalogsync.domain.model import FieldName, OrphanPolicy, StoreKind
from catalogsync.domain.reconciliation.policy import (
    DEFAULT_ALLOWED_PUNCTUATION,
    DEFAULT_FUZZY_MIN_LENGTH,
    DEFAULT_ORPHAN_GROUP,
    DEFAULT_OWNERSHIP,
    DEFAULT_SIZES_BY_GROUP,
    NameOverride,
    ReconciliationPolicy,
)

from .errors import PolicyFileError

CONFIG_ENV_VAR = "CATALOGSYNC_CONFIG"
DEFAULT_CONFIG_FILENAME = "catalogsync.toml"


class _PolicyFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class _MatchingSection(_PolicyFileModel):
    allowed_punctuation: str = DEFAULT_ALLOWED_PUNCTUATION
    fuzzy_min_length: int = Field(default=DEFAULT_FUZZY_MIN_LENGTH, ge=1)


class _OrphanSection(_PolicyFileModel):
    policy: OrphanPolicy = OrphanPolicy.REPORT
    collection_group: str = DEFAULT_ORPHAN_GROUP


class _NamingSection(_PolicyFileModel):
    show_legacy_names: bool | None = None


class _OverrideEntry(_PolicyFileModel):
    content: str
    commerce: str


class _PolicyFile(_PolicyFileModel):
    ownership: dict[FieldName, StoreKind] = Field(default_factory=lambda: dict(DEFAULT_OWNERSHIP))
    sizes: dict[str, tuple[str, ...]] = Field(default_factory=lambda: dict(DEFAULT_SIZES_BY_GROUP))
    matching: _MatchingSection = Field(default_factory=_MatchingSection)
    orphans: _OrphanSection = Field(default_factory=_OrphanSection)
    naming: _NamingSection = Field(default_factory=_NamingSection)
    overrides: list[_OverrideEntry] = Field(default_factory=list[_OverrideEntry])

    @field_validator("sizes", mode="after")
    @classmethod
    def _lowercase_groups(cls, value: dict[str, tuple[str, ...]]) -> dict[str, tuple[str, ...]]:
        return {group.casefold(): sizes for group, sizes in value.items()}

    def to_policy(self) -> ReconciliationPolicy:
        return ReconciliationPolicy(
            ownership=dict(self.ownership),
            sizes_by_group=dict(self.sizes),
            overrides=tuple(
                NameOverride(content_name=entry.content, commerce_name=entry.commerce)
                for entry in self.overrides
            ),
            allowed_punctuation=self.matching.allowed_punctuation,
            fuzzy_min_length=self.matching.fuzzy_min_length,
            orphan_policy=self.orphans.policy,
            orphan_collection_group=self.orphans.collection_group,
            legacy_name_visibility=self.naming.show_legacy_names,
        )


def parse_reconciliation_policy(
    data: dict[str, object], *, path: Path | None = None
) -> ReconciliationPolicy:
    """Build a policy from already-parsed TOML data."""

    try:
        return _PolicyFile.model_validate(data).to_policy()
    except ValueError as exc:
        raise PolicyFileError(f"Invalid reconciliation policy: {exc}", path=path) from exc


def load_reconciliation_policy(path: Path) -> ReconciliationPolicy:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise PolicyFileError(
            f"Reconciliation policy file not found: {path}", path=path
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise PolicyFileError(
            f"Reconciliation policy file {path} is not valid TOML: {exc}", path=path
        ) from exc
    return parse_reconciliation_policy(data, path=path)


def get_reconciliation_policy(path: Path | None = None) -> ReconciliationPolicy:
    """Resolve the policy from ``path``, ``CATALOGSYNC_CONFIG`` or ``./catalogsync.toml``."""

    if path is not None:
        return load_reconciliation_policy(path)
    configured = os.getenv(CONFIG_ENV_VAR)
    if configured and configured.strip():
        return load_reconciliation_policy(Path(configured.strip()).expanduser())
    default_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if default_path.is_file():
        return load_reconciliation_policy(default_path)
    return ReconciliationPolicy()
