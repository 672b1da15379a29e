"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import CatalogStore
from .ledger import ApplyLedger

__all__ = ["ApplyLedger", "CatalogStore"]
