"""SQLAlchemy adapter package for the apply ledger."""

from __future__ import annotations

from .ledger import SqlAlchemyApplyLedger, StartupError, is_started, shutdown, startup
from .tables import apply_run_table, change_outcome_table, create_all_tables, metadata

__all__ = [
    "SqlAlchemyApplyLedger",
    "StartupError",
    "apply_run_table",
    "change_outcome_table",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
