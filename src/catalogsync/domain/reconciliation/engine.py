"""Orchestrator for the reconciliation subsystem.

The engine composes stage interfaces but does not prescribe concrete adapters;
stores are passed in through the ``CatalogStore`` port and the policy is
injected once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogsync.domain.model import StoreKind

from .apply import ChangeApplier
from .diff import build_plan
from .resolve import resolve_identities

if TYPE_CHECKING:
    from collections.abc import Mapping

    from catalogsync.domain.ports import ApplyLedger, CatalogStore

    from .apply import ApplyResult
    from .contracts import ResolutionReport
    from .diff import ReconcileFields
    from .plan import ReconciliationPlan
    from .policy import ReconciliationPolicy
    from .resolve import ResolveIdentities

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Run reconciliation from store listings to an applied plan."""

    stores: Mapping[StoreKind, CatalogStore]
    policy: ReconciliationPolicy
    ledger: ApplyLedger | None = None
    resolve: ResolveIdentities = resolve_identities
    reconcile: ReconcileFields = build_plan

    def resolve_snapshot(self) -> ResolutionReport:
        """List both stores completely and classify every record."""

        content = self.stores[StoreKind.CONTENT].list_records()
        commerce = self.stores[StoreKind.COMMERCE].list_records()
        log.info("Listed %d content and %d commerce records", len(content), len(commerce))
        return self.resolve(content, commerce, policy=self.policy)

    def plan(self) -> ReconciliationPlan:
        """Compute the plan for the current state of both stores."""

        return self.reconcile(self.resolve_snapshot(), policy=self.policy)

    def apply(self, plan: ReconciliationPlan) -> ApplyResult:
        return ChangeApplier(stores=self.stores, ledger=self.ledger)(plan)

    def dry_run(self, plan: ReconciliationPlan) -> list[str]:
        return ChangeApplier(stores=self.stores, ledger=self.ledger).dry_run(plan)
