"""Error taxonomy for catalog reconciliation.

Resolution and diffing never raise these for data-quality problems; they
classify and report. Adapters raise them from I/O and the applier catches
them per change.
"""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for reconciliation failures."""

    kind: str = "error"


class TransientNetworkError(ReconciliationError):
    """A store could not be reached after the transport exhausted its retries."""

    kind = "transient_network"


class NotFoundError(ReconciliationError):
    """The target record vanished between planning and applying."""

    kind = "not_found"


class AmbiguousMatchError(ReconciliationError):
    """More than one candidate record claims the same identity."""

    kind = "ambiguous_match"

    def __init__(self, message: str, *, candidates: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.candidates = candidates


class ValidationError(ReconciliationError):
    """A computed value (e.g. a SKU) failed its format check."""

    kind = "validation"


class WriteRejectedError(ReconciliationError):
    """The store refused a write for a reason other than a missing record."""

    kind = "write_rejected"
