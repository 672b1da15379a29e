"""Identity resolution between the content and the commerce store.

Responsibilities of this stage:
- fold revisions and split off duplicates per side
- pair the remaining records in four global stages; the first stage that
  claims a record wins:
  1. explicit linkage (content -> commerce, then commerce -> content)
  2. exact normalised name (legacy names included)
  3. manual override table
  4. fuzzy substring containment (``suggested`` only, never auto-applied)
- classify every input record exactly once

A canonical record that outranked duplicates is never paired by name; any
name, override or fuzzy proposal touching it is ambiguous until a human
resolves the duplicate group. Explicit linkage still pairs it.

Out of scope for this stage:
- computing field changes
- any store I/O
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import product
from typing import TYPE_CHECKING, Protocol

from catalogsync.domain.errors import AmbiguousMatchError
from catalogsync.domain.model import MatchKind, PairStatus

from .contracts import RecordPair, ResolutionReport
from .deduplicate import deduplicate_records, fold_revisions
from .normalize import normalize_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from catalogsync.domain.model import ProductRecord

    from .policy import ReconciliationPolicy

log = logging.getLogger(__name__)

type Edge = tuple[str, str]
type Component = tuple[tuple[str, ...], tuple[str, ...]]


class ResolveIdentities(Protocol):
    """Pair content records with commerce records."""

    def __call__(
        self,
        content_records: Iterable[ProductRecord],
        commerce_records: Iterable[ProductRecord],
        *,
        policy: ReconciliationPolicy,
    ) -> ResolutionReport: ...


@dataclass(slots=True)
class _ResolutionState:
    policy: ReconciliationPolicy
    content: dict[str, ProductRecord]
    commerce: dict[str, ProductRecord]
    known_content: frozenset[str]
    known_commerce: frozenset[str]
    content_duplicates: dict[str, tuple[str, ...]] = field(
        default_factory=dict[str, tuple[str, ...]]
    )
    commerce_duplicates: dict[str, tuple[str, ...]] = field(
        default_factory=dict[str, tuple[str, ...]]
    )
    pairs: list[RecordPair] = field(default_factory=list[RecordPair])

    def claim(self, pair: RecordPair) -> None:
        if pair.content is not None:
            del self.content[pair.content.key]
        if pair.commerce is not None:
            del self.commerce[pair.commerce.key]
        self.pairs.append(pair)

    def names_of(self, record: ProductRecord) -> tuple[str, ...]:
        names: list[str] = []
        for value in (record.display_name, record.legacy_name):
            name = normalize_name(value, allowed_punctuation=self.policy.allowed_punctuation)
            if name is not None and name not in names:
                names.append(name)
        return tuple(names)


def resolve_identities(
    content_records: Iterable[ProductRecord],
    commerce_records: Iterable[ProductRecord],
    *,
    policy: ReconciliationPolicy,
) -> ResolutionReport:
    """Classify every record of both listings into exactly one ``RecordPair``."""

    content = fold_revisions(content_records)
    commerce = fold_revisions(commerce_records)
    linked_from_content = {r.linkage.target_key for r in content if r.linkage is not None}
    linked_from_commerce = {r.linkage.target_key for r in commerce if r.linkage is not None}

    content_split = deduplicate_records(
        content,
        allowed_punctuation=policy.allowed_punctuation,
        linked_keys=linked_from_commerce,
    )
    commerce_split = deduplicate_records(
        commerce,
        allowed_punctuation=policy.allowed_punctuation,
        linked_keys=linked_from_content,
    )

    state = _ResolutionState(
        policy=policy,
        content={record.key: record for record in content_split.canonical},
        commerce={record.key: record for record in commerce_split.canonical},
        known_content=frozenset(record.key for record in content),
        known_commerce=frozenset(record.key for record in commerce),
        content_duplicates=content_split.duplicate_keys,
        commerce_duplicates=commerce_split.duplicate_keys,
    )
    state.pairs.extend(content_split.duplicates)
    state.pairs.extend(commerce_split.duplicates)

    _resolve_content_links(state)
    _resolve_commerce_links(state)
    _claim_components(
        state, _exact_edges(state), match_kind=MatchKind.EXACT, status=PairStatus.MATCHED
    )
    _claim_components(
        state, _override_edges(state), match_kind=MatchKind.OVERRIDE, status=PairStatus.MATCHED
    )
    _claim_components(
        state, _fuzzy_edges(state), match_kind=MatchKind.FUZZY, status=PairStatus.SUGGESTED
    )
    _claim_leftovers(state)

    report = ResolutionReport(
        pairs=sorted(state.pairs, key=lambda pair: (pair.sort_key, pair.status))
    )
    log.info("Resolved %d record pairs: %s", len(report.pairs), report.counts())
    return report


def _resolve_content_links(state: _ResolutionState) -> None:
    edges: set[Edge] = set()
    for key, record in sorted(state.content.items()):
        if record.linkage is None:
            continue
        target = record.linkage.target_key
        if target not in state.known_commerce:
            state.claim(
                RecordPair(
                    status=PairStatus.ORPHANED,
                    content=record,
                    candidates=(target,),
                    reason="linked commerce record does not exist",
                )
            )
        elif target not in state.commerce:
            state.claim(
                RecordPair(
                    status=PairStatus.ASYMMETRIC,
                    content=record,
                    candidates=(target,),
                    reason="linked commerce record is a duplicate",
                )
            )
        else:
            edges.add((key, target))

    for content_keys, commerce_keys in _components(edges):
        try:
            content_key, commerce_key = _single_match(content_keys, commerce_keys)
        except AmbiguousMatchError as exc:
            _claim_ambiguous(state, content_keys, commerce_keys, MatchKind.EXPLICIT, exc)
            continue
        content = state.content[content_key]
        commerce = state.commerce[commerce_key]
        back_link = commerce.linkage.target_key if commerce.linkage is not None else None
        if back_link is None or back_link == content_key:
            state.claim(
                RecordPair(
                    status=PairStatus.MATCHED,
                    content=content,
                    commerce=commerce,
                    match_kind=MatchKind.EXPLICIT,
                    reason="linked from content",
                )
            )
        else:
            state.claim(
                RecordPair(
                    status=PairStatus.ASYMMETRIC,
                    content=content,
                    commerce=commerce,
                    match_kind=MatchKind.EXPLICIT,
                    candidates=(back_link,),
                    reason=f"commerce record links back to {back_link}",
                )
            )


def _resolve_commerce_links(state: _ResolutionState) -> None:
    edges: set[Edge] = set()
    for key, record in sorted(state.commerce.items()):
        if record.linkage is None:
            continue
        target = record.linkage.target_key
        if target not in state.known_content:
            state.claim(
                RecordPair(
                    status=PairStatus.ORPHANED,
                    commerce=record,
                    candidates=(target,),
                    reason="linked content record does not exist",
                )
            )
        elif target not in state.content:
            state.claim(
                RecordPair(
                    status=PairStatus.ASYMMETRIC,
                    commerce=record,
                    candidates=(target,),
                    reason="linked content record is paired elsewhere or a duplicate",
                )
            )
        else:
            edges.add((target, key))

    _claim_components(
        state,
        edges,
        match_kind=MatchKind.EXPLICIT,
        status=PairStatus.MATCHED,
        reason="linked from commerce",
    )


def _exact_edges(state: _ResolutionState) -> set[Edge]:
    index: dict[str, list[str]] = {}
    for key, record in state.commerce.items():
        for name in state.names_of(record):
            index.setdefault(name, []).append(key)

    edges: set[Edge] = set()
    for key, record in state.content.items():
        for name in state.names_of(record):
            edges.update((key, commerce_key) for commerce_key in index.get(name, ()))
    return edges


def _override_edges(state: _ResolutionState) -> set[Edge]:
    allowed = state.policy.allowed_punctuation
    edges: set[Edge] = set()
    for override in state.policy.overrides:
        content_name = normalize_name(override.content_name, allowed_punctuation=allowed)
        commerce_name = normalize_name(override.commerce_name, allowed_punctuation=allowed)
        if content_name is None or commerce_name is None:
            continue
        content_keys = [
            key for key, record in state.content.items() if content_name in state.names_of(record)
        ]
        commerce_keys = [
            key
            for key, record in state.commerce.items()
            if commerce_name in state.names_of(record)
        ]
        edges.update(product(content_keys, commerce_keys))
    return edges


def _fuzzy_edges(state: _ResolutionState) -> set[Edge]:
    min_length = state.policy.fuzzy_min_length
    commerce_names = [
        (key, name)
        for key, record in state.commerce.items()
        for name in state.names_of(record)
        if len(name) >= min_length
    ]
    edges: set[Edge] = set()
    for key, record in state.content.items():
        for name in state.names_of(record):
            if len(name) < min_length:
                continue
            edges.update(
                (key, commerce_key)
                for commerce_key, commerce_name in commerce_names
                if name in commerce_name or commerce_name in name
            )
    return edges


def _claim_components(
    state: _ResolutionState,
    edges: set[Edge],
    *,
    match_kind: MatchKind,
    status: PairStatus,
    reason: str | None = None,
) -> None:
    for content_keys, commerce_keys in _components(edges):
        try:
            if match_kind is not MatchKind.EXPLICIT:
                _reject_pending_duplicates(state, content_keys, commerce_keys)
            content_key, commerce_key = _single_match(content_keys, commerce_keys)
        except AmbiguousMatchError as exc:
            _claim_ambiguous(state, content_keys, commerce_keys, match_kind, exc)
            continue
        state.claim(
            RecordPair(
                status=status,
                content=state.content[content_key],
                commerce=state.commerce[commerce_key],
                match_kind=match_kind,
                reason=reason or f"{match_kind} name match",
            )
        )


def _single_match(content_keys: tuple[str, ...], commerce_keys: tuple[str, ...]) -> Edge:
    if len(content_keys) == 1 and len(commerce_keys) == 1:
        return content_keys[0], commerce_keys[0]
    raise AmbiguousMatchError(
        f"{len(content_keys)} content record(s) compete for "
        f"{len(commerce_keys)} commerce record(s)",
        candidates=content_keys + commerce_keys,
    )


def _reject_pending_duplicates(
    state: _ResolutionState, content_keys: tuple[str, ...], commerce_keys: tuple[str, ...]
) -> None:
    pending = _duplicates_of(state.content_duplicates, content_keys) + _duplicates_of(
        state.commerce_duplicates, commerce_keys
    )
    if pending:
        raise AmbiguousMatchError(
            f"candidate has {len(pending)} unresolved duplicate(s)",
            candidates=content_keys + commerce_keys + pending,
        )


def _duplicates_of(
    duplicates: dict[str, tuple[str, ...]], keys: tuple[str, ...]
) -> tuple[str, ...]:
    return tuple(duplicate for key in keys for duplicate in duplicates.get(key, ()))


def _claim_ambiguous(
    state: _ResolutionState,
    content_keys: tuple[str, ...],
    commerce_keys: tuple[str, ...],
    match_kind: MatchKind,
    exc: AmbiguousMatchError,
) -> None:
    log.info("Ambiguous %s match: %s", match_kind, exc.candidates)
    for key in content_keys:
        state.claim(
            RecordPair(
                status=PairStatus.AMBIGUOUS,
                content=state.content[key],
                match_kind=match_kind,
                candidates=commerce_keys + _duplicates_of(state.commerce_duplicates, commerce_keys),
                reason=str(exc),
            )
        )
    for key in commerce_keys:
        state.claim(
            RecordPair(
                status=PairStatus.AMBIGUOUS,
                commerce=state.commerce[key],
                match_kind=match_kind,
                candidates=content_keys + _duplicates_of(state.content_duplicates, content_keys),
                reason=str(exc),
            )
        )


def _claim_leftovers(state: _ResolutionState) -> None:
    for record in sorted(state.content.values(), key=lambda r: r.key):
        state.claim(RecordPair(status=PairStatus.UNMATCHED, content=record, reason="no match"))
    for record in sorted(state.commerce.values(), key=lambda r: r.key):
        state.claim(RecordPair(status=PairStatus.UNMATCHED, commerce=record, reason="no match"))


def _components(edges: set[Edge]) -> list[Component]:
    """Connected components of the bipartite proposal graph, sorted."""

    parent: dict[tuple[str, str], tuple[str, str]] = {}

    def find(node: tuple[str, str]) -> tuple[str, str]:
        parent.setdefault(node, node)
        while parent[node] != node:
            parent[node] = parent[parent[node]]
            node = parent[node]
        return node

    for content_key, commerce_key in edges:
        left = find(("content", content_key))
        right = find(("commerce", commerce_key))
        if left != right:
            parent[right] = left

    groups: dict[tuple[str, str], list[tuple[str, str]]] = {}
    for node in parent:
        groups.setdefault(find(node), []).append(node)

    components: list[Component] = []
    for nodes in groups.values():
        content_keys = tuple(sorted(key for side, key in nodes if side == "content"))
        commerce_keys = tuple(sorted(key for side, key in nodes if side == "commerce"))
        components.append((content_keys, commerce_keys))
    components.sort()
    return components
