"""Pairwise evidence builders: co-occurrence by source, role prior by artifact role."""

import logging

from constellation.models.schemas import EdgeWeights, GraphNode, RawKeywordRecord

logger = logging.getLogger(__name__)

PairKey = tuple[str, str]


def edge_key(a: str, b: str) -> PairKey:
    """Canonical key for the unordered pair {a, b}: smaller id first."""
    return (a, b) if a < b else (b, a)


class EvidenceTable:
    """
    Evidence per unordered node pair, in first-touch order.

    Every lookup goes through ``edge_key`` so (A, B) and (B, A) always hit the
    same entry. Iteration order is the order pairs were first touched, which
    the pruner relies on to break weight ties.
    """

    def __init__(self):
        self._weights: dict[PairKey, EdgeWeights] = {}

    def get(self, a: str, b: str) -> EdgeWeights:
        """Return the evidence for {a, b}, creating an all-zero entry if absent."""
        if a == b:
            raise ValueError(f"Self-loop requested for node {a!r}")
        key = edge_key(a, b)
        weights = self._weights.get(key)
        if weights is None:
            weights = EdgeWeights()
            self._weights[key] = weights
        return weights

    def items(self) -> list[tuple[PairKey, EdgeWeights]]:
        return list(self._weights.items())

    def __contains__(self, pair: PairKey) -> bool:
        return edge_key(*pair) in self._weights

    def __len__(self) -> int:
        return len(self._weights)


def group_by_source(
    records: list[RawKeywordRecord],
    record_to_node: dict[str, str],
) -> dict[str, list[str]]:
    """
    Map each source label to the distinct node ids whose records carry it.

    A node appears once per source even when several of its records share
    that source. Records without a source, or that were dropped during
    deduplication, are ignored.
    """
    groups: dict[str, list[str]] = {}
    for record in records:
        if not record.source:
            continue
        node_id = record_to_node.get(record.id)
        if node_id is None:
            continue
        members = groups.setdefault(record.source, [])
        if node_id not in members:
            members.append(node_id)
    return groups


def add_co_occurrence(table: EvidenceTable, source_groups: dict[str, list[str]]) -> int:
    """
    Add co-occurrence evidence for every pair sharing a source.

    Each shared source adds ``1 / len(source_groups)`` to the pair, capped at
    1.0 after every increment. Returns the number of pair increments applied.
    """
    if not source_groups:
        return 0

    increment = 1.0 / len(source_groups)
    applied = 0
    for node_ids in source_groups.values():
        if len(node_ids) < 2:
            continue
        for i in range(len(node_ids)):
            for j in range(i + 1, len(node_ids)):
                weights = table.get(node_ids[i], node_ids[j])
                weights.co_occurrence = min(1.0, weights.co_occurrence + increment)
                applied += 1

    logger.debug(
        "Co-occurrence: %d sources, %d pair increments", len(source_groups), applied
    )
    return applied


def add_role_prior(table: EvidenceTable, nodes: list[GraphNode], role_prior: float) -> int:
    """
    Set role-prior evidence for every distinct node pair sharing an artifact role.

    The value is overwritten rather than accumulated. This may create pairs
    that never co-occur in any source. Returns the number of pairs touched.
    """
    touched = 0
    for i in range(len(nodes)):
        for j in range(i + 1, len(nodes)):
            a, b = nodes[i], nodes[j]
            if a.artifact_role == b.artifact_role:
                table.get(a.id, b.id).role_prior = role_prior
                touched += 1
    return touched
