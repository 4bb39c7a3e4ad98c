"""
Constellation graph assembly.

Turns a snapshot of keyword records into a ConstellationGraph:
deduplicate -> co-occurrence evidence -> role-prior evidence -> blend,
then optionally decay and prune. Every call builds from scratch; nothing is
cached between calls, so concurrent builds never share state.
"""

import logging
from datetime import datetime

from constellation.models.schemas import (
    ConstellationGraph,
    EdgeType,
    GraphConfig,
    GraphEdge,
    GraphNode,
    Neighbor,
    RawKeywordRecord,
)
from constellation.services.graph.deduplicator import deduplicate_records
from constellation.services.graph.errors import GraphIntegrityError
from constellation.services.graph.evidence import (
    EvidenceTable,
    add_co_occurrence,
    add_role_prior,
    group_by_source,
)
from constellation.services.graph.neighbors import DEFAULT_K, top_k_neighbors
from constellation.services.graph.pruning import prune_edges
from constellation.services.graph.weighting import apply_time_decay, as_utc, blend_weights

logger = logging.getLogger(__name__)


def infer_edge_type(a: GraphNode, b: GraphNode) -> EdgeType:
    """
    Classify the relationship between two nodes.

    Same orientation and role -> reinforces; same orientation only -> extends;
    same role only -> contextualizes; neither -> challenges.
    """
    same_orientation = a.orientation == b.orientation
    same_role = a.artifact_role == b.artifact_role
    if same_orientation and same_role:
        return "reinforces"
    if same_orientation:
        return "extends"
    if same_role:
        return "contextualizes"
    return "challenges"


def _check_unique_ids(nodes: list[GraphNode]) -> None:
    seen: dict[str, str] = {}
    for node in nodes:
        if node.id in seen:
            raise GraphIntegrityError(
                f"Node id {node.id!r} is shared by terms {seen[node.id]!r} and {node.term!r}"
            )
        seen[node.id] = node.term


def _check_integrity(nodes: list[GraphNode], edges: list[GraphEdge]) -> None:
    node_ids = {n.id for n in nodes}
    for edge in edges:
        if edge.source not in node_ids or edge.target not in node_ids:
            raise GraphIntegrityError(
                f"Edge {edge.source}|{edge.target} references a node outside the graph"
            )
        if edge.source >= edge.target:
            raise GraphIntegrityError(
                f"Edge {edge.source}|{edge.target} is not in canonical order"
            )


def build_graph(
    records: list[RawKeywordRecord],
    config: GraphConfig | None = None,
    now: datetime | None = None,
) -> ConstellationGraph:
    """
    Build the unpruned, undecayed constellation graph.

    Args:
        records: Keyword records in store order. Malformed ones are skipped.
        config: Engine configuration; defaults apply when omitted.
        now: Timestamp stamped on every edge (defaults to current UTC time).

    Returns:
        ConstellationGraph with one node per normalized term and one edge per
        pair with any evidence, each carrying its blended final weight.

    Raises:
        GraphIntegrityError: if two distinct terms carry the same record id,
            or an edge ends up pointing outside the node set.
    """
    config = config or GraphConfig()
    timestamp = as_utc(now).isoformat()

    nodes, record_to_node = deduplicate_records(records)
    _check_unique_ids(nodes)
    nodes_by_id = {n.id: n for n in nodes}

    table = EvidenceTable()
    add_co_occurrence(table, group_by_source(records, record_to_node))
    add_role_prior(table, nodes, config.role_prior)

    edges: list[GraphEdge] = []
    for (source, target), weights in table.items():
        try:
            edge_type = infer_edge_type(nodes_by_id[source], nodes_by_id[target])
        except KeyError as exc:
            raise GraphIntegrityError(f"Evidence for unknown node {exc.args[0]!r}") from exc
        edges.append(
            GraphEdge(
                source=source,
                target=target,
                weights=weights,
                final_weight=blend_weights(weights, config.blend),
                edge_type=edge_type,
                created_at=timestamp,
                updated_at=timestamp,
            )
        )

    _check_integrity(nodes, edges)
    logger.info(
        "Built constellation graph: %d records -> %d nodes, %d edges",
        len(records),
        len(nodes),
        len(edges),
    )
    return ConstellationGraph(nodes=nodes, edges=edges)


def build_constellation(
    records: list[RawKeywordRecord],
    config: GraphConfig | None = None,
    now: datetime | None = None,
) -> ConstellationGraph:
    """Build, decay and prune: the graph served to clients."""
    config = config or GraphConfig()
    now = as_utc(now)

    graph = build_graph(records, config, now=now)
    decayed = apply_time_decay(graph.edges, config.half_life_days, now=now)
    pruned = prune_edges(decayed, max_degree=config.max_degree, min_weight=config.min_weight)
    return ConstellationGraph(nodes=graph.nodes, edges=pruned)


class GraphService:
    """Builds constellation graphs and answers neighbor queries for one config."""

    def __init__(self, config: GraphConfig | None = None):
        self.config = config or GraphConfig()

    def build(
        self, records: list[RawKeywordRecord], now: datetime | None = None
    ) -> ConstellationGraph:
        return build_constellation(records, self.config, now=now)

    def neighbors(
        self,
        records: list[RawKeywordRecord],
        node_id: str,
        k: int = DEFAULT_K,
        now: datetime | None = None,
    ) -> list[Neighbor]:
        """Build the pruned graph and rank ``node_id``'s neighbors."""
        graph = self.build(records, now=now)
        return top_k_neighbors(node_id, graph.edges, k)
