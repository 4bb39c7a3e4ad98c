"""Top-k neighbor lookup over a pruned edge list."""

from constellation.models.schemas import GraphEdge, Neighbor

DEFAULT_K = 5


def top_k_neighbors(node_id: str, edges: list[GraphEdge], k: int = DEFAULT_K) -> list[Neighbor]:
    """
    Return the node's neighbors ranked by edge weight, strongest first.

    Ties keep edge-list order. ``k`` is applied as a plain slice, so 0 gives
    an empty list. A node without edges (or an unknown id) yields [].
    """
    neighbors = [
        Neighbor(
            neighbor_id=edge.target if edge.source == node_id else edge.source,
            weight=edge.final_weight,
            edge_type=edge.edge_type,
        )
        for edge in edges
        if edge.source == node_id or edge.target == node_id
    ]
    neighbors.sort(key=lambda n: n.weight, reverse=True)
    return neighbors[:k]
