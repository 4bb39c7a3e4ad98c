"""Prune weak edges and cap node degree."""

import logging

from constellation.models.schemas import GraphEdge

logger = logging.getLogger(__name__)


def prune_edges(
    edges: list[GraphEdge],
    max_degree: int = 8,
    min_weight: float = 0.05,
) -> list[GraphEdge]:
    """
    Drop weak edges, then greedily admit the strongest ones under a degree cap.

    Edges below ``min_weight`` are removed. Survivors are visited by final
    weight descending (ties keep their input order, since ``sorted`` is
    stable) and admitted unless either endpoint already has ``max_degree``
    admitted edges.

    This is a greedy approximation of degree-constrained weighted matching,
    not an optimal b-matching: a strong edge admitted early can block two
    slightly weaker edges whose combined weight is larger.
    """
    candidates = [e for e in edges if e.final_weight >= min_weight]
    candidates = sorted(candidates, key=lambda e: e.final_weight, reverse=True)

    degree: dict[str, int] = {}
    admitted: list[GraphEdge] = []
    for edge in candidates:
        source_degree = degree.get(edge.source, 0)
        target_degree = degree.get(edge.target, 0)
        if source_degree >= max_degree or target_degree >= max_degree:
            continue
        admitted.append(edge)
        degree[edge.source] = source_degree + 1
        degree[edge.target] = target_degree + 1

    logger.debug(
        "Pruned %d edges to %d (%d below %.3f)",
        len(edges),
        len(admitted),
        len(edges) - len(candidates),
        min_weight,
    )
    return admitted
