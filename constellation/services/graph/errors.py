"""Exceptions raised by the constellation graph engine."""


class GraphIntegrityError(RuntimeError):
    """An edge references a node id that is not part of the graph.

    Construction never produces such an edge, so seeing one means the engine
    itself is broken; it is raised instead of silently dropping the edge.
    """
