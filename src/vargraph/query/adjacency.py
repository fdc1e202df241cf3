"""Directed adjacency graph over the visible links."""

import logging

import networkx as nx

from vargraph.models import LinkDirection, VisibleSet

logger = logging.getLogger(__name__)


def build_adjacency(visible: VisibleSet) -> nx.DiGraph:
    """
    Build a lightweight directed graph of the visible set.

    Nodes keep visible order and edges keep link order, so traversal order
    is stable. A bidirectional link contributes an edge each way. Self-loops
    and parallel edges are never added.

    Args:
        visible: Current visible set

    Returns:
        networkx DiGraph keyed by node id
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(visible.nodes)

    for link in visible.links.values():
        _add_edge(graph, link.source, link.target)
        if link.direction == LinkDirection.BOTH:
            _add_edge(graph, link.target, link.source)

    logger.debug(f"Adjacency graph: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges")
    return graph


def _add_edge(graph: nx.DiGraph, source: str, target: str) -> None:
    if source == target or source not in graph or target not in graph:
        return
    if not graph.has_edge(source, target):
        graph.add_edge(source, target)
