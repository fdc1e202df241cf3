"""Single-pair shortest path over the visible graph."""

import logging
from dataclasses import dataclass, field

import networkx as nx

from vargraph.models import LinkDirection, VisibleSet

logger = logging.getLogger(__name__)

NO_PATH_MESSAGE = "There is no shortest path between the selected nodes"


@dataclass(frozen=True)
class NoPathFound:
    """Sentinel for an unreachable target (an expected outcome, not an error)."""

    start: str
    end: str
    message: str = NO_PATH_MESSAGE

    def __bool__(self) -> bool:
        return False


@dataclass
class PathLink:
    """An edge of a found path that exists in the visible link set."""

    source: str
    target: str
    node: str  # Node the edge leaves from
    depth: int = 1
    direction: LinkDirection = LinkDirection.OUTBOUND

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "target": self.target,
            "node": self.node,
            "depth": self.depth,
            "direction": self.direction.value,
        }


@dataclass
class ShortestPathResult:
    """A found path: node ids from start to end inclusive."""

    nodes: list[str]
    links: list[PathLink] = field(default_factory=list)

    @property
    def length(self) -> int:
        """Number of hops."""
        return len(self.nodes) - 1

    def __bool__(self) -> bool:
        return True

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "nodes": list(self.nodes),
            "links": [link.to_dict() for link in self.links],
        }


def find_shortest_path(
    graph: nx.DiGraph,
    visible: VisibleSet,
    start: str,
    end: str,
) -> ShortestPathResult | NoPathFound:
    """
    Find the fewest-hops outbound path from start to end.

    Uses a bidirectional BFS over the adjacency graph. Path edges are looked
    up in the visible links; a consecutive pair without a matching link is
    left out of the returned links rather than failing the query.

    Args:
        graph: Adjacency graph built from visible
        visible: Visible set the graph was built from
        start: Start node id
        end: End node id

    Returns:
        ShortestPathResult, or NoPathFound when end is unreachable
    """
    if start not in graph or end not in graph:
        missing = start if start not in graph else end
        logger.warning(f"Shortest path endpoint {missing} is not visible")
        return NoPathFound(start=start, end=end)

    try:
        nodes = nx.bidirectional_shortest_path(graph, start, end)
    except nx.NetworkXNoPath:
        logger.info(f"No shortest path from {start} to {end}")
        return NoPathFound(start=start, end=end)

    links: list[PathLink] = []
    for previous, node in zip(nodes, nodes[1:]):
        if any(link.connects(previous, node) for link in visible.links.values()):
            links.append(PathLink(source=previous, target=node, node=previous))
        else:
            logger.debug(f"No visible link for path step {previous} -> {node}")

    logger.info(f"Shortest path {start} -> {end}: {len(nodes) - 1} hops")
    return ShortestPathResult(nodes=list(nodes), links=links)
