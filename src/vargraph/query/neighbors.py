"""Bounded-depth nearest neighbor search.

Outbound and inbound neighbors are expanded independently, one depth level
at a time, up to three levels from the origin.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal

import networkx as nx

from vargraph.exceptions import InvalidOperation
from vargraph.models import LinkDirection

logger = logging.getLogger(__name__)

MAX_NEIGHBOR_DEPTH = 3

SearchDirection = Literal["both", "outbound", "inbound"]


@dataclass
class NeighborLink:
    """An edge discovered by the neighbor search."""

    source: str
    target: str
    direction: LinkDirection  # OUTBOUND or INBOUND
    depth: int  # 1..3
    node: str  # Newly discovered node

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "target": self.target,
            "direction": self.direction.value,
            "depth": self.depth,
            "node": self.node,
        }


@dataclass
class NeighborResult:
    """Result of a nearest neighbor search."""

    origin: str
    max_depth: int
    links: list[NeighborLink] = field(default_factory=list)  # Discovery order

    @property
    def nodes(self) -> list[str]:
        """Origin followed by discovered nodes, without repeats."""
        seen = [self.origin]
        for link in self.links:
            if link.node not in seen:
                seen.append(link.node)
        return seen

    @property
    def depth_reached(self) -> int:
        return max((link.depth for link in self.links), default=0)

    def links_for(self, direction: LinkDirection, depth: int | None = None) -> list[NeighborLink]:
        return [
            link
            for link in self.links
            if link.direction == direction and (depth is None or link.depth == depth)
        ]

    def max_depth_for(self, direction: LinkDirection) -> int:
        return max((link.depth for link in self.links if link.direction == direction), default=0)

    def to_rows(self) -> list[dict]:
        """Flat rows for tabular export (one per discovered edge)."""
        return [
            {
                "source": link.source,
                "target": link.target,
                "direction": link.direction.value,
                "depth": link.depth,
            }
            for link in self.links
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "origin": self.origin,
            "max_depth": self.max_depth,
            "links": [link.to_dict() for link in self.links],
        }


class NearestNeighbors:
    """
    Direction-aware bounded BFS over the visible adjacency graph.

    Algorithm:
    1. Depth 1: direct successors (outbound) and predecessors (inbound) of the origin
    2. Depth d+1: neighbors of the nodes found at depth d, per direction
    3. A node found at a shallower depth (or the origin) is never re-added
    4. Stop early when a depth finds nothing
    """

    def __init__(self, graph: nx.DiGraph, max_depth: int = 1) -> None:
        self.graph = graph
        self.max_depth = max_depth

    def search(
        self,
        origin: str,
        max_depth: int | None = None,
        direction: SearchDirection = "both",
    ) -> NeighborResult:
        """
        Find neighbors of a node up to a depth.

        Args:
            origin: Visible node id to search from
            max_depth: 1..3, defaults to the instance depth
            direction: "both", "outbound" or "inbound"

        Returns:
            NeighborResult with one link per newly discovered node

        Raises:
            ValueError: If max_depth is outside 1..3 or direction is unknown
            InvalidOperation: If the origin is not in the graph
        """
        depth_limit = self.max_depth if max_depth is None else max_depth
        if not 1 <= depth_limit <= MAX_NEIGHBOR_DEPTH:
            raise ValueError(f"max_depth must be between 1 and {MAX_NEIGHBOR_DEPTH}, got {depth_limit}")
        if direction not in ("both", "outbound", "inbound"):
            raise ValueError(f"direction must be 'both', 'outbound' or 'inbound', got {direction!r}")
        if origin not in self.graph:
            logger.error(f"Rejected neighbor search: {origin} is not visible")
            raise InvalidOperation("search neighbors of", origin, "node is not visible")

        directions = [
            d
            for d in (LinkDirection.OUTBOUND, LinkDirection.INBOUND)
            if direction in ("both", d.value)
        ]

        result = NeighborResult(origin=origin, max_depth=depth_limit)
        frontiers = {d: [origin] for d in directions}
        previous: list[str] = [origin]

        for depth in range(1, depth_limit + 1):
            level: list[NeighborLink] = []
            for d in directions:
                found = self._expand(frontiers[d], d, depth, previous)
                frontiers[d] = [link.node for link in found]
                level.extend(found)

            if not level:
                break
            result.links.extend(level)
            previous = previous + [link.node for link in level]

        logger.info(
            f"Nearest neighbors of {origin}: {len(result.links)} links "
            f"(depth {result.depth_reached}/{depth_limit}, {direction})"
        )
        return result

    def _expand(
        self,
        frontier: list[str],
        direction: LinkDirection,
        depth: int,
        previous: list[str],
    ) -> list[NeighborLink]:
        """One BFS level from every frontier node in one direction."""
        found: list[NeighborLink] = []
        found_nodes: set[str] = set()
        excluded = set(previous)

        for current in frontier:
            if direction == LinkDirection.OUTBOUND:
                neighbors = self.graph.successors(current)
            else:
                neighbors = self.graph.predecessors(current)

            for node in neighbors:
                if node == current or node in excluded or node in found_nodes:
                    continue
                source, target = (current, node) if direction == LinkDirection.OUTBOUND else (node, current)
                found.append(
                    NeighborLink(source=source, target=target, direction=direction, depth=depth, node=node)
                )
                found_nodes.add(node)

        return found
