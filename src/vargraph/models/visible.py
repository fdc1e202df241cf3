"""Working state of the engine: the visible node/link set and collapse flags."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from vargraph.models.link import LinkDirection, VisibleLink, pair_key
from vargraph.models.node import Node, Tier


@dataclass
class VisibleSet:
    """Ordered set of shown nodes and the visible links derived from them.

    Links are keyed by their unordered endpoint pair, so at most one link
    exists per pair.
    """

    nodes: dict[str, Node] = field(default_factory=dict)
    links: dict[tuple[str, str], VisibleLink] = field(default_factory=dict)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node_ids(self) -> list[str]:
        return list(self.nodes)

    def link_list(self) -> list[VisibleLink]:
        return list(self.links.values())

    def copy(self) -> "VisibleSet":
        """Copy the containers; node objects are shared with the store."""
        return VisibleSet(
            nodes=dict(self.nodes),
            links={key: VisibleLink(l.source, l.target, l.direction) for key, l in self.links.items()},
        )

    def add_node(self, node: Node) -> None:
        self.nodes[node.id] = node

    def remove_nodes(self, node_ids: Iterable[str]) -> None:
        """Remove nodes and every link touching them."""
        removed = set(node_ids)
        if not removed:
            return
        for node_id in removed:
            self.nodes.pop(node_id, None)
        self.links = {
            key: link
            for key, link in self.links.items()
            if link.source not in removed and link.target not in removed
        }

    def add_link(self, source: str, target: str) -> VisibleLink | None:
        """Add a link, merging with an existing link on the same pair.

        Self-links are dropped. A link opposite to an existing one marks
        the existing link as bidirectional.
        """
        if source == target:
            return None
        key = pair_key(source, target)
        existing = self.links.get(key)
        if existing is None:
            link = VisibleLink(source=source, target=target)
            self.links[key] = link
            return link
        if existing.source != source and existing.direction != LinkDirection.BOTH:
            existing.direction = LinkDirection.BOTH
        return existing

    def nodes_of_tier(self, tier: Tier) -> list[Node]:
        return [node for node in self.nodes.values() if node.tier == tier]

    def is_variable_view(self) -> bool:
        """True when every shown node is a leaf variable."""
        return bool(self.nodes) and all(node.tier == Tier.VARIABLE for node in self.nodes.values())

    def degrees(self) -> dict[str, int]:
        """Count of visible links per shown node."""
        counts = {node_id: 0 for node_id in self.nodes}
        for link in self.links.values():
            counts[link.source] = counts.get(link.source, 0) + 1
            counts[link.target] = counts.get(link.target, 0) + 1
        return counts

    def link_signature(self) -> set[tuple[str, str, str]]:
        """Comparable form of the link set, direction flags included."""
        return {(link.source, link.target, link.direction.value) for link in self.links.values()}

    def snapshot(self) -> list[str]:
        """Serializable form: the ordered list of visible node ids."""
        return list(self.nodes)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "links": [link.to_dict() for link in self.links.values()],
        }


class CollapseFlag(int, Enum):
    """Collapse flag stored per aggregate id."""

    EXPANDED = 0
    COLLAPSED = 1


@dataclass
class CollapsedStateMap:
    """Collapse flags keyed by aggregate node id (submodule or segment)."""

    flags: dict[str, CollapseFlag] = field(default_factory=dict)

    def get(self, aggregate_id: str) -> CollapseFlag:
        return self.flags.get(aggregate_id, CollapseFlag.EXPANDED)

    def is_collapsed(self, aggregate_id: str) -> bool:
        return self.get(aggregate_id) == CollapseFlag.COLLAPSED

    def mark_collapsed(self, aggregate_id: str) -> None:
        self.flags[aggregate_id] = CollapseFlag.COLLAPSED

    def mark_expanded(self, aggregate_id: str) -> None:
        self.flags[aggregate_id] = CollapseFlag.EXPANDED

    def copy(self) -> "CollapsedStateMap":
        return CollapsedStateMap(flags=dict(self.flags))

    def to_dict(self) -> dict[str, int]:
        return {key: int(flag) for key, flag in self.flags.items()}
