"""Aggregation engine - expand and collapse nodes of the visible graph.

Every operation takes the current VisibleSet and CollapsedStateMap and
returns new ones; inputs are never mutated, so a rejected operation leaves
the caller's state exactly as it was.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from vargraph.exceptions import InvalidOperation
from vargraph.graph.rewiring import derive_links, rewire
from vargraph.graph.store import GraphStore
from vargraph.models import (
    CollapsedStateMap,
    Node,
    SegmentNode,
    SubmoduleNode,
    Tier,
    VariableNode,
    VisibleSet,
)

logger = logging.getLogger(__name__)


class AggregationAction(str, Enum):
    """Kind of change applied by the aggregation engine."""

    EXPAND = "expand"
    COLLAPSE = "collapse"


@dataclass
class AggregationResult:
    """Outcome of an expand or collapse."""

    visible: VisibleSet
    collapsed: CollapsedStateMap
    action: AggregationAction
    node_id: str  # Node the operation was invoked on
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def initial_visible_set(store: GraphStore, tier: Tier) -> VisibleSet:
    """Visible set with every node shown at a single tier.

    Tier.VARIABLE gives the fully expanded graph, Tier.SUBMODULE the fully
    collapsed one.
    """
    if tier == Tier.VARIABLE:
        nodes: tuple[Node, ...] = store.all_variable_nodes()
    else:
        nodes = store.all_aggregate_nodes(tier)

    visible = VisibleSet(nodes={node.id: node for node in nodes})
    return derive_links(store, visible)


def initial_collapsed_state(store: GraphStore, tier: Tier) -> CollapsedStateMap:
    """Collapse flags matching initial_visible_set for the same tier.

    Fully expanded: submodules flagged collapsed, segments expanded.
    Otherwise: submodules flagged expanded, segments collapsed.
    """
    state = CollapsedStateMap()
    expanded_all = tier == Tier.VARIABLE
    for submodule in store.all_aggregate_nodes(Tier.SUBMODULE):
        if expanded_all:
            state.mark_collapsed(submodule.id)
        else:
            state.mark_expanded(submodule.id)
    for segment in store.all_aggregate_nodes(Tier.SEGMENT):
        if expanded_all:
            state.mark_expanded(segment.id)
        else:
            state.mark_collapsed(segment.id)
    return state


def collapsed_state_from_visible(store: GraphStore, visible: VisibleSet) -> CollapsedStateMap:
    """Derive collapse flags for a visible set restored from a snapshot.

    A submodule is flagged collapsed while any of its variables is shown;
    a segment is flagged expanded while any of its variables is shown.
    """
    shown_segments: set[str] = set()
    shown_submodules: set[str] = set()
    for node in visible.nodes.values():
        if isinstance(node, VariableNode):
            shown_segments.add(node.segment_key)
            shown_submodules.add(node.submodule_key)

    state = CollapsedStateMap()
    for submodule in store.all_aggregate_nodes(Tier.SUBMODULE):
        if submodule.submodule_key in shown_submodules:
            state.mark_collapsed(submodule.id)
        else:
            state.mark_expanded(submodule.id)
    for segment in store.all_aggregate_nodes(Tier.SEGMENT):
        if segment.segment_key in shown_segments:
            state.mark_expanded(segment.id)
        else:
            state.mark_collapsed(segment.id)
    return state


def reconstruct_visible_set(store: GraphStore, visible_ids: list[str]) -> VisibleSet:
    """
    Rebuild a visible set from a snapshot of node ids.

    The result equals what replaying expand/collapse from the fully expanded
    graph would produce: the given nodes, with links re-derived from every
    expanded link.

    Args:
        store: Graph store the ids refer to
        visible_ids: Ordered node ids from VisibleSet.snapshot()

    Returns:
        VisibleSet

    Raises:
        InvalidOperation: If an id is unknown or a node is listed together
            with one of its own aggregates
    """
    nodes: dict[str, Node] = {}
    for node_id in visible_ids:
        node = store.node(node_id)
        if node is None:
            logger.error(f"Snapshot references unknown node {node_id}")
            raise InvalidOperation("reconstruct", node_id, "unknown node")
        nodes[node_id] = node

    for node in nodes.values():
        for ancestor_id in store.ancestor_ids(node):
            if ancestor_id in nodes:
                logger.error(f"Snapshot lists {node.id} together with its aggregate {ancestor_id}")
                raise InvalidOperation("reconstruct", node.id, f"aggregate {ancestor_id} is also visible")

    visible = derive_links(store, VisibleSet(nodes=nodes))
    logger.info(f"Reconstructed visible set: {len(visible.nodes)} nodes, {len(visible.links)} links")
    return visible


def without_isolated_nodes(visible: VisibleSet) -> VisibleSet:
    """Copy of a visible set without the nodes that have no visible link."""
    degrees = visible.degrees()
    filtered = visible.copy()
    filtered.nodes = {node_id: node for node_id, node in visible.nodes.items() if degrees[node_id] > 0}
    return filtered


class AggregationEngine:
    """
    Expand/collapse operations over a graph store.

    Expand:
        Submodule -> its Segments, Segment -> its Variables
    Collapse:
        Variable -> its Segment (all variables of the segment),
        Segment -> its Submodule (everything shown for the submodule)

    After each structural change, expanded links touching the affected
    aggregate are rewired onto the visible representatives of both ends.
    """

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    def _visible_node(self, operation: str, node_id: str, visible: VisibleSet) -> Node:
        node = visible.nodes.get(node_id)
        if node is None:
            reason = "unknown node" if not self.store.has_node(node_id) else "node is not visible"
            logger.error(f"Rejected {operation} of {node_id}: {reason}")
            raise InvalidOperation(operation, node_id, reason)
        return node

    def _reject(self, operation: str, node: Node) -> InvalidOperation:
        reason = f"not allowed on a {node.tier.value} node"
        logger.error(f"Rejected {operation} of {node.id}: {reason}")
        return InvalidOperation(operation, node.id, reason)

    def expand(
        self,
        node_id: str,
        visible: VisibleSet,
        collapsed: CollapsedStateMap,
    ) -> AggregationResult:
        """
        Replace an aggregate with its immediate children.

        Args:
            node_id: Visible Submodule or Segment to expand
            visible: Current visible set (not modified)
            collapsed: Current collapse flags (not modified)

        Returns:
            AggregationResult with the new visible set and flags

        Raises:
            InvalidOperation: If the node is a Variable or is not visible
        """
        node = self._visible_node("expand", node_id, visible)

        result = visible.copy()
        flags = collapsed.copy()

        if isinstance(node, SubmoduleNode):
            children: list[Node] = list(self.store.segments_of(node.submodule_key))
            flags.mark_expanded(node.id)
            for segment in children:
                flags.mark_collapsed(segment.id)
            removed = [node.id]
            links = self.store.links_touching_submodule(node.submodule_key)
        elif isinstance(node, SegmentNode):
            children = list(self.store.variables_of(node.segment_key))
            flags.mark_expanded(node.id)
            removed = [node.id]
            if node.submodule_id in result:
                removed.append(node.submodule_id)
            links = self.store.links_touching_segment(node.segment_key)
        else:
            raise self._reject("expand", node)

        result.remove_nodes(removed)
        for child in children:
            result.add_node(child)
        rewire(result, links)

        logger.info(
            f"Expanded {node.id}: +{len(children)} nodes, "
            f"{len(result.nodes)} visible nodes, {len(result.links)} visible links"
        )
        return AggregationResult(
            visible=result,
            collapsed=flags,
            action=AggregationAction.EXPAND,
            node_id=node.id,
            added=[child.id for child in children],
            removed=removed,
        )

    def collapse(
        self,
        node_id: str,
        visible: VisibleSet,
        collapsed: CollapsedStateMap,
    ) -> AggregationResult:
        """
        Replace a node and its siblings with their common aggregate.

        Args:
            node_id: Visible Variable (collapses its Segment) or Segment
                (collapses its Submodule)
            visible: Current visible set (not modified)
            collapsed: Current collapse flags (not modified)

        Returns:
            AggregationResult with the new visible set and flags

        Raises:
            InvalidOperation: If the node is a Submodule or is not visible
        """
        node = self._visible_node("collapse", node_id, visible)

        result = visible.copy()
        flags = collapsed.copy()

        if isinstance(node, VariableNode):
            aggregate: Node = self.store.segment(node.segment_key)
            removed = [
                other.id
                for other in visible.nodes.values()
                if isinstance(other, VariableNode) and other.segment_key == node.segment_key
            ]
            links = self.store.links_touching_segment(node.segment_key)
            flags.mark_collapsed(aggregate.id)
            flags.mark_collapsed(node.submodule_id)
        elif isinstance(node, SegmentNode):
            aggregate = self.store.submodule(node.submodule_key)
            removed = [
                other.id
                for other in visible.nodes.values()
                if other.submodule_key == node.submodule_key
            ]
            links = self.store.links_touching_submodule(node.submodule_key)
            # Submodule flag goes back to 0 when its segments are folded in
            flags.mark_expanded(aggregate.id)
        else:
            raise self._reject("collapse", node)

        result.remove_nodes(removed)
        result.add_node(aggregate)
        rewire(result, links)

        logger.info(
            f"Collapsed {len(removed)} nodes into {aggregate.id}: "
            f"{len(result.nodes)} visible nodes, {len(result.links)} visible links"
        )
        return AggregationResult(
            visible=result,
            collapsed=flags,
            action=AggregationAction.COLLAPSE,
            node_id=node.id,
            added=[aggregate.id],
            removed=removed,
        )

    def decide(self, node_id: str, visible: VisibleSet, collapsed: CollapsedStateMap) -> AggregationAction:
        """
        Decide what a double activation of a node does.

        Expand when the node is a Submodule, or when its segment is flagged
        collapsed while its submodule is flagged expanded. Collapse otherwise.
        """
        node = self._visible_node("activate", node_id, visible)
        if isinstance(node, SubmoduleNode):
            return AggregationAction.EXPAND
        if collapsed.is_collapsed(node.segment_id) and not collapsed.is_collapsed(node.submodule_id):
            return AggregationAction.EXPAND
        return AggregationAction.COLLAPSE

    def activate(
        self,
        node_id: str,
        visible: VisibleSet,
        collapsed: CollapsedStateMap,
    ) -> AggregationResult:
        """Expand or collapse a node as decided by the double-activation rule."""
        action = self.decide(node_id, visible, collapsed)
        if action == AggregationAction.EXPAND:
            return self.expand(node_id, visible, collapsed)
        return self.collapse(node_id, visible, collapsed)

    def expand_all(self) -> tuple[VisibleSet, CollapsedStateMap]:
        """Fully expanded visible set and its flags."""
        return (
            initial_visible_set(self.store, Tier.VARIABLE),
            initial_collapsed_state(self.store, Tier.VARIABLE),
        )

    def collapse_all(self, tier: Tier = Tier.SUBMODULE) -> tuple[VisibleSet, CollapsedStateMap]:
        """Visible set collapsed to a single aggregate tier, and its flags."""
        return initial_visible_set(self.store, tier), initial_collapsed_state(self.store, tier)
