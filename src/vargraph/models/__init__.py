"""vargraph data models."""

from vargraph.models.link import ExpandedLink, LinkDirection, VisibleLink, pair_key
from vargraph.models.node import (
    Node,
    SegmentNode,
    SubmoduleNode,
    Tier,
    VariableNode,
    segment_key_for,
    segment_node_id,
    submodule_node_id,
)
from vargraph.models.visible import CollapsedStateMap, CollapseFlag, VisibleSet

__all__ = [
    "Tier",
    "Node",
    "VariableNode",
    "SegmentNode",
    "SubmoduleNode",
    "segment_key_for",
    "segment_node_id",
    "submodule_node_id",
    "LinkDirection",
    "ExpandedLink",
    "VisibleLink",
    "pair_key",
    "VisibleSet",
    "CollapsedStateMap",
    "CollapseFlag",
]
