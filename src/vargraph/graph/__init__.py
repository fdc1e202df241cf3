"""Graph store and aggregation engine.

Provides:
- GraphStore: immutable three-tier graph built from loader records
- AggregationEngine: expand/collapse with link rewiring
- Snapshot restore and single-tier initial views
"""

from vargraph.graph.aggregation import (
    AggregationAction,
    AggregationEngine,
    AggregationResult,
    collapsed_state_from_visible,
    initial_collapsed_state,
    initial_visible_set,
    reconstruct_visible_set,
    without_isolated_nodes,
)
from vargraph.graph.rewiring import derive_links, representative, rewire
from vargraph.graph.store import GraphStore, resolve_missing_hierarchy

__all__ = [
    # Store
    "GraphStore",
    "resolve_missing_hierarchy",
    # Aggregation
    "AggregationAction",
    "AggregationEngine",
    "AggregationResult",
    "initial_visible_set",
    "initial_collapsed_state",
    "collapsed_state_from_visible",
    "reconstruct_visible_set",
    "without_isolated_nodes",
    # Rewiring
    "representative",
    "rewire",
    "derive_links",
]
