"""Layout engine: force simulation, neighbor tree, shortest path line.

Provides:
- AggregatedForceLayout: clustered force layout for the default view
- NeighborTreeLayout: inbound/outbound trees around a search origin
- path_layout: linear layout of a shortest path
- Scales, treemap home positions and viewport fitting
"""

from vargraph.layout.aggregated import AggregatedForceLayout, apply_positions
from vargraph.layout.path import path_layout
from vargraph.layout.scales import ColorScale, RadiusScale, radius_scale_for, style_nodes
from vargraph.layout.simulation import (
    ClusterForce,
    CollideForce,
    ForceSimulation,
    LinkForce,
    ManyBodyForce,
    PositionForce,
    Positions,
)
from vargraph.layout.tree import NeighborTreeLayout, PlacedNode, TreeNode, stratify, tidy_tree
from vargraph.layout.treemap import Cell, squarify, submodule_home_positions
from vargraph.layout.viewport import ViewTransform, fit_to_viewport

__all__ = [
    # Layouts
    "AggregatedForceLayout",
    "NeighborTreeLayout",
    "path_layout",
    "apply_positions",
    "Positions",
    # Simulation
    "ForceSimulation",
    "LinkForce",
    "PositionForce",
    "CollideForce",
    "ClusterForce",
    "ManyBodyForce",
    # Trees
    "TreeNode",
    "PlacedNode",
    "stratify",
    "tidy_tree",
    # Scales and placement
    "RadiusScale",
    "ColorScale",
    "radius_scale_for",
    "style_nodes",
    "Cell",
    "squarify",
    "submodule_home_positions",
    "ViewTransform",
    "fit_to_viewport",
]
