"""Engine facade - one caller-owned state tying store, aggregation, queries and layout together."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from vargraph.config import Settings
from vargraph.graph import (
    AggregationEngine,
    AggregationResult,
    GraphStore,
    collapsed_state_from_visible,
    initial_collapsed_state,
    initial_visible_set,
    reconstruct_visible_set,
    without_isolated_nodes,
)
from vargraph.layout import (
    AggregatedForceLayout,
    NeighborTreeLayout,
    Positions,
    ViewTransform,
    apply_positions,
    fit_to_viewport,
    path_layout,
    style_nodes,
)
from vargraph.models import CollapsedStateMap, Tier, VisibleSet
from vargraph.query import NeighborResult, NoPathFound, QueryEngine, ShortestPathResult
from vargraph.query.neighbors import SearchDirection

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    """Which layout the current positions belong to."""

    DEFAULT = "default"
    NEAREST_NEIGHBOR = "nearest_neighbor"
    SHORTEST_PATH = "shortest_path"


@dataclass
class EngineState:
    """All mutable state of one engine session."""

    visible: VisibleSet
    collapsed: CollapsedStateMap
    positions: Positions = field(default_factory=dict)  # Positions of the current view
    overview_positions: Positions = field(default_factory=dict)  # Last force layout result
    default_positions: Positions = field(default_factory=dict)  # Saved fully expanded layout
    view: ViewMode = ViewMode.DEFAULT
    neighbor_result: NeighborResult | None = None
    path_result: ShortestPathResult | NoPathFound | None = None


class GraphEngine:
    """
    Single-caller engine over one graph store.

    Every operation runs to completion on the calling thread. Aggregation
    results replace the visible set as a whole; queries and layouts only
    read it.
    """

    def __init__(self, store: GraphStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or Settings()
        style_nodes(store, self.settings)

        self.aggregation = AggregationEngine(store)
        self.force_layout = AggregatedForceLayout(store, self.settings)
        self.tree_layout = NeighborTreeLayout(self.settings)

        tier = self.settings.starting_tier
        self.state = EngineState(
            visible=initial_visible_set(store, tier),
            collapsed=initial_collapsed_state(store, tier),
        )
        logger.info(f"Engine ready: starting tier {tier.value}, {len(self.state.visible)} visible nodes")

    @classmethod
    def from_records(
        cls,
        variables: list[dict[str, Any]],
        links: list[dict[str, Any]],
        settings: Settings | None = None,
    ) -> "GraphEngine":
        return cls(GraphStore.from_records(variables, links), settings)

    @property
    def visible(self) -> VisibleSet:
        return self.state.visible

    # Default view layout

    def layout(self) -> Positions:
        """Run the aggregated force layout from scratch for the current visible set."""
        positions = self.force_layout.run(self.state.visible)
        self._set_default_positions(positions)
        if self.state.visible.is_variable_view():
            self.state.default_positions = dict(positions)
        return positions

    def relayout(self) -> Positions:
        """Reheat the force layout from the last default-view positions."""
        if not self.state.overview_positions:
            return self.layout()
        positions = self.force_layout.reheat(self.state.visible, self.state.overview_positions)
        self._set_default_positions(positions)
        return positions

    def reset_default_view(self) -> Positions:
        """Return to the default view, restoring saved positions where available."""
        saved = self.state.default_positions
        if saved and all(node_id in saved for node_id in self.state.visible.nodes):
            positions = {node_id: saved[node_id] for node_id in self.state.visible.nodes}
            self._set_default_positions(positions)
            logger.info(f"Restored {len(positions)} default positions")
            return positions
        return self.layout()

    def _set_default_positions(self, positions: Positions) -> None:
        self.state.positions = positions
        self.state.overview_positions = positions
        self.state.view = ViewMode.DEFAULT
        self.state.neighbor_result = None
        self.state.path_result = None
        apply_positions(self.state.visible, positions)

    # Aggregation

    def _apply(self, result: AggregationResult) -> AggregationResult:
        self.state.visible = result.visible
        self.state.collapsed = result.collapsed
        self.relayout()
        return result

    def expand(self, node_id: str) -> AggregationResult:
        return self._apply(self.aggregation.expand(node_id, self.state.visible, self.state.collapsed))

    def collapse(self, node_id: str) -> AggregationResult:
        return self._apply(self.aggregation.collapse(node_id, self.state.visible, self.state.collapsed))

    def activate(self, node_id: str) -> AggregationResult:
        """Double activation: expand or collapse depending on the collapse flags."""
        return self._apply(self.aggregation.activate(node_id, self.state.visible, self.state.collapsed))

    def expand_all(self) -> Positions:
        self.state.visible, self.state.collapsed = self.aggregation.expand_all()
        return self.reset_default_view()

    def collapse_all(self, tier: Tier = Tier.SUBMODULE) -> Positions:
        self.state.visible, self.state.collapsed = self.aggregation.collapse_all(tier)
        return self.layout()

    # Persistence

    def snapshot(self) -> list[str]:
        return self.state.visible.snapshot()

    def restore(self, visible_ids: list[str]) -> Positions:
        """Rebuild the visible set from a snapshot and lay it out."""
        visible = reconstruct_visible_set(self.store, visible_ids)
        self.state.visible = visible
        self.state.collapsed = collapsed_state_from_visible(self.store, visible)
        return self.layout()

    # Queries

    def query_engine(self) -> QueryEngine:
        return QueryEngine(self.state.visible, neighbor_depth=self.settings.neighbor_depth)

    def nearest_neighbors(
        self,
        origin: str,
        max_depth: int | None = None,
        direction: SearchDirection = "both",
    ) -> NeighborResult:
        """Search neighbors of a node and switch to the neighbor tree view."""
        result = self.query_engine().nearest_neighbors(origin, max_depth=max_depth, direction=direction)
        self.state.positions = self.tree_layout.run(result, self.state.visible.nodes)
        self.state.view = ViewMode.NEAREST_NEIGHBOR
        self.state.neighbor_result = result
        self.state.path_result = None
        return result

    def shortest_path(self, start: str, end: str) -> ShortestPathResult | NoPathFound:
        """Find a path and, if there is one, switch to the linear path view."""
        result = self.query_engine().shortest_path(start, end)
        self.state.path_result = result
        self.state.neighbor_result = None
        self.state.view = ViewMode.SHORTEST_PATH
        if isinstance(result, ShortestPathResult):
            self.state.positions = path_layout(result.nodes, self.state.visible.nodes, self.settings)
        else:
            self.state.positions = {}
        return result

    # Renderer contract

    def displayed_ids(self) -> list[str]:
        """Node ids shown in the current view."""
        if self.state.view == ViewMode.NEAREST_NEIGHBOR and self.state.neighbor_result is not None:
            return self.state.neighbor_result.nodes
        if self.state.view == ViewMode.SHORTEST_PATH:
            result = self.state.path_result
            return list(result.nodes) if isinstance(result, ShortestPathResult) else []
        visible = self.state.visible
        if not self.settings.show_single_nodes:
            visible = without_isolated_nodes(visible)
        return visible.node_ids()

    def render_nodes(self) -> list[dict]:
        """Displayed nodes with position, radius, colour and tier."""
        rendered = []
        for node_id in self.displayed_ids():
            node = self.state.visible.nodes.get(node_id)
            if node is None:
                continue
            x, y = self.state.positions.get(node_id, (node.x, node.y))
            rendered.append(
                {
                    "id": node.id,
                    "name": node.name,
                    "tier": node.tier.value,
                    "x": x,
                    "y": y,
                    "radius": node.radius,
                    "color": node.color,
                }
            )
        return rendered

    def render_links(self) -> list[dict]:
        """Displayed links with resolved endpoint coordinates and direction."""
        if self.state.view == ViewMode.NEAREST_NEIGHBOR and self.state.neighbor_result is not None:
            links = [link.to_dict() for link in self.state.neighbor_result.links]
        elif self.state.view == ViewMode.SHORTEST_PATH:
            result = self.state.path_result
            links = [link.to_dict() for link in result.links] if isinstance(result, ShortestPathResult) else []
        else:
            shown = set(self.displayed_ids())
            links = [
                link.to_dict()
                for link in self.state.visible.links.values()
                if link.source in shown and link.target in shown
            ]

        positions = self.state.positions
        rendered = []
        for link in links:
            if link["source"] not in positions or link["target"] not in positions:
                continue
            link["source_x"], link["source_y"] = positions[link["source"]]
            link["target_x"], link["target_y"] = positions[link["target"]]
            rendered.append(link)
        return rendered

    def viewport(self, width: float | None = None, height: float | None = None) -> ViewTransform:
        """Transform fitting the displayed nodes into the given screen size."""
        shown = set(self.displayed_ids())
        positions = {node_id: pos for node_id, pos in self.state.positions.items() if node_id in shown}
        return fit_to_viewport(
            positions,
            width or self.settings.layout_width,
            height or self.settings.layout_height,
            self.settings,
        )
