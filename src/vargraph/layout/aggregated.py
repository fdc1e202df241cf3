"""Aggregated force layout for the default (overview) view."""

import logging
import math

import numpy as np

from vargraph.config import Settings
from vargraph.graph.store import GraphStore
from vargraph.layout.scales import radius_scale_for
from vargraph.layout.simulation import (
    ClusterForce,
    CollideForce,
    ForceSimulation,
    LinkForce,
    ManyBodyForce,
    PositionForce,
    Positions,
)
from vargraph.layout.treemap import submodule_home_positions
from vargraph.models import Node, Tier, VisibleSet

logger = logging.getLogger(__name__)

# Phyllotaxis seeding, as d3 places nodes without a position
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class AggregatedForceLayout:
    """
    Force layout over the visible set with submodule clustering.

    Forces:
    1. Link: pulls linked nodes together, strength 1/min(weight) in the
       variable-only view and 0 otherwise
    2. Anchor: aggregates pulled to their submodule's home, variables to
       the centre; tier 1 pulled hardest
    3. Collide: keeps circles apart
    4. Cluster: pulls each node toward its submodule's centroid
    5. Charge: repulsion, weaker when fully expanded

    run() always starts from seeded positions around the homes, so the same
    input gives the same output. reheat() continues from given positions.
    """

    def __init__(
        self,
        store: GraphStore,
        settings: Settings | None = None,
        ticks: int | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.ticks = self.settings.simulation_ticks if ticks is None else ticks
        self.homes = submodule_home_positions(store, self.settings)

    def _anchor_strength(self, node: Node) -> float:
        if node.tier == Tier.SUBMODULE:
            return self.settings.anchor_strength_submodule
        if node.tier == Tier.SEGMENT:
            return self.settings.anchor_strength_segment
        return self.settings.anchor_strength_variable

    def _anchor(self, node: Node) -> tuple[float, float]:
        if node.tier == Tier.VARIABLE:
            return 0.0, 0.0
        return self.homes.get(node.submodule_id, (0.0, 0.0))

    def seed_positions(self, visible: VisibleSet) -> Positions:
        """Deterministic start positions: a phyllotaxis spiral around each home."""
        placed: dict[str, int] = {}
        positions: Positions = {}
        for node in visible.nodes.values():
            hx, hy = self.homes.get(node.submodule_id, (0.0, 0.0))
            i = placed.get(node.submodule_id, 0)
            placed[node.submodule_id] = i + 1
            radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * INITIAL_ANGLE
            positions[node.id] = (hx + radius * math.cos(angle), hy + radius * math.sin(angle))
        return positions

    def build_simulation(
        self,
        visible: VisibleSet,
        positions: Positions,
        alpha: float = 1.0,
    ) -> ForceSimulation:
        """Set up the simulation and all forces for a visible set."""
        settings = self.settings
        nodes = list(visible.nodes.values())
        ids = [node.id for node in nodes]

        sim = ForceSimulation(
            ids,
            x=[positions[node_id][0] for node_id in ids],
            y=[positions[node_id][1] for node_id in ids],
            alpha=alpha,
            alpha_min=settings.alpha_min,
            alpha_decay=settings.alpha_decay,
            alpha_target=settings.alpha_target,
            velocity_decay=settings.velocity_decay,
            seed=settings.layout_seed,
        )
        for i, node in enumerate(nodes):
            if node.fx is not None and node.fy is not None:
                sim.pin(ids[i], node.fx, node.fy)

        variable_view = visible.is_variable_view()
        links = [(link.source, link.target) for link in visible.links.values()]
        if variable_view:
            weight = {node.id: max(node.weight, 1.0) for node in nodes}
            strength = [1.0 / min(weight[s], weight[t]) for s, t in links]
        else:
            strength = [0.0] * len(links)
        sim.force("link", LinkForce(links, strength, distance=settings.link_distance))

        anchors = [self._anchor(node) for node in nodes]
        sim.force(
            "anchor",
            PositionForce(
                [a[0] for a in anchors],
                [a[1] for a in anchors],
                [self._anchor_strength(node) for node in nodes],
            ),
        )

        multiplier = 1.0 if variable_view else settings.collide_multiplier
        collide_radius = np.minimum(
            np.array([node.radius for node in nodes], dtype=float) * multiplier,
            settings.collide_radius_max,
        )
        sim.force("collide", CollideForce(collide_radius, iterations=settings.collide_iterations))

        scale = radius_scale_for(nodes, settings)
        sim.force(
            "cluster",
            ClusterForce(
                [node.submodule_key for node in nodes],
                [scale(node.weight) ** 2 for node in nodes],
                strength=settings.cluster_strength,
            ),
        )

        charge = settings.charge_strength_expanded if variable_view else settings.charge_strength_collapsed
        sim.force("charge", ManyBodyForce(charge))
        return sim

    def run(self, visible: VisibleSet) -> Positions:
        """
        Lay out a visible set from scratch.

        Args:
            visible: Nodes and links to lay out (read only)

        Returns:
            Node id -> (x, y); empty for an empty set
        """
        if not visible.nodes:
            return {}
        sim = self.build_simulation(visible, self.seed_positions(visible))
        sim.tick(self.ticks)
        logger.info(f"Force layout: {len(sim)} nodes, {len(visible.links)} links, {self.ticks} ticks")
        return sim.positions()

    def reheat(self, visible: VisibleSet, positions: Positions) -> Positions:
        """
        Re-run the simulation starting from previous positions.

        Nodes without a previous position are seeded around their home.
        Link data is rebuilt from the current visible links.
        """
        if not visible.nodes:
            return {}
        start = self.seed_positions(visible)
        start.update({node_id: pos for node_id, pos in positions.items() if node_id in visible.nodes})
        sim = self.build_simulation(visible, start, alpha=self.settings.reheat_alpha)
        sim.tick(self.ticks)
        logger.info(f"Force layout reheated: {len(sim)} nodes, {self.ticks} ticks")
        return sim.positions()


def apply_positions(visible: VisibleSet, positions: Positions) -> None:
    """Write computed positions onto the visible nodes."""
    for node_id, (x, y) in positions.items():
        node = visible.nodes.get(node_id)
        if node is not None:
            node.x, node.y = x, y
