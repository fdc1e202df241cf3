"""Synchronous force simulation on numpy arrays.

Follows the d3-force model: each tick cools alpha toward alpha_target,
lets every force add to node velocities, then moves nodes by their
velocity damped by velocity_decay. Ticks run in a plain loop; nothing is
scheduled or animated.
"""

import logging
from collections.abc import Sequence
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)

JIGGLE_SCALE = 1e-6

Positions = dict[str, tuple[float, float]]


class Force(Protocol):
    """A force adds to node velocities given the current alpha."""

    def initialize(self, simulation: "ForceSimulation") -> None: ...

    def __call__(self, alpha: float) -> None: ...


class ForceSimulation:
    """
    Force simulation over n nodes.

    Positions and velocities live in numpy arrays indexed like the node ids
    passed in. Pinned nodes (fx/fy not NaN) are held in place.
    """

    def __init__(
        self,
        ids: Sequence[str],
        x: Sequence[float],
        y: Sequence[float],
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_decay: float = 0.0228,
        alpha_target: float = 0.0,
        velocity_decay: float = 0.4,
        seed: int = 0,
    ) -> None:
        self.ids = list(ids)
        self.index = {node_id: i for i, node_id in enumerate(self.ids)}
        self.x = np.asarray(x, dtype=float).copy()
        self.y = np.asarray(y, dtype=float).copy()
        self.vx = np.zeros(len(self.ids))
        self.vy = np.zeros(len(self.ids))
        self.fx = np.full(len(self.ids), np.nan)
        self.fy = np.full(len(self.ids), np.nan)

        self.alpha = alpha
        self.alpha_min = alpha_min
        self.alpha_decay = alpha_decay
        self.alpha_target = alpha_target
        self.velocity_decay = velocity_decay

        self.rng = np.random.default_rng(seed)
        self.forces: dict[str, Force] = {}

    def __len__(self) -> int:
        return len(self.ids)

    def force(self, name: str, force: Force | None) -> "ForceSimulation":
        """Register (or remove with None) a named force."""
        if force is None:
            self.forces.pop(name, None)
        else:
            force.initialize(self)
            self.forces[name] = force
        return self

    def pin(self, node_id: str, x: float, y: float) -> None:
        i = self.index[node_id]
        self.fx[i], self.fy[i] = x, y

    def jiggle(self, size: int) -> np.ndarray:
        """Tiny seeded offsets used to separate coincident nodes."""
        return (self.rng.random(size) - 0.5) * JIGGLE_SCALE

    def tick(self, iterations: int = 1) -> None:
        """Advance the simulation by a number of ticks."""
        if not self.ids:
            return
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
            for force in self.forces.values():
                force(self.alpha)

            damping = 1.0 - self.velocity_decay
            self.vx *= damping
            self.vy *= damping
            self.x += self.vx
            self.y += self.vy

            pinned_x = ~np.isnan(self.fx)
            pinned_y = ~np.isnan(self.fy)
            self.x[pinned_x] = self.fx[pinned_x]
            self.vx[pinned_x] = 0.0
            self.y[pinned_y] = self.fy[pinned_y]
            self.vy[pinned_y] = 0.0

    def positions(self) -> dict[str, tuple[float, float]]:
        return {node_id: (float(self.x[i]), float(self.y[i])) for i, node_id in enumerate(self.ids)}


class PositionForce:
    """Pull each node toward its own anchor point along x and y."""

    def __init__(self, target_x: Sequence[float], target_y: Sequence[float], strength: Sequence[float] | float) -> None:
        self.target_x = np.asarray(target_x, dtype=float)
        self.target_y = np.asarray(target_y, dtype=float)
        self._strength = strength
        self.strength = np.zeros(0)
        self.sim: ForceSimulation | None = None

    def initialize(self, simulation: ForceSimulation) -> None:
        self.sim = simulation
        self.strength = np.broadcast_to(np.asarray(self._strength, dtype=float), (len(simulation),)).copy()

    def __call__(self, alpha: float) -> None:
        sim = self.sim
        sim.vx += (self.target_x - sim.x) * self.strength * alpha
        sim.vy += (self.target_y - sim.y) * self.strength * alpha


class LinkForce:
    """Spring between linked nodes toward a rest distance.

    Each endpoint moves in proportion to the other endpoint's share of
    links (the d3 bias), so hubs move less than leaves.
    """

    def __init__(
        self,
        links: Sequence[tuple[str, str]],
        strength: Sequence[float] | float,
        distance: float = 30.0,
    ) -> None:
        self.links = list(links)
        self._strength = strength
        self.distance = distance
        self.sim: ForceSimulation | None = None

    def initialize(self, simulation: ForceSimulation) -> None:
        self.sim = simulation
        kept = [
            k for k, (s, t) in enumerate(self.links) if s in simulation.index and t in simulation.index
        ]
        pairs = [(simulation.index[self.links[k][0]], simulation.index[self.links[k][1]]) for k in kept]
        self.source = np.array([p[0] for p in pairs], dtype=int)
        self.target = np.array([p[1] for p in pairs], dtype=int)

        count = np.zeros(len(simulation))
        np.add.at(count, self.source, 1)
        np.add.at(count, self.target, 1)
        totals = count[self.source] + count[self.target]
        self.bias = np.divide(count[self.source], totals, out=np.zeros(len(pairs)), where=totals > 0)

        strength = np.broadcast_to(np.asarray(self._strength, dtype=float), (len(self.links),))
        self.strength = strength[np.array(kept, dtype=int)]

    def __call__(self, alpha: float) -> None:
        if self.source.size == 0 or not np.any(self.strength):
            return
        sim = self.sim
        s, t = self.source, self.target
        dx = sim.x[t] + sim.vx[t] - sim.x[s] - sim.vx[s]
        dy = sim.y[t] + sim.vy[t] - sim.y[s] - sim.vy[s]
        dx = np.where(dx == 0, sim.jiggle(dx.size), dx)
        dy = np.where(dy == 0, sim.jiggle(dy.size), dy)

        length = np.sqrt(dx * dx + dy * dy)
        scale = (length - self.distance) / length * alpha * self.strength
        dx *= scale
        dy *= scale

        np.add.at(sim.vx, t, -dx * self.bias)
        np.add.at(sim.vy, t, -dy * self.bias)
        np.add.at(sim.vx, s, dx * (1 - self.bias))
        np.add.at(sim.vy, s, dy * (1 - self.bias))


class CollideForce:
    """Push apart overlapping circles.

    Overlap is measured on the positions the nodes are about to move to
    (x + vx). The correction is shared by the two nodes in proportion to
    the other node's squared radius.
    """

    def __init__(self, radius: Sequence[float], strength: float = 1.0, iterations: int = 1) -> None:
        self.radius = np.asarray(radius, dtype=float)
        self.strength = strength
        self.iterations = iterations
        self.sim: ForceSimulation | None = None

    def initialize(self, simulation: ForceSimulation) -> None:
        self.sim = simulation

    def __call__(self, alpha: float) -> None:
        sim = self.sim
        n = len(sim)
        if n < 2:
            return
        r = self.radius
        r2 = r * r
        upper = np.triu(np.ones((n, n), dtype=bool), k=1)

        for _ in range(self.iterations):
            px = sim.x + sim.vx
            py = sim.y + sim.vy
            dx = px[:, None] - px[None, :]
            dy = py[:, None] - py[None, :]
            reach = r[:, None] + r[None, :]
            dist2 = dx * dx + dy * dy

            overlap = upper & (dist2 < reach * reach)
            if not overlap.any():
                continue

            i_idx, j_idx = np.nonzero(overlap)
            ox = dx[i_idx, j_idx]
            oy = dy[i_idx, j_idx]
            coincident = (ox == 0) & (oy == 0)
            if coincident.any():
                ox = np.where(coincident, sim.jiggle(ox.size), ox)
                oy = np.where(coincident, sim.jiggle(oy.size), oy)

            length = np.sqrt(ox * ox + oy * oy)
            push = (reach[i_idx, j_idx] - length) / length * self.strength
            ox *= push
            oy *= push
            share = r2[j_idx] / (r2[i_idx] + r2[j_idx])

            np.add.at(sim.vx, i_idx, ox * share)
            np.add.at(sim.vy, i_idx, oy * share)
            np.add.at(sim.vx, j_idx, -ox * (1 - share))
            np.add.at(sim.vy, j_idx, -oy * (1 - share))


class ClusterForce:
    """Nudge nodes toward the weighted centroid of their group.

    Centroids are recomputed every tick from the current positions,
    weighting each node by its squared radius.
    """

    def __init__(self, groups: Sequence[str], weights: Sequence[float], strength: float = 0.45) -> None:
        self.groups = list(groups)
        self.weights = np.asarray(weights, dtype=float)
        self.strength = strength
        self.sim: ForceSimulation | None = None

    def initialize(self, simulation: ForceSimulation) -> None:
        self.sim = simulation
        labels = {group: i for i, group in enumerate(dict.fromkeys(self.groups))}
        self.group_index = np.array([labels[group] for group in self.groups], dtype=int)
        self.group_count = len(labels)

    def __call__(self, alpha: float) -> None:
        sim = self.sim
        if len(sim) == 0 or self.strength == 0:
            return
        total = np.bincount(self.group_index, weights=self.weights, minlength=self.group_count)
        cx = np.bincount(self.group_index, weights=sim.x * self.weights, minlength=self.group_count)
        cy = np.bincount(self.group_index, weights=sim.y * self.weights, minlength=self.group_count)
        safe = np.where(total > 0, total, 1.0)
        cx, cy = cx / safe, cy / safe

        pull = alpha * self.strength
        sim.vx -= (sim.x - cx[self.group_index]) * pull
        sim.vy -= (sim.y - cy[self.group_index]) * pull


class ManyBodyForce:
    """Pairwise charge between all nodes (negative strength repels)."""

    def __init__(self, strength: float = -30.0, distance_min: float = 1.0) -> None:
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.sim: ForceSimulation | None = None

    def initialize(self, simulation: ForceSimulation) -> None:
        self.sim = simulation

    def __call__(self, alpha: float) -> None:
        sim = self.sim
        n = len(sim)
        if n < 2 or self.strength == 0:
            return
        dx = sim.x[None, :] - sim.x[:, None]
        dy = sim.y[None, :] - sim.y[:, None]
        l2 = dx * dx + dy * dy
        # Same clamp as d3 for nodes closer than distance_min
        l2 = np.where(l2 < self.distance_min2, np.sqrt(self.distance_min2 * l2), l2)
        np.fill_diagonal(l2, np.inf)
        l2 = np.where(l2 == 0, np.inf, l2)

        w = self.strength * alpha / l2
        sim.vx += (dx * w).sum(axis=1)
        sim.vy += (dy * w).sum(axis=1)
