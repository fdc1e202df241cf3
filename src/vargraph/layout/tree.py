"""Neighbor-view layout: inbound tree to the left, outbound tree to the right.

Tree coordinates come from a tidy tree (Reingold-Tilford with Walker's
linear-time improvements, as in d3.tree). Columns that fit are then stacked
edge to edge; if a column is too tall, a collision-only relaxation pass
spreads the nodes out around their tree positions.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from vargraph.config import Settings
from vargraph.layout.simulation import CollideForce, ForceSimulation, PositionForce, Positions
from vargraph.models import LinkDirection, Node
from vargraph.query.neighbors import NeighborResult

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TreeNode:
    """Node of a rooted tree plus the bookkeeping of the tidy-tree walk."""

    id: str
    parent: "TreeNode | None" = None
    children: list["TreeNode"] = field(default_factory=list)
    depth: int = 0

    # Output: breadth axis (x) and depth axis (y)
    x: float = 0.0
    y: float = 0.0

    # Walker bookkeeping
    index: int = 0  # Position among siblings
    prelim: float = 0.0
    mod: float = 0.0
    change: float = 0.0
    shift: float = 0.0
    thread: "TreeNode | None" = None
    ancestor: "TreeNode | None" = None
    apportion_ancestor: "TreeNode | None" = None

    def post_order(self) -> list["TreeNode"]:
        out: list[TreeNode] = []
        stack: list[tuple[TreeNode, bool]] = [(self, False)]
        while stack:
            node, visited = stack.pop()
            if visited:
                out.append(node)
                continue
            stack.append((node, True))
            for child in reversed(node.children):
                stack.append((child, False))
        return out

    def pre_order(self) -> list["TreeNode"]:
        out: list[TreeNode] = []
        stack = [self]
        while stack:
            node = stack.pop()
            out.append(node)
            stack.extend(reversed(node.children))
        return out


def stratify(root_id: str, edges: list[tuple[str, str]]) -> TreeNode:
    """
    Build a tree from (parent, child) pairs, keeping pair order for siblings.

    Pairs whose parent is not yet in the tree, or whose child is already in
    it, are skipped.
    """
    root = TreeNode(id=root_id)
    nodes = {root_id: root}
    for parent_id, child_id in edges:
        parent = nodes.get(parent_id)
        if parent is None or child_id in nodes:
            logger.debug(f"Skipping tree edge {parent_id} -> {child_id}")
            continue
        child = TreeNode(id=child_id, parent=parent, depth=parent.depth + 1, index=len(parent.children))
        parent.children.append(child)
        nodes[child_id] = child
    return root


def _separation(a: TreeNode, b: TreeNode) -> float:
    return 1.0 if a.parent is b.parent else 2.0


def _next_left(v: TreeNode) -> TreeNode | None:
    return v.children[0] if v.children else v.thread


def _next_right(v: TreeNode) -> TreeNode | None:
    return v.children[-1] if v.children else v.thread


def _move_subtree(wm: TreeNode, wp: TreeNode, shift: float) -> None:
    change = shift / (wp.index - wm.index)
    wp.change -= change
    wp.shift += shift
    wm.change += change
    wp.prelim += shift
    wp.mod += shift


def _execute_shifts(v: TreeNode) -> None:
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def _next_ancestor(vim: TreeNode, v: TreeNode, ancestor: TreeNode) -> TreeNode:
    return vim.ancestor if vim.ancestor.parent is v.parent else ancestor


def _apportion(v: TreeNode, w: TreeNode | None, ancestor: TreeNode) -> TreeNode:
    if w is None:
        return ancestor

    vip = vop = v
    vim = w
    vom = v.parent.children[0]
    sip, sop, sim, som = vip.mod, vop.mod, vim.mod, vom.mod

    while True:
        vim = _next_right(vim)
        vip = _next_left(vip)
        if vim is None or vip is None:
            break
        vom = _next_left(vom)
        vop = _next_right(vop)
        vop.ancestor = v
        shift = vim.prelim + sim - vip.prelim - sip + _separation(vim, vip)
        if shift > 0:
            _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
            sip += shift
            sop += shift
        sim += vim.mod
        sip += vip.mod
        som += vom.mod
        sop += vop.mod

    if vim is not None and _next_right(vop) is None:
        vop.thread = vim
        vop.mod += sim - sop
    if vip is not None and _next_left(vom) is None:
        vom.thread = vip
        vom.mod += sip - som
        ancestor = v
    return ancestor


def tidy_tree(root: TreeNode, dx: float, dy: float) -> TreeNode:
    """
    Assign tidy-tree coordinates with a fixed node size.

    Siblings are dx apart (2 * dx between cousins), depths dy apart, the
    root sits at (0, 0).

    Args:
        root: Tree from stratify()
        dx: Breadth-axis spacing
        dy: Depth-axis spacing

    Returns:
        The root, with x/y set on every node
    """
    # Virtual parent so the root can be walked like any other node
    sentinel = TreeNode(id="", children=[root])
    root.parent = sentinel
    for node in root.pre_order():
        node.ancestor = node

    for v in root.post_order():
        siblings = v.parent.children
        w = siblings[v.index - 1] if v.index else None
        if v.children:
            _execute_shifts(v)
            midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
            if w is not None:
                v.prelim = w.prelim + _separation(v, w)
                v.mod = v.prelim - midpoint
            else:
                v.prelim = midpoint
        elif w is not None:
            v.prelim = w.prelim + _separation(v, w)
        v.parent.apportion_ancestor = _apportion(v, w, v.parent.apportion_ancestor or siblings[0])

    sentinel.mod = -root.prelim
    for v in root.pre_order():
        v.x = v.prelim + v.parent.mod
        v.mod += v.parent.mod

    root.parent = None
    for node in root.pre_order():
        node.x *= dx
        node.y = node.depth * dy
    return root


@dataclass
class PlacedNode:
    """A node placed by the neighbor layout."""

    id: str
    x: float
    y: float
    radius: float
    column: str  # "center", "in-<depth>" or "out-<depth>"


class NeighborTreeLayout:
    """
    Lay out a nearest neighbor result around its origin.

    The origin sits at (0, 0). Inbound neighbors fan out to the left and
    outbound neighbors to the right, one column per depth.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        width: float | None = None,
        height: float | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.width = width or self.settings.layout_width
        self.height = height or self.settings.layout_height
        self.radius_multiple = self.settings.neighbor_radius_multiple

    def run(self, result: NeighborResult, nodes: dict[str, Node]) -> Positions:
        """
        Compute positions for the origin and every discovered node.

        Args:
            result: Nearest neighbor result
            nodes: Visible nodes by id (used for radii)

        Returns:
            Node id -> (x, y)
        """
        placed = self.place(result, nodes)
        return {node.id: (node.x, node.y) for node in placed}

    def _radius(self, nodes: dict[str, Node], node_id: str) -> float:
        node = nodes.get(node_id)
        return node.radius if node is not None else self.settings.radius_min

    def place(self, result: NeighborResult, nodes: dict[str, Node]) -> list[PlacedNode]:
        """Tree placement plus column stacking and optional relaxation."""
        links = result.links
        total_depth = result.max_depth_for(LinkDirection.INBOUND) + result.max_depth_for(LinkDirection.OUTBOUND)
        total_depth = total_depth or 1

        column_sums: dict[str, float] = defaultdict(float)
        column_counts: dict[str, int] = defaultdict(int)
        for link in links:
            key = f"{link.direction.value}-{link.depth}"
            column_sums[key] += self._radius(nodes, link.node) * self.radius_multiple
            column_counts[key] += 1

        max_column = max(column_sums.values(), default=0.0)
        if max_column > self.height:
            widest = max(column_sums, key=lambda key: column_sums[key])
            dx = self.height / (column_counts[widest] / 3)
        else:
            dx = max_column
        dy = self.width / total_depth

        inbound = stratify(
            result.origin,
            [(link.target, link.source) for link in links if link.direction == LinkDirection.INBOUND],
        )
        outbound = stratify(
            result.origin,
            [(link.source, link.target) for link in links if link.direction == LinkDirection.OUTBOUND],
        )

        placed = [PlacedNode(result.origin, 0.0, 0.0, self._radius(nodes, result.origin), "center")]
        for tree, sign, prefix in ((inbound, -1.0, "in"), (outbound, 1.0, "out")):
            tidy_tree(tree, dx, dy)
            for node in tree.pre_order():
                if node.depth == 0:
                    continue
                placed.append(
                    PlacedNode(
                        id=node.id,
                        x=sign * node.y,
                        y=node.x,
                        radius=self._radius(nodes, node.id),
                        column=f"{prefix}-{node.depth}",
                    )
                )

        self._stack_columns(placed)

        if max_column > self.height:
            self._relax(placed)

        logger.info(
            f"Neighbor layout for {result.origin}: {len(placed)} nodes, "
            f"column spacing {dx:.1f}, depth spacing {dy:.1f}"
        )
        return placed

    def _stack_columns(self, placed: list[PlacedNode]) -> None:
        """Stack each multi-node column that fits the height, centred on 0."""
        columns: dict[str, list[PlacedNode]] = defaultdict(list)
        for node in placed:
            columns[node.column].append(node)

        for column in columns.values():
            total = sum(node.radius * self.radius_multiple for node in column)
            if len(column) <= 1 or total >= self.height:
                continue
            current = -total / 2
            for node in column:
                node.y = current + node.radius
                current += node.radius * self.radius_multiple

    def _relax(self, placed: list[PlacedNode]) -> None:
        """Collision-only pass anchored at the current positions."""
        settings = self.settings
        sim = ForceSimulation(
            [node.id for node in placed],
            x=[node.x for node in placed],
            y=[node.y for node in placed],
            alpha_decay=settings.neighbor_relax_alpha_decay,
            alpha_target=0.0,
            velocity_decay=settings.velocity_decay,
            seed=settings.layout_seed,
        )
        sim.force(
            "anchor",
            PositionForce(
                [node.x for node in placed],
                [node.y for node in placed],
                settings.neighbor_anchor_strength,
            ),
        )
        sim.force(
            "collide",
            CollideForce(
                [node.radius * (self.radius_multiple / 2) for node in placed],
                strength=settings.neighbor_collide_strength,
            ),
        )
        sim.tick(settings.neighbor_relax_ticks)

        for i, node in enumerate(placed):
            node.x, node.y = float(sim.x[i]), float(sim.y[i])
        logger.debug(f"Relaxed {len(placed)} neighbor nodes over {settings.neighbor_relax_ticks} ticks")
