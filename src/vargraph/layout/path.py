"""Linear layout for the shortest path view."""

import logging

from vargraph.config import Settings
from vargraph.layout.simulation import Positions
from vargraph.models import Node

logger = logging.getLogger(__name__)


def path_layout(path: list[str], nodes: dict[str, Node], settings: Settings | None = None) -> Positions:
    """
    Place path nodes left to right on the line y = 0.

    The row starts at -(n * gap) / 2. The step between nodes is the
    configured gap reduced by the first node's radius.

    Args:
        path: Node ids from start to end
        nodes: Visible nodes by id (used for the first node's radius)
        settings: Engine settings

    Returns:
        Node id -> (x, y); empty for an empty path
    """
    if not path:
        return {}
    settings = settings or Settings()

    first = nodes.get(path[0])
    gap = settings.path_node_gap - (first.radius if first is not None else 0.0)
    start = -(len(path) * settings.path_node_gap) / 2

    positions = {node_id: (start + gap * i, 0.0) for i, node_id in enumerate(path)}
    logger.debug(f"Path layout: {len(path)} nodes, step {gap:.1f}")
    return positions
