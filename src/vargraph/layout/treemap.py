"""Submodule home positions from a squarified treemap."""

import logging
import math
from dataclasses import dataclass

import numpy as np

from vargraph.config import Settings
from vargraph.graph.store import GraphStore
from vargraph.models import Tier

logger = logging.getLogger(__name__)

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2


@dataclass
class Cell:
    """A treemap rectangle."""

    key: str
    value: float
    x0: float = 0.0
    y0: float = 0.0
    x1: float = 0.0
    y1: float = 0.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x0 + self.x1) / 2, (self.y0 + self.y1) / 2


def _dice(cells: list[Cell], x0: float, y0: float, x1: float, y1: float, total: float) -> None:
    """Lay cells out left to right."""
    k = (x1 - x0) / total if total else 0.0
    for cell in cells:
        cell.y0, cell.y1 = y0, y1
        cell.x0 = x0
        x0 += cell.value * k
        cell.x1 = x0


def _slice(cells: list[Cell], x0: float, y0: float, x1: float, y1: float, total: float) -> None:
    """Lay cells out top to bottom."""
    k = (y1 - y0) / total if total else 0.0
    for cell in cells:
        cell.x0, cell.x1 = x0, x1
        cell.y0 = y0
        y0 += cell.value * k
        cell.y1 = y0


def squarify(
    cells: list[Cell],
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    ratio: float = GOLDEN_RATIO,
) -> list[Cell]:
    """
    Squarified treemap (Bruls et al.) over a rectangle, in input order.

    Rows are grown while the worst aspect ratio keeps improving, then laid
    out along the shorter side of the remaining space.

    Args:
        cells: Cells with values; positions are written in place
        x0, y0, x1, y1: Bounding rectangle
        ratio: Target aspect ratio

    Returns:
        The same cells, positioned
    """
    value = sum(cell.value for cell in cells)
    n = len(cells)
    i0 = i1 = 0

    while i0 < n:
        dx, dy = x1 - x0, y1 - y0

        # Next non-empty cell starts the row
        sum_value = 0.0
        while True:
            sum_value = cells[i1].value
            i1 += 1
            if sum_value or i1 >= n:
                break

        min_value = max_value = sum_value
        alpha = max(dy / dx, dx / dy) / (value * ratio) if dx and dy and value else 0.0
        beta = sum_value * sum_value * alpha
        min_ratio = max(max_value / beta, beta / min_value) if beta and min_value else math.inf

        while i1 < n:
            node_value = cells[i1].value
            sum_value += node_value
            min_value = min(min_value, node_value)
            max_value = max(max_value, node_value)
            beta = sum_value * sum_value * alpha
            new_ratio = max(max_value / beta, beta / min_value) if beta and min_value else math.inf
            if new_ratio > min_ratio:
                sum_value -= node_value
                break
            min_ratio = new_ratio
            i1 += 1

        row = cells[i0:i1]
        if dx < dy:
            row_y1 = y0 + dy * sum_value / value if value else y1
            _dice(row, x0, y0, x1, row_y1, sum_value)
            y0 = row_y1
        else:
            row_x1 = x0 + dx * sum_value / value if value else x1
            _slice(row, x0, y0, row_x1, y1, sum_value)
            x0 = row_x1

        value -= sum_value
        i0 = i1

    return cells


def submodule_home_positions(store: GraphStore, settings: Settings) -> dict[str, tuple[float, float]]:
    """
    Home position of each submodule, keyed by submodule node id.

    Submodules are packed in a squarified treemap sized by leaf count over
    the layout canvas, centred on the origin. Each cell centre is jittered
    by a seeded random offset so homes do not line up on a grid.
    """
    submodules = store.all_aggregate_nodes(Tier.SUBMODULE)
    if not submodules:
        return {}

    width, height = settings.layout_width, settings.layout_height
    cells = [Cell(key=node.id, value=float(node.leaf_count)) for node in submodules]
    squarify(cells, -width / 2, -height / 2, width / 2, height / 2)

    rng = np.random.default_rng(settings.layout_seed)
    jitter = rng.uniform(-1.0, 1.0, size=(len(cells), 2)) * settings.home_jitter

    homes = {
        cell.key: (cell.center[0] + float(jx), cell.center[1] + float(jy))
        for cell, (jx, jy) in zip(cells, jitter)
    }
    logger.debug(f"Computed {len(homes)} submodule home positions")
    return homes
