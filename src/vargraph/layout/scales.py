"""Node sizing and colouring scales."""

import logging
import math
from collections.abc import Sequence

from vargraph.config import Settings
from vargraph.graph.store import GraphStore
from vargraph.models import Node, Tier

logger = logging.getLogger(__name__)


class RadiusScale:
    """Square-root scale from [0, domain_max] onto [range_min, range_max], clamped."""

    def __init__(self, domain_max: float, range_min: float, range_max: float) -> None:
        self.domain_max = domain_max
        self.range_min = range_min
        self.range_max = range_max

    def __call__(self, value: float) -> float:
        if self.domain_max <= 0:
            return self.range_min
        t = math.sqrt(max(value, 0.0)) / math.sqrt(self.domain_max)
        t = min(max(t, 0.0), 1.0)
        return self.range_min + t * (self.range_max - self.range_min)


class ColorScale:
    """Ordinal scale: i-th key gets the i-th palette colour, cycling."""

    def __init__(self, keys: Sequence[str], palette: Sequence[str]) -> None:
        self.palette = list(palette)
        self._index = {key: i for i, key in enumerate(dict.fromkeys(keys))}

    def __call__(self, key: str) -> str:
        if not self.palette:
            return ""
        if key not in self._index:
            self._index[key] = len(self._index)
        return self.palette[self._index[key] % len(self.palette)]


def radius_scale_for(nodes: Sequence[Node], settings: Settings) -> RadiusScale:
    """Radius scale whose domain covers the weights of the given nodes."""
    domain_max = max((node.weight for node in nodes), default=0.0)
    return RadiusScale(domain_max, settings.radius_min, settings.radius_max)


def style_nodes(store: GraphStore, settings: Settings) -> None:
    """
    Assign radius and colour to every node of the store.

    Each tier gets its own radius domain: variables are sized by degree,
    aggregates by leaf count. Colours follow submodule order.
    """
    colors = ColorScale(store.submodule_keys(), settings.color_palette)
    tiers = {
        Tier.VARIABLE: store.all_variable_nodes(),
        Tier.SEGMENT: store.all_aggregate_nodes(Tier.SEGMENT),
        Tier.SUBMODULE: store.all_aggregate_nodes(Tier.SUBMODULE),
    }
    for tier, nodes in tiers.items():
        scale = radius_scale_for(nodes, settings)
        for node in nodes:
            node.radius = scale(node.weight)
            node.color = colors(node.submodule_key)
        logger.debug(f"Styled {len(nodes)} {tier.value} nodes (weight max {scale.domain_max})")
