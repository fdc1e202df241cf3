"""Node models - the three tiers of the variable hierarchy."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SUBMODULE_PREFIX = "submodule-"
SEGMENT_PREFIX = "segment-"


class Tier(str, Enum):
    """Level of a node in the hierarchy."""

    SUBMODULE = "submodule"  # tier 1, top-level aggregate
    SEGMENT = "segment"  # tier 2, groups variables of one submodule
    VARIABLE = "variable"  # tier 3, leaf

    @property
    def level(self) -> int:
        """Numeric tier: 1 for submodules, 3 for variables."""
        return {Tier.SUBMODULE: 1, Tier.SEGMENT: 2, Tier.VARIABLE: 3}[self]


def submodule_node_id(submodule_key: str) -> str:
    """Node id of the aggregate for a submodule key."""
    return f"{SUBMODULE_PREFIX}{submodule_key}"


def segment_key_for(submodule_key: str, segment: str) -> str:
    """Composite segment key: a segment is only unique within its submodule."""
    return f"{submodule_key}_{segment}"


def segment_node_id(segment_key: str) -> str:
    """Node id of the aggregate for a composite segment key."""
    return f"{SEGMENT_PREFIX}{segment_key}"


@dataclass
class VariableNode:
    """A leaf variable/parameter."""

    id: str
    name: str
    submodule_key: str
    segment_key: str  # Composite <submodule>_<segment>
    submodule_name: str = ""
    segment_name: str = ""

    # Loader attributes passed through untouched
    attributes: dict[str, Any] = field(default_factory=dict)

    # Derived at load
    degree: int = 0
    radius: float = 0.0
    color: str = ""

    # Position
    x: float = 0.0
    y: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def tier(self) -> Tier:
        return Tier.VARIABLE

    @property
    def weight(self) -> float:
        """Sizing weight: variables are sized by degree."""
        return float(self.degree)

    @property
    def segment_id(self) -> str:
        return segment_node_id(self.segment_key)

    @property
    def submodule_id(self) -> str:
        return submodule_node_id(self.submodule_key)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier.value,
            "submodule_key": self.submodule_key,
            "segment_key": self.segment_key,
            "submodule_name": self.submodule_name,
            "segment_name": self.segment_name,
            "attributes": dict(self.attributes),
            "degree": self.degree,
            "radius": self.radius,
            "color": self.color,
            "x": self.x,
            "y": self.y,
        }


@dataclass
class SegmentNode:
    """Aggregate of the variables sharing a submodule and segment."""

    id: str
    name: str
    submodule_key: str
    segment_key: str
    leaf_count: int = 0

    degree: int = 0
    radius: float = 0.0
    color: str = ""

    x: float = 0.0
    y: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def tier(self) -> Tier:
        return Tier.SEGMENT

    @property
    def weight(self) -> float:
        """Sizing weight: aggregates are sized by the number of leaves they hold."""
        return float(self.leaf_count)

    @property
    def segment_id(self) -> str:
        return self.id

    @property
    def submodule_id(self) -> str:
        return submodule_node_id(self.submodule_key)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier.value,
            "submodule_key": self.submodule_key,
            "segment_key": self.segment_key,
            "leaf_count": self.leaf_count,
            "degree": self.degree,
            "radius": self.radius,
            "color": self.color,
            "x": self.x,
            "y": self.y,
        }


@dataclass
class SubmoduleNode:
    """Top-level aggregate of all segments sharing a submodule key."""

    id: str
    name: str
    submodule_key: str
    leaf_count: int = 0

    degree: int = 0
    radius: float = 0.0
    color: str = ""

    x: float = 0.0
    y: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def tier(self) -> Tier:
        return Tier.SUBMODULE

    @property
    def weight(self) -> float:
        return float(self.leaf_count)

    @property
    def submodule_id(self) -> str:
        return self.id

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier.value,
            "submodule_key": self.submodule_key,
            "leaf_count": self.leaf_count,
            "degree": self.degree,
            "radius": self.radius,
            "color": self.color,
            "x": self.x,
            "y": self.y,
        }


Node = VariableNode | SegmentNode | SubmoduleNode
