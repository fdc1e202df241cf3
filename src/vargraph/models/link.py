"""Link models - expanded (leaf-level) links and derived visible links."""

from dataclasses import dataclass
from enum import Enum


class LinkDirection(str, Enum):
    """Direction of a link relative to its stored source/target."""

    OUTBOUND = "outbound"  # source -> target
    INBOUND = "inbound"  # target -> source
    BOTH = "both"  # merged from opposite-direction links


@dataclass(frozen=True)
class ExpandedLink:
    """A directed variable-to-variable link in the fully expanded graph.

    The hierarchy keys of both endpoints are captured at construction so
    aggregate links can be re-derived without looking the variables up again.
    """

    source: str
    target: str
    source_submodule: str
    source_segment: str  # Composite segment key
    target_submodule: str
    target_segment: str

    def touches_submodule(self, submodule_key: str) -> bool:
        return self.source_submodule == submodule_key or self.target_submodule == submodule_key

    def touches_segment(self, segment_key: str) -> bool:
        return self.source_segment == segment_key or self.target_segment == segment_key

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "target": self.target,
            "source_submodule": self.source_submodule,
            "source_segment": self.source_segment,
            "target_submodule": self.target_submodule,
            "target_segment": self.target_segment,
        }


@dataclass
class VisibleLink:
    """An edge between the nodes currently shown for each endpoint."""

    source: str
    target: str
    direction: LinkDirection = LinkDirection.OUTBOUND

    @property
    def pair(self) -> tuple[str, str]:
        """Unordered endpoint pair used for de-duplication."""
        return pair_key(self.source, self.target)

    def connects(self, source: str, target: str) -> bool:
        """Whether this link can be traversed from source to target."""
        if self.source == source and self.target == target:
            return True
        return self.direction == LinkDirection.BOTH and self.source == target and self.target == source

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "target": self.target,
            "direction": self.direction.value,
        }


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for a pair of node ids."""
    return (a, b) if a <= b else (b, a)
