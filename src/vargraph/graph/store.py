"""Graph store - canonical variable nodes, derived aggregates and expanded links.

The store is built once from loader records and never mutated afterwards.
Everything the aggregation engine needs (membership, per-key link indexes)
is precomputed here so expand/collapse never rescans the whole dataset.
"""

import logging
from collections import defaultdict
from typing import Any

from vargraph.exceptions import DataIntegrityError
from vargraph.models import (
    ExpandedLink,
    Node,
    SegmentNode,
    SubmoduleNode,
    Tier,
    VariableNode,
    segment_key_for,
    segment_node_id,
    submodule_node_id,
)
from vargraph.models.node import SEGMENT_PREFIX, SUBMODULE_PREFIX

logger = logging.getLogger(__name__)

# Record fields consumed by the store; anything else is passed through as attributes
RECORD_FIELDS = {"id", "name", "submodule", "submodule_name", "segment", "segment_name"}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve_missing_hierarchy(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Fill null submodule/segment references from a record with the same name.

    Loader-side helper: the store itself refuses unresolved records. A record
    with no donor is dropped and logged.

    Args:
        records: Raw variable records

    Returns:
        New list of records with hierarchy keys filled in
    """
    donors: dict[str, dict[str, Any]] = {}
    for record in records:
        if not _is_missing(record.get("submodule")) and not _is_missing(record.get("segment")):
            donors.setdefault(str(record.get("name")), record)

    resolved: list[dict[str, Any]] = []
    for record in records:
        if not _is_missing(record.get("submodule")) and not _is_missing(record.get("segment")):
            resolved.append(record)
            continue

        donor = donors.get(str(record.get("name")))
        if donor is None:
            logger.error(f"Dropping variable {record.get('id')}: no submodule/segment and no donor record")
            continue

        filled = dict(record)
        for key in ("submodule", "submodule_name", "segment", "segment_name"):
            if _is_missing(filled.get(key)):
                filled[key] = donor.get(key)
        logger.warning(f"Filled hierarchy of {record.get('id')} from record {donor.get('id')}")
        resolved.append(filled)

    return resolved


class GraphStore:
    """
    Immutable three-tier graph.

    Holds:
    1. Variable nodes (leaves) in loader order
    2. Segment and Submodule aggregates, derived once, in first-seen order
    3. Expanded variable-to-variable links annotated with endpoint keys
    4. Per-key link indexes used for rewiring
    """

    def __init__(self, variables: list[VariableNode], links: list[tuple[str, str]]) -> None:
        self._variables: dict[str, VariableNode] = {}
        for variable in variables:
            if _is_missing(variable.submodule_key) or _is_missing(variable.segment_key):
                raise DataIntegrityError(
                    f"Variable {variable.id} has no submodule/segment",
                    record_id=variable.id,
                    field="submodule" if _is_missing(variable.submodule_key) else "segment",
                )
            if variable.id in self._variables:
                raise DataIntegrityError(
                    f"Duplicate variable id: {variable.id}", record_id=variable.id, field="id"
                )
            if variable.id.startswith((SEGMENT_PREFIX, SUBMODULE_PREFIX)):
                raise DataIntegrityError(
                    f"Variable id {variable.id} uses an aggregate id prefix",
                    record_id=variable.id,
                    field="id",
                )
            self._variables[variable.id] = variable

        self._segments: dict[str, SegmentNode] = {}
        self._submodules: dict[str, SubmoduleNode] = {}
        self._segments_by_submodule: dict[str, list[str]] = defaultdict(list)
        self._variables_by_segment: dict[str, list[str]] = defaultdict(list)
        self._variables_by_submodule: dict[str, list[str]] = defaultdict(list)
        self._derive_aggregates()

        self._links: list[ExpandedLink] = []
        self._links_by_submodule: dict[str, list[ExpandedLink]] = defaultdict(list)
        self._links_by_segment: dict[str, list[ExpandedLink]] = defaultdict(list)
        for source, target in links:
            self._add_link(source, target)

        self._compute_degrees()

        logger.info(
            f"Graph store loaded: {len(self._variables)} variables, "
            f"{len(self._segments)} segments, {len(self._submodules)} submodules, "
            f"{len(self._links)} links"
        )

    @classmethod
    def from_records(
        cls,
        variables: list[dict[str, Any]],
        links: list[dict[str, Any]],
    ) -> "GraphStore":
        """
        Build a store from flat loader records.

        Args:
            variables: Records with id, name, submodule, segment (+ optional
                submodule_name, segment_name and extra attributes)
            links: Records with source and target variable ids

        Returns:
            GraphStore

        Raises:
            DataIntegrityError: If a record lacks hierarchy keys or a link
                references an unknown variable
        """
        nodes: list[VariableNode] = []
        for record in variables:
            if _is_missing(record.get("id")):
                raise DataIntegrityError("Variable record without id", field="id")
            record_id = str(record["id"])
            for key in ("submodule", "segment"):
                if _is_missing(record.get(key)):
                    raise DataIntegrityError(
                        f"Variable {record_id} references a null {key}",
                        record_id=record_id,
                        field=key,
                    )

            submodule_key = str(record["submodule"])
            nodes.append(
                VariableNode(
                    id=record_id,
                    name=str(record.get("name") or record_id),
                    submodule_key=submodule_key,
                    segment_key=segment_key_for(submodule_key, str(record["segment"])),
                    submodule_name=str(record.get("submodule_name") or submodule_key),
                    segment_name=str(record.get("segment_name") or record["segment"]),
                    attributes={k: v for k, v in record.items() if k not in RECORD_FIELDS},
                )
            )

        pairs = [(str(link["source"]), str(link["target"])) for link in links]
        return cls(nodes, pairs)

    def _derive_aggregates(self) -> None:
        """Create Segment and Submodule nodes from variable membership."""
        for variable in self._variables.values():
            sub_key = variable.submodule_key
            seg_key = variable.segment_key

            if sub_key not in self._submodules:
                self._submodules[sub_key] = SubmoduleNode(
                    id=submodule_node_id(sub_key),
                    name=variable.submodule_name or sub_key,
                    submodule_key=sub_key,
                )
            if seg_key not in self._segments:
                self._segments[seg_key] = SegmentNode(
                    id=segment_node_id(seg_key),
                    name=variable.segment_name or seg_key,
                    submodule_key=sub_key,
                    segment_key=seg_key,
                )
                self._segments_by_submodule[sub_key].append(seg_key)
            elif self._segments[seg_key].submodule_key != sub_key:
                # Composite keys collide when "_" appears inside the parts
                raise DataIntegrityError(
                    f"Segment key {seg_key} of variable {variable.id} is already owned by "
                    f"submodule {self._segments[seg_key].submodule_key}",
                    record_id=variable.id,
                    field="segment",
                )

            self._variables_by_segment[seg_key].append(variable.id)
            self._variables_by_submodule[sub_key].append(variable.id)
            self._segments[seg_key].leaf_count += 1
            self._submodules[sub_key].leaf_count += 1

    def _add_link(self, source: str, target: str) -> None:
        source_node = self._variables.get(source)
        target_node = self._variables.get(target)
        if source_node is None or target_node is None:
            missing = source if source_node is None else target
            raise DataIntegrityError(
                f"Link {source} -> {target} references unknown variable {missing}",
                record_id=missing,
                field="source" if source_node is None else "target",
            )

        link = ExpandedLink(
            source=source,
            target=target,
            source_submodule=source_node.submodule_key,
            source_segment=source_node.segment_key,
            target_submodule=target_node.submodule_key,
            target_segment=target_node.segment_key,
        )
        self._links.append(link)

        self._links_by_submodule[link.source_submodule].append(link)
        if link.target_submodule != link.source_submodule:
            self._links_by_submodule[link.target_submodule].append(link)
        self._links_by_segment[link.source_segment].append(link)
        if link.target_segment != link.source_segment:
            self._links_by_segment[link.target_segment].append(link)

    def _compute_degrees(self) -> None:
        """Degree = number of incident expanded links (aggregates: touching any member)."""
        for link in self._links:
            self._variables[link.source].degree += 1
            self._variables[link.target].degree += 1
        for seg_key, segment in self._segments.items():
            segment.degree = len(self._links_by_segment.get(seg_key, []))
        for sub_key, submodule in self._submodules.items():
            submodule.degree = len(self._links_by_submodule.get(sub_key, []))

    # Read-only views

    def all_variable_nodes(self) -> tuple[VariableNode, ...]:
        return tuple(self._variables.values())

    def all_aggregate_nodes(self, tier: Tier) -> tuple[Node, ...]:
        """Segment or Submodule aggregates, in first-seen order."""
        if tier == Tier.SEGMENT:
            return tuple(self._segments.values())
        if tier == Tier.SUBMODULE:
            return tuple(self._submodules.values())
        raise ValueError(f"Not an aggregate tier: {tier}")

    def all_nodes(self) -> tuple[Node, ...]:
        return (
            self.all_aggregate_nodes(Tier.SUBMODULE)
            + self.all_aggregate_nodes(Tier.SEGMENT)
            + self.all_variable_nodes()
        )

    def expanded_links(self) -> tuple[ExpandedLink, ...]:
        return tuple(self._links)

    # Lookups

    def node(self, node_id: str) -> Node | None:
        """Find a node of any tier by id."""
        if node_id in self._variables:
            return self._variables[node_id]
        if node_id.startswith(SEGMENT_PREFIX):
            return self._segments.get(node_id[len(SEGMENT_PREFIX):])
        if node_id.startswith(SUBMODULE_PREFIX):
            return self._submodules.get(node_id[len(SUBMODULE_PREFIX):])
        return None

    def has_node(self, node_id: str) -> bool:
        return self.node(node_id) is not None

    def variable(self, variable_id: str) -> VariableNode | None:
        return self._variables.get(variable_id)

    def segment(self, segment_key: str) -> SegmentNode:
        return self._segments[segment_key]

    def submodule(self, submodule_key: str) -> SubmoduleNode:
        return self._submodules[submodule_key]

    def submodule_keys(self) -> list[str]:
        return list(self._submodules)

    def segments_of(self, submodule_key: str) -> list[SegmentNode]:
        return [self._segments[key] for key in self._segments_by_submodule.get(submodule_key, [])]

    def variables_of(self, segment_key: str) -> list[VariableNode]:
        return [self._variables[vid] for vid in self._variables_by_segment.get(segment_key, [])]

    def variables_of_submodule(self, submodule_key: str) -> list[VariableNode]:
        return [self._variables[vid] for vid in self._variables_by_submodule.get(submodule_key, [])]

    def links_touching_submodule(self, submodule_key: str) -> list[ExpandedLink]:
        return list(self._links_by_submodule.get(submodule_key, []))

    def links_touching_segment(self, segment_key: str) -> list[ExpandedLink]:
        return list(self._links_by_segment.get(segment_key, []))

    def ancestor_ids(self, node: Node) -> list[str]:
        """Ids of the aggregates above a node, nearest first."""
        if node.tier == Tier.VARIABLE:
            return [node.segment_id, node.submodule_id]
        if node.tier == Tier.SEGMENT:
            return [node.submodule_id]
        return []

    def __len__(self) -> int:
        return len(self._variables)
