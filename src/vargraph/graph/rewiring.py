"""Link rewiring - map expanded links onto whatever nodes are currently shown."""

import logging
from collections.abc import Iterable

from vargraph.graph.store import GraphStore
from vargraph.models import ExpandedLink, VisibleSet, segment_node_id, submodule_node_id

logger = logging.getLogger(__name__)


def representative(
    visible: VisibleSet,
    variable_id: str,
    segment_key: str,
    submodule_key: str,
) -> str | None:
    """Find the visible node standing in for a variable.

    Checked in order: the variable itself, its segment, its submodule.
    Returns None when none of them is shown.
    """
    if variable_id in visible:
        return variable_id
    segment_id = segment_node_id(segment_key)
    if segment_id in visible:
        return segment_id
    submodule_id = submodule_node_id(submodule_key)
    if submodule_id in visible:
        return submodule_id
    return None


def rewire(visible: VisibleSet, links: Iterable[ExpandedLink]) -> int:
    """
    Add visible links for a batch of expanded links.

    Each endpoint is resolved to its visible representative; links that
    resolve onto a single node are dropped and same-pair links are merged
    by VisibleSet.add_link.

    Args:
        visible: Set to add links to (mutated)
        links: Expanded links to rewire, in store order

    Returns:
        Number of expanded links that produced or merged into a visible link
    """
    applied = 0
    for link in links:
        source = representative(visible, link.source, link.source_segment, link.source_submodule)
        target = representative(visible, link.target, link.target_segment, link.target_submodule)
        if source is None or target is None:
            # Far side is collapsed beyond anything on screen
            logger.debug(f"No visible endpoint for {link.source} -> {link.target}, skipped")
            continue
        if visible.add_link(source, target) is not None:
            applied += 1
    return applied


def derive_links(store: GraphStore, visible: VisibleSet) -> VisibleSet:
    """Rebuild every visible link of a node set from scratch."""
    visible.links = {}
    rewire(visible, store.expanded_links())
    return visible
