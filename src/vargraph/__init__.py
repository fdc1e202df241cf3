"""vargraph - hierarchical variable graph with aggregation, queries and layout."""

from vargraph.config import Settings, get_dev_settings, get_test_settings, settings_for
from vargraph.engine import EngineState, GraphEngine, ViewMode
from vargraph.exceptions import DataIntegrityError, GraphError, InvalidOperation
from vargraph.graph import AggregationEngine, GraphStore
from vargraph.models import CollapsedStateMap, Tier, VisibleSet
from vargraph.query import NoPathFound, QueryEngine

__all__ = [
    # Engine
    "GraphEngine",
    "EngineState",
    "ViewMode",
    # Building blocks
    "GraphStore",
    "AggregationEngine",
    "QueryEngine",
    "VisibleSet",
    "CollapsedStateMap",
    "Tier",
    "NoPathFound",
    # Config
    "Settings",
    "get_dev_settings",
    "get_test_settings",
    "settings_for",
    # Errors
    "GraphError",
    "DataIntegrityError",
    "InvalidOperation",
]
