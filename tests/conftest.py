"""Pytest configuration and fixtures."""

import pytest

from vargraph.config import Settings, get_test_settings
from vargraph.graph import GraphStore, initial_visible_set
from vargraph.models import Tier, VisibleSet

SUBMODULES = ["A", "B", "C"]
SEGMENTS = ["s1", "s2"]
VARIABLES_PER_SEGMENT = 4

# Links of the three-submodule scenario, in store order
SCENARIO_LINKS = [
    ("A_s1_v0", "A_s1_v1"),  # inside one segment
    ("A_s1_v0", "A_s2_v0"),  # across segments of A
    ("A_s2_v1", "B_s1_v0"),  # A -> B
    ("B_s1_v1", "A_s1_v2"),  # B -> A, merges with the one above at submodule level
    ("B_s2_v0", "C_s1_v0"),  # B -> C
    ("C_s1_v1", "C_s2_v2"),  # across segments of C
]


def variable_record(variable_id: str, submodule: str, segment: str, **extra) -> dict:
    """Loader record for one variable."""
    return {
        "id": variable_id,
        "name": variable_id.lower(),
        "submodule": submodule,
        "submodule_name": f"Submodule {submodule}",
        "segment": segment,
        "segment_name": f"Segment {segment}",
        **extra,
    }


def link_records(pairs: list[tuple[str, str]]) -> list[dict]:
    return [{"source": source, "target": target} for source, target in pairs]


def scenario_records() -> tuple[list[dict], list[dict]]:
    """Variable and link records for 3 submodules x 2 segments x 4 variables."""
    variables = [
        variable_record(f"{sub}_{seg}_v{i}", sub, seg)
        for sub in SUBMODULES
        for seg in SEGMENTS
        for i in range(VARIABLES_PER_SEGMENT)
    ]
    return variables, link_records(SCENARIO_LINKS)


def flat_store(node_ids: list[str], pairs: list[tuple[str, str]]) -> GraphStore:
    """Store with every variable in a single submodule and segment."""
    return GraphStore.from_records(
        [variable_record(node_id, "M", "x") for node_id in node_ids],
        link_records(pairs),
    )


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with short simulations and no home jitter."""
    return get_test_settings()


@pytest.fixture
def scenario_store() -> GraphStore:
    """Fresh three-submodule store (stores carry mutable styling, so one per test)."""
    variables, links = scenario_records()
    return GraphStore.from_records(variables, links)


@pytest.fixture
def expanded_view(scenario_store: GraphStore) -> VisibleSet:
    """Fully expanded visible set of the scenario store."""
    return initial_visible_set(scenario_store, Tier.VARIABLE)


@pytest.fixture
def neighbor_store() -> GraphStore:
    """Chain a -> b -> c -> d with e -> a feeding the origin."""
    return flat_store(["a", "b", "c", "d", "e"], [("a", "b"), ("b", "c"), ("c", "d"), ("e", "a")])


@pytest.fixture
def path_store() -> GraphStore:
    """Path A -> B -> C -> D, a back link B -> A and an isolated E."""
    return flat_store(
        ["A", "B", "C", "D", "E"],
        [("A", "B"), ("B", "C"), ("C", "D"), ("B", "A")],
    )


@pytest.fixture
def scenario_data() -> tuple[list[dict], list[dict]]:
    """Raw loader records of the three-submodule scenario."""
    return scenario_records()


@pytest.fixture
def store_factory():
    """Build a single-segment store from node ids and (source, target) pairs."""
    return flat_store


@pytest.fixture
def record_factory():
    """Build one variable loader record."""
    return variable_record
