"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vargraph.models.node import Tier


class Environment(str, Enum):
    """Deployment environment presets."""

    DEV = "dev"
    TEST = "test"


DEFAULT_PALETTE = [
    "#418BFC",
    "#46BCC8",
    "#D6AB1B",
    "#EB5E68",
    "#B6BE1C",
    "#F64D1A",
    "#BA6DE4",
    "#EA6BCB",
    "#B9AAC8",
    "#F08519",
    "#C0C0C0",
]


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Aggregation
    starting_tier: Tier = Field(
        default=Tier.VARIABLE,
        description="Tier shown at load: variable = fully expanded, submodule = fully collapsed"
    )
    show_single_nodes: bool = Field(
        default=False,
        description="Keep nodes without visible links in the rendered default view"
    )

    # Node sizing and colour
    radius_min: float = 6.0
    radius_max: float = 18.0
    color_palette: list[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE))

    # Canvas used for home positions and the neighbor view
    layout_width: float = 1200.0
    layout_height: float = 800.0
    home_jitter: float = Field(
        default=50.0,
        description="Max random offset applied to each submodule home position"
    )
    layout_seed: int = Field(
        default=42,
        description="Seed for home jitter and coincident-node jiggle"
    )

    # Force simulation (d3-force defaults unless noted)
    simulation_ticks: int = Field(
        default=300,
        description="ceil(log(alpha_min) / log(1 - alpha_decay)) for the d3 defaults"
    )
    alpha_min: float = 0.001
    alpha_decay: float = 0.0228
    alpha_target: float = 0.1
    reheat_alpha: float = Field(
        default=0.3,
        description="Energy a reheat restarts from before decaying to alpha_target"
    )
    velocity_decay: float = 0.4
    link_distance: float = 30.0
    cluster_strength: float = Field(
        default=0.45,
        description="Pull toward the radius-weighted centroid of the node's submodule"
    )
    collide_multiplier: float = Field(
        default=1.5,
        description="Collision radius multiplier outside the variable-only view"
    )
    collide_radius_max: float = 36.0
    collide_iterations: int = 3
    charge_strength_expanded: float = -100.0
    charge_strength_collapsed: float = -250.0

    # Anchor strengths by tier (tier 1 strongest)
    anchor_strength_submodule: float = 0.3
    anchor_strength_segment: float = 0.2
    anchor_strength_variable: float = 0.1

    # Nearest neighbor view
    neighbor_depth: int = Field(default=1, ge=1, le=3)
    neighbor_radius_multiple: float = 2.2
    neighbor_relax_ticks: int = 300
    neighbor_relax_alpha_decay: float = 0.1
    neighbor_anchor_strength: float = 0.8
    neighbor_collide_strength: float = 0.6

    # Shortest path view
    path_node_gap: float = 100.0

    # Viewport fit
    viewport_padding: float = 20.0
    viewport_fill: float = 0.95


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(
        starting_tier=Tier.SUBMODULE,
        show_single_nodes=True,
    )


def get_test_settings() -> Settings:
    """Get test environment settings.

    Fewer ticks keep layout tests fast while still exercising every force.
    """
    return Settings(
        starting_tier=Tier.VARIABLE,
        simulation_ticks=60,
        neighbor_relax_ticks=60,
        home_jitter=0.0,
    )


def settings_for(environment: Environment | str) -> Settings:
    """Get the settings preset for an environment name."""
    presets = {
        Environment.DEV: get_dev_settings,
        Environment.TEST: get_test_settings,
    }
    return presets[Environment(environment)]()
