"""SAM graph configuration.

Layout tuning and filter defaults, validated with Pydantic. The engine never
reads configuration on its own: callers load a ``GraphConfig`` (or build a
``LayoutConfig`` directly) and pass it per call.

Usage:
    from sam.config import load_config

    config = load_config(Path("graph.json"))
    nodes = layout_graph(nodes, edges, config=config.layout)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from sam.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".sam" / "graph.json"

# Current config schema version for migration tracking
CONFIG_VERSION = 2


class LayoutConfig(BaseModel):
    """Force simulation parameters.

    Attributes:
        width: Canvas width in points.
        height: Canvas height in points.
        iterations: Number of simulation iterations.
        repulsion: Strength of the pairwise inverse-square repulsion.
        attraction: Spring constant applied along edges (scaled by weight).
        cluster_strength: Pull toward the centroid of a node's cluster.
        gravity: Pull toward the canvas centre.
        damping: Velocity damping factor applied every iteration.
        max_speed: Speed cap at full temperature.
        min_distance: Distance floor used by repulsion.
        min_spacing: Pairs closer than this are pushed apart after each step.
        margin: Inset from the canvas edges that positions are clamped to.
        barnes_hut_threshold: Node count above which repulsion is approximated.
        barnes_hut_theta: Opening angle for the Barnes-Hut approximation.
        random_seed: Seed for the initial-position jitter (None = unseeded).
    """

    width: float = Field(default=1000.0, gt=0)
    height: float = Field(default=800.0, gt=0)
    iterations: int = Field(default=300, ge=0)
    repulsion: float = Field(default=5000.0, ge=0)
    attraction: float = Field(default=0.01, ge=0)
    cluster_strength: float = Field(default=0.1, ge=0)
    gravity: float = Field(default=0.01, ge=0)
    damping: float = Field(default=0.75, gt=0, lt=1)
    max_speed: float = Field(default=50.0, gt=0)
    min_distance: float = Field(default=10.0, gt=0)
    min_spacing: float = Field(default=30.0, ge=0)
    margin: float = Field(default=50.0, ge=0)
    barnes_hut_threshold: int = Field(default=500, ge=0)
    barnes_hut_theta: float = Field(default=0.8, gt=0)
    random_seed: int | None = None


class FilterConfig(BaseModel):
    """Default visibility settings for graph filtering.

    Attributes:
        show_orphaned: Show nodes without any edge.
        show_ghosts: Show nodes synthesized from unmatched mentions.
        min_edge_weight: Hide edges lighter than this.
    """

    show_orphaned: bool = True
    show_ghosts: bool = True
    min_edge_weight: float = Field(default=0.0, ge=0.0, le=1.0)


class GraphConfig(BaseModel):
    """Root configuration for the relationship graph."""

    config_version: int = CONFIG_VERSION
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)


def _migrate_v1_to_v2(data: dict[str, Any]) -> dict[str, Any]:
    """Migrate from v1 to v2: flat layout keys move under ``layout``."""
    layout = data.setdefault("layout", {})
    for key in ("width", "height", "iterations", "random_seed"):
        if key in data:
            layout.setdefault(key, data.pop(key))
    # v1 called the cluster pull "context_strength"
    if "context_strength" in layout:
        layout.setdefault("cluster_strength", layout.pop("context_strength"))
    data.setdefault("filters", {})
    return data


_MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    2: _migrate_v1_to_v2,
}


def _migrate_config(data: dict[str, Any]) -> dict[str, Any]:
    """Migrate config data from older versions to the current schema."""
    version = data.get("config_version", 1)

    for target_version in sorted(_MIGRATIONS.keys()):
        if version < target_version:
            logger.info("Migrating graph config from version %d to %d", version, target_version)
            data = _MIGRATIONS[target_version](data)
            version = target_version

    data["config_version"] = CONFIG_VERSION
    return data


def load_config(config_path: Path | None = None, strict: bool = False) -> GraphConfig:
    """Load configuration from file.

    Missing or invalid files fall back to defaults with a warning, unless
    ``strict`` is set.

    Args:
        config_path: Path to the config file. Defaults to ~/.sam/graph.json.
        strict: Raise instead of falling back to defaults.

    Returns:
        GraphConfig with loaded or default values.

    Raises:
        ConfigurationError: In strict mode, if the file is missing or invalid.
    """
    path = config_path or CONFIG_PATH

    if not path.exists():
        if strict:
            raise ConfigurationError(
                f"Config file not found: {path}",
                config_path=str(path),
                code=ErrorCode.CFG_MISSING,
            )
        logger.debug("Config file not found at %s, using defaults", path)
        return GraphConfig()

    try:
        with path.open() as f:
            data: dict[str, Any] = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        if strict:
            raise ConfigurationError(
                f"Cannot read config file {path}", config_path=str(path), cause=e
            ) from e
        logger.warning("Cannot read config file %s: %s, using defaults", path, e)
        return GraphConfig()

    if not isinstance(data, dict):
        if strict:
            raise ConfigurationError("Config root must be an object", config_path=str(path))
        logger.warning("Config root in %s is not an object, using defaults", path)
        return GraphConfig()

    data = _migrate_config(data)

    try:
        return GraphConfig.model_validate(data)
    except ValidationError as e:
        if strict:
            raise ConfigurationError(
                f"Invalid config in {path}", config_path=str(path), cause=e
            ) from e
        logger.warning("Config validation failed: %s, using defaults", e)
        return GraphConfig()


def save_config(config: GraphConfig, config_path: Path | None = None) -> bool:
    """Save configuration to file.

    Returns:
        True if saved successfully, False otherwise.
    """
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w") as f:
            json.dump(config.model_dump(), f, indent=2)
        logger.debug("Configuration saved to %s", path)
        return True
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        return False
