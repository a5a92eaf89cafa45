"""Build-then-layout pipeline.

Bundles the inputs of one graph build, runs the builder and the layout
engine as a single unit of work and wraps the result in ``GraphData``.
``submit_graph_build`` hands that unit to an executor so callers can keep
it off their interactive thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sam.config import LayoutConfig
from sam.errors import ErrorCode, GraphError
from sam.graph.builder import build_graph
from sam.graph.clustering import Cluster, clusters_from_contexts, detect_communities
from sam.graph.layout import LayoutEngine
from sam.graph.models import (
    CoAttendancePair,
    CommLink,
    ContextInput,
    GhostMention,
    GraphEdge,
    GraphNode,
    MentionPair,
    PersonInput,
    RecruitLink,
    ReferralLink,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodePosition:
    """A caller-supplied position, e.g. from a previous layout or a user drag."""

    x: float
    y: float
    pinned: bool = False


@dataclass
class GraphInputs:
    """Everything one graph build needs."""

    people: list[PersonInput] = field(default_factory=list)
    contexts: list[ContextInput] = field(default_factory=list)
    referrals: list[ReferralLink] = field(default_factory=list)
    recruiting_links: list[RecruitLink] = field(default_factory=list)
    co_attendance: list[CoAttendancePair] = field(default_factory=list)
    communications: list[CommLink] = field(default_factory=list)
    mentions: list[MentionPair] = field(default_factory=list)
    ghost_mentions: list[GhostMention] = field(default_factory=list)
    positions: dict[str, NodePosition] = field(default_factory=dict)


@dataclass
class GraphData:
    """Complete graph data structure.

    Attributes:
        nodes: List of graph nodes
        edges: List of graph edges
        metadata: Graph-level metadata
    """

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "metadata": self.metadata,
        }

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        """Number of edges in the graph."""
        return len(self.edges)


def _apply_positions(nodes: list[GraphNode], positions: dict[str, NodePosition]) -> None:
    for node in nodes:
        position = positions.get(node.id)
        if position is not None:
            node.x = position.x
            node.y = position.y
            node.is_pinned = position.pinned


def build_and_layout(
    inputs: GraphInputs,
    config: LayoutConfig | None = None,
    clusters: list[Cluster] | None = None,
    detect: bool = False,
) -> GraphData:
    """Build the graph from ``inputs`` and lay it out.

    Args:
        inputs: People and relationship facts
        config: Layout configuration (uses defaults if None)
        clusters: Explicit layout clusters. Derived from the household and
            business contexts in ``inputs`` when omitted.
        detect: Fall back to community detection when no context yields a
            cluster

    Returns:
        GraphData with positioned nodes

    Raises:
        GraphError: If building or layout fails unexpectedly
    """
    config = config or LayoutConfig()

    try:
        nodes, edges = build_graph(
            inputs.people,
            contexts=inputs.contexts,
            referrals=inputs.referrals,
            recruiting_links=inputs.recruiting_links,
            co_attendance=inputs.co_attendance,
            communications=inputs.communications,
            mentions=inputs.mentions,
            ghost_mentions=inputs.ghost_mentions,
        )
    except Exception as e:
        raise GraphError("Graph build failed", cause=e) from e

    _apply_positions(nodes, inputs.positions)

    if clusters is None:
        clusters = clusters_from_contexts(inputs.contexts)
        if not clusters and detect:
            clusters = detect_communities(
                nodes, edges, random_seed=config.random_seed
            ).to_clusters()

    try:
        nodes = LayoutEngine(config).force_directed(nodes, edges, clusters)
    except Exception as e:
        raise GraphError("Graph layout failed", code=ErrorCode.GRF_LAYOUT_FAILED, cause=e) from e

    metadata: dict[str, Any] = {
        "layout": "force_directed",
        "dimensions": {"width": config.width, "height": config.height},
        "iterations": config.iterations,
        "cluster_count": len(clusters),
        "clusters": [c.to_dict() for c in clusters],
        "generated_at": datetime.now().isoformat(),
    }

    logger.debug("Pipeline finished with %d clusters", len(clusters))
    return GraphData(nodes=nodes, edges=edges, metadata=metadata)


def submit_graph_build(
    executor: Executor,
    inputs: GraphInputs,
    config: LayoutConfig | None = None,
    clusters: list[Cluster] | None = None,
    detect: bool = False,
) -> Future[GraphData]:
    """Schedule ``build_and_layout`` on ``executor``.

    The computation cannot be interrupted once started; callers that no
    longer need the result simply discard the future.
    """
    return executor.submit(build_and_layout, inputs, config, clusters, detect)
