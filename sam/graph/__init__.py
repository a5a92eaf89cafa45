"""Graph data module for relationship visualization.

Provides graph construction, force-directed layout, clustering, filtering
and export for relationship networks.
"""

from sam.graph.builder import build_graph
from sam.graph.clustering import (
    Cluster,
    ClusterResult,
    clusters_from_contexts,
    detect_communities,
)
from sam.graph.export import export_graph, export_to_graphml, export_to_json
from sam.graph.filters import GraphFilter, filter_graph
from sam.graph.layout import LayoutEngine, layout_graph
from sam.graph.models import (
    CoAttendancePair,
    CommLink,
    CommunicationDirection,
    ContextInput,
    EdgeType,
    GhostMention,
    GraphEdge,
    GraphNode,
    HealthLevel,
    MentionPair,
    PersonInput,
    RecruitLink,
    ReferralLink,
    resolve_primary_role,
)
from sam.graph.pipeline import (
    GraphData,
    GraphInputs,
    NodePosition,
    build_and_layout,
    submit_graph_build,
)

__all__ = [
    # Records
    "CoAttendancePair",
    "CommLink",
    "CommunicationDirection",
    "ContextInput",
    "EdgeType",
    "GhostMention",
    "GraphEdge",
    "GraphNode",
    "HealthLevel",
    "MentionPair",
    "PersonInput",
    "RecruitLink",
    "ReferralLink",
    "resolve_primary_role",
    # Builder
    "build_graph",
    # Layout
    "LayoutEngine",
    "layout_graph",
    # Clustering
    "Cluster",
    "ClusterResult",
    "clusters_from_contexts",
    "detect_communities",
    # Filtering
    "GraphFilter",
    "filter_graph",
    # Pipeline
    "GraphData",
    "GraphInputs",
    "NodePosition",
    "build_and_layout",
    "submit_graph_build",
    # Export
    "export_graph",
    "export_to_graphml",
    "export_to_json",
]
