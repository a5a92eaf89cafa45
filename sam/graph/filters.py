"""Visibility filtering for built graphs."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sam.config import FilterConfig
from sam.graph.models import EdgeType, GraphEdge, GraphNode


@dataclass(frozen=True)
class GraphFilter:
    """What part of a graph to show.

    Attributes:
        roles: Keep only nodes carrying at least one of these badges (empty = all)
        edge_types: Keep only edges of these types (empty = all)
        show_orphaned: Keep nodes without any edge
        show_ghosts: Keep ghost nodes
        min_edge_weight: Drop edges lighter than this
        focus_ids: Keep only these nodes and their direct neighbours (empty = all)
    """

    roles: frozenset[str] = field(default_factory=frozenset)
    edge_types: frozenset[EdgeType] = field(default_factory=frozenset)
    show_orphaned: bool = True
    show_ghosts: bool = True
    min_edge_weight: float = 0.0
    focus_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_config(cls, config: FilterConfig, **overrides: object) -> GraphFilter:
        """Start from configured defaults, then apply ``overrides``."""
        values: dict[str, object] = {
            "show_orphaned": config.show_orphaned,
            "show_ghosts": config.show_ghosts,
            "min_edge_weight": config.min_edge_weight,
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


def _focus_neighbourhood(focus_ids: frozenset[str], edges: Iterable[GraphEdge]) -> set[str]:
    visible = set(focus_ids)
    for edge in edges:
        if edge.source in focus_ids:
            visible.add(edge.target)
        if edge.target in focus_ids:
            visible.add(edge.source)
    return visible


def filter_graph(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    graph_filter: GraphFilter,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Apply ``graph_filter`` to a built graph.

    Nodes are filtered first; an edge survives only if both of its endpoints
    are still visible. Input order is preserved and nothing is mutated.
    """
    focus = _focus_neighbourhood(graph_filter.focus_ids, edges) if graph_filter.focus_ids else None

    visible_nodes: list[GraphNode] = []
    for node in nodes:
        if focus is not None and node.id not in focus:
            continue
        if graph_filter.roles and graph_filter.roles.isdisjoint(node.role_badges):
            continue
        if node.is_ghost and not graph_filter.show_ghosts:
            continue
        if node.is_orphaned and not graph_filter.show_orphaned:
            continue
        visible_nodes.append(node)

    visible_ids = {node.id for node in visible_nodes}
    visible_edges = [
        edge
        for edge in edges
        if (not graph_filter.edge_types or edge.edge_type in graph_filter.edge_types)
        and edge.weight >= graph_filter.min_edge_weight
        and edge.source in visible_ids
        and edge.target in visible_ids
    ]

    return visible_nodes, visible_edges
