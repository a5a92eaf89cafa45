"""Clusters for the layout engine.

Layout clusters normally come straight from household and business
contexts. When no context records exist, Louvain community detection over
the built edges can supply them instead.
"""

from __future__ import annotations

import logging
import random
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sam.graph.builder import CONTEXT_EDGE_TYPES
from sam.graph.models import ContextInput, GraphEdge, GraphNode

logger = logging.getLogger(__name__)

MAX_PASSES = 100


@dataclass(frozen=True)
class Cluster:
    """A set of node ids the layout should draw near one another."""

    id: str
    member_ids: tuple[str, ...]
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "member_ids": list(self.member_ids), "label": self.label}


def clusters_from_contexts(contexts: Iterable[ContextInput]) -> list[Cluster]:
    """Turn household/business contexts into layout clusters.

    Contexts of other types, and contexts with fewer than two distinct
    participants, are skipped.
    """
    clusters: list[Cluster] = []
    for context in contexts:
        if context.context_type.strip().lower() not in CONTEXT_EDGE_TYPES:
            continue
        members = tuple(dict.fromkeys(context.participant_ids))
        if len(members) < 2:
            continue
        clusters.append(Cluster(id=context.id, member_ids=members, label=context.context_type.strip()))
    return clusters


@dataclass
class ClusterResult:
    """Result of community detection.

    Attributes:
        clusters: Mapping of node ID to cluster ID
        modularity: Modularity score of the clustering
        num_clusters: Number of clusters found
        cluster_sizes: Size of each cluster
        cluster_labels: Labels derived from the dominant primary role
    """

    clusters: dict[str, int] = field(default_factory=dict)
    modularity: float = 0.0
    num_clusters: int = 0
    cluster_sizes: dict[int, int] = field(default_factory=dict)
    cluster_labels: dict[int, str] = field(default_factory=dict)

    def to_clusters(self) -> list[Cluster]:
        """Layout clusters for every community with at least two members."""
        members: dict[int, list[str]] = defaultdict(list)
        for node_id, cluster_id in self.clusters.items():
            members[cluster_id].append(node_id)

        return [
            Cluster(
                id=f"community-{cluster_id}",
                member_ids=tuple(ids),
                label=self.cluster_labels.get(cluster_id),
            )
            for cluster_id, ids in sorted(members.items())
            if len(ids) >= 2
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "clusters": self.clusters,
            "modularity": self.modularity,
            "num_clusters": self.num_clusters,
            "cluster_sizes": self.cluster_sizes,
            "cluster_labels": self.cluster_labels,
        }


def _singletons(node_ids: Sequence[str]) -> ClusterResult:
    return ClusterResult(
        clusters={nid: i for i, nid in enumerate(node_ids)},
        num_clusters=len(node_ids),
        cluster_sizes={i: 1 for i in range(len(node_ids))},
    )


class LouvainClustering:
    """Louvain local-moving phase for community detection.

    Nodes are repeatedly moved to the neighbouring community with the best
    modularity gain until no move improves it.

    References:
        Blondel et al., "Fast unfolding of communities in large networks"
    """

    def __init__(self, resolution: float = 1.0, random_seed: int | None = None) -> None:
        """Initialize the Louvain clustering.

        Args:
            resolution: Resolution parameter (higher = more clusters)
            random_seed: Seed for the visiting order
        """
        self.resolution = resolution
        self.random_seed = random_seed

    def detect(self, nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]) -> ClusterResult:
        """Detect communities among ``nodes`` connected by ``edges``."""
        node_ids = [n.id for n in nodes]
        id_to_idx = {nid: i for i, nid in enumerate(node_ids)}
        n = len(node_ids)

        neighbors: list[dict[int, float]] = [defaultdict(float) for _ in range(n)]
        degrees = [0.0] * n
        total_weight = 0.0

        for edge in edges:
            i = id_to_idx.get(edge.source)
            j = id_to_idx.get(edge.target)
            if i is None or j is None or i == j:
                continue
            neighbors[i][j] += edge.weight
            neighbors[j][i] += edge.weight
            degrees[i] += edge.weight
            degrees[j] += edge.weight
            total_weight += 2 * edge.weight

        if total_weight == 0:
            return _singletons(node_ids)

        rng = random.Random(self.random_seed)
        community = list(range(n))
        community_total = list(degrees)

        for _ in range(MAX_PASSES):
            improved = False
            order = list(range(n))
            rng.shuffle(order)

            for node in order:
                current = community[node]
                degree = degrees[node]

                links: dict[int, float] = defaultdict(float)
                for j, w in neighbors[node].items():
                    links[community[j]] += w

                community_total[current] -= degree
                scale = self.resolution * degree / total_weight

                best = current
                best_gain = links.get(current, 0.0) - scale * community_total[current]
                for comm, weight in links.items():
                    comm_gain = weight - scale * community_total[comm]
                    if comm_gain > best_gain:
                        best, best_gain = comm, comm_gain

                community_total[best] += degree
                community[node] = best
                if best != current:
                    improved = True

            if not improved:
                break

        # Renumber communities by first appearance in node order
        renumber: dict[int, int] = {}
        for comm in community:
            renumber.setdefault(comm, len(renumber))
        community = [renumber[c] for c in community]

        internal: dict[int, float] = defaultdict(float)
        totals: dict[int, float] = defaultdict(float)
        for i in range(n):
            totals[community[i]] += degrees[i]
            for j, w in neighbors[i].items():
                if community[j] == community[i]:
                    internal[community[i]] += w
        modularity = sum(
            internal[c] / total_weight - self.resolution * (totals[c] / total_weight) ** 2
            for c in totals
        )

        clusters = {node_ids[i]: community[i] for i in range(n)}
        cluster_sizes = dict(Counter(community))

        # Label each cluster by its dominant primary role
        roles: dict[int, Counter[str]] = defaultdict(Counter)
        for node in nodes:
            if node.primary_role:
                roles[clusters[node.id]][node.primary_role] += 1
        cluster_labels = {
            comm: roles[comm].most_common(1)[0][0] if roles[comm] else f"Cluster {comm + 1}"
            for comm in cluster_sizes
        }

        return ClusterResult(
            clusters=clusters,
            modularity=round(modularity, 4),
            num_clusters=len(cluster_sizes),
            cluster_sizes=cluster_sizes,
            cluster_labels=cluster_labels,
        )


def detect_communities(
    nodes: Sequence[GraphNode],
    edges: Iterable[GraphEdge],
    resolution: float = 1.0,
    random_seed: int | None = None,
) -> ClusterResult:
    """Detect communities in a built graph.

    Args:
        nodes: Graph nodes
        edges: Graph edges (weights are used as link strength)
        resolution: Louvain resolution parameter
        random_seed: Seed for reproducible results

    Returns:
        ClusterResult with community assignments
    """
    result = LouvainClustering(resolution=resolution, random_seed=random_seed).detect(
        nodes, edges
    )
    logger.debug(
        "Detected %d communities (modularity %.4f)", result.num_clusters, result.modularity
    )
    return result
