"""Force-directed layout for relationship graphs.

Positions nodes with a spring-embedder simulation: pairwise repulsion,
weighted springs along edges, a pull toward each cluster's centroid and a
weak centre gravity. The simulation runs a fixed number of iterations and
cools its step size so velocities die out before the end.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable, Sequence
from dataclasses import replace

from sam.config import LayoutConfig
from sam.graph.clustering import Cluster
from sam.graph.models import ContextInput, GraphEdge, GraphNode
from sam.graph.quadtree import GOLDEN_ANGLE, QuadTree, repulsive_force, tie_angle

logger = logging.getLogger(__name__)

# Cooling floor so the last iterations still move a little
MIN_TEMPERATURE = 0.01

# Initial placement
PLACEMENT_RADIUS_RATIO = 0.35
CLUSTER_RING_RATIO = 0.6
CLUSTER_SPREAD_BASE = 30.0
CLUSTER_SPREAD_PER_MEMBER = 5.0
SPIRAL_START_RATIO = 0.3
SPIRAL_STEP = 8.0
JITTER = 1.0

# Cap on the inset as a share of the shorter canvas side
MAX_MARGIN_RATIO = 0.1


def _cluster_members(cluster: Cluster | ContextInput) -> Sequence[str]:
    if isinstance(cluster, ContextInput):
        return tuple(cluster.participant_ids)
    return cluster.member_ids


class LayoutEngine:
    """Engine for computing force-directed layouts.

    The engine holds only its configuration; every call allocates its own
    simulation state, so one engine can serve concurrent callers.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        """Initialize the layout engine.

        Args:
            config: Layout configuration (uses defaults if None)
        """
        self.config = config or LayoutConfig()

    def force_directed(
        self,
        nodes: Sequence[GraphNode],
        edges: Iterable[GraphEdge],
        clusters: Iterable[Cluster | ContextInput] | None = None,
    ) -> list[GraphNode]:
        """Apply force-directed layout.

        Args:
            nodes: Nodes to position; existing positions are used as the start
            edges: Edges acting as springs, scaled by weight
            clusters: Groups of node ids pulled toward their centroid

        Returns:
            Copies of ``nodes`` with x, y, vx and vy set
        """
        if not nodes:
            return []

        cfg = self.config
        n = len(nodes)
        index = {node.id: i for i, node in enumerate(nodes)}

        groups = self._cluster_groups(clusters or (), index)
        springs = [
            (index[e.source], index[e.target], cfg.attraction * e.weight)
            for e in edges
            if e.source in index and e.target in index and e.source != e.target
        ]
        pinned = [node.is_pinned for node in nodes]

        margin = min(cfg.margin, MAX_MARGIN_RATIO * min(cfg.width, cfg.height))
        xs, ys = self._initial_positions(nodes, groups, margin)
        vxs = [0.0] * n
        vys = [0.0] * n

        use_barnes_hut = n > cfg.barnes_hut_threshold
        if use_barnes_hut:
            logger.debug("Using Barnes-Hut repulsion for %d nodes", n)

        center_x = cfg.width / 2
        center_y = cfg.height / 2
        iterations = cfg.iterations

        for iteration in range(iterations):
            temp = max(MIN_TEMPERATURE, 1.0 - iteration / iterations)

            if use_barnes_hut:
                fxs, fys = self._barnes_hut_repulsion(xs, ys)
            else:
                fxs, fys = self._direct_repulsion(xs, ys)

            # Springs (Hooke's law) weighted by edge weight
            for i, j, k in springs:
                dx = xs[j] - xs[i]
                dy = ys[j] - ys[i]
                fxs[i] += k * dx
                fys[i] += k * dy
                fxs[j] -= k * dx
                fys[j] -= k * dy

            # Pull toward each cluster's current centroid
            for group in groups:
                cx = sum(xs[i] for i in group) / len(group)
                cy = sum(ys[i] for i in group) / len(group)
                for i in group:
                    fxs[i] += cfg.cluster_strength * (cx - xs[i])
                    fys[i] += cfg.cluster_strength * (cy - ys[i])

            max_speed = cfg.max_speed * temp
            for i in range(n):
                if pinned[i]:
                    continue

                fx = fxs[i] + cfg.gravity * (center_x - xs[i])
                fy = fys[i] + cfg.gravity * (center_y - ys[i])

                vx = (vxs[i] + fx) * cfg.damping * temp
                vy = (vys[i] + fy) * cfg.damping * temp

                speed = math.hypot(vx, vy)
                if speed > max_speed:
                    vx = vx * max_speed / speed
                    vy = vy * max_speed / speed

                vxs[i] = vx
                vys[i] = vy
                xs[i], ys[i] = self._clamp(xs[i] + vx, ys[i] + vy, margin)

            self._resolve_collisions(xs, ys, pinned, margin)

        logger.info(
            "Laid out %d nodes in %d iterations (%s repulsion)",
            n,
            iterations,
            "barnes-hut" if use_barnes_hut else "direct",
        )

        return [
            replace(
                node,
                x=round(xs[i], 2),
                y=round(ys[i], 2),
                vx=0.0 if pinned[i] else vxs[i],
                vy=0.0 if pinned[i] else vys[i],
            )
            for i, node in enumerate(nodes)
        ]

    @staticmethod
    def _cluster_groups(
        clusters: Iterable[Cluster | ContextInput], index: dict[str, int]
    ) -> list[list[int]]:
        """Resolve clusters to index lists, keeping known, distinct members."""
        groups: list[list[int]] = []
        for cluster in clusters:
            members = list(
                dict.fromkeys(index[mid] for mid in _cluster_members(cluster) if mid in index)
            )
            if len(members) >= 2:
                groups.append(members)
        return groups

    def _clamp(self, x: float, y: float, margin: float) -> tuple[float, float]:
        return (
            max(margin, min(self.config.width - margin, x)),
            max(margin, min(self.config.height - margin, y)),
        )

    def _initial_positions(
        self,
        nodes: Sequence[GraphNode],
        groups: list[list[int]],
        margin: float,
    ) -> tuple[list[float], list[float]]:
        """Seed positions for nodes that have none.

        Cluster members start around per-cluster anchors on a ring, all other
        nodes on a golden-angle spiral around the centre. Saved positions are
        kept but clamped to the canvas.
        """
        cfg = self.config
        rng = random.Random(cfg.random_seed)
        center_x = cfg.width / 2
        center_y = cfg.height / 2
        radius = min(cfg.width, cfg.height) * PLACEMENT_RADIUS_RATIO
        max_radius = max(min(cfg.width, cfg.height) / 2 - margin, 1.0)

        seeds: dict[int, tuple[float, float]] = {}
        for g, group in enumerate(groups):
            angle = 2 * math.pi * g / len(groups)
            anchor_x = center_x + radius * CLUSTER_RING_RATIO * math.cos(angle)
            anchor_y = center_y + radius * CLUSTER_RING_RATIO * math.sin(angle)
            spread = CLUSTER_SPREAD_BASE + CLUSTER_SPREAD_PER_MEMBER * len(group)
            for m, i in enumerate(group):
                if i in seeds:
                    continue
                member_angle = 2 * math.pi * m / len(group)
                seeds[i] = (
                    anchor_x + spread * math.cos(member_angle),
                    anchor_y + spread * math.sin(member_angle),
                )

        others = [i for i in range(len(nodes)) if i not in seeds]
        for k, i in enumerate(others):
            r = min(radius * SPIRAL_START_RATIO + SPIRAL_STEP * k, max_radius)
            seeds[i] = (
                center_x + r * math.cos(k * GOLDEN_ANGLE),
                center_y + r * math.sin(k * GOLDEN_ANGLE),
            )

        xs: list[float] = []
        ys: list[float] = []
        for i, node in enumerate(nodes):
            if node.x is not None and node.y is not None:
                x, y = self._clamp(node.x, node.y, margin)
            else:
                sx, sy = seeds[i]
                x, y = self._clamp(
                    sx + rng.uniform(-JITTER, JITTER), sy + rng.uniform(-JITTER, JITTER), margin
                )
            xs.append(x)
            ys.append(y)
        return xs, ys

    def _direct_repulsion(self, xs: list[float], ys: list[float]) -> tuple[list[float], list[float]]:
        cfg = self.config
        n = len(xs)
        fxs = [0.0] * n
        fys = [0.0] * n
        for i in range(n):
            for j in range(i + 1, n):
                fx, fy = repulsive_force(
                    xs[i] - xs[j], ys[i] - ys[j], cfg.repulsion, cfg.min_distance, tie_angle(i, j)
                )
                fxs[i] += fx
                fys[i] += fy
                fxs[j] -= fx
                fys[j] -= fy
        return fxs, fys

    def _barnes_hut_repulsion(
        self, xs: list[float], ys: list[float]
    ) -> tuple[list[float], list[float]]:
        cfg = self.config
        tree = QuadTree.build(list(zip(xs, ys)))
        fxs: list[float] = []
        fys: list[float] = []
        for i, (x, y) in enumerate(zip(xs, ys)):
            fx, fy = tree.repulsion(
                i, x, y, cfg.repulsion, cfg.barnes_hut_theta, cfg.min_distance
            )
            fxs.append(fx)
            fys.append(fy)
        return fxs, fys

    def _resolve_collisions(
        self, xs: list[float], ys: list[float], pinned: list[bool], margin: float
    ) -> None:
        """Push apart pairs closer than ``min_spacing``.

        Candidates are found through a uniform grid with cells of the spacing
        size, so only neighbouring cells are compared.
        """
        spacing = self.config.min_spacing
        if spacing <= 0:
            return

        grid: dict[tuple[int, int], list[int]] = {}
        for i in range(len(xs)):
            cell = (math.floor(xs[i] / spacing), math.floor(ys[i] / spacing))
            grid.setdefault(cell, []).append(i)

        for (cx, cy), members in grid.items():
            for gx in (cx - 1, cx, cx + 1):
                for gy in (cy - 1, cy, cy + 1):
                    for i in members:
                        for j in grid.get((gx, gy), ()):
                            if j <= i or (pinned[i] and pinned[j]):
                                continue
                            self._separate(i, j, xs, ys, pinned, spacing, margin)

    def _separate(
        self,
        i: int,
        j: int,
        xs: list[float],
        ys: list[float],
        pinned: list[bool],
        spacing: float,
        margin: float,
    ) -> None:
        dx = xs[i] - xs[j]
        dy = ys[i] - ys[j]
        dist = math.hypot(dx, dy)
        if dist >= spacing:
            return

        if dist > 0:
            ux, uy = dx / dist, dy / dist
        else:
            angle = tie_angle(i, j)
            ux, uy = math.cos(angle), math.sin(angle)

        overlap = spacing - dist
        # A pinned endpoint stays put and the other one takes the whole push
        share_i = 0.0 if pinned[i] else (1.0 if pinned[j] else 0.5)
        share_j = 0.0 if pinned[j] else (1.0 if pinned[i] else 0.5)

        if share_i:
            xs[i], ys[i] = self._clamp(
                xs[i] + ux * overlap * share_i, ys[i] + uy * overlap * share_i, margin
            )
        if share_j:
            xs[j], ys[j] = self._clamp(
                xs[j] - ux * overlap * share_j, ys[j] - uy * overlap * share_j, margin
            )


def layout_graph(
    nodes: Sequence[GraphNode],
    edges: Iterable[GraphEdge],
    iterations: int | None = None,
    canvas_bounds: tuple[float, float] | None = None,
    clusters: Iterable[Cluster | ContextInput] | None = None,
    config: LayoutConfig | None = None,
) -> list[GraphNode]:
    """Position graph nodes with a force-directed simulation.

    Args:
        nodes: Nodes from ``build_graph`` (or any prior layout)
        edges: Edges from ``build_graph``
        iterations: Simulation iterations (default 300, or the config's value)
        canvas_bounds: (width, height) of the canvas (default 1000 x 800)
        clusters: Clusters or context records whose members should stay close
        config: Force tuning; explicit arguments above take precedence

    Returns:
        New node objects with position and residual velocity set

    Raises:
        pydantic.ValidationError: If the bounds or iteration count are invalid
    """
    config = config or LayoutConfig()
    overrides: dict[str, float | int] = {}
    if iterations is not None:
        overrides["iterations"] = iterations
    if canvas_bounds is not None:
        overrides["width"], overrides["height"] = canvas_bounds
    if overrides:
        config = LayoutConfig.model_validate({**config.model_dump(), **overrides})

    return LayoutEngine(config).force_directed(nodes, edges, clusters)
