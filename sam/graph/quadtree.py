"""Barnes-Hut quadtree for approximate repulsion.

Direct repulsion costs O(n^2) per iteration. For large graphs the layout
engine builds a quadtree over current positions once per iteration and
treats distant groups of nodes as a single body at their centre of mass,
giving O(n log n).
"""

from __future__ import annotations

import math
from collections.abc import Sequence

# Deep enough for any realistic canvas; coincident points stop splitting here
MAX_DEPTH = 40
BOUNDS_PADDING = 10.0

# Angle step used to separate exactly coincident nodes
GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def repulsive_force(
    dx: float,
    dy: float,
    strength: float,
    min_distance: float,
    tie_angle: float = 0.0,
) -> tuple[float, float]:
    """Inverse-square push along (dx, dy), away from the other body.

    The distance is floored at ``min_distance``. When the offset is exactly
    zero the push goes along ``tie_angle`` so coincident nodes separate.
    """
    dist = math.hypot(dx, dy)
    if dist > 0:
        ux, uy = dx / dist, dy / dist
    else:
        ux, uy = math.cos(tie_angle), math.sin(tie_angle)

    d = max(dist, min_distance)
    force = strength / (d * d)
    return force * ux, force * uy


def tie_angle(index: int, other: int) -> float:
    """Deterministic, antisymmetric direction for a coincident pair."""
    angle = GOLDEN_ANGLE * min(index, other)
    return angle if index < other else angle + math.pi


class QuadTree:
    """Square region holding point bodies with aggregated mass.

    Leaves hold the bodies themselves; at ``MAX_DEPTH`` a leaf may hold
    several bodies, which happens only for (near) coincident points.
    """

    __slots__ = ("cx", "cy", "half", "depth", "mass", "sum_x", "sum_y", "bodies", "children")

    def __init__(self, cx: float, cy: float, half: float, depth: int = 0) -> None:
        self.cx = cx
        self.cy = cy
        self.half = half
        self.depth = depth
        self.mass = 0
        self.sum_x = 0.0
        self.sum_y = 0.0
        self.bodies: list[tuple[int, float, float]] = []
        self.children: list[QuadTree] | None = None

    @classmethod
    def build(cls, points: Sequence[tuple[float, float]]) -> QuadTree:
        """Build a tree whose root square covers every point."""
        if not points:
            return cls(0.0, 0.0, 1.0)

        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        min_x, max_x = min(xs), max(xs)
        min_y, max_y = min(ys), max(ys)
        half = max(max_x - min_x, max_y - min_y) / 2 + BOUNDS_PADDING

        tree = cls((min_x + max_x) / 2, (min_y + max_y) / 2, half)
        for index, (x, y) in enumerate(points):
            tree.insert(index, x, y)
        return tree

    @property
    def center_of_mass(self) -> tuple[float, float]:
        if self.mass == 0:
            return self.cx, self.cy
        return self.sum_x / self.mass, self.sum_y / self.mass

    def insert(self, index: int, x: float, y: float) -> None:
        self.mass += 1
        self.sum_x += x
        self.sum_y += y

        if self.children is None:
            if not self.bodies or self.depth >= MAX_DEPTH:
                self.bodies.append((index, x, y))
                return
            self._subdivide()

        self._child_for(x, y).insert(index, x, y)

    def _subdivide(self) -> None:
        q = self.half / 2
        self.children = [
            QuadTree(self.cx + sx * q, self.cy + sy * q, q, self.depth + 1)
            for sy in (-1, 1)
            for sx in (-1, 1)
        ]
        bodies, self.bodies = self.bodies, []
        for index, x, y in bodies:
            self._child_for(x, y).insert(index, x, y)

    def _child_for(self, x: float, y: float) -> QuadTree:
        assert self.children is not None
        quadrant = (1 if x >= self.cx else 0) + (2 if y >= self.cy else 0)
        return self.children[quadrant]

    def repulsion(
        self,
        index: int,
        x: float,
        y: float,
        strength: float,
        theta: float,
        min_distance: float,
    ) -> tuple[float, float]:
        """Approximate total repulsion on body ``index`` located at (x, y).

        A cell is treated as one body when its size over its distance to
        the point is below ``theta``.
        """
        if self.mass == 0:
            return 0.0, 0.0

        if self.children is None:
            fx = fy = 0.0
            for other, ox, oy in self.bodies:
                if other == index:
                    continue
                px, py = repulsive_force(
                    x - ox, y - oy, strength, min_distance, tie_angle(index, other)
                )
                fx += px
                fy += py
            return fx, fy

        com_x, com_y = self.center_of_mass
        dx = x - com_x
        dy = y - com_y
        dist = math.hypot(dx, dy)
        inside = abs(x - self.cx) <= self.half and abs(y - self.cy) <= self.half
        if not inside and dist > 0 and (2 * self.half) / dist < theta:
            return repulsive_force(dx, dy, strength * self.mass, min_distance)

        fx = fy = 0.0
        for child in self.children:
            cfx, cfy = child.repulsion(index, x, y, strength, theta, min_distance)
            fx += cfx
            fy += cfy
        return fx, fy
