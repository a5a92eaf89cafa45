"""Tests for the Barnes-Hut quadtree."""

import math
import random

import pytest

from sam.graph.quadtree import QuadTree, repulsive_force, tie_angle


def _direct(points, index, strength, min_distance):
    fx = fy = 0.0
    x, y = points[index]
    for other, (ox, oy) in enumerate(points):
        if other == index:
            continue
        px, py = repulsive_force(x - ox, y - oy, strength, min_distance, tie_angle(index, other))
        fx += px
        fy += py
    return fx, fy


class TestRepulsiveForce:
    """Test the pairwise force helper."""

    def test_inverse_square_along_offset(self) -> None:
        fx, fy = repulsive_force(10.0, 0.0, strength=100.0, min_distance=1.0)
        assert fx == pytest.approx(1.0)
        assert fy == pytest.approx(0.0)

    def test_distance_floor(self) -> None:
        """Test close bodies use the floored distance."""
        fx, fy = repulsive_force(0.0, 0.5, strength=100.0, min_distance=10.0)
        assert fx == pytest.approx(0.0)
        assert fy == pytest.approx(1.0)

    def test_coincident_bodies_use_tie_angle(self) -> None:
        fx, fy = repulsive_force(0.0, 0.0, strength=100.0, min_distance=10.0, tie_angle=math.pi / 2)
        assert math.isfinite(fx) and math.isfinite(fy)
        assert fx == pytest.approx(0.0, abs=1e-12)
        assert fy == pytest.approx(1.0)

    def test_tie_angle_is_antisymmetric(self) -> None:
        assert tie_angle(2, 5) + math.pi == pytest.approx(tie_angle(5, 2))


class TestQuadTree:
    """Test tree construction and force approximation."""

    def test_build_aggregates_mass(self) -> None:
        points = [(0.0, 0.0), (10.0, 0.0), (0.0, 10.0), (10.0, 10.0)]
        tree = QuadTree.build(points)

        assert tree.mass == 4
        assert tree.center_of_mass == pytest.approx((5.0, 5.0))
        assert tree.children is not None

    def test_empty_tree(self) -> None:
        tree = QuadTree.build([])
        assert tree.mass == 0
        assert tree.repulsion(0, 0.0, 0.0, 100.0, 0.8, 10.0) == (0.0, 0.0)

    def test_zero_theta_matches_direct_sum(self) -> None:
        """Test the tree is exact when no cell may be approximated."""
        rng = random.Random(7)
        points = [(rng.uniform(0, 500), rng.uniform(0, 500)) for _ in range(40)]
        tree = QuadTree.build(points)

        for index in (0, 13, 39):
            x, y = points[index]
            approx = tree.repulsion(index, x, y, 5000.0, 1e-9, 10.0)
            assert approx == pytest.approx(_direct(points, index, 5000.0, 10.0))

    def test_distant_group_treated_as_one_body(self) -> None:
        rng = random.Random(3)
        points = [(rng.uniform(-1, 1), rng.uniform(-1, 1)) for _ in range(10)]
        points.append((1000.0, 0.0))
        tree = QuadTree.build(points)

        fx, fy = tree.repulsion(10, 1000.0, 0.0, 5000.0, 0.8, 10.0)
        exact_x, exact_y = _direct(points, 10, 5000.0, 10.0)

        assert fx > 0
        assert fx == pytest.approx(exact_x, rel=0.01)
        assert fy == pytest.approx(exact_y, abs=1e-3)

    def test_coincident_points_do_not_recurse_forever(self) -> None:
        """Test identical points stop splitting at the depth limit."""
        points = [(5.0, 5.0)] * 3 + [(50.0, 50.0)]
        tree = QuadTree.build(points)

        assert tree.mass == 4
        fx, fy = tree.repulsion(0, 5.0, 5.0, 100.0, 0.8, 10.0)
        assert math.isfinite(fx) and math.isfinite(fy)
        assert (fx, fy) != (0.0, 0.0)
