"""Tests for the point quadtree"""

import random

from heatmap_tiles.geometry import Bounds, WeightedPoint
from heatmap_tiles.quadtree import MAX_ELEMENTS, PointQuadTree


def _key(point):
    return point.x, point.y, point.weight


def _random_points(count, seed=7):
    rng = random.Random(seed)
    return [WeightedPoint(rng.random(), rng.random(), rng.uniform(1, 10))
            for _ in range(count)]


class TestPointQuadTree:
    """Tests for PointQuadTree"""

    def test_search_matches_linear_scan(self):
        points = _random_points(1000)
        tree = PointQuadTree(Bounds(0, 1, 0, 1))
        for point in points:
            tree.add(point)

        for query in (Bounds(0.1, 0.3, 0.2, 0.6), Bounds(0, 1, 0, 1),
                      Bounds(0.45, 0.55, 0.45, 0.55), Bounds(2, 3, 2, 3)):
            expected = sorted(_key(p) for p in points if query.contains(p.x, p.y))
            assert sorted(_key(p) for p in tree.search(query)) == expected

    def test_splits_past_capacity(self):
        tree = PointQuadTree(Bounds(0, 1, 0, 1))
        for point in _random_points(MAX_ELEMENTS * 4):
            tree.add(point)
        assert tree._children is not None
        assert len(tree.search(tree.bounds)) == MAX_ELEMENTS * 4

    def test_point_outside_bounds_ignored(self):
        tree = PointQuadTree(Bounds(0, 0.5, 0, 0.5))
        assert not tree.add(WeightedPoint(0.75, 0.1))
        assert tree.add(WeightedPoint(0.5, 0.5))
        assert len(tree.search(tree.bounds)) == 1

    def test_duplicate_points_found(self):
        tree = PointQuadTree(Bounds(0, 1, 0, 1))
        for _ in range(MAX_ELEMENTS * 3):
            tree.add(WeightedPoint(0.25, 0.25))
        found = tree.search(Bounds(0.2, 0.3, 0.2, 0.3))
        assert len(found) == MAX_ELEMENTS * 3

    def test_search_edges_inclusive(self):
        tree = PointQuadTree(Bounds(0, 1, 0, 1))
        tree.add(WeightedPoint(0.0, 0.5))
        assert len(tree.search(Bounds(0, 0.01, 0.4, 0.6))) == 1
