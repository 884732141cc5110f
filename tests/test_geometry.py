"""Tests for projection, points and bounds"""

import math

import pytest

from heatmap_tiles.geometry import WORLD_WIDTH, Bounds, WeightedPoint, project


class TestProject:
    """Tests for the spherical Mercator projection"""

    def test_origin_maps_to_world_center(self):
        x, y = project(0, 0)
        assert x == pytest.approx(WORLD_WIDTH / 2)
        assert y == pytest.approx(WORLD_WIDTH / 2)

    def test_longitude_spans_world_width(self):
        assert project(0, -180)[0] == pytest.approx(0)
        assert project(0, 180)[0] == pytest.approx(WORLD_WIDTH)

    def test_north_is_up(self):
        assert project(50, 0)[1] < project(0, 0)[1] < project(-50, 0)[1]

    def test_poles_stay_finite(self):
        assert math.isfinite(project(90, 0)[1])
        assert math.isfinite(project(-90, 0)[1])


class TestWeightedPoint:
    """Tests for WeightedPoint"""

    def test_default_weight(self):
        assert WeightedPoint(0.1, 0.2).weight == 1

    def test_negative_weight_replaced_by_default(self):
        assert WeightedPoint(0.1, 0.2, -5).weight == 1

    def test_from_lat_lng(self):
        point = WeightedPoint.from_lat_lng(0, 0, 7)
        assert point.x == pytest.approx(0.5)
        assert point.y == pytest.approx(0.5)
        assert point.weight == 7

    def test_immutable(self):
        point = WeightedPoint(0.1, 0.2, 3)
        with pytest.raises(AttributeError):
            point.weight = 4

    @pytest.mark.parametrize("x, y", [
        (float("nan"), 0.5), (0.5, float("nan")), (float("inf"), 0.5), (0.5, float("-inf")),
    ])
    def test_non_finite_coordinates_rejected(self, x, y):
        with pytest.raises(ValueError, match="finite"):
            WeightedPoint(x, y, 3)

    def test_non_finite_lat_lng_rejected(self):
        with pytest.raises(ValueError):
            WeightedPoint.from_lat_lng(float("nan"), 20.0)
        with pytest.raises(ValueError):
            WeightedPoint.from_lat_lng(50.0, float("inf"))


class TestBounds:
    """Tests for Bounds"""

    def test_enclosing(self):
        points = [WeightedPoint(0.2, 0.7), WeightedPoint(0.5, 0.1), WeightedPoint(0.3, 0.4)]
        bounds = Bounds.enclosing(points)
        assert bounds == Bounds(0.2, 0.5, 0.1, 0.7)
        assert all(bounds.contains(p.x, p.y) for p in points)

    def test_enclosing_single_point(self):
        bounds = Bounds.enclosing([WeightedPoint(0.3, 0.3)])
        assert bounds.width == 0
        assert bounds.height == 0

    def test_enclosing_empty(self):
        with pytest.raises(ValueError):
            Bounds.enclosing([])

    def test_intersects(self):
        a = Bounds(0, 1, 0, 1)
        assert a.intersects(Bounds(0.5, 2, 0.5, 2))
        assert a.intersects(Bounds(1, 2, 1, 2))  # shared corner
        assert not a.intersects(Bounds(1.1, 2, 0, 1))
        assert not a.intersects(Bounds(0, 1, -2, -0.1))

    def test_padded(self):
        bounds = Bounds(0.25, 0.5, 0.25, 0.5)
        assert bounds.padded(0.125) == Bounds(0.125, 0.625, 0.125, 0.625)

    def test_contains_bounds(self):
        outer = Bounds(0, 1, 0, 1)
        assert outer.contains_bounds(Bounds(0.1, 0.9, 0, 1))
        assert not outer.contains_bounds(Bounds(0.1, 1.1, 0, 1))
