"""Tests for max intensity calibration"""

import random

import pytest

from heatmap_tiles.geometry import Bounds, WeightedPoint
from heatmap_tiles.intensity import (
    MAX_CALIB_ZOOM,
    MAX_ZOOM_LEVEL,
    MIN_CALIB_ZOOM,
    max_bucket_value,
    max_intensities,
)


def _table_for(points, radius=20):
    return max_intensities(points, Bounds.enclosing(points), radius)


class TestMaxBucketValue:
    """Tests for max_bucket_value"""

    def test_single_spot_sums_everything(self):
        points = [WeightedPoint(0.3, 0.3, 2), WeightedPoint(0.3, 0.3, 5)]
        assert max_bucket_value(points, Bounds.enclosing(points), 20, 1280) == 7

    def test_far_points_stay_apart(self):
        points = [WeightedPoint(0, 0, 5), WeightedPoint(1, 1, 4)]
        assert max_bucket_value(points, Bounds(0, 1, 0, 1), 20, 1280) == 5

    def test_close_points_share_a_bucket(self):
        points = [WeightedPoint(0, 0, 5), WeightedPoint(0.001, 0.001, 4), WeightedPoint(1, 1, 1)]
        assert max_bucket_value(points, Bounds(0, 1, 0, 1), 20, 1280) == 9


class TestMaxIntensities:
    """Tests for the per-zoom table"""

    def test_table_spans_all_zooms(self):
        assert len(_table_for([WeightedPoint(0.5, 0.5)])) == MAX_ZOOM_LEVEL + 1

    def test_buckets_shrink_with_zoom(self):
        points = [WeightedPoint(0, 0, 1), WeightedPoint(0.001, 0.001, 3), WeightedPoint(1, 1, 1)]
        table = _table_for(points)
        # 32 buckets at zoom 5 up to 512 at zoom 9: both near points share one
        assert table[MIN_CALIB_ZOOM:MAX_CALIB_ZOOM - 1] == (4,) * 5
        # 1024 buckets at zoom 10 split them
        assert table[MAX_CALIB_ZOOM - 1] == 3

    def test_out_of_range_zooms_copy_the_edges(self):
        rng = random.Random(3)
        points = [WeightedPoint(rng.random(), rng.random(), rng.uniform(0, 50))
                  for _ in range(400)]
        table = _table_for(points)
        for zoom in range(MIN_CALIB_ZOOM):
            assert table[zoom] == table[MIN_CALIB_ZOOM]
        for zoom in range(MAX_CALIB_ZOOM, MAX_ZOOM_LEVEL + 1):
            assert table[zoom] == table[MAX_CALIB_ZOOM - 1]

    def test_larger_radius_merges_more(self):
        points = [WeightedPoint(0, 0, 1), WeightedPoint(0.02, 0, 1), WeightedPoint(1, 1, 1)]
        small = _table_for(points, radius=10)
        large = _table_for(points, radius=200)
        assert large[MIN_CALIB_ZOOM] == pytest.approx(2)
        assert small[MAX_CALIB_ZOOM - 1] == pytest.approx(1)
