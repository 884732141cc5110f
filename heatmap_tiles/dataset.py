import json
import logging
import math
import random
from pathlib import Path

from heatmap_tiles.geometry import DEFAULT_WEIGHT, WeightedPoint

logger = logging.getLogger(__name__)

SAMPLE_DATA = Path(__file__).parent / "data" / "krakow.json"


def _parse_point(item):
    if isinstance(item, dict):
        lat = item["lat"]
        lng = item["lng"]
        weight = item.get("weight", item.get("intensity", DEFAULT_WEIGHT))
    elif isinstance(item, (list, tuple)) and len(item) in (2, 3):
        lat, lng = item[0], item[1]
        weight = item[2] if len(item) == 3 else DEFAULT_WEIGHT
    else:
        raise ValueError(f"expected an object or a [lat, lng(, weight)] list, got {item!r}")
    return WeightedPoint.from_lat_lng(float(lat), float(lng), float(weight))


def parse_points(items):
    """
    Weighted points from decoded JSON: either a list of entries or an
    object with a "points" list. Entries are {"lat", "lng", "weight"} objects
    ("intensity" is accepted for "weight") or [lat, lng] / [lat, lng, weight].
    """
    if isinstance(items, dict):
        items = items.get("points")
    if not isinstance(items, list):
        raise ValueError("Dataset must be a list of points or an object with a 'points' list.")

    points = []
    for index, item in enumerate(items):
        try:
            points.append(_parse_point(item))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid point at index {index}: {e}") from e
    return points


def load_points(path):
    """Read a JSON dataset file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    points = parse_points(data)
    logger.info("Loaded %d points from %s", len(points), path)
    return points


def random_walk_points(center_lat, center_lng, num_walkers=20, points_per_walker=50,
                       step_size=0.01, max_weight=100, seed=None):
    """
    Synthetic dataset: each walker starts near the center and takes
    `points_per_walker` steps of `step_size` degrees in random directions.
    Every visited spot becomes a point with a random weight in [1, max_weight].
    """
    rng = random.Random(seed)
    points = []
    for _ in range(num_walkers):
        lat = center_lat + rng.uniform(-10, 10) * step_size
        lng = center_lng + rng.uniform(-10, 10) * step_size
        for _ in range(points_per_walker):
            angle = rng.uniform(0, 2 * math.pi)
            lat = max(-85.0, min(85.0, lat + step_size * math.sin(angle)))
            lng = (lng + step_size * math.cos(angle) + 180.0) % 360.0 - 180.0
            points.append(WeightedPoint.from_lat_lng(lat, lng, rng.uniform(1, max_weight)))
    return points
