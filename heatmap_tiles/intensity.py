"""
Per-zoom calibration of the value that maps to 100% of the gradient.

For each calibration zoom the dataset is dropped into square buckets roughly
one kernel diameter wide, as if the whole dataset filled a screen of that
zoom's size. The heaviest bucket is the max intensity for the zoom.
"""

import logging
import math

logger = logging.getLogger(__name__)

# Assumed screen size, pixels.
SCREEN_SIZE = 1280

# Zoom levels with their own estimate: [MIN_CALIB_ZOOM, MAX_CALIB_ZOOM)
MIN_CALIB_ZOOM = 5
MAX_CALIB_ZOOM = 11

MAX_ZOOM_LEVEL = 22


def max_bucket_value(points, bounds, radius, screen_dim):
    """
    Sum weights in buckets of diameter `2 * radius` pixels over a screen
    `screen_dim` pixels wide, return the largest sum.
    """
    bounds_dim = max(bounds.width, bounds.height)
    n_buckets = int(screen_dim / (2 * radius) + 0.5)

    buckets = {}
    max_value = 0.0
    if bounds_dim > 0:
        scale = n_buckets / bounds_dim
    else:
        # every point sits on the same spot
        scale = 0.0

    for point in points:
        key = (math.floor((point.x - bounds.min_x) * scale),
               math.floor((point.y - bounds.min_y) * scale))
        value = buckets.get(key, 0.0) + point.weight
        buckets[key] = value
        if value > max_value:
            max_value = value
    return max_value


def max_intensities(points, bounds, radius):
    """
    Max intensity for every zoom from 0 to MAX_ZOOM_LEVEL.
    Zooms outside the calibration range copy the nearest calibrated value.
    """
    table = [0.0] * (MAX_ZOOM_LEVEL + 1)
    for zoom in range(MIN_CALIB_ZOOM, MAX_CALIB_ZOOM):
        # each zoom level doubles the visible span in pixels
        footprint = int(SCREEN_SIZE * 2 ** (zoom - MIN_CALIB_ZOOM))
        table[zoom] = max_bucket_value(points, bounds, radius, footprint)

    for zoom in range(MIN_CALIB_ZOOM):
        table[zoom] = table[MIN_CALIB_ZOOM]
    for zoom in range(MAX_CALIB_ZOOM, MAX_ZOOM_LEVEL + 1):
        table[zoom] = table[MAX_CALIB_ZOOM - 1]

    logger.debug("Max intensities for radius %s: %s", radius,
                 table[MIN_CALIB_ZOOM:MAX_CALIB_ZOOM])
    return tuple(table)
