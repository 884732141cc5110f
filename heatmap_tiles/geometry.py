import math
from dataclasses import dataclass

# Size of the world in projected units. Tiles and padding are measured
# relative to it.
WORLD_WIDTH = 1.0

DEFAULT_WEIGHT = 1.0

# sin(lat) is clamped inside (-1, 1) so the poles project to finite y.
_MAX_SIN_LAT = 0.9999


def project(lat, lng):
    """
    Spherical Mercator projection of a lat/lng pair into world units.
    x grows eastwards from 0 (lng -180) to WORLD_WIDTH (lng 180),
    y grows southwards from 0 to WORLD_WIDTH.
    """
    x = lng / 360.0 + 0.5
    siny = math.sin(math.radians(lat))
    # NaN passes through the clamp
    siny = max(min(siny, _MAX_SIN_LAT), -_MAX_SIN_LAT)
    y = 0.5 * math.log((1 + siny) / (1 - siny)) / -(2 * math.pi) + 0.5
    return x * WORLD_WIDTH, y * WORLD_WIDTH


@dataclass(frozen=True)
class WeightedPoint:
    """A projected point with the weight it adds to the heat signal."""

    x: float
    y: float
    weight: float = DEFAULT_WEIGHT

    def __post_init__(self):
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Point coordinates must be finite, got ({self.x}, {self.y}).")
        if not self.weight >= 0:
            object.__setattr__(self, "weight", DEFAULT_WEIGHT)

    @classmethod
    def from_lat_lng(cls, lat, lng, weight=DEFAULT_WEIGHT):
        x, y = project(lat, lng)
        return cls(x, y, weight)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle in world units, edges inclusive."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def mid_x(self):
        return (self.min_x + self.max_x) / 2

    @property
    def mid_y(self):
        return (self.min_y + self.max_y) / 2

    @property
    def width(self):
        return self.max_x - self.min_x

    @property
    def height(self):
        return self.max_y - self.min_y

    def contains(self, x, y):
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def contains_bounds(self, other):
        return (other.min_x >= self.min_x and other.max_x <= self.max_x
                and other.min_y >= self.min_y and other.max_y <= self.max_y)

    def intersects(self, other):
        return (self.min_x <= other.max_x and other.min_x <= self.max_x
                and self.min_y <= other.max_y and other.min_y <= self.max_y)

    def padded(self, padding):
        return Bounds(self.min_x - padding, self.max_x + padding,
                      self.min_y - padding, self.max_y + padding)

    @classmethod
    def enclosing(cls, points):
        """Smallest bounds holding every point. `points` must not be empty."""
        iterator = iter(points)
        try:
            first = next(iterator)
        except StopIteration:
            raise ValueError("Cannot compute bounds of an empty point set.") from None

        min_x = max_x = first.x
        min_y = max_y = first.y
        for point in iterator:
            if point.x < min_x:
                min_x = point.x
            if point.x > max_x:
                max_x = point.x
            if point.y < min_y:
                min_y = point.y
            if point.y > max_y:
                max_y = point.y
        return cls(min_x, max_x, min_y, max_y)
