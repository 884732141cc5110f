"""
Heatmap tile provider.

A provider owns one immutable render state (dataset, spatial index, color map,
per-zoom max intensities). `render` reads that state once, so any number of
tiles can be rendered in parallel. Setters build a replacement state and swap
it in; tiles already rendered are not touched, the caller clears its own tile
cache after a setter.
"""

import logging
import math
import threading
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from heatmap_tiles.accumulator import (
    TILE_DIM,
    PixelAccumulator,
    build_kernel,
    colorize,
    convolve,
    encode_png,
)
from heatmap_tiles.geometry import WORLD_WIDTH, Bounds, WeightedPoint
from heatmap_tiles.gradient import DEFAULT_GRADIENT, Gradient
from heatmap_tiles.intensity import max_intensities
from heatmap_tiles.quadtree import PointQuadTree

logger = logging.getLogger(__name__)

DEFAULT_RADIUS = 20
MIN_RADIUS = 10
DEFAULT_OPACITY = 0.7
DEFAULT_GRADIENT_SMOOTHING = 10.0


@dataclass(frozen=True)
class Tile:
    width: int
    height: int
    data: bytes


def _check_radius(radius):
    if radius < MIN_RADIUS:
        raise ValueError(f"Radius must be at least {MIN_RADIUS}, got {radius}.")


def _check_opacity(opacity):
    if not 0 <= opacity <= 1:
        raise ValueError(f"Opacity must be in range [0, 1], got {opacity}.")


def _check_max_intensity(max_intensity):
    if not max_intensity >= 0:
        raise ValueError(f"Maximum intensity must not be negative, got {max_intensity}.")


def _check_smoothing(smoothing):
    if not smoothing >= 0:
        raise ValueError(f"Gradient smoothing must not be negative, got {smoothing}.")


@dataclass(frozen=True)
class RenderConfig:
    """Validated render parameters. `max_intensity` 0 means auto-calibrate."""

    radius: int = DEFAULT_RADIUS
    gradient: Gradient = DEFAULT_GRADIENT
    opacity: float = DEFAULT_OPACITY
    smoothing: float = DEFAULT_GRADIENT_SMOOTHING
    max_intensity: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "radius", int(self.radius))
        _check_radius(self.radius)
        _check_opacity(self.opacity)
        _check_smoothing(self.smoothing)
        _check_max_intensity(self.max_intensity)
        if not isinstance(self.gradient, Gradient):
            raise ValueError(f"Expected a Gradient, got {self.gradient!r}.")


@dataclass(frozen=True)
class _RenderState:
    config: RenderConfig
    points: Tuple[WeightedPoint, ...]
    bounds: Bounds
    tree: PointQuadTree = field(repr=False)
    color_map: Tuple[Tuple[int, int, int, int], ...] = field(repr=False)
    kernel: tuple = field(repr=False)
    # None while a fixed max intensity is in use
    max_intensities: Optional[Tuple[float, ...]] = None

    def max_intensity_for(self, zoom):
        if self.config.max_intensity > 0:
            return self.config.max_intensity
        table = self.max_intensities
        return table[max(0, min(zoom, len(table) - 1))]


def wrap_data(lat_lngs):
    """Turn (lat, lng) pairs into points of weight 1."""
    return [WeightedPoint.from_lat_lng(lat, lng) for lat, lng in lat_lngs]


def _build_index(points):
    bounds = Bounds.enclosing(points)
    tree = PointQuadTree(bounds)
    for point in points:
        tree.add(point)
    return bounds, tree


def _calibrate(config, points, bounds):
    if config.max_intensity > 0:
        return None
    return max_intensities(points, bounds, config.radius)


class HeatmapTileProvider:
    def __init__(self, points, config=None):
        config = config or RenderConfig()
        points = tuple(points)
        if not points:
            raise ValueError("No input points.")

        bounds, tree = _build_index(points)
        self._lock = threading.Lock()
        self._state = _RenderState(
            config=config,
            points=points,
            bounds=bounds,
            tree=tree,
            color_map=config.gradient.generate_color_map(config.opacity),
            kernel=build_kernel(config.radius),
            max_intensities=_calibrate(config, points, bounds),
        )
        logger.info("Heatmap provider ready: %d points, radius %d",
                    len(points), config.radius)

    @property
    def config(self):
        return self._state.config

    @property
    def bounds(self):
        return self._state.bounds

    @property
    def point_count(self):
        return len(self._state.points)

    @property
    def max_intensities(self):
        return self._state.max_intensities

    def max_intensity_for(self, zoom):
        return self._state.max_intensity_for(zoom)

    def render(self, x, y, zoom):
        """
        Render tile (x, y) at `zoom`.

        Returns a Tile with PNG data, or None when no point influences the tile.
        """
        state = self._state
        radius = state.config.radius
        try:
            tile_width = math.ldexp(WORLD_WIDTH, -zoom)
            min_x = x * tile_width
            min_y = y * tile_width
        except OverflowError:
            # zoom or coordinates past float range, nothing of the world is there
            return None
        if tile_width == 0:
            # zoom too deep for a float tile width
            return None

        # kernel radius in world units at this zoom
        padding = radius * tile_width / TILE_DIM
        extended = Bounds(min_x - padding, min_x + tile_width + padding,
                          min_y - padding, min_y + tile_width + padding)

        # parts of the search area that spill across the antimeridian, with
        # the x offset that moves their points next to this tile
        wrapped = []
        if extended.min_x < 0:
            region = Bounds(extended.min_x + WORLD_WIDTH,
                            min(extended.max_x + WORLD_WIDTH, WORLD_WIDTH),
                            extended.min_y, extended.max_y)
            wrapped.append((region, -WORLD_WIDTH))
        if extended.max_x > WORLD_WIDTH:
            region = Bounds(max(extended.min_x - WORLD_WIDTH, 0.0),
                            extended.max_x - WORLD_WIDTH,
                            extended.min_y, extended.max_y)
            wrapped.append((region, WORLD_WIDTH))

        padded = state.bounds.padded(padding)
        if not extended.intersects(padded) and \
                not any(region.intersects(padded) for region, _ in wrapped):
            return None

        points = state.tree.search(extended)
        wrapped_points = [(state.tree.search(region), offset) for region, offset in wrapped]
        if not points and not any(found for found, _ in wrapped_points):
            return None

        accumulator = PixelAccumulator(TILE_DIM)
        smoothing = state.config.smoothing
        convolve(accumulator, points, min_x, min_y, tile_width, state.kernel, smoothing)
        for found, offset in wrapped_points:
            # a point at x lands at x + offset
            convolve(accumulator, found, min_x - offset, min_y, tile_width,
                     state.kernel, smoothing)

        image = colorize(accumulator, state.color_map, state.max_intensity_for(zoom))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Rendered tile %s/%s/%s from %d points, %d pixels filled", zoom, x, y,
                         len(points) + sum(len(found) for found, _ in wrapped_points),
                         accumulator.filled())
        return Tile(TILE_DIM, TILE_DIM, encode_png(image))

    def set_weighted_data(self, points):
        """Replace the dataset. Rebuilds the index, bounds and max intensities."""
        points = tuple(points)
        if not points:
            raise ValueError("No input points.")
        bounds, tree = _build_index(points)
        with self._lock:
            state = self._state
            self._state = replace(
                state,
                points=points,
                bounds=bounds,
                tree=tree,
                max_intensities=_calibrate(state.config, points, bounds),
            )
        logger.info("Heatmap data replaced: %d points", len(points))

    def set_data(self, lat_lngs):
        self.set_weighted_data(wrap_data(lat_lngs))

    def configure(self, **changes):
        """
        Change several render settings in one step. Accepts the RenderConfig
        fields (radius, gradient, opacity, smoothing, max_intensity). All values
        are validated first; on error the provider keeps its previous settings.
        """
        with self._lock:
            state = self._state
            config = replace(state.config, **changes)
            old = state.config

            color_map = state.color_map
            if config.gradient != old.gradient or config.opacity != old.opacity:
                color_map = config.gradient.generate_color_map(config.opacity)

            kernel = state.kernel
            table = state.max_intensities
            if config.radius != old.radius:
                kernel = build_kernel(config.radius)
                table = _calibrate(config, state.points, state.bounds)
            elif table is None:
                table = _calibrate(config, state.points, state.bounds)

            self._state = replace(state, config=config, color_map=color_map,
                                  kernel=kernel, max_intensities=table)
        logger.info("Render settings changed: %s", ", ".join(sorted(changes)))

    def set_radius(self, radius):
        self.configure(radius=radius)

    def set_gradient(self, gradient):
        self.configure(gradient=gradient)

    def set_opacity(self, opacity):
        self.configure(opacity=opacity)

    def set_max_intensity(self, max_intensity):
        """Fix the intensity mapped to the top of the gradient; 0 auto-calibrates."""
        self.configure(max_intensity=max_intensity)


class Builder:
    """
    Collects provider options. Either `data` or `weighted_data` must be
    called before `build`.
    """

    def __init__(self):
        self._data = None
        self._radius = DEFAULT_RADIUS
        self._gradient = DEFAULT_GRADIENT
        self._opacity = DEFAULT_OPACITY
        self._max_intensity = 0.0
        self._smoothing = DEFAULT_GRADIENT_SMOOTHING

    def data(self, lat_lngs):
        return self.weighted_data(wrap_data(lat_lngs))

    def weighted_data(self, points):
        points = tuple(points)
        if not points:
            raise ValueError("No input points.")
        self._data = points
        return self

    def radius(self, value):
        _check_radius(value)
        self._radius = value
        return self

    def gradient(self, value):
        self._gradient = value
        return self

    def opacity(self, value):
        _check_opacity(value)
        self._opacity = value
        return self

    def max_intensity(self, value):
        _check_max_intensity(value)
        self._max_intensity = value
        return self

    def gradient_smoothing(self, value):
        _check_smoothing(value)
        self._smoothing = value
        return self

    def build(self):
        if self._data is None:
            raise RuntimeError("No input data: call data() or weighted_data() before build().")
        config = RenderConfig(
            radius=self._radius,
            gradient=self._gradient,
            opacity=self._opacity,
            smoothing=self._smoothing,
            max_intensity=self._max_intensity,
        )
        return HeatmapTileProvider(self._data, config)
