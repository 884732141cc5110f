from heatmap_tiles.geometry import WORLD_WIDTH, Bounds, WeightedPoint
from heatmap_tiles.gradient import DEFAULT_GRADIENT, Gradient
from heatmap_tiles.tile_provider import (
    Builder,
    HeatmapTileProvider,
    RenderConfig,
    Tile,
)

__all__ = [
    "WORLD_WIDTH",
    "Bounds",
    "WeightedPoint",
    "DEFAULT_GRADIENT",
    "Gradient",
    "Builder",
    "HeatmapTileProvider",
    "RenderConfig",
    "Tile",
]
