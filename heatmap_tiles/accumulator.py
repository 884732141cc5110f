"""
Kernel convolution and coloring of a single heatmap tile.

Every point spreads its weight over a disc of `radius` pixels. Where discs
overlap, intensities add up (saturating at 1) and weights blend, weighted by
intensity. The resulting grid is turned into RGBA pixels with a gradient
lookup table.
"""

import io
import logging
import math

from PIL import Image

logger = logging.getLogger(__name__)

TILE_DIM = 512

# Kernel contributions at or below this are dropped.
KERNEL_CUTOFF = 0.01

# Shape of the falloff: the kernel fades out at roughly `radius` pixels.
KERNEL_SHAPE = 3

TRANSPARENT = (0, 0, 0, 0)


def kernel_intensity(distance, radius):
    return math.exp(-distance * distance / (radius * radius / KERNEL_SHAPE))


def build_kernel(radius):
    """
    Offsets (i, j) in [-radius, radius) with their intensity, skipping the
    negligible ones. Computed once per radius and reused for every point.
    """
    kernel = []
    for i in range(-radius, radius):
        for j in range(-radius, radius):
            intensity = kernel_intensity(math.hypot(i, j), radius)
            if intensity > KERNEL_CUTOFF:
                kernel.append((i, j, intensity))
    return tuple(kernel)


def pixel_weight(intensity, point_weight, smoothing):
    """Point weight decayed by the falloff, never below 1."""
    return max(intensity * smoothing + (point_weight - smoothing), 1)


def merge_contributions(first, second):
    """Combine two (intensity, weight) contributions to the same pixel."""
    intensity1, weight1 = first
    intensity2, weight2 = second
    weight = (intensity1 * weight1 + intensity2 * weight2) / (intensity1 + intensity2)
    return min(intensity1 + intensity2, 1.0), weight


class PixelAccumulator:
    """
    Dense per-pixel (intensity, weight) grid of one tile, stored row-major
    in flat lists. An intensity of 0 marks an empty pixel.
    """

    __slots__ = ("dim", "intensity", "weight")

    def __init__(self, dim=TILE_DIM):
        self.dim = dim
        self.intensity = [0.0] * (dim * dim)
        self.weight = [0.0] * (dim * dim)

    def add(self, x, y, intensity, weight):
        index = y * self.dim + x
        current = self.intensity[index]
        if current > 0:
            self.intensity[index], self.weight[index] = merge_contributions(
                (current, self.weight[index]), (intensity, weight))
        else:
            self.intensity[index] = intensity
            self.weight[index] = weight

    def filled(self):
        return sum(1 for value in self.intensity if value > 0)


def convolve(accumulator, points, origin_x, origin_y, tile_width, kernel, smoothing):
    """
    Spread every point over the accumulator.

    `origin_x`/`origin_y` is the tile's top-left corner in world units, so a
    point's pixel is (coord - origin) * dim / tile_width. Points whose kernel
    reaches the tile from the padding area are clipped at the tile edge.
    A point that fails to convolve is logged and skipped.
    """
    dim = accumulator.dim
    scale = dim / tile_width
    for point in points:
        try:
            px = math.floor((point.x - origin_x) * scale)
            py = math.floor((point.y - origin_y) * scale)
            for i, j, intensity in kernel:
                x = px + i
                y = py + j
                if 0 <= x < dim and 0 <= y < dim:
                    accumulator.add(x, y, intensity,
                                    pixel_weight(intensity, point.weight, smoothing))
        except Exception:
            logger.warning("Exception while drawing point %r, skipping it", point,
                           exc_info=True)


def color_index(weight, color_map_size, max_intensity):
    """Position of `weight` in the color map; overflow clamps to the last entry."""
    last = color_map_size - 1
    if max_intensity <= 0:
        return last
    index = int(weight * last / max_intensity)
    return min(index, last)


def colorize(accumulator, color_map, max_intensity):
    """
    RGBA image of the accumulator. The color comes from the weight, the
    color's alpha is scaled by the pixel intensity.
    """
    size = len(color_map)
    pixels = []
    for intensity, weight in zip(accumulator.intensity, accumulator.weight):
        if intensity > 0:
            r, g, b, a = color_map[color_index(weight, size, max_intensity)]
            pixels.append((r, g, b, int(intensity * a)))
        else:
            pixels.append(TRANSPARENT)

    image = Image.new("RGBA", (accumulator.dim, accumulator.dim), TRANSPARENT)
    image.putdata(pixels)
    return image


def encode_png(image):
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
