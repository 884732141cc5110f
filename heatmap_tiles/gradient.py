import colorsys

from PIL import ImageColor

DEFAULT_COLOR_MAP_SIZE = 1000


def parse_color(value):
    """
    Normalize a color to an (r, g, b, a) tuple.
    Accepts anything PIL.ImageColor understands ("#79BC6A", "red",
    "rgb(255,0,0)") or a 3/4-item sequence of ints.
    """
    if isinstance(value, str):
        rgba = ImageColor.getcolor(value, "RGBA")
    else:
        rgba = tuple(int(c) for c in value)
        if len(rgba) == 3:
            rgba += (255,)
    if len(rgba) != 4 or any(c < 0 or c > 255 for c in rgba):
        raise ValueError(f"Invalid color: {value!r}")
    return rgba


def interpolate_color(color1, color2, ratio):
    """
    Blend two RGBA colors. Alpha is linear, the color itself is
    interpolated in HSV along the shorter way around the hue wheel.
    """
    alpha = int((color2[3] - color1[3]) * ratio + color1[3])
    hsv1 = list(colorsys.rgb_to_hsv(*(c / 255.0 for c in color1[:3])))
    hsv2 = list(colorsys.rgb_to_hsv(*(c / 255.0 for c in color2[:3])))

    if hsv1[0] - hsv2[0] > 0.5:
        hsv2[0] += 1
    elif hsv2[0] - hsv1[0] > 0.5:
        hsv1[0] += 1

    h, s, v = ((b - a) * ratio + a for a, b in zip(hsv1, hsv2))
    r, g, b = colorsys.hsv_to_rgb(h % 1.0, s, v)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255)), alpha


class Gradient:
    """
    Color stops of the heatmap.

    `start_points` are fractions in [0, 1], strictly increasing, one per color.
    Below the first start point the first color fades in from transparent.
    """

    def __init__(self, colors, start_points, color_map_size=DEFAULT_COLOR_MAP_SIZE):
        if len(colors) != len(start_points):
            raise ValueError("colors and start_points should be same length")
        if not colors:
            raise ValueError("No colors have been defined")
        for i, start in enumerate(start_points):
            if not 0 <= start <= 1:
                raise ValueError("start_points should be in the range [0, 1]")
            if i and start <= start_points[i - 1]:
                raise ValueError("start_points should be in increasing order")
        if color_map_size <= 0:
            raise ValueError("color_map_size should be positive")

        self.colors = tuple(parse_color(c) for c in colors)
        self.start_points = tuple(float(s) for s in start_points)
        self.color_map_size = int(color_map_size)

    def _color_intervals(self):
        # index in the color map -> (from color, to color, length in entries)
        size = self.color_map_size
        intervals = {}
        if self.start_points[0] != 0:
            first = self.colors[0]
            transparent = first[:3] + (0,)
            intervals[0] = (transparent, first, size * self.start_points[0])
        for i in range(1, len(self.colors)):
            start = int(size * self.start_points[i - 1])
            length = size * (self.start_points[i] - self.start_points[i - 1])
            intervals[start] = (self.colors[i - 1], self.colors[i], length)
        if self.start_points[-1] != 1:
            last = self.colors[-1]
            start = int(size * self.start_points[-1])
            intervals[start] = (last, last, size - size * self.start_points[-1])
        return intervals

    def generate_color_map(self, opacity):
        """Lookup table of `color_map_size` RGBA tuples, alpha scaled by opacity."""
        intervals = self._color_intervals()
        interval = intervals[0]
        start = 0
        color_map = []
        for i in range(self.color_map_size):
            if i in intervals:
                interval = intervals[i]
                start = i
            color1, color2, length = interval
            ratio = (i - start) / length if length else 0.0
            color_map.append(interpolate_color(color1, color2, ratio))

        if opacity != 1:
            color_map = [c[:3] + (int(c[3] * opacity),) for c in color_map]
        return tuple(color_map)

    def __eq__(self, other):
        if not isinstance(other, Gradient):
            return NotImplemented
        return (self.colors, self.start_points, self.color_map_size) == \
            (other.colors, other.start_points, other.color_map_size)

    def __hash__(self):
        return hash((self.colors, self.start_points, self.color_map_size))

    def __repr__(self):
        return f"Gradient(colors={self.colors}, start_points={self.start_points})"


DEFAULT_GRADIENT = Gradient([(102, 225, 0), (255, 0, 0)], [0.2, 1.0])

TRAFFIC_GRADIENT = Gradient(
    ["#79BC6A", "#BBCF4C", "#EEC20B", "#F29305", "#E50000"],
    [0.0, 0.25, 0.50, 0.75, 1.0],
)

PRESETS = {
    "default": DEFAULT_GRADIENT,
    "traffic": TRAFFIC_GRADIENT,
}


def gradient_from_spec(spec):
    """Resolve a preset name or a {"colors", "start_points"} mapping."""
    if isinstance(spec, Gradient):
        return spec
    if isinstance(spec, str):
        try:
            return PRESETS[spec]
        except KeyError:
            raise ValueError(f"Unknown gradient preset: {spec!r}") from None
    if isinstance(spec, dict):
        try:
            return Gradient(spec["colors"], spec["start_points"],
                            spec.get("color_map_size", DEFAULT_COLOR_MAP_SIZE))
        except KeyError as e:
            raise ValueError(f"Gradient is missing {e.args[0]!r}") from None
    raise ValueError(f"Unsupported gradient: {spec!r}")
