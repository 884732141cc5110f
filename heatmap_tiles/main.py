import argparse
import logging
import sys
import time

from heatmap_tiles.dataset import SAMPLE_DATA, load_points, random_walk_points
from heatmap_tiles.gradient import PRESETS, gradient_from_spec
from heatmap_tiles.server import run_server
from heatmap_tiles.settings import Settings
from heatmap_tiles.tile_provider import Builder

logger = logging.getLogger("heatmap_tiles")

# Krakow, where the sample dataset lives
RANDOM_CENTER = (50.061389, 19.938333)


def parse_args(settings, argv=None):
    """Parse CLI arguments; defaults come from the environment settings."""

    parser = argparse.ArgumentParser(
        description="Serve or render weighted heatmap tiles."
    )
    parser.add_argument("--data", default=settings.data_path,
                        help="JSON dataset (defaults to the bundled sample)")
    parser.add_argument("--random", type=int, default=0, metavar="N",
                        help="use N random-walk points instead of a dataset file")
    parser.add_argument("--radius", type=int, default=settings.radius)
    parser.add_argument("--opacity", type=float, default=settings.opacity)
    parser.add_argument("--smoothing", type=float, default=settings.smoothing)
    parser.add_argument("--max-intensity", type=float, default=settings.max_intensity)
    parser.add_argument("--gradient", choices=sorted(PRESETS), default=settings.gradient)

    commands = parser.add_subparsers(dest="command")
    serve = commands.add_parser("serve", help="run the tile server (default)")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    serve.add_argument("--cache-size", type=int, default=settings.cache_size)

    render = commands.add_parser("render", help="render a single tile to a PNG file")
    render.add_argument("zoom", type=int)
    render.add_argument("x", type=int)
    render.add_argument("y", type=int)
    render.add_argument("-o", "--output", default="tile.png")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "serve"
        args.host = settings.host
        args.port = settings.port
        args.cache_size = settings.cache_size
    return args


def load_dataset(args):
    if args.random > 0:
        walkers = max(1, args.random // 50)
        return random_walk_points(*RANDOM_CENTER, num_walkers=walkers,
                                  points_per_walker=max(1, args.random // walkers))
    return load_points(args.data or SAMPLE_DATA)


def build_provider(args, points):
    return (
        Builder()
        .weighted_data(points)
        .radius(args.radius)
        .opacity(args.opacity)
        .gradient_smoothing(args.smoothing)
        .max_intensity(args.max_intensity)
        .gradient(gradient_from_spec(args.gradient))
        .build()
    )


def render_tile(provider, args):
    start_time = time.time()
    tile = provider.render(args.x, args.y, args.zoom)
    elapsed = time.time() - start_time
    if tile is None:
        logger.warning("Tile %s/%s/%s is empty, nothing written", args.zoom, args.x, args.y)
        return 1

    with open(args.output, "wb") as f:
        f.write(tile.data)
    logger.info("Tile %s/%s/%s rendered in %.2f s, saved to %s",
                args.zoom, args.x, args.y, elapsed, args.output)
    return 0


def main(argv=None):
    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logging.basicConfig(format=log_format)
        logger.error("Invalid environment: %s", e)
        return 2
    logging.basicConfig(level=settings.log_level, format=log_format)
    args = parse_args(settings, argv)

    try:
        points = load_dataset(args)
        provider = build_provider(args, points)
    except (OSError, ValueError) as e:
        logger.error("Cannot start: %s", e)
        return 2

    if args.command == "render":
        return render_tile(provider, args)

    run_server(provider, host=args.host, port=args.port, cache_size=args.cache_size)
    return 0


if __name__ == "__main__":
    sys.exit(main())
