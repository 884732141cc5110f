import json
import logging
import re
import threading
import urllib.parse as urlparse
from collections import OrderedDict
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from heatmap_tiles.dataset import parse_points
from heatmap_tiles.gradient import gradient_from_spec

logger = logging.getLogger(__name__)

TILE_PATH = re.compile(r"^/tiles/(-?\d+)/(-?\d+)/(-?\d+)\.png$")


class TileCache:
    """Rendered tiles keyed by (zoom, x, y); least recently used go first."""

    def __init__(self, max_size=256):
        self.max_size = max_size
        self._tiles = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            if key not in self._tiles:
                return None
            self._tiles.move_to_end(key)
            return self._tiles[key]

    def put(self, key, tile):
        if self.max_size <= 0:
            return
        with self._lock:
            self._tiles[key] = tile
            self._tiles.move_to_end(key)
            while len(self._tiles) > self.max_size:
                self._tiles.popitem(last=False)

    def clear(self):
        with self._lock:
            self._tiles.clear()

    def __len__(self):
        with self._lock:
            return len(self._tiles)


class TileRequestHandler(BaseHTTPRequestHandler):
    server_version = "HeatmapTiles/1.0"

    def do_GET(self):
        parsed_url = urlparse.urlparse(self.path)

        if parsed_url.path == "/settings":
            self._send_json(200, self._settings())
            return

        match = TILE_PATH.match(parsed_url.path)
        if match:
            zoom, x, y = (int(v) for v in match.groups())
            self._send_tile(zoom, x, y)
        else:
            self._send_text(404, "Not Found")

    def do_POST(self):
        parsed_url = urlparse.urlparse(self.path)
        content_length = int(self.headers.get("Content-Length", 0))
        post_body = self.rfile.read(content_length)
        if parsed_url.path not in ("/data", "/settings"):
            self._send_text(404, "Not Found")
            return

        try:
            data = json.loads(post_body.decode("utf-8"))
            if parsed_url.path == "/data":
                self.server.provider.set_weighted_data(parse_points(data))
            else:
                self._apply_settings(data)
        except (ValueError, TypeError) as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning("Rejected %s: %s", parsed_url.path, e)
            self._send_text(400, f"Error parsing data: {e}")
            return

        self.server.tile_cache.clear()
        self._send_json(200, self._settings())

    def _send_tile(self, zoom, x, y):
        if zoom < 0:
            self._send_text(400, "Zoom must not be negative")
            return

        key = (zoom, x, y)
        tile = self.server.tile_cache.get(key)
        if tile is None:
            tile = self.server.provider.render(x, y, zoom)
            if tile is None:
                self.send_response(204)
                self.end_headers()
                return
            self.server.tile_cache.put(key, tile)

        self.send_response(200)
        self.send_header("Content-Type", "image/png")
        self.send_header("Content-Length", str(len(tile.data)))
        self.end_headers()
        self.wfile.write(tile.data)

    def _apply_settings(self, data):
        if not isinstance(data, dict):
            raise ValueError("Settings must be a JSON object.")
        changes = {}
        if "radius" in data:
            changes["radius"] = int(data["radius"])
        if "opacity" in data:
            changes["opacity"] = float(data["opacity"])
        if "max_intensity" in data:
            changes["max_intensity"] = float(data["max_intensity"])
        if "gradient" in data:
            changes["gradient"] = gradient_from_spec(data["gradient"])
        self.server.provider.configure(**changes)

    def _settings(self):
        provider = self.server.provider
        config = provider.config
        return {
            "radius": config.radius,
            "opacity": config.opacity,
            "smoothing": config.smoothing,
            "max_intensity": config.max_intensity,
            "points": provider.point_count,
        }

    def _send_json(self, status, payload):
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_text(self, status, message):
        body = message.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def create_server(provider, host="127.0.0.1", port=8080, cache_size=256):
    httpd = ThreadingHTTPServer((host, port), TileRequestHandler)
    httpd.provider = provider
    httpd.tile_cache = TileCache(cache_size)
    return httpd


def run_server(provider, host="127.0.0.1", port=8080, cache_size=256):
    httpd = create_server(provider, host, port, cache_size)
    logger.info("Tile server started at http://%s:%s/tiles/{z}/{x}/{y}.png",
                host, httpd.server_address[1])
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down tile server")
    finally:
        httpd.server_close()
