import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_str(name, default):
    value = os.getenv(name)
    return value if value not in (None, "") else default


def _env_number(name, default, cast):
    value = os.getenv(name)
    if value in (None, ""):
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def _env_log_level(name, default):
    value = _env_str(name, default).upper()
    if not isinstance(logging.getLevelName(value), int):
        raise ValueError(f"{name} must be a logging level name, got {value!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Server and render defaults, read from the environment (.env supported)."""

    host: str = "127.0.0.1"
    port: int = 8080
    data_path: Optional[str] = None
    radius: int = 20
    opacity: float = 0.7
    smoothing: float = 10.0
    max_intensity: float = 0.0
    gradient: str = "default"
    cache_size: int = 256
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path=None):
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            host=_env_str("HEATMAP_HOST", defaults.host),
            port=_env_number("HEATMAP_PORT", defaults.port, int),
            data_path=_env_str("HEATMAP_DATA", defaults.data_path),
            radius=_env_number("HEATMAP_RADIUS", defaults.radius, int),
            opacity=_env_number("HEATMAP_OPACITY", defaults.opacity, float),
            smoothing=_env_number("HEATMAP_SMOOTHING", defaults.smoothing, float),
            max_intensity=_env_number("HEATMAP_MAX_INTENSITY", defaults.max_intensity, float),
            gradient=_env_str("HEATMAP_GRADIENT", defaults.gradient),
            cache_size=_env_number("HEATMAP_CACHE_SIZE", defaults.cache_size, int),
            log_level=_env_log_level("HEATMAP_LOG_LEVEL", defaults.log_level),
        )
