"""
Application configuration for the particle field.

Values are read from ``config.json`` (next to this module, falling back to
the working directory) and merged over the built-in defaults below, so a
missing or broken file still yields a usable configuration.  Access goes
through ``ConfigLoader()[key]``.

``DEFAULTS`` is the only place the theme palettes and performance presets
are written down; ``config.json`` overrides them only when it names them.
"""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

logger = logging.getLogger("particle_field.config")

CONFIG_FILENAME = 'config.json'
# Colour used for a palette entry that is not a valid #RRGGBB string.
UNPARSEABLE_COLOR = (200, 200, 200)

DEFAULTS: dict[str, Any] = {
    'window_size': [1280, 800],
    'fps_cap': 60,
    'background_color': '#0a0e1a',
    'particle_count': 100,
    'particle_count_bounds': [10, 300],
    'particle_count_step': 10,
    'connection_radius': 150,
    'connection_radius_bounds': [50, 300],
    'connection_radius_step': 10,
    'speed_factor': 1.0,
    'speed_factor_bounds': [0.1, 5.0],
    'speed_factor_step': 0.1,
    'theme': 'blue',
    'themes': {
        'blue': ['#0066ff', '#00c3ff', '#80dfff'],
        'green': ['#00b300', '#33ff33', '#99ff99'],
        'purple': ['#6600cc', '#9933ff', '#cc99ff'],
        'sunset': ['#ff3300', '#ff9900', '#ffcc00'],
        'grayscale': ['#666666', '#999999', '#cccccc'],
    },
    'performance_presets': {
        'low': {'particle_count': 50, 'connection_radius': 100},
        'medium': {'particle_count': 100, 'connection_radius': 150},
        'high': {'particle_count': 200, 'connection_radius': 200},
    },
    'hover_threshold': 50,
    'long_press_ms': 300,
    'touch_release_ms': 1000,
    'pulse_ms': 1000,
    'double_click_ms': 400,
    'log_level': 'INFO',
}


def _config_candidates() -> Iterator[Path]:
    yield Path(__file__).resolve().parent / CONFIG_FILENAME
    yield Path.cwd() / CONFIG_FILENAME


@functools.lru_cache(maxsize=None)
def _load_app_config_dict() -> dict:
    """Parsed ``config.json``; empty when the file is absent or unusable."""
    path = next((p for p in _config_candidates() if p.is_file()), None)
    if path is None:
        logger.debug("No %s found, using built-in defaults", CONFIG_FILENAME)
        return {}
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not an object", path)
        return {}
    return data


def reset_cache() -> None:
    """Forget the cached ``config.json`` so the next loader re-reads it."""
    _load_app_config_dict.cache_clear()


def parse_hex_color(color: str, fallback: tuple[int, int, int] = (255, 255, 255)) -> tuple[int, int, int]:
    """``'#rrggbb'`` to an RGB tuple, or ``fallback`` for anything else."""
    if not isinstance(color, str):
        return fallback
    try:
        r, g, b = bytes.fromhex(color.strip().lstrip('#'))
    except ValueError:
        return fallback
    return r, g, b


def parse_themes(raw: Any) -> dict[str, list[tuple[int, int, int]]]:
    """Theme name to RGB palette; empty or non-list palettes are dropped."""
    if not isinstance(raw, dict):
        return {}
    return {
        str(name): [parse_hex_color(c, fallback=UNPARSEABLE_COLOR) for c in colors]
        for name, colors in raw.items()
        if isinstance(colors, (list, tuple)) and colors
    }


def parse_presets(raw: Any) -> dict[str, tuple[int, float]]:
    """Preset name to ``(particle_count, connection_radius)``; malformed entries are dropped."""
    if not isinstance(raw, dict):
        return {}
    presets: dict[str, tuple[int, float]] = {}
    for name, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        try:
            count = int(entry['particle_count'])
            radius = float(entry['connection_radius'])
        except (KeyError, TypeError, ValueError):
            continue
        presets[str(name)] = (max(0, count), radius)
    return presets


class ConfigLoader:
    """Dictionary-style view over the defaults merged with ``config.json``."""

    def __init__(self, overrides: Optional[dict] = None):
        self._loader: dict[str, Any] = dict(DEFAULTS)
        self._loader.update(_load_app_config_dict())
        if overrides:
            self._loader.update(overrides)

    def __getitem__(self, key: str) -> Any:
        return self._loader[key]

    def __contains__(self, key: str) -> bool:
        return key in self._loader

    def get(self, key: str, default: Any = None) -> Any:
        return self._loader.get(key, default)

    def themes(self) -> dict[str, list[tuple[int, int, int]]]:
        """Every usable theme palette as RGB tuples, never empty."""
        palettes = parse_themes(self._loader.get('themes'))
        if not palettes:
            logger.warning("No usable theme in the configuration, using the built-in themes")
            palettes = parse_themes(DEFAULTS['themes'])
        return palettes

    def presets(self) -> dict[str, tuple[int, float]]:
        """Performance presets as ``name -> (particle_count, connection_radius)``, never empty."""
        presets = parse_presets(self._loader.get('performance_presets'))
        if not presets:
            logger.warning("No usable performance preset in the configuration, using the built-in presets")
            presets = parse_presets(DEFAULTS['performance_presets'])
        return presets

    def background_color(self) -> tuple[int, int, int]:
        return parse_hex_color(self._loader.get('background_color', ''), fallback=(10, 14, 26))


def setup_logging(loader: Optional[ConfigLoader] = None) -> None:
    """Configure the root logger from the ``log_level`` config key."""
    loader = loader or ConfigLoader()
    level_name = str(loader.get('log_level', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
