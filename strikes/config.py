"""
Configuration settings for the Lightning Strike Mapper
"""

import copy
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

from .models import CalibrationBounds, PixelFrame

# Data paths
OUTPUT = {
    'snapshot_file': Path("api") / "datos_rayos.json",
    'map_file': Path("output") / "lightning_map.html",
    'export_file': Path("output") / "rayos_export.json"
}

# Geographic extent of the source image (empirical calibration)
CALIBRATION_BOUNDS = {
    'north': 14.2,
    'south': 0.2,
    'west': -75.8,
    'east': -54.9
}

# Dimensions of the source image in pixels
PIXEL_FRAME = {
    'width': 800,
    'height': 600
}

# Age class convention of the source ("lgt-<n>" is n periods old)
AGE_SETTINGS = {
    'minutes_per_bucket': 5,
    'max_bucket': 9,
    'class_prefix': 'lgt-'
}

# Upstream page settings
SOURCE = {
    'url_template': "https://meteologix.com/ve/lightning/venezuela/{slug}.html",
    'proxy_url': "https://api.allorigins.win/get",
    'use_proxy': True,
    'snapshot_url': None,
    'timeout': 20,             # seconds
    'chunk_size': 8192,
    'marker_selector': '.ap.lgt',
    'top_attribute': 'data-top',
    'left_attribute': 'data-left',
    'user_agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36'
    )
}

# Output precision of coordinates
PRECISION = 4

# Visualization settings
VIS_SETTINGS = {
    'map': {
        'default_center': [8.0, -66.0],  # Venezuela
        'default_zoom': 5,
        'max_zoom': 20
    },
    'tiles': {
        'url': 'https://{s}.google.com/vt/lyrs=s,h&x={x}&y={y}&z={z}',
        'subdomains': ['mt0', 'mt1', 'mt2', 'mt3'],
        'attribution': '&copy; Google'
    },
    'age_scale': [
        # (max age category, color, label); category = age_minutes // 5
        (1, '#ff0000', '0-5 min'),
        (3, '#ff6600', '5-15 min'),
        (6, '#ffff00', '15-30 min'),
        (9, '#ffffff', '30-45 min')
    ],
    'oldest': ('#87CEEB', '45-60 min'),
    'marker': {
        'symbol': '⚡',
        'font_size': 20,
        'icon_size': [25, 25],
        'icon_anchor': [12, 12]
    }
}

# Refresh schedule for the interactive session
SCHEDULE = {
    'refresh_interval': 300  # seconds
}

# Logging configuration
LOGGING = {
    'level': 'INFO',
    'format': '%(asctime)s - %(levelname)s - %(message)s',
    'file': None
}

DEFAULTS = {
    'output': OUTPUT,
    'calibration_bounds': CALIBRATION_BOUNDS,
    'pixel_frame': PIXEL_FRAME,
    'age': AGE_SETTINGS,
    'source': SOURCE,
    'precision': PRECISION,
    'vis': VIS_SETTINGS,
    'schedule': SCHEDULE,
    'logging': LOGGING
}

CONFIG_ENV_VAR = 'STRIKES_CONFIG'

logger = logging.getLogger(__name__)


def _merge(base: Dict, overrides: Dict) -> Dict:
    """Recursively merge overrides into a copy of base"""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(path: Optional[Union[str, Path]] = None) -> Dict:
    """
    Load settings, applying an optional YAML override file

    The override file only needs the keys it changes, e.g. a re-calibration:

        calibration_bounds:
          north: 14.5

    Args:
        path: Override file. Falls back to the STRIKES_CONFIG environment variable.

    Returns:
        Nested settings dictionary
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR)
    if not path:
        return copy.deepcopy(DEFAULTS)

    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        overrides = yaml.safe_load(f) or {}

    if not isinstance(overrides, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    unknown = set(overrides) - set(DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown configuration sections in {path}: {sorted(unknown)}")

    settings = _merge(DEFAULTS, overrides)
    for key in ('snapshot_file', 'map_file', 'export_file'):
        settings['output'][key] = Path(settings['output'][key])

    logger.info(f"Configuration loaded from {path}")
    return settings


def get_bounds(settings: Optional[Dict] = None) -> CalibrationBounds:
    """Build the calibration bounds from settings"""
    settings = settings or DEFAULTS
    return CalibrationBounds.from_dict(settings['calibration_bounds'])


def get_frame(settings: Optional[Dict] = None) -> PixelFrame:
    """Build the pixel frame from settings"""
    settings = settings or DEFAULTS
    return PixelFrame.from_dict(settings['pixel_frame'])


def configure_logging(settings: Optional[Dict] = None) -> None:
    """Configure root logging from the LOGGING section"""
    log_settings = (settings or DEFAULTS)['logging']
    handlers = [logging.StreamHandler()]
    if log_settings.get('file'):
        log_file = Path(log_settings['file'])
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, str(log_settings['level']).upper(), logging.INFO),
        format=log_settings['format'],
        handlers=handlers
    )
