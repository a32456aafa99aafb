"""
Viewer configuration.

Defaults live on ViewerConfig; a settings.json file (next to the package,
or given on the command line) can override any of them, and the command
line overrides the file.
"""

import json
import logging
import os
from dataclasses import dataclass, fields, replace


logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')

RECT_MODES = ('fit', 'fill')
BACKENDS = ('auto', 'cpu', 'gpu')


def _matches_type(value, default):
    """Whether a JSON value can stand in for a field with this default."""
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(default, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))


@dataclass(frozen=True)
class ViewerConfig:
    width: int = 960
    height: int = 600
    device_pixel_ratio: float = 1.0
    max_iter: int = 500
    auto_iterations: bool = True
    max_iter_limit: int = 20000
    render_delay_ms: int = 10
    animation_ms: int = 300
    julia_animation_ms: int = 1200
    rect_mode: str = 'fit'
    supersample: int = 1
    backend: str = 'auto'

    def validate(self):
        """
        Check the values make sense.

        Raises:
            ValueError: On the first bad field
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"window size must be positive, got {self.width}x{self.height}")
        if not self.device_pixel_ratio > 0:
            raise ValueError(f"device_pixel_ratio must be > 0, got {self.device_pixel_ratio}")
        if not 1 <= self.max_iter <= self.max_iter_limit:
            raise ValueError(f"max_iter must be in 1..{self.max_iter_limit}, got {self.max_iter}")
        if self.rect_mode not in RECT_MODES:
            raise ValueError(f"rect_mode must be one of {RECT_MODES}, got {self.rect_mode!r}")
        if self.supersample not in (1, 2):
            raise ValueError(f"supersample must be 1 or 2, got {self.supersample}")
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}, got {self.backend!r}")
        return self


def load_config(path=None, **overrides):
    """
    Build a ViewerConfig from defaults, a JSON settings file and overrides.

    A missing or unreadable file is not an error: a warning is logged and
    the defaults are used.

    Args:
        path: settings.json location (defaults to the one next to the package)
        **overrides: Field values that win over the file; None values are ignored

    Returns:
        A validated ViewerConfig

    Raises:
        ValueError: If the final values are invalid
    """
    config = ViewerConfig()
    known = {f.name for f in fields(ViewerConfig)}

    settings_path = path or DEFAULT_SETTINGS_PATH
    settings = {}
    try:
        with open(settings_path, 'r') as f:
            settings = json.load(f)
    except FileNotFoundError:
        if path is not None:
            logger.warning("Settings file %s not found, using defaults", settings_path)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load %s: %s", settings_path, e)

    if not isinstance(settings, dict):
        logger.warning("Ignoring %s: expected a JSON object", settings_path)
        settings = {}

    unknown = sorted(set(settings) - known)
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))

    values = {}
    for key, value in settings.items():
        if key not in known:
            continue
        default = getattr(config, key)
        if not _matches_type(value, default):
            logger.warning("Ignoring setting %s=%r: expected %s", key, value, type(default).__name__)
            continue
        values[key] = value
    values.update({k: v for k, v in overrides.items() if v is not None})
    return replace(config, **values).validate()
