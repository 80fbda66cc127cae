"""
Render configuration.

A render is fully described by a RenderConfig value: the region of the
complex plane to sample, the raster size, the iteration budget and the
number of worker threads. Nothing in the package reads configuration from
module globals; every component receives what it needs from the config
passed to render_field().

Settings can also be loaded from a JSON file, e.g.:

    {
        "window": [-2.5, 1.0, -2.0, 2.0],
        "width": 1750,
        "height": 2000,
        "max_iter": 60,
        "workers": 30
    }
"""

import json
import math
import os
from dataclasses import dataclass, field, replace

from .errors import ConfigurationError


@dataclass(frozen=True)
class PlaneWindow:
    """Bounds of the sampled region of the complex plane."""

    x_min: float = -2.5
    x_max: float = 1.0
    y_min: float = -2.0
    y_max: float = 2.0

    @property
    def span_x(self):
        return self.x_max - self.x_min

    @property
    def span_y(self):
        return self.y_max - self.y_min

    def as_tuple(self):
        return (self.x_min, self.x_max, self.y_min, self.y_max)

    def validate(self):
        for name in ('x_min', 'x_max', 'y_min', 'y_max'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a real number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value!r}")
        if self.x_min >= self.x_max:
            raise ConfigurationError(
                f"x_min ({self.x_min}) must be smaller than x_max ({self.x_max})"
            )
        if self.y_min >= self.y_max:
            raise ConfigurationError(
                f"y_min ({self.y_min}) must be smaller than y_max ({self.y_max})"
            )
        return self

    @classmethod
    def from_value(cls, value):
        """Build a window from a 4-sequence or a mapping of bound names."""
        if isinstance(value, PlaneWindow):
            return value
        if isinstance(value, dict):
            unknown = set(value) - {'x_min', 'x_max', 'y_min', 'y_max'}
            if unknown:
                raise ConfigurationError(f"Unknown window keys: {sorted(unknown)}")
            return cls(**value)
        try:
            x_min, x_max, y_min, y_max = value
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"window must be four numbers (x_min, x_max, y_min, y_max), got {value!r}"
            ) from None
        return cls(x_min, x_max, y_min, y_max)


# Defaults of the reference render
DEFAULT_WINDOW = PlaneWindow()
DEFAULT_WIDTH = 1750
DEFAULT_HEIGHT = 2000
DEFAULT_MAX_ITER = 60
DEFAULT_WORKERS = 30

_CONFIG_KEYS = ('window', 'width', 'height', 'max_iter', 'workers')


def _check_positive_int(name, value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class RenderConfig:
    """
    Everything a single render pass needs.

    Attributes:
        window: Region of the complex plane mapped onto the buffer
        width, height: Output buffer dimensions in pixels
        max_iter: Iteration budget per sample
        workers: Number of concurrent worker threads
    """

    window: PlaneWindow = field(default_factory=PlaneWindow)
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    max_iter: int = DEFAULT_MAX_ITER
    workers: int = DEFAULT_WORKERS

    @property
    def samples(self):
        return self.width * self.height

    def validate(self):
        """Raise ConfigurationError if any value is unusable; return self otherwise."""
        if not isinstance(self.window, PlaneWindow):
            raise ConfigurationError(f"window must be a PlaneWindow, got {self.window!r}")
        self.window.validate()
        _check_positive_int('width', self.width)
        _check_positive_int('height', self.height)
        _check_positive_int('max_iter', self.max_iter)
        _check_positive_int('workers', self.workers)
        return self

    def with_overrides(self, **overrides):
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if 'window' in changes:
            changes['window'] = PlaneWindow.from_value(changes['window'])
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data):
        """Build a config from a settings mapping; missing keys use the defaults."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings must be a JSON object, got {type(data).__name__}")
        unknown = set(data) - set(_CONFIG_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown settings keys: {sorted(unknown)}")
        return cls().with_overrides(**data)


def load_settings(path):
    """
    Load settings from a JSON file.

    Returns:
        The decoded settings mapping, or None if the file does not exist.

    Raises:
        ConfigurationError if the file cannot be read or is not valid JSON.
    """
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not parse settings file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read settings file {path}: {e}") from e


def load_config(path=None, **overrides):
    """
    Build a RenderConfig from an optional settings file plus overrides.

    Overrides win over the file, which wins over the defaults.
    """
    config = RenderConfig()
    if path is not None:
        settings = load_settings(path)
        if settings is None:
            raise ConfigurationError(f"Settings file not found: {path}")
        config = RenderConfig.from_dict(settings)
    return config.with_overrides(**overrides)
