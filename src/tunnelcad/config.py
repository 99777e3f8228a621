"""Sweep sampling options with YAML configuration support.

Options are resolved from, in priority order:

1. An explicit path passed to :func:`load_options`
2. The file named by the ``TUNNELCAD_CONFIG`` environment variable
3. The user config file (``~/.config/tunnelcad/options.yaml``)
4. Built-in defaults

Explicit ``overrides`` (e.g. from a design file or the command line) are
applied on top of whichever source was found.

Example ``options.yaml``::

    max_chord: 2.5
    min_arc_steps: 8
    arc_step: 5.0
    axis_arc_step: 1.0
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

__all__ = [
    "TUNNELCAD_CONFIG",
    "SweepOptions",
    "load_options",
    "options_from_mapping",
    "clear_cache",
]

# Environment variable naming an options file
TUNNELCAD_CONFIG = "TUNNELCAD_CONFIG"


@dataclass(frozen=True)
class SweepOptions:
    """Sampling settings for one sweep pass.

    Attributes:
        max_chord: Longest chord allowed when sampling profile arcs
        min_arc_steps: Minimum number of steps per profile arc
        arc_step: Longest spacing between rings along axis arcs
        axis_arc_step: Largest angle in degrees between rings along axis
            arcs (None disables the angular limit)
        invert_winding: Point mesh normals toward the axis instead of away from it
    """
    max_chord: float = 5.0
    min_arc_steps: int = 4
    arc_step: float = 10.0
    axis_arc_step: Optional[float] = None
    invert_winding: bool = False

    def __post_init__(self):
        if self.max_chord <= 0:
            raise ValueError(f"max_chord must be positive, got {self.max_chord}")
        if self.min_arc_steps < 1:
            raise ValueError(f"min_arc_steps must be at least 1, got {self.min_arc_steps}")
        if self.arc_step <= 0:
            raise ValueError(f"arc_step must be positive, got {self.arc_step}")
        if self.axis_arc_step is not None and self.axis_arc_step <= 0:
            raise ValueError(f"axis_arc_step must be positive, got {self.axis_arc_step}")


_FIELD_TYPES = {
    "max_chord": float,
    "min_arc_steps": int,
    "arc_step": float,
    "axis_arc_step": float,
    "invert_winding": bool,
}

# camelCase spellings used by the editor's design files
_ALIASES = {
    "maxChord": "max_chord",
    "minArcSteps": "min_arc_steps",
    "arcStep": "arc_step",
    "axisArcStep": "axis_arc_step",
    "invertWinding": "invert_winding",
}


def clear_cache() -> None:
    """Forget cached configuration files.

    Call this after changing ``TUNNELCAD_CONFIG`` or the user config file.
    """
    _config_path.cache_clear()
    _load_yaml_cached.cache_clear()


@lru_cache(maxsize=None)
def _config_path() -> Optional[Path]:
    """Return the first existing configuration file, if any."""

    env_path = os.environ.get(TUNNELCAD_CONFIG)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"{TUNNELCAD_CONFIG} points to a missing file: {path}")
        return path.resolve()

    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"

    user_config = config_base / "tunnelcad" / "options.yaml"
    if user_config.is_file():
        return user_config
    return None


@lru_cache(maxsize=32)
def _load_yaml_cached(path_str: str) -> Dict[str, Any]:
    with open(path_str, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid options file {path_str}: expected a mapping at root")
    return data


def options_from_mapping(data: Mapping[str, Any],
                         base: Optional[SweepOptions] = None) -> SweepOptions:
    """Apply the keys of ``data`` on top of ``base`` (defaults if None).

    Raises:
        ValueError: On unknown keys or values of the wrong type
    """

    if base is None:
        base = SweepOptions()
    changes: Dict[str, Any] = {}
    for key, value in data.items():
        name = _ALIASES.get(key, key)
        if name not in _FIELD_TYPES:
            raise ValueError(f"Unknown sweep option: {key}")
        if value is None:
            if name != "axis_arc_step":
                raise ValueError(f"Sweep option {key} may not be null")
            changes[name] = None
            continue
        kind = _FIELD_TYPES[name]
        if kind is bool:
            if not isinstance(value, bool):
                raise ValueError(f"Sweep option {key} must be true or false")
            changes[name] = value
            continue
        try:
            changes[name] = kind(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Bad value for sweep option {key}: {value!r}") from exc
    return replace(base, **changes)


def load_options(path: Optional[Path | str] = None,
                 overrides: Optional[Mapping[str, Any]] = None) -> SweepOptions:
    """Resolve sweep options from configuration files and ``overrides``."""

    if path is not None:
        config_path: Optional[Path] = Path(path).expanduser()
        if not config_path.is_file():
            raise FileNotFoundError(f"Options file not found: {config_path}")
    else:
        config_path = _config_path()

    options = SweepOptions()
    if config_path is not None:
        options = options_from_mapping(_load_yaml_cached(str(config_path)), options)
    if overrides:
        options = options_from_mapping(overrides, options)
    return options
