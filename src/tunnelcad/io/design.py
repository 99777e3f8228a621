"""Loading tunnel design snapshots from YAML or JSON files.

A design file mirrors what the editor hands to the engine::

    axis:
      points:                       # or: segments: [{type, start, end, radius}]
        - {x: 0, y: 0}
        - {x: 100, y: 0}
        - {x: 150, y: 50, type: arc, radius: 50}
    profiles:
      - id: horseshoe
        name: Horseshoe
        segments: [...]             # or: points: [...]
    profileAssignments:
      - {length: 0, profileId: horseshoe}
    heightAssignments:
      - {length: 0, height: 0}
    options:                        # optional SweepOptions overrides
      maxChord: 2.0

Assignment tables are cleaned against the axis length on load.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Hashable, List, Mapping, Optional

import yaml

from tunnelcad.axis import axis_total_length
from tunnelcad.config import SweepOptions, options_from_mapping
from tunnelcad.data import HeightAssignment, Profile, ProfileAssignment
from tunnelcad.geom import Segment, segment_from_dict, segments_from_points
from tunnelcad.interpolate import clean_height_assignments, clean_profile_assignments

logger = logging.getLogger(__name__)


class DesignFormatError(ValueError):
    """Raised when a design file cannot be interpreted."""


@dataclass
class TunnelDesign:
    """Snapshot of one tunnel description loaded from a design file."""
    axis: List[Segment] = field(default_factory=list)
    profiles: Dict[Hashable, Profile] = field(default_factory=dict)
    profile_assignments: List[ProfileAssignment] = field(default_factory=list)
    height_assignments: List[HeightAssignment] = field(default_factory=list)
    options: SweepOptions = field(default_factory=SweepOptions)

    @property
    def total_length(self) -> float:
        return axis_total_length(self.axis)


def _segments(data: Any, where: str) -> List[Segment]:
    if data is None:
        return []
    if isinstance(data, list):
        # a bare list is a segment list
        data = {'segments': data}
    if not isinstance(data, Mapping):
        raise DesignFormatError(f"{where}: expected a mapping or a list")
    try:
        if 'segments' in data:
            return [segment_from_dict(s) for s in data['segments'] or []]
        if 'points' in data:
            return segments_from_points(data['points'] or [])
    except (KeyError, TypeError, ValueError) as exc:
        raise DesignFormatError(f"{where}: {exc}") from exc
    raise DesignFormatError(f"{where}: needs 'segments' or 'points'")


def _profiles(data: Any) -> Dict[Hashable, Profile]:
    if data is None:
        return {}
    if not isinstance(data, list):
        raise DesignFormatError("profiles: expected a list")
    catalog: Dict[Hashable, Profile] = {}
    for idx, entry in enumerate(data):
        if not isinstance(entry, Mapping) or 'id' not in entry:
            raise DesignFormatError(f"profiles[{idx}]: each profile needs an 'id'")
        profile_id = entry['id']
        if profile_id in catalog:
            raise DesignFormatError(f"profiles[{idx}]: duplicate profile id {profile_id!r}")
        catalog[profile_id] = Profile(profile_id,
                                      _segments(entry, f"profiles[{idx}]"),
                                      str(entry.get('name', '')))
    return catalog


def _table(data: Any, key: str, factory) -> list:
    if data is None:
        return []
    if not isinstance(data, list):
        raise DesignFormatError(f"{key}: expected a list")
    try:
        return [factory(entry) for entry in data]
    except (KeyError, TypeError, ValueError) as exc:
        raise DesignFormatError(f"{key}: {exc}") from exc


def design_from_dict(data: Mapping[str, Any],
                     base_options: Optional[SweepOptions] = None) -> TunnelDesign:
    """Build a :class:`TunnelDesign` from parsed YAML/JSON data."""

    if not isinstance(data, Mapping):
        raise DesignFormatError("design root must be a mapping")

    axis = _segments(data.get('axis'), 'axis')
    profiles = _profiles(data.get('profiles'))
    assignments = _table(data.get('profileAssignments', data.get('profile_assignments')),
                         'profileAssignments', ProfileAssignment.from_dict)
    heights = _table(data.get('heightAssignments', data.get('height_assignments')),
                     'heightAssignments', HeightAssignment.from_dict)

    raw_options = data.get('options') or {}
    if not isinstance(raw_options, Mapping):
        raise DesignFormatError("options: expected a mapping")
    try:
        options = options_from_mapping(raw_options, base_options)
    except ValueError as exc:
        raise DesignFormatError(f"options: {exc}") from exc

    total = axis_total_length(axis)
    cleaned = clean_profile_assignments(assignments, profiles, total)
    if len(cleaned) != len(assignments):
        logger.warning("dropped %d profile assignment(s) outside the axis or "
                       "naming unknown profiles", len(assignments) - len(cleaned))
    cleaned_heights = clean_height_assignments(heights, total)
    if len(cleaned_heights) != len(heights):
        logger.warning("dropped %d height assignment(s) outside the axis",
                       len(heights) - len(cleaned_heights))

    return TunnelDesign(axis, profiles, cleaned, cleaned_heights, options)


def load_design(path: Path | str, base_options: Optional[SweepOptions] = None) -> TunnelDesign:
    """Read a design file; ``.json`` is parsed as JSON, anything else as YAML."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Design file not found: {path}")
    text = path.read_text(encoding='utf-8')
    try:
        if path.suffix.lower() == '.json':
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DesignFormatError(f"{path}: {exc}") from exc
    return design_from_dict(data or {}, base_options)


__all__ = [
    'DesignFormatError',
    'TunnelDesign',
    'design_from_dict',
    'load_design',
]
