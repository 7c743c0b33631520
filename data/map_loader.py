"""
Loader for the static highway waypoint map.
Each line of the map file holds `x y s dx dy` separated by whitespace.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from data.formats.data_format import Waypoint
from trajectory.waypoint_map import FrenetConfig, WaypointMap

logger = logging.getLogger(__name__)

# Track length of the default highway map before s wraps to 0
DEFAULT_MAX_S = 6945.554


class MalformedMapError(ValueError):
    """Raised when a map file cannot describe a closed, ordered track."""


def load_waypoint_map(map_file: str, max_s: float = DEFAULT_MAX_S,
                      frenet_config: Optional[FrenetConfig] = None) -> WaypointMap:
    """
    Load a waypoint map file.

    Args:
        map_file: Path to the map file
        max_s: Total track length
        frenet_config: Optional projection settings for the map

    Returns:
        WaypointMap built from the file

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedMapError: If the rows are malformed or s is not increasing
    """
    map_path = Path(map_file)
    if not map_path.exists():
        raise FileNotFoundError(f"Map file not found: {map_file}")

    try:
        data = np.loadtxt(map_path, dtype=float, ndmin=2)
    except ValueError as e:
        raise MalformedMapError(f"Could not parse map file {map_file}: {e}") from e

    if data.shape[0] < 2:
        raise MalformedMapError(f"Map file {map_file} has {data.shape[0]} waypoints, need at least 2")
    if data.shape[1] != 5:
        raise MalformedMapError(
            f"Map file {map_file} has {data.shape[1]} columns, expected 5 (x y s dx dy)"
        )

    s_values = data[:, 2]
    if np.any(np.diff(s_values) <= 0.0):
        bad = int(np.argmax(np.diff(s_values) <= 0.0)) + 1
        raise MalformedMapError(f"Waypoint s values must increase (row {bad})")
    if max_s <= float(s_values[-1]):
        raise MalformedMapError(
            f"max_s ({max_s}) must exceed the last waypoint s ({float(s_values[-1])})"
        )

    waypoints = [
        Waypoint(x=float(row[0]), y=float(row[1]), s=float(row[2]),
                 dx=float(row[3]), dy=float(row[4]))
        for row in data
    ]
    logger.info(f"Loaded {len(waypoints)} waypoints from {map_path} (max_s={max_s})")
    return WaypointMap(waypoints, max_s, config=frenet_config)
