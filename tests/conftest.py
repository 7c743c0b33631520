"""
Shared fixtures: a synthetic circular track centered on the Frenet reference
point, driven counterclockwise so that positive d (right of travel) points
away from the center.
"""

import math
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from data.formats.data_format import Waypoint
from trajectory.waypoint_map import FrenetConfig, WaypointMap

TRACK_CENTER = (1000.0, 2000.0)
TRACK_RADIUS = 500.0
TRACK_WAYPOINTS = 100


def circular_waypoints(radius=TRACK_RADIUS, count=TRACK_WAYPOINTS, center=TRACK_CENTER):
    """Waypoints on a circle with s as cumulative chord length. Returns (waypoints, max_s)."""
    cx, cy = center
    waypoints = []
    s = 0.0
    prev = None
    for i in range(count):
        theta = 2.0 * math.pi * i / count
        x = cx + radius * math.cos(theta)
        y = cy + radius * math.sin(theta)
        if prev is not None:
            s += math.hypot(x - prev[0], y - prev[1])
        waypoints.append(Waypoint(x=x, y=y, s=s, dx=math.cos(theta), dy=math.sin(theta)))
        prev = (x, y)
    first = waypoints[0]
    max_s = s + math.hypot(first.x - prev[0], first.y - prev[1])
    return waypoints, max_s


@pytest.fixture
def circle_map():
    waypoints, max_s = circular_waypoints()
    return WaypointMap(waypoints, max_s)


@pytest.fixture
def cross_product_map():
    waypoints, max_s = circular_waypoints()
    return WaypointMap(waypoints, max_s, config=FrenetConfig(sign_mode="cross_product"))


@pytest.fixture
def track_pose(circle_map):
    """Callable (s, d) -> (x, y, yaw) with yaw along the track at s."""
    def _pose(s, d):
        x, y = circle_map.to_cartesian(s, d)
        ahead_x, ahead_y = circle_map.to_cartesian(s + 0.5, d)
        behind_x, behind_y = circle_map.to_cartesian(s - 0.5, d)
        return x, y, math.atan2(ahead_y - behind_y, ahead_x - behind_x)
    return _pose


@pytest.fixture
def make_telemetry(track_pose):
    """Callable building a simulator telemetry dict for an ego at (s, d)."""
    def _telemetry(s, d, speed, previous_path_x=None, previous_path_y=None,
                   end_path_s=0.0, end_path_d=0.0, sensor_fusion=None):
        x, y, yaw = track_pose(s, d)
        return {
            "x": x,
            "y": y,
            "s": s,
            "d": d,
            "yaw": math.degrees(yaw),
            "speed": speed,
            "previous_path_x": previous_path_x or [],
            "previous_path_y": previous_path_y or [],
            "end_path_s": end_path_s,
            "end_path_d": end_path_d,
            "sensor_fusion": sensor_fusion or [],
        }
    return _telemetry
