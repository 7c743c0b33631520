"""
Waypoint map and Cartesian <-> Frenet coordinate transforms.

The track is a closed loop of waypoints ordered by increasing arc length `s`.
Index N wraps to 0 and `s` wraps modulo `max_s`. Positive `d` is to the right
of the direction of travel, which is where `to_cartesian` places it.
"""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from data.formats.data_format import Waypoint
from trajectory.utils import angle_difference, distance

logger = logging.getLogger(__name__)

SIGN_MODE_REFERENCE_POINT = "reference_point"
SIGN_MODE_CROSS_PRODUCT = "cross_product"


@dataclass
class FrenetConfig:
    """Configuration for the Frenet projection."""

    sign_mode: str = SIGN_MODE_REFERENCE_POINT
    # Point inside the loop used to decide the sign of d in reference_point mode
    reference_x: float = 1000.0
    reference_y: float = 2000.0
    # Max angle between heading and bearing to the closest waypoint before the
    # next waypoint is used instead
    next_waypoint_max_angle: float = math.pi / 4


@dataclass
class FrenetPoint:
    """Road-relative coordinates, plus rates when a velocity was given."""

    s: float
    d: float
    s_dot: float = 0.0
    d_dot: float = 0.0


class WaypointMap:
    """Static, read-only track map."""

    def __init__(self, waypoints: Sequence[Waypoint], max_s: float,
                 config: Optional[FrenetConfig] = None) -> None:
        if len(waypoints) < 2:
            raise ValueError("WaypointMap needs at least 2 waypoints")
        if max_s <= 0.0:
            raise ValueError(f"max_s must be positive, got {max_s}")
        self.config = config or FrenetConfig()
        if self.config.sign_mode not in (SIGN_MODE_REFERENCE_POINT, SIGN_MODE_CROSS_PRODUCT):
            raise ValueError(f"Unknown Frenet sign mode: {self.config.sign_mode}")

        self.waypoints: Tuple[Waypoint, ...] = tuple(waypoints)
        self.max_s = float(max_s)
        self._xs = np.array([wp.x for wp in self.waypoints], dtype=float)
        self._ys = np.array([wp.y for wp in self.waypoints], dtype=float)
        self._s: List[float] = [float(wp.s) for wp in self.waypoints]

        # Cumulative chord length up to each waypoint, used by to_frenet
        segment_lengths = np.hypot(np.diff(self._xs), np.diff(self._ys))
        self._chord_s = np.concatenate(([0.0], np.cumsum(segment_lengths)))

    def __len__(self) -> int:
        return len(self.waypoints)

    def closest(self, x: float, y: float) -> int:
        """Index of the waypoint nearest to (x, y). First minimum wins."""
        dists = np.hypot(self._xs - x, self._ys - y)
        return int(np.argmin(dists))

    def next(self, x: float, y: float, heading: float) -> int:
        """
        Index of the closest waypoint ahead of the vehicle.

        Args:
            x: Vehicle x position
            y: Vehicle y position
            heading: Vehicle heading (radians)

        Returns:
            Closest waypoint index, advanced by one if that waypoint lies more
            than 45 degrees off the heading
        """
        index = self.closest(x, y)
        bearing = math.atan2(self._ys[index] - y, self._xs[index] - x)
        if angle_difference(heading, bearing) > self.config.next_waypoint_max_angle:
            index = (index + 1) % len(self.waypoints)
        return index

    def to_frenet(self, x: float, y: float, heading: float,
                  vx: float = 0.0, vy: float = 0.0) -> FrenetPoint:
        """
        Project a Cartesian position onto the track.

        Args:
            x: Position x
            y: Position y
            heading: Heading (radians), used to pick the segment ahead
            vx: Velocity x component
            vy: Velocity y component

        Returns:
            FrenetPoint with s, d and the velocity split into along-track
            (s_dot) and rightward (d_dot) rates
        """
        next_wp = self.next(x, y, heading)
        prev_wp = next_wp - 1 if next_wp > 0 else len(self.waypoints) - 1

        prev_x = float(self._xs[prev_wp])
        prev_y = float(self._ys[prev_wp])
        n_x = float(self._xs[next_wp]) - prev_x
        n_y = float(self._ys[next_wp]) - prev_y
        x_x = x - prev_x
        x_y = y - prev_y

        seg_len_sq = n_x * n_x + n_y * n_y
        if seg_len_sq > 0.0:
            proj_norm = (x_x * n_x + x_y * n_y) / seg_len_sq
        else:
            logger.debug("Zero-length segment between waypoints %d and %d", prev_wp, next_wp)
            proj_norm = 0.0
        proj_x = proj_norm * n_x
        proj_y = proj_norm * n_y

        frenet_d = distance(x_x, x_y, proj_x, proj_y)
        if self.config.sign_mode == SIGN_MODE_REFERENCE_POINT:
            center_x = self.config.reference_x - prev_x
            center_y = self.config.reference_y - prev_y
            center_to_pos = distance(center_x, center_y, x_x, x_y)
            center_to_ref = distance(center_x, center_y, proj_x, proj_y)
            if center_to_pos <= center_to_ref:
                frenet_d *= -1
        else:
            # Left of travel is negative
            if n_x * x_y - n_y * x_x > 0.0:
                frenet_d *= -1

        frenet_s = float(self._chord_s[prev_wp]) + math.hypot(proj_x, proj_y)

        s_dot = 0.0
        d_dot = 0.0
        if seg_len_sq > 0.0 and (vx or vy):
            seg_len = math.sqrt(seg_len_sq)
            u_x = n_x / seg_len
            u_y = n_y / seg_len
            s_dot = vx * u_x + vy * u_y
            d_dot = vx * u_y - vy * u_x

        return FrenetPoint(s=frenet_s, d=frenet_d, s_dot=s_dot, d_dot=d_dot)

    def to_cartesian(self, s: float, d: float) -> Tuple[float, float]:
        """
        Convert Frenet (s, d) to Cartesian (x, y).

        `s` is wrapped into [0, max_s) here, so callers may pass values past
        the end of the lap.
        """
        s = float(s) % self.max_s
        prev_wp = max(bisect.bisect_right(self._s, s) - 1, 0)
        wp2 = (prev_wp + 1) % len(self.waypoints)

        prev_x = float(self._xs[prev_wp])
        prev_y = float(self._ys[prev_wp])
        heading = math.atan2(float(self._ys[wp2]) - prev_y, float(self._xs[wp2]) - prev_x)
        seg_s = s - self._s[prev_wp]

        seg_x = prev_x + seg_s * math.cos(heading)
        seg_y = prev_y + seg_s * math.sin(heading)

        perp_heading = heading - math.pi / 2
        return seg_x + d * math.cos(perp_heading), seg_y + d * math.sin(perp_heading)
