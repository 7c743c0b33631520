"""
Trajectory generation module.
Fits a spline through anchor points in the vehicle frame and samples it at
the reference speed, continuing the unconsumed part of the previous path.
"""

import math
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.interpolate import CubicSpline

from data.formats.data_format import PathHistory, PlannedPath, VehicleState
from trajectory.utils import to_local_frame, to_world_frame
from trajectory.waypoint_map import WaypointMap

logger = logging.getLogger(__name__)

# Points closer than this (meters) do not define a heading
MIN_HEADING_SEPARATION = 1e-6


@dataclass
class TrajectoryConfig:
    """Trajectory generation parameters."""
    horizon: int = 50  # points per emitted path
    time_step: float = 0.02  # seconds between points
    lane_width: float = 4.0
    anchor_spacing: float = 30.0  # meters between far anchors
    anchor_count: int = 2
    target_x: float = 30.0  # lookahead used to size the sampling step
    speed_unit_conversion: float = 2.24  # mph per m/s


@dataclass
class AnchorSet:
    """Anchor points in the vehicle frame plus the frame origin."""
    local_x: np.ndarray
    local_y: np.ndarray
    ref_x: float
    ref_y: float
    ref_yaw: float


class SplineTrajectoryGenerator:
    """
    Spline-based path generator.

    The new path starts with every unconsumed history point so the vehicle
    keeps executing what it was already given, then continues along a spline
    towards the center of the target lane.
    """

    def __init__(self, waypoint_map: WaypointMap, config: Optional[TrajectoryConfig] = None):
        """
        Initialize trajectory generator.

        Args:
            waypoint_map: Track map used to place the far anchors
            config: Generation parameters
        """
        self.waypoint_map = waypoint_map
        self.config = config or TrajectoryConfig()

    def lane_center_d(self, lane: int) -> float:
        return self.config.lane_width / 2.0 + self.config.lane_width * lane

    def sample_step(self, reference_speed: float, target_dist: float) -> float:
        """Local x advance per time step at the reference speed."""
        if target_dist <= 0.0 or reference_speed <= 0.0:
            return 0.0
        distance_per_step = self.config.time_step * reference_speed / self.config.speed_unit_conversion
        # Equivalent to target_x / N with N = target_dist / distance_per_step
        return self.config.target_x * distance_per_step / target_dist

    def build_anchors(self, vehicle: VehicleState, car_s: float, lane: int,
                      history: PathHistory) -> AnchorSet:
        """
        Build anchor points in the vehicle frame.

        Two near anchors come from the end of the history (or from the vehicle
        pose when less than two history points remain), the far anchors sit at
        the target lane center every `anchor_spacing` meters ahead of car_s.
        """
        pts_x: List[float] = []
        pts_y: List[float] = []
        ref_x = vehicle.x
        ref_y = vehicle.y
        ref_yaw = vehicle.yaw

        if len(history) < 2:
            pts_x.extend([vehicle.x - math.cos(vehicle.yaw), vehicle.x])
            pts_y.extend([vehicle.y - math.sin(vehicle.yaw), vehicle.y])
        else:
            ref_x = history.x[-1]
            ref_y = history.y[-1]
            prev = self._previous_distinct_index(history.x, history.y)
            if prev is None:
                # Stationary history has no heading of its own
                ref_x_prev = ref_x - math.cos(vehicle.yaw)
                ref_y_prev = ref_y - math.sin(vehicle.yaw)
            else:
                ref_x_prev = history.x[prev]
                ref_y_prev = history.y[prev]
            ref_yaw = math.atan2(ref_y - ref_y_prev, ref_x - ref_x_prev)
            pts_x.extend([ref_x_prev, ref_x])
            pts_y.extend([ref_y_prev, ref_y])

        target_d = self.lane_center_d(lane)
        for i in range(1, self.config.anchor_count + 1):
            wx, wy = self.waypoint_map.to_cartesian(car_s + self.config.anchor_spacing * i, target_d)
            pts_x.append(wx)
            pts_y.append(wy)

        local_x, local_y = to_local_frame(pts_x, pts_y, ref_x, ref_y, ref_yaw)
        return AnchorSet(local_x=local_x, local_y=local_y, ref_x=ref_x, ref_y=ref_y, ref_yaw=ref_yaw)

    def generate(self, vehicle: VehicleState, car_s: float, lane: int,
                 reference_speed: float, history: PathHistory) -> PlannedPath:
        """
        Generate the path for the next cycle.

        Args:
            vehicle: Current ego state (yaw in radians)
            car_s: Ego s at the end of the unconsumed path
            lane: Target lane index
            reference_speed: Reference speed (mph)
            history: Unconsumed points of the previous path

        Returns:
            PlannedPath with exactly `horizon` points
        """
        horizon = self.config.horizon
        path = PlannedPath()
        for x, y in history.points()[:horizon]:
            path.append(x, y)
        remaining = horizon - len(path)
        if remaining <= 0:
            return path

        anchors = self.build_anchors(vehicle, car_s, lane, history)
        spline = self._fit_spline(anchors)
        if spline is None:
            return self._extend_path(path, anchors, reference_speed, remaining)

        target_x = self.config.target_x
        target_y = float(spline(target_x))
        target_dist = math.hypot(target_x, target_y)
        step = self.sample_step(reference_speed, target_dist)

        local_x = step * np.arange(1, remaining + 1)
        local_y = spline(local_x)
        world_x, world_y = to_world_frame(local_x, local_y, anchors.ref_x, anchors.ref_y, anchors.ref_yaw)
        for x, y in zip(world_x, world_y):
            path.append(x, y)
        return path

    def _fit_spline(self, anchors: AnchorSet) -> Optional[CubicSpline]:
        if len(anchors.local_x) < 2:
            logger.warning("Not enough anchor points for spline fit (%d)", len(anchors.local_x))
            return None
        if np.any(np.diff(anchors.local_x) <= 0.0):
            logger.warning(
                "Anchor points not increasing in vehicle frame, x=%s",
                np.array2string(anchors.local_x, precision=2),
            )
            return None
        try:
            return CubicSpline(anchors.local_x, anchors.local_y, bc_type="natural")
        except ValueError as e:
            logger.warning(f"Spline fit failed: {e}")
            return None

    def _extend_path(self, path: PlannedPath, anchors: AnchorSet,
                     reference_speed: float, remaining: int) -> PlannedPath:
        """Continue the kept path in a straight line along its last direction."""
        start_x, start_y, heading = self._path_tail(path, anchors)
        spacing = 0.0
        if reference_speed > 0.0:
            spacing = self.config.time_step * reference_speed / self.config.speed_unit_conversion
        for i in range(1, remaining + 1):
            path.append(start_x + spacing * i * math.cos(heading),
                        start_y + spacing * i * math.sin(heading))
        path.used_fallback = True
        return path

    @staticmethod
    def _previous_distinct_index(xs: Sequence[float], ys: Sequence[float]) -> Optional[int]:
        """Index of the last point that differs from the final one, or None."""
        last_x = xs[-1]
        last_y = ys[-1]
        for i in range(len(xs) - 2, -1, -1):
            if math.hypot(last_x - xs[i], last_y - ys[i]) > MIN_HEADING_SEPARATION:
                return i
        return None

    def _path_tail(self, path: PlannedPath, anchors: AnchorSet) -> Tuple[float, float, float]:
        if len(path) == 0:
            return anchors.ref_x, anchors.ref_y, anchors.ref_yaw
        prev = self._previous_distinct_index(path.x, path.y)
        if prev is None:
            return path.x[-1], path.y[-1], anchors.ref_yaw
        return (path.x[-1], path.y[-1],
                math.atan2(path.y[-1] - path.y[prev], path.x[-1] - path.x[prev]))
