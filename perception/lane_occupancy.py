"""
Lane occupancy summary from sensor fusion.
Reduces the tracked vehicles of one cycle to the nearest front and rear
vehicle per lane.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from data.formats.data_format import LaneSnapshot, TrackedObject

logger = logging.getLogger(__name__)

# Distance reported for a lane with no vehicle in that direction
NO_VEHICLE_DISTANCE = 200.0
# Speed assumed for an absent front vehicle (slightly above the speed limit)
DEFAULT_FRONT_SPEED = 50.0
# Speed assumed for an absent rear vehicle
DEFAULT_REAR_SPEED = 0.0


@dataclass
class LaneOccupancyConfig:
    """Configuration for the lane occupancy summary."""

    lane_width: float = 4.0
    num_lanes: int = 3
    time_step: float = 0.02  # seconds per path point
    no_vehicle_distance: float = NO_VEHICLE_DISTANCE
    default_front_speed: float = DEFAULT_FRONT_SPEED
    default_rear_speed: float = DEFAULT_REAR_SPEED


class LaneOccupancyModel:
    """Per-lane nearest front/rear vehicle statistics."""

    def __init__(self, config: Optional[LaneOccupancyConfig] = None) -> None:
        self.config = config or LaneOccupancyConfig()

    def lane_index(self, d: float) -> Optional[int]:
        """Lane for a lateral offset, or None when off the road."""
        lane = int(math.floor(d / self.config.lane_width))
        if lane < 0 or lane >= self.config.num_lanes:
            return None
        return lane

    def summarize(
        self,
        ego_s: float,
        objects: Iterable[TrackedObject],
        unconsumed_points: int,
    ) -> List[LaneSnapshot]:
        """
        Summarize tracked vehicles per lane.

        Every object is moved forward by the time it takes to drive through the
        unconsumed path, so it is compared against where the ego vehicle will be
        when the new path starts.

        Args:
            ego_s: Ego s at the end of the unconsumed path
            objects: Tracked vehicles for this cycle
            unconsumed_points: Number of unconsumed path points

        Returns:
            One LaneSnapshot per lane, indexed by lane
        """
        cfg = self.config
        lanes = [
            LaneSnapshot(
                front_distance=cfg.no_vehicle_distance,
                front_speed=cfg.default_front_speed,
                rear_distance=cfg.no_vehicle_distance,
                rear_speed=cfg.default_rear_speed,
            )
            for _ in range(cfg.num_lanes)
        ]
        horizon_time = unconsumed_points * cfg.time_step

        for obj in objects:
            lane = self.lane_index(obj.d)
            if lane is None:
                logger.debug("Ignoring object %d off the road (d=%.2f)", obj.id, obj.d)
                continue

            speed = obj.speed
            future_s = obj.s + horizon_time * speed
            snapshot = lanes[lane]
            if ego_s > future_s:
                gap = ego_s - future_s
                if gap < snapshot.rear_distance:
                    snapshot.rear_distance = gap
                    snapshot.rear_speed = speed
            else:
                gap = future_s - ego_s
                if gap < snapshot.front_distance:
                    snapshot.front_distance = gap
                    snapshot.front_speed = speed

        return lanes
