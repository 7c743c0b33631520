"""
Behavior planner: picks the target lane and reference speed each cycle.

Lanes are indexed 0 (left), 1 (center), 2 (right). The planner is reactive:
it only looks at the nearest front/rear vehicle in every lane for the current
cycle and keeps the chosen lane and reference speed between cycles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from data.formats.data_format import LaneSnapshot
from trajectory.speed_planner import SpeedPlanner, SpeedPlannerConfig

logger = logging.getLogger(__name__)

CENTER_LANE = 1


@dataclass
class BehaviorConfig:
    """Lane change thresholds (distances in meters, speeds in simulator units)."""

    too_close_distance: float = 30.0  # slow down below this front gap
    lane_change_trigger_distance: float = 60.0  # consider changing below this front gap
    center_min_front_gap: float = 30.0  # outer -> center
    side_min_front_gap: float = 45.0  # center -> outer
    min_rear_gap: float = 20.0
    rear_speed_margin: float = 5.0  # ego may be at most this much slower than the rear vehicle
    clearance_advantage: float = 60.0  # needed when the other side lane is faster
    open_lane_distance: float = 180.0  # lane counts as empty beyond this front gap
    center_preference_distance: float = 120.0  # go back to center when it is this open


@dataclass
class PlannerState:
    """State carried between cycles. Only BehaviorPlanner.step writes it."""

    lane: int = CENTER_LANE
    reference_speed: float = 0.0


@dataclass
class BehaviorDecision:
    """Result of one planning cycle."""

    lane: int
    previous_lane: int
    reference_speed: float
    too_close: bool

    @property
    def lane_changed(self) -> bool:
        return self.lane != self.previous_lane


class BehaviorPlanner:
    """Rule-based lane and speed selection."""

    def __init__(
        self,
        config: Optional[BehaviorConfig] = None,
        speed_config: Optional[SpeedPlannerConfig] = None,
        state: Optional[PlannerState] = None,
    ) -> None:
        self.config = config or BehaviorConfig()
        self.speed_planner = SpeedPlanner(speed_config)
        self.state = state or PlannerState()

    def reset(self) -> None:
        """Reset to the center lane at standstill."""
        self.state = PlannerState()

    def step(self, lanes: Sequence[LaneSnapshot], car_speed: float) -> BehaviorDecision:
        """
        Run one decision cycle and update the planner state.

        Args:
            lanes: One LaneSnapshot per lane
            car_speed: Current ego speed from telemetry

        Returns:
            BehaviorDecision with the committed lane and reference speed
        """
        cfg = self.config
        lane = self.state.lane
        front_gap = lanes[lane].front_distance
        too_close = front_gap < cfg.too_close_distance

        new_lane = lane
        if front_gap < cfg.lane_change_trigger_distance:
            if lane == CENTER_LANE:
                if too_close:
                    new_lane = self._choose_side_lane(lanes, lane, car_speed)
            else:
                new_lane = self._choose_center_lane(lanes, lane, car_speed)

        center = lanes[CENTER_LANE]
        if (center.front_distance > cfg.center_preference_distance
                and center.rear_distance > cfg.min_rear_gap):
            new_lane = CENTER_LANE

        if new_lane != lane:
            logger.info(
                "Lane change %d -> %d (front gap %.1f, target front gap %.1f)",
                lane, new_lane, front_gap, lanes[new_lane].front_distance,
            )
        self.state.lane = new_lane

        self.state.reference_speed = self.speed_planner.step(
            self.state.reference_speed,
            too_close=too_close,
            lead_speed=lanes[new_lane].front_speed,
        )

        return BehaviorDecision(
            lane=new_lane,
            previous_lane=lane,
            reference_speed=self.state.reference_speed,
            too_close=too_close,
        )

    def _choose_center_lane(self, lanes: Sequence[LaneSnapshot], lane: int,
                            car_speed: float) -> int:
        """Decide whether to leave an outer lane for the center lane."""
        cfg = self.config
        center = lanes[CENTER_LANE]
        new_lane = lane
        if self._lane_change_is_safe(lanes[CENTER_LANE], car_speed, cfg.center_min_front_gap):
            # Close behind a vehicle only move over if the center lane is faster
            if (lanes[lane].front_distance >= cfg.too_close_distance
                    or center.front_speed > lanes[lane].front_speed):
                new_lane = CENTER_LANE
        if center.front_distance > cfg.open_lane_distance and center.rear_distance > cfg.min_rear_gap:
            new_lane = CENTER_LANE
        return new_lane

    def _choose_side_lane(self, lanes: Sequence[LaneSnapshot], lane: int,
                          car_speed: float) -> int:
        """Decide whether to leave the center lane; the left lane wins ties."""
        cfg = self.config
        new_lane = lane
        for target, alternative in ((2, 0), (0, 2)):
            if (self._lane_change_is_safe(lanes[target], car_speed, cfg.side_min_front_gap)
                    and self._side_lane_is_better(lanes, lane, target, alternative)):
                new_lane = target
        for target in (2, 0):
            if lanes[target].front_distance > cfg.open_lane_distance:
                new_lane = target
        return new_lane

    def _lane_change_is_safe(self, target: LaneSnapshot, car_speed: float,
                             min_front_gap: float) -> bool:
        cfg = self.config
        return (
            target.front_distance > min_front_gap
            and target.rear_distance > cfg.min_rear_gap
            and car_speed > target.rear_speed - cfg.rear_speed_margin
        )

    def _side_lane_is_better(self, lanes: Sequence[LaneSnapshot], lane: int,
                             target: int, alternative: int) -> bool:
        if lanes[target].front_speed <= lanes[lane].front_speed:
            return False
        if lanes[target].front_speed > lanes[alternative].front_speed:
            return True
        return lanes[target].front_distance > (
            lanes[alternative].front_distance + self.config.clearance_advantage
        )
