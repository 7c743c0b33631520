"""
Reference speed planner for the path generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class SpeedPlannerConfig:
    """Configuration for per-cycle reference speed steps."""

    speed_limit: float = 49.5  # mph
    # ~5 m/s^2 at one step per 0.02 s cycle (0.224 mph ~= 0.1 m/s)
    accel_step: float = 0.224
    decel_step: float = 0.224
    # Used while following a slower vehicle closely
    cautious_accel_step: float = 0.112
    min_speed: float = 0.0


class SpeedPlanner:
    """Steps the reference speed once per cycle, bounded to [min_speed, speed_limit]."""

    def __init__(self, config: Optional[SpeedPlannerConfig] = None) -> None:
        self.config = config or SpeedPlannerConfig()

    def step(self, reference_speed: float, too_close: bool, lead_speed: float) -> float:
        """Advance the reference speed one cycle.

        Args:
            reference_speed: Current reference speed
            too_close: True if a vehicle is within the danger distance ahead
            lead_speed: Speed of the nearest vehicle ahead in the target lane

        Returns: new reference speed
        """
        cfg = self.config
        speed = float(reference_speed)
        if too_close:
            if speed > lead_speed:
                speed -= cfg.decel_step
            elif speed < cfg.speed_limit:
                speed += cfg.cautious_accel_step
        elif speed < cfg.speed_limit:
            speed += cfg.accel_step
        return self.clamp(speed)

    def clamp(self, speed: float) -> float:
        return max(self.config.min_speed, min(self.config.speed_limit, float(speed)))
