"""
Main planner stack integration script.
Runs one control cycle per telemetry message: lane occupancy, behavior
planning and trajectory generation.
"""

import time
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any

import yaml

# Add paths
sys.path.insert(0, str(Path(__file__).parent))

from control.behavior_planner import BehaviorConfig, BehaviorDecision, BehaviorPlanner, PlannerState
from data.formats.data_format import CycleRequest, CycleResponse
from data.map_loader import DEFAULT_MAX_S, load_waypoint_map
from perception.lane_occupancy import LaneOccupancyConfig, LaneOccupancyModel
from trajectory.models.trajectory_planner import SplineTrajectoryGenerator, TrajectoryConfig
from trajectory.speed_planner import SpeedPlannerConfig
from trajectory.waypoint_map import FrenetConfig, WaypointMap

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "planner_stack_config.yaml"


def _configure_logging(level: int = logging.INFO) -> None:
    log_dir = Path(__file__).parent / 'tmp' / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / 'planner_stack.log'

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(str(log_file))
        ]
    )


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file or use defaults."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    else:
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}


def build_frenet_config(config: dict) -> FrenetConfig:
    frenet_cfg = config.get('frenet', {}) or {}
    reference_point = frenet_cfg.get('reference_point', [1000.0, 2000.0])
    return FrenetConfig(
        sign_mode=str(frenet_cfg.get('sign_mode', 'reference_point')),
        reference_x=float(reference_point[0]),
        reference_y=float(reference_point[1]),
    )


def build_occupancy_config(config: dict) -> LaneOccupancyConfig:
    road_cfg = config.get('road', {}) or {}
    perception_cfg = config.get('perception', {}) or {}
    trajectory_cfg = config.get('trajectory', {}) or {}
    defaults = LaneOccupancyConfig()
    return LaneOccupancyConfig(
        lane_width=float(road_cfg.get('lane_width', defaults.lane_width)),
        num_lanes=int(road_cfg.get('num_lanes', defaults.num_lanes)),
        time_step=float(trajectory_cfg.get('time_step', defaults.time_step)),
        no_vehicle_distance=float(perception_cfg.get('no_vehicle_distance', defaults.no_vehicle_distance)),
        default_front_speed=float(perception_cfg.get('default_front_speed', defaults.default_front_speed)),
        default_rear_speed=float(perception_cfg.get('default_rear_speed', defaults.default_rear_speed)),
    )


def build_behavior_config(config: dict) -> BehaviorConfig:
    behavior_cfg = config.get('behavior', {}) or {}
    defaults = BehaviorConfig()
    return BehaviorConfig(**{
        name: float(behavior_cfg.get(name, getattr(defaults, name)))
        for name in defaults.__dataclass_fields__
    })


def build_speed_config(config: dict) -> SpeedPlannerConfig:
    road_cfg = config.get('road', {}) or {}
    speed_cfg = config.get('speed', {}) or {}
    defaults = SpeedPlannerConfig()
    return SpeedPlannerConfig(
        speed_limit=float(speed_cfg.get('speed_limit', road_cfg.get('speed_limit', defaults.speed_limit))),
        accel_step=float(speed_cfg.get('accel_step', defaults.accel_step)),
        decel_step=float(speed_cfg.get('decel_step', defaults.decel_step)),
        cautious_accel_step=float(speed_cfg.get('cautious_accel_step', defaults.cautious_accel_step)),
    )


def build_trajectory_config(config: dict) -> TrajectoryConfig:
    road_cfg = config.get('road', {}) or {}
    trajectory_cfg = config.get('trajectory', {}) or {}
    defaults = TrajectoryConfig()
    return TrajectoryConfig(
        horizon=int(trajectory_cfg.get('horizon', defaults.horizon)),
        time_step=float(trajectory_cfg.get('time_step', defaults.time_step)),
        lane_width=float(road_cfg.get('lane_width', defaults.lane_width)),
        anchor_spacing=float(trajectory_cfg.get('anchor_spacing', defaults.anchor_spacing)),
        anchor_count=int(trajectory_cfg.get('anchor_count', defaults.anchor_count)),
        target_x=float(trajectory_cfg.get('target_x', defaults.target_x)),
        speed_unit_conversion=float(
            trajectory_cfg.get('speed_unit_conversion', defaults.speed_unit_conversion)
        ),
    )


class PlannerStack:
    """Planner stack for one vehicle: one `run_cycle` call per telemetry message."""

    def __init__(self, waypoint_map: WaypointMap, config: Optional[dict] = None,
                 state: Optional[PlannerState] = None):
        """
        Initialize planner stack.

        Args:
            waypoint_map: Shared, read-only track map
            config: Configuration dict (see config/planner_stack_config.yaml)
            state: Optional initial planner state
        """
        config = config or {}
        self.waypoint_map = waypoint_map
        self.occupancy = LaneOccupancyModel(build_occupancy_config(config))
        self.behavior = BehaviorPlanner(
            config=build_behavior_config(config),
            speed_config=build_speed_config(config),
            state=state,
        )
        self.trajectory = SplineTrajectoryGenerator(waypoint_map, build_trajectory_config(config))
        self.cycle_count = 0
        self.last_decision: Optional[BehaviorDecision] = None

    @property
    def state(self) -> PlannerState:
        return self.behavior.state

    def run_cycle(self, request: CycleRequest) -> CycleResponse:
        """
        Run one control cycle.

        Args:
            request: Telemetry for this cycle

        Returns:
            CycleResponse with exactly `horizon` path points
        """
        start_time = time.time()
        history = request.history
        car_s = history.end_s if len(history) > 0 else request.vehicle.s

        lanes = self.occupancy.summarize(car_s, request.objects, len(history))
        decision = self.behavior.step(lanes, request.vehicle.speed)
        path = self.trajectory.generate(
            request.vehicle,
            car_s,
            decision.lane,
            decision.reference_speed,
            history,
        )

        self.cycle_count += 1
        self.last_decision = decision
        duration = time.time() - start_time
        logger.debug(
            "cycle=%d lane=%d ref_speed=%.3f too_close=%s kept=%d fallback=%s duration=%.4fs",
            self.cycle_count,
            decision.lane,
            decision.reference_speed,
            decision.too_close,
            len(history),
            path.used_fallback,
            duration,
        )
        return CycleResponse(
            next_x=path.x,
            next_y=path.y,
            lane=decision.lane,
            reference_speed=decision.reference_speed,
        )

    def handle_telemetry(self, telemetry: Dict[str, Any]) -> Dict[str, list]:
        """Run a cycle on a raw telemetry dict and return the control payload."""
        return self.run_cycle(CycleRequest.from_telemetry(telemetry)).to_dict()


def build_planner_stack(map_file: str, config: Optional[dict] = None) -> PlannerStack:
    """Load the map and build a planner stack."""
    config = config or {}
    map_cfg = config.get('map', {}) or {}
    waypoint_map = load_waypoint_map(
        map_file,
        max_s=float(map_cfg.get('max_s', DEFAULT_MAX_S)),
        frenet_config=build_frenet_config(config),
    )
    return PlannerStack(waypoint_map, config)


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Run the highway path planner')
    parser.add_argument('--map', type=str, default='data/highway_map.csv',
                        help='Waypoint map file (x y s dx dy per line)')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to configuration YAML file (default: config/planner_stack_config.yaml)')
    parser.add_argument('--host', type=str, default=None,
                        help='Bridge host (default from config, else 0.0.0.0)')
    parser.add_argument('--port', type=int, default=None,
                        help='Bridge port (default from config, else 4567)')
    parser.add_argument('--debug', action='store_true',
                        help='Log every cycle')

    args = parser.parse_args()
    _configure_logging(logging.DEBUG if args.debug else logging.INFO)

    config = load_config(args.config)
    try:
        stack = build_planner_stack(args.map, config)
    except (FileNotFoundError, ValueError) as e:
        parser.error(str(e))

    bridge_cfg = config.get('bridge', {}) or {}
    host = args.host or bridge_cfg.get('host', '0.0.0.0')
    port = args.port or int(bridge_cfg.get('port', 4567))

    from bridge.server import run_server
    run_server(stack, host=host, port=port)


if __name__ == "__main__":
    main()
