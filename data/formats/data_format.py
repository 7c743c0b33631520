"""
Data format definitions for the planner stack.
Per-cycle telemetry records, map waypoints and the emitted path.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Dict, Any


@dataclass(frozen=True)
class Waypoint:
    """Single track waypoint."""
    x: float
    y: float
    s: float  # cumulative arc length along the track
    dx: float  # unit lateral normal, x component
    dy: float  # unit lateral normal, y component


@dataclass
class VehicleState:
    """Ego vehicle state for one cycle."""
    x: float
    y: float
    s: float
    d: float
    yaw: float  # radians
    speed: float  # mph, as reported by the simulator


@dataclass
class TrackedObject:
    """Another vehicle reported by sensor fusion."""
    id: int
    x: float
    y: float
    vx: float
    vy: float
    s: float
    d: float

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    @classmethod
    def from_sensor_fusion(cls, row: List[float]) -> "TrackedObject":
        """Build from a `[id, x, y, vx, vy, s, d]` sensor fusion row. Raises ValueError if malformed."""
        try:
            if len(row) < 7:
                raise ValueError(f"Sensor fusion row needs 7 values, got {len(row)}")
            return cls(
                id=int(row[0]),
                x=float(row[1]),
                y=float(row[2]),
                vx=float(row[3]),
                vy=float(row[4]),
                s=float(row[5]),
                d=float(row[6]),
            )
        except TypeError as e:
            raise ValueError(f"Malformed sensor fusion row {row!r}: {e}") from e


@dataclass
class LaneSnapshot:
    """Nearest front/rear vehicle statistics for one lane."""
    front_distance: float
    front_speed: float
    rear_distance: float
    rear_speed: float


@dataclass
class PathHistory:
    """Previously commanded points the vehicle has not reached yet."""
    x: List[float] = field(default_factory=list)
    y: List[float] = field(default_factory=list)
    end_s: float = 0.0
    end_d: float = 0.0

    def __post_init__(self):
        if len(self.x) != len(self.y):
            raise ValueError(
                f"Path history x/y length mismatch: {len(self.x)} != {len(self.y)}"
            )

    def __len__(self) -> int:
        return len(self.x)

    def points(self) -> List[Tuple[float, float]]:
        return list(zip(self.x, self.y))


@dataclass
class PlannedPath:
    """Path emitted for the next cycle, one point per time step."""
    x: List[float] = field(default_factory=list)
    y: List[float] = field(default_factory=list)
    used_fallback: bool = False  # True if the curve fit failed and the path was extrapolated

    def __len__(self) -> int:
        return len(self.x)

    def append(self, x: float, y: float) -> None:
        self.x.append(float(x))
        self.y.append(float(y))


@dataclass
class CycleRequest:
    """Everything the planner receives for one control cycle."""
    vehicle: VehicleState
    history: PathHistory
    objects: List[TrackedObject] = field(default_factory=list)

    @classmethod
    def from_telemetry(cls, telemetry: Dict[str, Any]) -> "CycleRequest":
        """
        Parse a simulator telemetry dict.

        Args:
            telemetry: Dict with x, y, s, d, yaw (degrees), speed, previous_path_x,
                previous_path_y, end_path_s, end_path_d and sensor_fusion

        Returns:
            CycleRequest with yaw converted to radians
        """
        try:
            vehicle = VehicleState(
                x=float(telemetry["x"]),
                y=float(telemetry["y"]),
                s=float(telemetry["s"]),
                d=float(telemetry["d"]),
                yaw=math.radians(float(telemetry["yaw"])),
                speed=float(telemetry["speed"]),
            )
            history = PathHistory(
                x=[float(v) for v in telemetry.get("previous_path_x") or []],
                y=[float(v) for v in telemetry.get("previous_path_y") or []],
                end_s=float(telemetry.get("end_path_s", 0.0) or 0.0),
                end_d=float(telemetry.get("end_path_d", 0.0) or 0.0),
            )
            objects = [
                TrackedObject.from_sensor_fusion(row)
                for row in telemetry.get("sensor_fusion") or []
            ]
        except KeyError as e:
            raise ValueError(f"Telemetry is missing field {e}") from e
        except TypeError as e:
            raise ValueError(f"Telemetry has a malformed field: {e}") from e
        return cls(vehicle=vehicle, history=history, objects=objects)


@dataclass
class CycleResponse:
    """Planner output for one cycle."""
    next_x: List[float]
    next_y: List[float]
    lane: Optional[int] = None
    reference_speed: Optional[float] = None

    def to_dict(self) -> Dict[str, List[float]]:
        return {"next_x": list(self.next_x), "next_y": list(self.next_y)}
