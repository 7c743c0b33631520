from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple, Union

import numpy as np


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def angle_difference(a: float, b: float) -> float:
    """Absolute difference between two angles, normalized into [0, pi]."""
    return abs(math.atan2(math.sin(a - b), math.cos(a - b)))


def to_local_frame(
    xs: Iterable[float],
    ys: Iterable[float],
    ref_x: float,
    ref_y: float,
    ref_yaw: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Transform world points into a frame centered at (ref_x, ref_y) and
    aligned with ref_yaw (x axis along the heading).
    """
    shift_x = np.asarray(list(xs), dtype=float) - ref_x
    shift_y = np.asarray(list(ys), dtype=float) - ref_y
    cos_yaw = math.cos(ref_yaw)
    sin_yaw = math.sin(ref_yaw)
    local_x = shift_x * cos_yaw + shift_y * sin_yaw
    local_y = -shift_x * sin_yaw + shift_y * cos_yaw
    return local_x, local_y


def to_world_frame(
    local_x: Union[Sequence[float], np.ndarray],
    local_y: Union[Sequence[float], np.ndarray],
    ref_x: float,
    ref_y: float,
    ref_yaw: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse of :func:`to_local_frame`."""
    local_x = np.asarray(local_x, dtype=float)
    local_y = np.asarray(local_y, dtype=float)
    cos_yaw = math.cos(ref_yaw)
    sin_yaw = math.sin(ref_yaw)
    world_x = local_x * cos_yaw - local_y * sin_yaw + ref_x
    world_y = local_x * sin_yaw + local_y * cos_yaw + ref_y
    return world_x, world_y
