"""
Tests for the per-lane occupancy summary.
"""

import pytest

from data.formats.data_format import TrackedObject
from perception.lane_occupancy import (
    DEFAULT_FRONT_SPEED,
    DEFAULT_REAR_SPEED,
    NO_VEHICLE_DISTANCE,
    LaneOccupancyModel,
)


def _car(obj_id, s, d, speed=20.0):
    return TrackedObject(id=obj_id, x=0.0, y=0.0, vx=speed, vy=0.0, s=s, d=d)


def test_empty_world_reports_open_lanes():
    lanes = LaneOccupancyModel().summarize(ego_s=100.0, objects=[], unconsumed_points=0)

    assert len(lanes) == 3
    for lane in lanes:
        assert lane.front_distance == NO_VEHICLE_DISTANCE
        assert lane.front_speed == DEFAULT_FRONT_SPEED
        assert lane.rear_distance == NO_VEHICLE_DISTANCE
        assert lane.rear_speed == DEFAULT_REAR_SPEED


@pytest.mark.parametrize("d, lane", [(0.0, 0), (2.0, 0), (4.0, 1), (6.0, 1), (8.0, 2), (11.9, 2)])
def test_lane_index_from_d(d, lane):
    assert LaneOccupancyModel().lane_index(d) == lane


@pytest.mark.parametrize("d", [-0.1, 12.0, 12.1])
def test_off_road_objects_are_ignored(d):
    model = LaneOccupancyModel()
    assert model.lane_index(d) is None

    lanes = model.summarize(ego_s=100.0, objects=[_car(1, 110.0, d)], unconsumed_points=0)

    for lane in lanes:
        assert lane.front_distance == NO_VEHICLE_DISTANCE
        assert lane.rear_distance == NO_VEHICLE_DISTANCE


def test_nearest_front_and_rear_kept_per_lane():
    objects = [
        _car(1, 150.0, 6.0, speed=30.0),
        _car(2, 125.0, 6.0, speed=18.0),
        _car(3, 90.0, 6.0, speed=25.0),
        _car(4, 60.0, 6.0, speed=40.0),
        _car(5, 140.0, 2.0, speed=22.0),
    ]

    lanes = LaneOccupancyModel().summarize(ego_s=100.0, objects=objects, unconsumed_points=0)

    assert lanes[1].front_distance == pytest.approx(25.0)
    assert lanes[1].front_speed == pytest.approx(18.0)
    assert lanes[1].rear_distance == pytest.approx(10.0)
    assert lanes[1].rear_speed == pytest.approx(25.0)
    assert lanes[0].front_distance == pytest.approx(40.0)
    assert lanes[0].rear_distance == NO_VEHICLE_DISTANCE
    assert lanes[2].front_distance == NO_VEHICLE_DISTANCE


def test_speed_is_velocity_magnitude():
    obj = TrackedObject(id=7, x=0.0, y=0.0, vx=3.0, vy=4.0, s=120.0, d=10.0)
    lanes = LaneOccupancyModel().summarize(ego_s=100.0, objects=[obj], unconsumed_points=0)
    assert lanes[2].front_speed == pytest.approx(5.0)


def test_objects_extrapolated_over_unconsumed_path():
    # 10 points * 0.02 s * 20 m/s = 4 m further along
    behind_now = _car(1, 98.0, 6.0, speed=20.0)

    lanes = LaneOccupancyModel().summarize(ego_s=100.0, objects=[behind_now], unconsumed_points=10)

    assert lanes[1].front_distance == pytest.approx(2.0)
    assert lanes[1].rear_distance == NO_VEHICLE_DISTANCE


def test_object_level_with_ego_counts_as_front():
    lanes = LaneOccupancyModel().summarize(ego_s=100.0, objects=[_car(1, 100.0, 6.0)], unconsumed_points=0)
    assert lanes[1].front_distance == pytest.approx(0.0)
