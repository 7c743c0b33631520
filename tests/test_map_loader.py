"""
Tests for loading the waypoint map file.
"""

import pytest

from data.map_loader import DEFAULT_MAX_S, MalformedMapError, load_waypoint_map
from trajectory.waypoint_map import FrenetConfig


def _write_map(tmp_path, rows):
    map_file = tmp_path / "highway_map.csv"
    map_file.write_text("\n".join(" ".join(str(v) for v in row) for row in rows) + "\n")
    return map_file


def test_loads_rows_in_order(tmp_path):
    map_file = _write_map(tmp_path, [
        (784.6001, 1135.571, 0.0, -0.02359831, -0.9997216),
        (815.2679, 1134.93, 30.6744785308838, -0.01099479, -0.9999396),
        (844.6398, 1134.911, 60.0463714599609, -0.002048373, -0.9999979),
    ])

    wmap = load_waypoint_map(str(map_file))

    assert len(wmap) == 3
    assert wmap.max_s == pytest.approx(DEFAULT_MAX_S)
    assert wmap.waypoints[1].x == pytest.approx(815.2679)
    assert wmap.waypoints[2].s == pytest.approx(60.0463714599609)
    assert wmap.waypoints[0].dy == pytest.approx(-0.9997216)


def test_custom_track_length_and_frenet_config(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0, -1), (10, 0, 10, 0, -1), (20, 0, 20, 0, -1)])

    wmap = load_waypoint_map(str(map_file), max_s=30.0,
                             frenet_config=FrenetConfig(sign_mode="cross_product"))

    assert wmap.max_s == pytest.approx(30.0)
    assert wmap.config.sign_mode == "cross_product"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_waypoint_map(str(tmp_path / "missing.csv"))


def test_wrong_column_count(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0), (10, 0, 10, 0)])
    with pytest.raises(MalformedMapError):
        load_waypoint_map(str(map_file))


def test_non_numeric_row(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0, -1), ("a", 0, 10, 0, -1)])
    with pytest.raises(MalformedMapError):
        load_waypoint_map(str(map_file))


def test_single_waypoint(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0, -1)])
    with pytest.raises(MalformedMapError):
        load_waypoint_map(str(map_file))


def test_s_must_increase(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0, -1), (10, 0, 10, 0, -1), (20, 0, 10, 0, -1)])
    with pytest.raises(MalformedMapError, match="row 2"):
        load_waypoint_map(str(map_file))


def test_track_length_must_exceed_last_s(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0, -1), (10, 0, 10, 0, -1)])
    with pytest.raises(MalformedMapError):
        load_waypoint_map(str(map_file), max_s=10.0)


def test_malformed_map_is_a_value_error(tmp_path):
    map_file = _write_map(tmp_path, [(0, 0, 0, 0, -1)])
    with pytest.raises(ValueError):
        load_waypoint_map(str(map_file))
