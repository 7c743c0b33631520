"""
Tests for simulator frame parsing and encoding.
"""

import json

import pytest

from bridge.protocol import (
    encode_control,
    encode_manual,
    extract_event_payload,
    parse_event,
)


def test_extracts_event_array():
    message = '42["telemetry",{"x":1.5}]'
    assert extract_event_payload(message) == '["telemetry",{"x":1.5}]'


@pytest.mark.parametrize("message", [
    "",
    "42",
    "2",
    '0{"sid":"abc"}',
    '42["telemetry",null]',
    "42 no array here",
])
def test_frames_without_data(message):
    assert extract_event_payload(message) is None
    assert parse_event(message) is None


def test_parse_telemetry_event():
    telemetry = {"x": 909.48, "y": 1128.67, "previous_path_x": [], "sensor_fusion": [[0, 1, 2, 3, 4, 5, 6]]}
    message = "42" + json.dumps(["telemetry", telemetry])

    name, data = parse_event(message)

    assert name == "telemetry"
    assert data == telemetry


def test_parse_rejects_invalid_json():
    assert parse_event('42["telemetry",{"x":]') is None


def test_parse_event_without_data():
    assert parse_event('42["ping"]') == ("ping", None)


def test_encode_control_frame():
    frame = encode_control([1, 2.5], [3.0, 4.0])

    assert frame.startswith("42")
    name, data = json.loads(frame[2:])
    assert name == "control"
    assert data == {"next_x": [1.0, 2.5], "next_y": [3.0, 4.0]}


def test_encode_manual_frame():
    assert encode_manual() == '42["manual",{}]'
