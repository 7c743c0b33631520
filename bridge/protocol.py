"""
Simulator message framing.

The simulator speaks socket.io-style text frames: a frame starting with "42"
is an event message whose body is a JSON array `[event_name, data]`.
"""

import json
from typing import Any, Dict, Optional, Sequence, Tuple

EVENT_PREFIX = "42"
TELEMETRY_EVENT = "telemetry"
CONTROL_EVENT = "control"
MANUAL_EVENT = "manual"


def extract_event_payload(message: str) -> Optional[str]:
    """
    Extract the JSON event array from a simulator frame.

    Args:
        message: Raw text frame

    Returns:
        JSON text of the `[event, data]` array, or None if the frame carries
        no data (manual driving) or is not an event frame
    """
    if not message or len(message) <= 2 or not message.startswith(EVENT_PREFIX):
        return None
    if "null" in message:
        return None
    start = message.find("[")
    end = message.rfind("]")
    if start == -1 or end == -1 or end < start:
        return None
    return message[start:end + 1]


def parse_event(message: str) -> Optional[Tuple[str, Any]]:
    """Parse a frame into (event_name, data), or None when there is nothing to handle."""
    payload = extract_event_payload(message)
    if payload is None:
        return None
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError:
        return None
    if not isinstance(decoded, list) or not decoded or not isinstance(decoded[0], str):
        return None
    data = decoded[1] if len(decoded) > 1 else None
    return decoded[0], data


def encode_event(event: str, data: Dict[str, Any]) -> str:
    return EVENT_PREFIX + json.dumps([event, data], separators=(",", ":"))


def encode_control(next_x: Sequence[float], next_y: Sequence[float]) -> str:
    """Frame carrying the planned path back to the simulator."""
    return encode_event(CONTROL_EVENT, {
        "next_x": [float(v) for v in next_x],
        "next_y": [float(v) for v in next_y],
    })


def encode_manual() -> str:
    """Frame telling the simulator to keep driving manually."""
    return encode_event(MANUAL_EVENT, {})
