"""
FastAPI server for the simulator <-> planner bridge.
Receives telemetry, runs one planner cycle and returns the planned path.
"""

import time
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field
import uvicorn

from bridge.protocol import TELEMETRY_EVENT, encode_control, encode_manual, parse_event
from planner_stack import PlannerStack

app = FastAPI(title="Highway Planner Bridge Server")

# One control cycle is 0.02 s of simulated driving.
SLOW_CYCLE_SECONDS = 0.02


def _get_bridge_logger() -> logging.Logger:
    log_path = Path(__file__).resolve().parents[1] / "tmp" / "logs" / "planner_bridge.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)

    bridge_logger = logging.getLogger("planner_bridge")
    bridge_logger.setLevel(logging.INFO)

    if not any(isinstance(h, logging.FileHandler) and h.baseFilename == str(log_path)
               for h in bridge_logger.handlers):
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        handler.setFormatter(formatter)
        bridge_logger.addHandler(handler)
        bridge_logger.propagate = False

    return bridge_logger


logger = _get_bridge_logger()

# Global state
planner_stack: Optional[PlannerStack] = None
last_cycle_duration: Optional[float] = None


class TelemetryRequest(BaseModel):
    """Telemetry from the simulator for one cycle."""
    x: float
    y: float
    s: float
    d: float
    yaw: float  # degrees
    speed: float  # mph
    previous_path_x: List[float] = Field(default_factory=list)
    previous_path_y: List[float] = Field(default_factory=list)
    end_path_s: float = 0.0
    end_path_d: float = 0.0
    sensor_fusion: List[List[float]] = Field(default_factory=list)  # [id, x, y, vx, vy, s, d]


class ControlResponse(BaseModel):
    """Planned path for the simulator."""
    next_x: List[float]
    next_y: List[float]


def configure(stack: PlannerStack) -> None:
    """Attach the planner stack that handles incoming telemetry."""
    global planner_stack, last_cycle_duration
    planner_stack = stack
    last_cycle_duration = None


def _require_stack() -> PlannerStack:
    if planner_stack is None:
        raise HTTPException(status_code=503, detail="Planner not configured")
    return planner_stack


def _run_cycle(stack: PlannerStack, telemetry: dict) -> dict:
    global last_cycle_duration
    start_time = time.time()
    control = stack.handle_telemetry(telemetry)
    duration = time.time() - start_time
    last_cycle_duration = duration
    if duration > SLOW_CYCLE_SECONDS:
        logger.warning(
            "[SLOW] planner cycle duration=%.3fs cycle=%d objects=%d kept=%d",
            duration,
            stack.cycle_count,
            len(telemetry.get("sensor_fusion") or []),
            len(telemetry.get("previous_path_x") or []),
        )
    return control


@app.post("/api/telemetry", response_model=ControlResponse)
async def receive_telemetry(telemetry: TelemetryRequest):
    """
    Run one planner cycle.

    Args:
        telemetry: Ego state, unconsumed path and sensor fusion list
    """
    stack = _require_stack()
    try:
        return _run_cycle(stack, telemetry.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing telemetry: {str(e)}")


@app.get("/api/planner/state")
async def get_planner_state():
    """Current target lane and reference speed."""
    stack = _require_stack()
    return {
        "lane": stack.state.lane,
        "reference_speed": stack.state.reference_speed,
        "cycle_count": stack.cycle_count,
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "planner_configured": planner_stack is not None,
        "cycle_count": planner_stack.cycle_count if planner_stack is not None else 0,
        "last_cycle_duration": last_cycle_duration,
    }


@app.websocket("/ws")
async def simulator_socket(websocket: WebSocket):
    """
    Simulator event stream.

    Every `42["telemetry", {...}]` frame is answered with a
    `42["control", {...}]` frame. Frames without data, malformed telemetry and
    telemetry arriving before a planner is attached get the manual frame.
    """
    await websocket.accept()
    logger.info("Simulator connected")
    try:
        while True:
            message = await websocket.receive_text()
            event = parse_event(message)
            if event is None:
                await websocket.send_text(encode_manual())
                continue
            name, data = event
            if name != TELEMETRY_EVENT:
                continue
            if planner_stack is None:
                logger.debug("Telemetry frame received before a planner was attached")
                await websocket.send_text(encode_manual())
                continue
            if not isinstance(data, dict):
                logger.warning("Rejected telemetry frame: payload is %s, not an object", type(data).__name__)
                await websocket.send_text(encode_manual())
                continue
            try:
                control = _run_cycle(planner_stack, data)
            except (ValueError, TypeError) as e:
                logger.warning("Rejected telemetry frame: %s", e)
                await websocket.send_text(encode_manual())
                continue
            await websocket.send_text(encode_control(control["next_x"], control["next_y"]))
    except WebSocketDisconnect:
        logger.info("Simulator disconnected")


def run_server(stack: PlannerStack, host: str = "0.0.0.0", port: int = 4567):
    """Run the bridge server."""
    configure(stack)
    logger.info("Starting planner bridge server on %s:%d", host, port)
    print(f"Starting Highway Planner Bridge Server on {host}:{port}")
    print("Endpoints:")
    print("  POST /api/telemetry - Run one planner cycle")
    print("  GET  /api/planner/state - Current lane and reference speed")
    print("  GET  /api/health - Health check")
    print("  WS   /ws - Simulator event stream")

    uvicorn.run(app, host=host, port=port)
