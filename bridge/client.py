"""
Python client helper for the planner bridge.
Lets a simulator harness or replay tool drive the planner over HTTP.
"""

import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class PlannerBridgeClient:
    """Client for communicating with the planner bridge server."""

    def __init__(self, base_url: str = "http://localhost:4567", timeout: float = 0.5):
        """
        Initialize planner bridge client.

        Args:
            base_url: Base URL of the bridge server
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def send_telemetry(self, telemetry: Dict) -> Optional[Dict[str, List[float]]]:
        """
        Send one telemetry message and get the planned path.

        Args:
            telemetry: Telemetry dict (x, y, s, d, yaw, speed, previous_path_x,
                previous_path_y, end_path_s, end_path_d, sensor_fusion)

        Returns:
            Dict with next_x and next_y, or None on failure
        """
        try:
            response = self.session.post(
                f"{self.base_url}/api/telemetry",
                json=telemetry,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            logger.warning("Planner did not answer within %.2fs", self.timeout)
            return None
        except requests.RequestException as e:
            logger.error(f"Error sending telemetry: {e}")
            return None

    def get_planner_state(self) -> Optional[Dict]:
        """
        Get the planner's current lane and reference speed.

        Returns:
            State dictionary or None if not available
        """
        try:
            response = self.session.get(f"{self.base_url}/api/planner/state", timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException:
            return None

    def health_check(self) -> bool:
        """True if the bridge answers and has a planner attached."""
        try:
            response = self.session.get(f"{self.base_url}/api/health", timeout=self.timeout)
            response.raise_for_status()
            return bool(response.json().get("planner_configured", False))
        except requests.RequestException:
            return False
