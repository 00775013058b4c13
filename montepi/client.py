import time
from typing import Any, Dict, List, Literal, Optional

import requests


class SimulationError(Exception):
    """Base exception for simulation client errors."""


class SimulationServerError(SimulationError):
    """Raised when the server returns a non-2xx response with an error."""


class SimulationNetworkError(SimulationError):
    """Raised when there is a network/transport error reaching the server."""


class SimulationProtocolError(SimulationError):
    """Raised when the server responds successfully but the payload is invalid."""


class SimulationConflictError(SimulationServerError):
    """Raised when the request does not fit the current run state (HTTP 409)."""


class SimulationClient:
    """A client for the Monte Carlo Pi server."""

    def __init__(self, server_url: str, timeout: float = 5.0):
        self.server_url = server_url.rstrip('/')
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = requests.request(method, f"{self.server_url}{path}", timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise SimulationNetworkError(f"Network error calling {method} {path}: {e}") from e

        if not response.ok:
            status = response.status_code
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                server_detail = body.get("detail")
            else:
                server_detail = response.text or response.reason
            msg = f"Server error calling {method} {path}: {server_detail or 'unknown error'} (HTTP {status})"
            if status == 409:
                raise SimulationConflictError(msg)
            raise SimulationServerError(msg)

        try:
            payload = response.json()
        except ValueError as e:
            raise SimulationProtocolError(f"Invalid JSON response from {path}: {e}") from e
        if not isinstance(payload, dict):
            raise SimulationProtocolError(f"Unexpected payload from {path}: {payload!r}")
        return payload

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")

    def state(self) -> Dict[str, Any]:
        """Current status, delay, geometry, counts and estimate."""
        return self._request("GET", "/api/state")

    def start(self) -> Dict[str, Any]:
        return self._request("POST", "/api/start")

    def pause(self) -> Dict[str, Any]:
        return self._request("POST", "/api/pause")

    def resume(self) -> Dict[str, Any]:
        return self._request("POST", "/api/resume")

    def reset(self) -> Dict[str, Any]:
        return self._request("POST", "/api/reset")

    def toggle(self) -> Dict[str, Any]:
        """Pause when running, otherwise start or resume."""
        return self._request("POST", "/api/toggle")

    def step(self) -> Dict[str, Any]:
        """Run a single tick on a paused or idle simulation and return it."""
        return self._request("POST", "/api/step")

    def set_delay(self, delay_ms: int) -> Dict[str, Any]:
        return self._request("PUT", "/api/delay", json={"delay_ms": delay_ms})

    def samples(self, n: int = 100) -> List[Dict[str, Any]]:
        """Fetch up to n of the most recent samples, oldest first."""
        data = self._request("GET", "/api/samples", params={"n": n})
        if "samples" not in data:
            raise SimulationProtocolError("Missing 'samples' in server response.")
        return data["samples"]

    def runs(self, n: int = 100, order: Literal["latest", "earliest"] = "latest") -> List[Dict[str, Any]]:
        """Fetch stored run summaries.

        Args:
            n: number of runs (1..10000).
            order: 'latest' or 'earliest'.

        Raises:
            SimulationServerError: HTTP 404 when the server keeps no run history.
        """
        data = self._request("GET", "/api/runs", params={"n": n, "order": order})
        return data.get("runs", [])

    def clear_runs(self) -> int:
        return int(self._request("DELETE", "/api/runs").get("deleted", 0))


def wait_for_samples(client: SimulationClient, minimum: int, *, attempts: int = 50,
                     interval: float = 0.1) -> Optional[Dict[str, Any]]:
    """Poll the server until at least ``minimum`` samples are recorded.

    Returns the state payload, or None if the count was not reached in time.
    """
    for _ in range(attempts):
        state = client.state()
        if state["total"] >= minimum:
            return state
        time.sleep(interval)
    return None
