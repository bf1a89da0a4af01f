"""
Claude-Mem sidecar proxy.

Forwards a handful of calls to the memory service's local HTTP API and
relays its JSON. Composite views degrade to documented fallbacks; direct
writes surface an explicit "unavailable" error instead.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import requests

from ..config import CLAUDE_MEM_HOST, CLAUDE_MEM_PORT, CLAUDE_MEM_TIMEOUT

DISCONNECTED = {"status": "disconnected"}


class SidecarUnavailable(Exception):
    """The sidecar did not answer (connection refused, timeout, ...)."""


def _decode(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class SidecarClient:
    """Thin requests-based client for the Claude-Mem HTTP API."""

    def __init__(self, host: str = CLAUDE_MEM_HOST, port: int = CLAUDE_MEM_PORT,
                 timeout: float = CLAUDE_MEM_TIMEOUT):
        self.base_url = f"http://{host}:{port}"
        self.timeout = timeout

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            response = requests.get(self.base_url + path, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise SidecarUnavailable(str(e)) from e
        return _decode(response)

    def get_or(self, path: str, fallback: Any, params: Optional[dict] = None) -> Any:
        try:
            return self.get(path, params=params)
        except SidecarUnavailable as e:
            print(f"[Sidecar] GET {path} failed: {e}")
            return fallback

    def post(self, path: str, body: Any) -> Any:
        try:
            response = requests.post(self.base_url + path, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise SidecarUnavailable(str(e)) from e
        return _decode(response)

    # ------------------------------------------------------------------
    # Endpoints used by the dashboard
    # ------------------------------------------------------------------
    def overview(self) -> dict:
        """Health, observations and projects fetched concurrently."""
        with ThreadPoolExecutor(max_workers=3) as pool:
            health = pool.submit(self.get_or, "/api/health", dict(DISCONNECTED))
            observations = pool.submit(self.get_or, "/api/observations", [])
            projects = pool.submit(self.get_or, "/api/projects", [])
            return {
                "status": "connected",
                "health": health.result(),
                "observations": observations.result(),
                "projects": projects.result(),
            }

    def timeline(self, anchor: str = "") -> Any:
        params = {"anchor": anchor} if anchor else None
        return self.get("/api/timeline", params=params)

    def save_memory(self, body: Any) -> Any:
        return self.post("/api/memory/save", body)

    def route(self, sub_path: str, anchor: str = "") -> Any:
        """Dispatch a GET under /api/brain/claude-mem/<sub_path>."""
        sub_path = sub_path.strip("/")
        try:
            if not sub_path:
                return self.overview()
            if sub_path.startswith("timeline"):
                return self.timeline(anchor)
            if sub_path == "save":
                return {"error": "Use POST method"}
            return self.get(f"/api/{sub_path}")
        except SidecarUnavailable as e:
            print(f"[Sidecar] {sub_path} unavailable: {e}")
            return {"error": str(e), "status": "disconnected"}
