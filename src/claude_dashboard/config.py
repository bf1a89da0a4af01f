"""
Claude Dashboard Configuration
Central configuration for all server components.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Server Configuration
# ---------------------------------------------------------------------------
DEFAULT_HTTP_PORT = 3456
DEFAULT_WS_PORT = 3457
DEFAULT_HOST = "0.0.0.0"

# ---------------------------------------------------------------------------
# Claude-Mem sidecar
# ---------------------------------------------------------------------------
CLAUDE_MEM_HOST = "127.0.0.1"
CLAUDE_MEM_PORT = 37777
CLAUDE_MEM_TIMEOUT = 5.0

# ---------------------------------------------------------------------------
# External commands
# ---------------------------------------------------------------------------
ACTION_TIMEOUT = 30.0  # guardian maintenance scripts
STATUS_COMMAND_TIMEOUT = 5.0  # live RAM query
GUARDIAN_LOG_LINES = 10

# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
MAX_SESSIONS_PER_KIND = 10
PROGRESS_WINDOW_DAYS = 7
TERMINAL_STATUSES = ("merged", "paused")

# ---------------------------------------------------------------------------
# File names
# ---------------------------------------------------------------------------
REGISTRY_FILE = "projects-registry.json"
TOKENS_FILE = "token-usage.json"

# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------
VERSION = "1.0"
APP_NAME = "Claude Dashboard"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"[Config] Ignoring non-integer {name}={value!r}")
        return default


def resolve_home(override: Optional[str] = None) -> Path:
    """Home-equivalent directory: explicit override, env, then the OS home."""
    home = (
        override
        or os.environ.get("CLAUDE_DASHBOARD_HOME")
        or os.environ.get("HOME")
        or os.environ.get("USERPROFILE")
    )
    return Path(home) if home else Path.home()


@dataclass
class Settings:
    """Runtime settings. Every path the server touches derives from `home`."""

    home: Path
    http_port: int = DEFAULT_HTTP_PORT
    ws_port: int = DEFAULT_WS_PORT
    host: str = DEFAULT_HOST
    sidecar_host: str = CLAUDE_MEM_HOST
    sidecar_port: int = CLAUDE_MEM_PORT
    sidecar_timeout: float = CLAUDE_MEM_TIMEOUT
    action_timeout: float = ACTION_TIMEOUT
    default_open_folder: Optional[Path] = field(default=None)

    @classmethod
    def from_env(cls, home: Optional[str] = None) -> "Settings":
        return cls(
            home=resolve_home(home),
            http_port=_env_int("CLAUDE_DASHBOARD_PORT", DEFAULT_HTTP_PORT),
            ws_port=_env_int("CLAUDE_DASHBOARD_WS_PORT", DEFAULT_WS_PORT),
            sidecar_port=_env_int("CLAUDE_MEM_PORT", CLAUDE_MEM_PORT),
        )

    # -- base directories ---------------------------------------------------
    @property
    def base_dir(self) -> Path:
        return self.home / ".claude"

    @property
    def dashboard_dir(self) -> Path:
        return self.base_dir / "dashboard"

    @property
    def brain_dir(self) -> Path:
        return self.base_dir / "second-brain"

    @property
    def scripts_dir(self) -> Path:
        return self.base_dir / "scripts"

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "logs"

    # -- state files --------------------------------------------------------
    @property
    def registry_path(self) -> Path:
        return self.base_dir / REGISTRY_FILE

    @property
    def tokens_path(self) -> Path:
        return self.base_dir / TOKENS_FILE

    # -- reports ------------------------------------------------------------
    @property
    def documents_dir(self) -> Path:
        return self.home / "Documents"

    @property
    def daily_dir(self) -> Path:
        return self.brain_dir / "daily"

    @property
    def weekly_dir(self) -> Path:
        return self.brain_dir / "weekly"

    @property
    def report_dirs(self):
        """Directories whose markdown files may be read through the API."""
        return [self.documents_dir, self.daily_dir, self.weekly_dir]

    # -- guardian -----------------------------------------------------------
    @property
    def guardian_state_path(self) -> Path:
        return self.logs_dir / "guardian-state.json"

    @property
    def guardian_pid_path(self) -> Path:
        return self.logs_dir / "guardian-pid.txt"

    @property
    def guardian_log_path(self) -> Path:
        return self.logs_dir / "session-guardian.log"

    @property
    def open_folder_default(self) -> Path:
        return self.default_open_folder or (self.home / "projects")

    @property
    def sidecar_url(self) -> str:
        return f"http://{self.sidecar_host}:{self.sidecar_port}"
