"""
Session Guardian integration.

The guardian is an external monitor process. This module only reads the
files it leaves behind (state JSON, PID file, log) and builds the command
lines for the maintenance actions the dashboard can trigger.
"""

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..config import GUARDIAN_LOG_LINES, STATUS_COMMAND_TIMEOUT, Settings
from .launcher import terminal_command

# Largest value a platform pid_t can hold
MAX_PID = 2**31 - 1

GUARDIAN_ACTIONS = (
    "optimize",
    "kill-zombies",
    "cleanup",
    "kill-all",
    "launch-daily",
    "launch-weekly",
    "restart-guardian",
    "open-folder",
    "open-claude",
)


class UnknownActionError(ValueError):
    """Raised for an action outside GUARDIAN_ACTIONS."""

    def __init__(self, action):
        super().__init__(f"Unknown action: {action}")
        self.action = action


# ---------------------------------------------------------------------------
# Action commands
# ---------------------------------------------------------------------------
def _powershell_script(script: Path, *args: str, platform: str) -> str:
    shell = "powershell" if platform == "win32" else "pwsh"
    cmd = f'{shell} -ExecutionPolicy Bypass -File "{script}"'
    if args:
        cmd += " " + " ".join(args)
    return cmd


def _open_folder(folder: str, platform: str) -> str:
    if platform == "win32":
        return f'explorer.exe "{folder}"'
    if platform == "darwin":
        return f'open "{folder}"'
    return f'xdg-open "{folder}"'


def _open_claude(settings: Settings, platform: str) -> str:
    if platform == "win32":
        claude_cmd = Path(os.environ.get("APPDATA", "")) / "npm" / "claude.cmd"
        return f'wt new-tab --title "Claude Code" cmd /k "{claude_cmd}"'
    return terminal_command("claude", platform)


def build_action_command(action: str, settings: Settings,
                         folder: Optional[str] = None,
                         platform: Optional[str] = None) -> str:
    """Map a guardian action name onto the shell command that performs it."""
    platform = platform or sys.platform
    scripts = settings.scripts_dir

    if action == "optimize":
        return _powershell_script(scripts / "optimize-pc.ps1", "-aggressive", platform=platform)
    if action == "kill-zombies":
        return _powershell_script(scripts / "kill-zombies.ps1", platform=platform)
    if action == "cleanup":
        return _powershell_script(scripts / "cleanup-all.ps1", platform=platform)
    if action == "kill-all":
        return _powershell_script(scripts / "launch-smart.ps1", "--kill", platform=platform)
    if action == "launch-daily":
        return _powershell_script(scripts / "launch-smart.ps1", platform=platform)
    if action == "launch-weekly":
        return _powershell_script(scripts / "launch-smart.ps1", "--weekly", platform=platform)
    if action == "restart-guardian":
        if platform == "win32":
            return f'wscript.exe "{scripts / "start-guardian.vbs"}"'
        return _powershell_script(scripts / "start-guardian.ps1", platform=platform)
    if action == "open-folder":
        return _open_folder(folder or str(settings.open_folder_default), platform)
    if action == "open-claude":
        return _open_claude(settings, platform)

    raise UnknownActionError(action)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------
def is_pid_alive(pid: int, platform: Optional[str] = None) -> bool:
    """Check whether a process id is alive without disturbing it."""
    platform = platform or sys.platform
    if pid <= 0 or pid > MAX_PID:
        return False

    if platform == "win32":
        # os.kill(pid, 0) terminates processes on Windows
        try:
            result = subprocess.run(
                ["tasklist", "/FI", f"PID eq {pid}", "/NH"],
                capture_output=True, text=True, timeout=STATUS_COMMAND_TIMEOUT
            )
        except (OSError, subprocess.SubprocessError):
            return False
        return str(pid) in result.stdout

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except (OSError, OverflowError):
        return False
    return True


def tail_lines(path: Path, count: int = GUARDIAN_LOG_LINES) -> list:
    text = path.read_text(encoding="utf-8", errors="replace").strip()
    if not text:
        return []
    return text.split("\n")[-count:]


def query_memory_mb(platform: Optional[str] = None) -> Tuple[int, int]:
    """Return (free, total) physical memory in MB via an external command."""
    platform = platform or sys.platform

    if platform == "win32":
        cmd = [
            "powershell", "-Command",
            "$os = Get-CimInstance Win32_OperatingSystem; "
            "Write-Host ([math]::Round($os.FreePhysicalMemory/1KB)) "
            "([math]::Round($os.TotalVisibleMemorySize/1KB))"
        ]
        output = subprocess.run(cmd, capture_output=True, text=True,
                                timeout=STATUS_COMMAND_TIMEOUT, check=True).stdout
        parts = output.strip().split()
        return _to_int(parts[0] if parts else 0), _to_int(parts[1] if len(parts) > 1 else 0)

    output = subprocess.run(["free", "-m"], capture_output=True, text=True,
                            timeout=STATUS_COMMAND_TIMEOUT, check=True).stdout
    return parse_free_output(output)


def parse_free_output(output: str) -> Tuple[int, int]:
    """Parse `free -m`: the Mem row's available (or free) and total columns."""
    header = []
    for line in output.splitlines():
        cols = line.split()
        if not cols:
            continue
        if cols[0] == "total":
            header = cols
        elif cols[0].startswith("Mem"):
            values = dict(zip(header, cols[1:]))
            total = _to_int(values.get("total", cols[1] if len(cols) > 1 else 0))
            free = _to_int(values.get("available", values.get("free", 0)))
            return free, total
    return 0, 0


def _to_int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def collect_status(settings: Settings, platform: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the guardian status payload.

    Each step is independent: a failing step leaves its fields at the
    defaults and the remaining steps still run.
    """
    result: Dict[str, Any] = {
        "running": False,
        "pid": None,
        "freeRAMMB": 0,
        "totalRAMMB": 0,
        "sessionCount": 0,
        "mcpCount": 0,
        "lastCheck": None,
        "recentLog": [],
    }

    state_path = settings.guardian_state_path
    if state_path.exists():
        try:
            state = json.loads(state_path.read_text(encoding="utf-8"))
            if isinstance(state, dict):
                result.update(state)
        except (OSError, ValueError) as e:
            print(f"[Guardian] State read error: {e}")

    pid_path = settings.guardian_pid_path
    if pid_path.exists():
        try:
            pid_text = pid_path.read_text(encoding="utf-8").strip()
            result["pid"] = pid_text
            result["running"] = is_pid_alive(int(pid_text), platform)
        except (OSError, ValueError, OverflowError) as e:
            print(f"[Guardian] PID check error: {e}")
            result["running"] = False

    log_path = settings.guardian_log_path
    if log_path.exists():
        try:
            result["recentLog"] = tail_lines(log_path)
        except OSError as e:
            print(f"[Guardian] Log read error: {e}")

    try:
        result["freeRAMMB"], result["totalRAMMB"] = query_memory_mb(platform)
    except (OSError, subprocess.SubprocessError, ValueError) as e:
        print(f"[Guardian] RAM query error: {e}")

    return result
