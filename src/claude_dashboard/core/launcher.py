"""
Process Launcher
Fire-and-forget execution of OS commands (terminals, maintenance scripts).

The HTTP layer never waits on a spawned command: spawn() returns at once
and every failure ends up in the server log only.
"""

import subprocess
import sys
import threading
from typing import Optional


def _escape_double_quotes(command: str) -> str:
    return command.replace('"', '\\"')


def terminal_command(command: str, platform: Optional[str] = None) -> str:
    """Wrap a shell command so it runs inside a new terminal window."""
    platform = platform or sys.platform
    escaped = _escape_double_quotes(command)

    if platform == "win32":
        return f'mintty -e /bin/bash -c "{escaped}"'
    if platform == "darwin":
        # AppleScript string inside a shell double-quoted argument
        script = escaped.replace("\\", "\\\\").replace('"', '\\"')
        return f'osascript -e "tell application \\"Terminal\\" to do script \\"{script}\\""'
    return f'x-terminal-emulator -e bash -c "{escaped}"'


class ProcessLauncher:
    """Spawns shell commands on background threads."""

    def spawn(self, command: str, timeout: Optional[float] = None,
              label: Optional[str] = None) -> None:
        label = label or command.split(" ", 1)[0]
        thread = threading.Thread(
            target=self._run,
            args=(command, timeout, label),
            name=f"spawn-{label}",
            daemon=True
        )
        thread.start()
        print(f"[Launcher] Started {label}")

    def _run(self, command: str, timeout: Optional[float], label: str):
        try:
            result = subprocess.run(
                command,
                shell=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=timeout
            )
        except subprocess.TimeoutExpired:
            print(f"[Launcher] {label} timed out after {timeout}s")
            return
        except OSError as e:
            print(f"[Launcher] {label} failed to start: {e}")
            return

        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
            print(f"[Launcher] {label} exited with {result.returncode}: {stderr[:200]}")
