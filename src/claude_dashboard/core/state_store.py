"""
State Store for the dashboard.

Reads and atomically rewrites the two JSON documents the dashboard owns:
the project registry and the token usage log.

Usage:
    from claude_dashboard.core.state_store import StateStore

    store = StateStore(settings)
    registry = store.load("registry")        # {} if the file is absent
    store.save("registry", {"projects": []})  # full replace, never merges
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from ..config import Settings


class StateReadError(ValueError):
    """Raised when a state file exists but does not hold valid JSON."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid JSON in {path}: {reason}")
        self.path = path


def atomic_json_write(path, data: Any, indent: int = 2) -> None:
    """
    Write JSON data atomically (crash-safe).

    Process:
    1. Serialize fully before touching the disk
    2. Write to a temporary file in the same directory, flush and sync
    3. Atomically replace the original file

    The target is never left half-written. I/O errors propagate.
    """
    path = Path(path)
    payload = json.dumps(data, indent=indent, ensure_ascii=False)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f'.{path.stem}_',
        suffix='.tmp'
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


class StateStore:
    """Named access to the dashboard's JSON state documents."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.paths: Dict[str, Path] = {
            "registry": settings.registry_path,
            "tokens": settings.tokens_path,
        }

    def path_for(self, name: str) -> Path:
        try:
            return self.paths[name]
        except KeyError:
            raise KeyError(f"Unknown state document: {name}") from None

    def load(self, name: str) -> Any:
        """
        Read a state document.

        Returns an empty object when the file does not exist.
        Raises StateReadError if the file holds malformed JSON.
        """
        path = self.path_for(name)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except FileNotFoundError:
            return {}

        if not text.strip():
            return {}

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StateReadError(path, str(e)) from e

    def load_or_default(self, name: str) -> Any:
        """Like load(), but any read failure degrades to the empty default."""
        try:
            return self.load(name)
        except (StateReadError, OSError) as e:
            print(f"[StateStore] Read error for {name}: {e}")
            return {}

    def save(self, name: str, value: Any) -> None:
        """Replace a state document wholesale."""
        atomic_json_write(self.path_for(name), value)
        print(f"[StateStore] Saved {self.path_for(name).name}")

    def snapshot(self) -> Dict[str, Any]:
        """Combined payload pushed to live clients."""
        registry = self.load_or_default("registry")
        tokens = self.load_or_default("tokens")

        projects = registry.get("projects") if isinstance(registry, dict) else None
        if not isinstance(projects, list):
            projects = []
        return {
            "type": "update",
            "projects": projects,
            "tokens": tokens if tokens is not None else {},
        }
