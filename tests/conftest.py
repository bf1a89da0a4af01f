"""
Shared fixtures: a throwaway home directory, a ServerContext wired to it,
and a Flask test client. External effects (process spawns, live
broadcasts) are recorded instead of performed.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from claude_dashboard.config import Settings
from claude_dashboard.context import ServerContext
from claude_dashboard.server import create_app


class RecordingLauncher:
    """Stands in for ProcessLauncher; remembers what would have run."""

    def __init__(self):
        self.calls = []

    def spawn(self, command, timeout=None, label=None):
        self.calls.append({"command": command, "timeout": timeout, "label": label})


@pytest.fixture
def home(tmp_path):
    (tmp_path / ".claude").mkdir()
    return tmp_path


@pytest.fixture
def settings(home):
    return Settings(home=home, host="127.0.0.1", ws_port=0, sidecar_port=1, sidecar_timeout=0.5)


@pytest.fixture
def context(settings):
    ctx = ServerContext.create(settings)
    ctx.launcher = RecordingLauncher()
    ctx.broadcaster.notify_all = MagicMock(return_value=None)
    return ctx


@pytest.fixture
def client(context):
    app = create_app(context)
    app.testing = True
    return app.test_client()


def write_json(path: Path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def write_text(path: Path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
