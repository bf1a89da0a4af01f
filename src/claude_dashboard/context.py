"""
Server context.
One object that owns every long-lived piece of the dashboard: the state
store, the live-client broadcaster, the state file watches, the process
launcher and the sidecar client. Built once at startup and handed to the
Flask app.
"""

from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .core.broadcaster import UpdateBroadcaster
from .core.file_watcher import ChangeWatcher
from .core.launcher import ProcessLauncher
from .core.sidecar import SidecarClient
from .core.state_store import StateStore


@dataclass
class ServerContext:
    settings: Settings
    store: StateStore
    broadcaster: UpdateBroadcaster
    watcher: ChangeWatcher
    launcher: ProcessLauncher
    sidecar: SidecarClient

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "ServerContext":
        settings = settings or Settings.from_env()
        store = StateStore(settings)
        broadcaster = UpdateBroadcaster(store, settings.host, settings.ws_port)
        return cls(
            settings=settings,
            store=store,
            broadcaster=broadcaster,
            watcher=ChangeWatcher(broadcaster.notify_all),
            launcher=ProcessLauncher(),
            sidecar=SidecarClient(
                settings.sidecar_host,
                settings.sidecar_port,
                settings.sidecar_timeout
            ),
        )

    def notify_all(self):
        """Push a fresh snapshot to every live client."""
        return self.broadcaster.notify_all()

    def start(self):
        """Start the live channel and the state file watches."""
        self.broadcaster.start()
        self.watcher.watch(self.settings.registry_path, "📁 Registry")
        self.watcher.watch(self.settings.tokens_path, "💰 Tokens")
        self.watcher.start()

    def stop(self):
        self.watcher.stop()
        self.broadcaster.stop()
