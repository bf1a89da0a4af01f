"""
Claude Dashboard Core Module
Contains the state store, file watcher, live broadcaster, process launcher,
sidecar proxy and the report/brain readers.
"""

from .state_store import StateStore, StateReadError, atomic_json_write
from .file_watcher import ChangeWatcher
from .broadcaster import UpdateBroadcaster
from .launcher import ProcessLauncher, terminal_command
from .sidecar import SidecarClient, SidecarUnavailable

__all__ = [
    'StateStore',
    'StateReadError',
    'atomic_json_write',
    'ChangeWatcher',
    'UpdateBroadcaster',
    'ProcessLauncher',
    'terminal_command',
    'SidecarClient',
    'SidecarUnavailable'
]
