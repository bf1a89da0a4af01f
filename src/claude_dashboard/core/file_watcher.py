"""
Dashboard File Watcher
Watches the state files and raises a change notification on every write.
Works with ANY writer - this server, CLI hooks, manual edits, etc.
"""

import os
from pathlib import Path
from typing import Callable, Dict, List

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


class StateFileHandler(FileSystemEventHandler):
    """Fires the callback when one specific file in a directory changes."""

    def __init__(self, path: Path, callback: Callable[[], None], label: str = ""):
        self.path = str(path)
        self.callback = callback
        self.label = label or Path(path).name

    def matches(self, path) -> bool:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return _same_path(path, self.path)

    def notify(self):
        print(f"[Watcher] {self.label} changed")
        try:
            self.callback()
        except Exception as e:
            print(f"[Watcher] Callback error for {self.label}: {e}")

    def process_event(self, event, path):
        if event.is_directory:
            return
        if self.matches(path):
            self.notify()

    def on_modified(self, event):
        self.process_event(event, event.src_path)

    def on_created(self, event):
        self.process_event(event, event.src_path)

    def on_moved(self, event):
        # Atomic writes land as a rename of a temp file onto the target
        self.process_event(event, event.dest_path)


class ChangeWatcher:
    """
    Owns one watchdog observer and the watches scheduled on it.

    No debouncing: rapid successive writes raise one callback each.
    """

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.observer = Observer()
        self.handlers: Dict[str, StateFileHandler] = {}
        self._started = False

    def watch(self, path, label: str = "") -> bool:
        """Schedule a watch for `path`. Returns False (and logs) on failure."""
        path = Path(path)
        if not path.is_file():
            print(f"[Watcher] Not watching {path}: file not found")
            return False

        handler = StateFileHandler(path, self.callback, label)
        try:
            self.observer.schedule(handler, str(path.parent), recursive=False)
        except Exception as e:
            print(f"[Watcher] Could not watch {path}: {e}")
            return False

        self.handlers[str(path)] = handler
        return True

    @property
    def watched(self) -> List[str]:
        return list(self.handlers)

    def start(self):
        if self._started:
            return
        try:
            self.observer.start()
            self._started = True
        except Exception as e:
            print(f"[Watcher] Observer failed to start: {e}")

    def stop(self):
        if not self._started:
            return
        self.observer.stop()
        self.observer.join(timeout=5)
        self._started = False
