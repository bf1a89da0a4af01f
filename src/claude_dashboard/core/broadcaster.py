"""
Live update broadcaster.

Holds the set of connected WebSocket clients and pushes a full
{type, projects, tokens} snapshot to each of them whenever notify_all()
is called. The WebSocket server runs on its own asyncio loop in a
daemon thread, next to the threaded Flask app.
"""

import asyncio
import json
import threading
from concurrent.futures import Future
from typing import Optional, Set

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from .state_store import StateStore


class UpdateBroadcaster:
    """Live-client registry plus the server that feeds it."""

    def __init__(self, store: StateStore, host: str = "0.0.0.0", port: int = 3457):
        self.store = store
        self.host = host
        self.port = port
        self.bound_port: Optional[int] = None
        # Unbounded: one entry per open dashboard tab
        self.clients: Set = set()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------
    def _payload(self) -> str:
        return json.dumps(self.store.snapshot(), ensure_ascii=False)

    async def send_snapshot(self, client) -> bool:
        """Send the current snapshot to a single client."""
        try:
            await client.send(self._payload())
            return True
        except ConnectionClosed:
            self.clients.discard(client)
        except Exception as e:
            print(f"[Broadcast] Send error: {e}")
        return False

    async def broadcast(self) -> int:
        """Push one fresh snapshot to every open client. Returns deliveries."""
        if not self.clients:
            return 0

        payload = self._payload()
        targets = [c for c in list(self.clients) if c.state is State.OPEN]
        results = await asyncio.gather(
            *[client.send(payload) for client in targets],
            return_exceptions=True
        )

        delivered = 0
        for client, result in zip(targets, results):
            if isinstance(result, Exception):
                self.clients.discard(client)
                print(f"[Broadcast] Dropped client {id(client)}: {result!r}")
            else:
                delivered += 1
        return delivered

    def notify_all(self) -> Optional[Future]:
        """
        Schedule a broadcast from any thread.

        Returns the scheduled future, or None when the live server is down.
        """
        loop = self._loop
        if loop is None or not loop.is_running():
            print("[Broadcast] Live server not running, skipping broadcast")
            return None
        return asyncio.run_coroutine_threadsafe(self.broadcast(), loop)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------
    async def handle_client(self, connection):
        """Register a client, send it the initial snapshot, wait for close."""
        self.clients.add(connection)
        print(f"📱 Client connected ({len(self.clients)} live)")
        try:
            await self.send_snapshot(connection)
            # Server push only; anything the client sends is ignored
            async for _ in connection:
                pass
        except ConnectionClosed:
            pass
        finally:
            self.clients.discard(connection)
            print(f"📴 Client disconnected ({len(self.clients)} live)")

    # ------------------------------------------------------------------
    # Server lifecycle
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._loop is not None and self.bound_port is not None

    async def _serve(self):
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        try:
            async with serve(self.handle_client, self.host, self.port) as server:
                self.bound_port = next(iter(server.sockets)).getsockname()[1]
                print(f"🔌 WebSocket server on ws://localhost:{self.bound_port}")
                self._ready.set()
                await self._stop_event.wait()
        except OSError as e:
            print(f"⚠️  WebSocket not available ({e}), using polling only")
        finally:
            self.bound_port = None
            self._loop = None

    def _run(self):
        try:
            asyncio.run(self._serve())
        except Exception as e:
            print(f"[Broadcast] Live server crashed: {e}")
        finally:
            self._ready.set()

    def start(self, timeout: float = 5.0) -> bool:
        """Start the WebSocket server thread. Returns True once it is bound."""
        if self._thread and self._thread.is_alive():
            return self.running
        self._ready.clear()
        self._thread = threading.Thread(target=self._run, name="live-updates", daemon=True)
        self._thread.start()
        self._ready.wait(timeout)
        return self.running

    def stop(self, timeout: float = 5.0):
        loop, stop_event = self._loop, self._stop_event
        if loop is not None and stop_event is not None:
            loop.call_soon_threadsafe(stop_event.set)
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
