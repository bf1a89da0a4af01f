"""
Claude Dashboard
Local dashboard server for the ~/.claude project registry, token usage,
reports and the Claude-Mem sidecar, with live WebSocket updates.
"""

from .config import VERSION as __version__
