"""
Core module for kaleidoscope-focus.

This module provides the single source of truth for:
- Connection settings and session setup (connection.py)
- The configuration snapshot model (snapshot.py)
- Backup and restore workflows (backup.py)

The CLI calls into this module rather than talking to sessions directly.
"""

from .connection import ConnectionConfig, connect, resolve_endpoint
from .snapshot import Snapshot, MalformedSnapshotError
from .backup import backup, restore, load_fallback_commands

__all__ = [
    # Connection
    "ConnectionConfig",
    "connect",
    "resolve_endpoint",
    # Snapshot
    "Snapshot",
    "MalformedSnapshotError",
    # Workflows
    "backup",
    "restore",
    "load_fallback_commands",
]
