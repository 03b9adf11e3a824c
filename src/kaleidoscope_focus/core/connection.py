"""
Connection settings and session setup.

Both the CLI and library callers build a ConnectionConfig once and hand it
to `connect()` rather than wiring transports and sessions by hand.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from kaleidoscope_focus.devices import DeviceNotFoundError, find_devices
from kaleidoscope_focus.protocol import FocusSession, SerialTransport

logger = logging.getLogger(__name__)


@dataclass
class ConnectionConfig:
    """
    How to reach the keyboard and pace the conversation.

    Attributes:
        endpoint: Serial port to open; None picks the first supported device
        chunk_size: Maximum bytes per write (0 writes a request at once)
        inter_chunk_delay_ms: Pause between chunks, polls and reads
        read_timeout_ms: Quiet period that ends a reply
        quiet: Suppress progress display
    """
    endpoint: Optional[str] = None
    chunk_size: int = 32
    inter_chunk_delay_ms: int = 50
    read_timeout_ms: int = 50
    quiet: bool = False

    def __post_init__(self) -> None:
        for name in ("chunk_size", "inter_chunk_delay_ms", "read_timeout_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")


def resolve_endpoint(config: ConnectionConfig) -> str:
    """
    Return the port to open for a configuration.

    Raises:
        DeviceNotFoundError: If no port was given and none was discovered
    """
    if config.endpoint:
        return config.endpoint

    devices = find_devices()
    if not devices:
        raise DeviceNotFoundError("No supported device found")

    if len(devices) > 1:
        logger.info(f"Found {len(devices)} devices, using {devices[0]}")
    return devices[0]


def connect(config: ConnectionConfig) -> FocusSession:
    """
    Open a session to the configured keyboard.

    Raises:
        DeviceNotFoundError: If no port was given and none was discovered
        TransportOpenError: If the port cannot be opened
    """
    port = resolve_endpoint(config)

    transport = SerialTransport(port, read_timeout=config.read_timeout_ms / 1000)
    transport.open()
    logger.debug(f"Connected to {port}")

    return FocusSession(
        transport,
        chunk_size=config.chunk_size,
        interval=config.inter_chunk_delay_ms / 1000,
    )
