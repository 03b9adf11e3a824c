"""
Device registry for Focus-capable keyboards.

Provides the supported hardware catalog and serial port discovery.
"""

from .registry import (
    DeviceDescriptor,
    DeviceNotFoundError,
    list_devices,
    lookup_device,
    describe_ports,
    find_devices,
)

__all__ = [
    "DeviceDescriptor",
    "DeviceNotFoundError",
    "list_devices",
    "lookup_device",
    "describe_ports",
    "find_devices",
]
