"""
Device registry for Focus-capable keyboards.

Provides a single source of truth for:
- Supported hardware (USB vendor/product identity)
- Discovery of matching serial ports on the host

Usage:
    from kaleidoscope_focus.devices import find_devices, lookup_device

    # Paths of every connected supported keyboard, in host order
    ports = find_devices()

    # Catalog entry for a USB identity
    device = lookup_device(0x3496, 0x0006)

The catalog is only used for auto-discovery. A port given explicitly by the
caller is opened as-is, whatever is attached to it.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import serial.tools.list_ports

logger = logging.getLogger(__name__)


class DeviceNotFoundError(Exception):
    """No supported device is connected"""
    pass


@dataclass(frozen=True)
class DeviceDescriptor:
    """USB identity of a supported keyboard."""
    vendor_id: int
    product_id: int
    name: str = field(default="", compare=False)

    @property
    def usb_id(self) -> str:
        """Return the identity in the usual VID:PID notation."""
        return f"{self.vendor_id:04X}:{self.product_id:04X}"


# ============================================================================
# DEVICE CATALOG - All supported keyboards
# ============================================================================

# The Atreus and the Model 01 share the pid.codes vendor id, so every entry
# is matched as a full (vendor, product) pair.
_SUPPORTED_DEVICES: Tuple[DeviceDescriptor, ...] = (
    DeviceDescriptor(0x3496, 0x0006, "Keyboardio Model 100"),
    DeviceDescriptor(0x1209, 0x2303, "Keyboardio Atreus"),
    DeviceDescriptor(0x1209, 0x2301, "Keyboardio Model 01"),
)


def list_devices() -> List[DeviceDescriptor]:
    """
    List all supported keyboards.

    Returns:
        Catalog entries, in catalog order
    """
    return list(_SUPPORTED_DEVICES)


def lookup_device(vendor_id: Optional[int], product_id: Optional[int]) -> Optional[DeviceDescriptor]:
    """
    Find the catalog entry for a USB identity.

    Args:
        vendor_id: USB vendor id (None for ports without USB identity)
        product_id: USB product id

    Returns:
        Matching DeviceDescriptor, or None if the identity is not supported
    """
    if vendor_id is None or product_id is None:
        return None

    wanted = DeviceDescriptor(vendor_id, product_id)
    for device in _SUPPORTED_DEVICES:
        if device == wanted:
            return device
    return None


def describe_ports(ports: Optional[Iterable] = None) -> List[Tuple[object, DeviceDescriptor]]:
    """
    Match serial ports against the device catalog.

    Args:
        ports: Port info objects as yielded by serial.tools.list_ports.comports()
            (defaults to enumerating the host)

    Returns:
        (port_info, DeviceDescriptor) pairs for supported ports, in
        enumeration order
    """
    if ports is None:
        ports = serial.tools.list_ports.comports()

    matches = []
    for port in ports:
        device = lookup_device(getattr(port, "vid", None), getattr(port, "pid", None))
        if device is None:
            continue
        logger.debug(f"Found {device.name} ({device.usb_id}) on {port.device}")
        matches.append((port, device))
    return matches


def find_devices(ports: Optional[Iterable] = None) -> Optional[List[str]]:
    """
    Find supported devices, and return the paths to their ports.

    Iterates over the available serial ports and keeps only those whose USB
    identity exactly matches a catalog entry.

    Args:
        ports: Port info objects to filter (defaults to enumerating the host)

    Returns:
        Port paths in enumeration order, or None when no supported device
        was found (or the ports could not be enumerated)
    """
    try:
        matches = describe_ports(ports)
    except Exception as e:
        logger.warning(f"Could not enumerate serial ports: {e}")
        return None

    devices = [port.device for port, _ in matches]
    if not devices:
        return None
    return devices
