"""
kaleidoscope-focus - Talk to Kaleidoscope powered keyboards over Focus

Send Focus commands, and back up or restore the keyboard configuration.
"""

__version__ = "0.1.0"

from kaleidoscope_focus.protocol import FocusSession, SerialTransport
from kaleidoscope_focus.devices import find_devices

__all__ = [
    "FocusSession",
    "SerialTransport",
    "find_devices",
    "__version__",
]
