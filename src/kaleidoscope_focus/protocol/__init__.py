"""Focus protocol layer - serial transport and request/reply session."""

from .transport import (
    SerialTransport,
    FocusTransportError,
    TransportOpenError,
    ReadTimeout,
    BAUD_RATE,
)
from .focus import (
    FocusSession,
    ProgressReport,
    encode_request,
    normalize_reply,
    READ_BUFFER_SIZE,
)

__all__ = [
    # Transport
    "SerialTransport",
    "FocusTransportError",
    "TransportOpenError",
    "ReadTimeout",
    "BAUD_RATE",
    # Session
    "FocusSession",
    "ProgressReport",
    "encode_request",
    "normalize_reply",
    "READ_BUFFER_SIZE",
]
