"""
Focus Serial Transport Layer

Handles low-level serial communication with Kaleidoscope keyboards.

This module provides:
- Serial port initialization and configuration
- Blocking writes
- Timeout-bounded reads
- Buffered byte count queries

The baud rate is part of the protocol and is not configurable. Keyboards
enumerate as USB CDC devices, so the value mostly matters to USB-serial
bridges and to older host stacks that insist on one.
"""

import logging
from typing import Optional

import serial

logger = logging.getLogger(__name__)

BAUD_RATE = 115200
DEFAULT_READ_TIMEOUT = 0.05


class FocusTransportError(Exception):
    """Base exception for transport layer errors"""
    pass


class TransportOpenError(FocusTransportError):
    """Serial port could not be opened"""
    pass


class ReadTimeout(Exception):
    """
    No data arrived within one read timeout.

    Not a FocusTransportError: during reply accumulation a quiet line is the
    normal end-of-reply signal.
    """
    pass


class SerialTransport:
    """
    Low-level serial transport for Focus devices.

    Handles:
    - Serial port management
    - Blocking writes
    - Timeout-bounded reads
    - DTR assertion

    Example:
        transport = SerialTransport(port="/dev/ttyACM0")
        transport.open()
        transport.write_all(b"version \\n")
        data = transport.read(1024)
        transport.close()
    """

    def __init__(
        self,
        port: str,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ):
        """
        Initialize transport layer.

        Args:
            port: Serial port (e.g., "/dev/ttyACM0", "COM3")
            read_timeout: Read timeout in seconds (default 0.05)
        """
        self.port = port
        self.read_timeout = read_timeout
        self.ser: Optional[serial.Serial] = None

    @property
    def is_open(self) -> bool:
        """Check whether the serial port is open."""
        return self.ser is not None and self.ser.is_open

    def open(self) -> None:
        """
        Open serial port and configure it for Focus communication.

        Raises:
            TransportOpenError: If port cannot be opened
        """
        try:
            self.ser = serial.Serial(
                port=self.port,
                baudrate=BAUD_RATE,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.read_timeout,
            )
            logger.debug(
                f"Opened {self.port} at {BAUD_RATE} bps "
                f"(timeout={self.read_timeout}s)"
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self.ser = None
            raise TransportOpenError(f"Failed to open \"{self.port}\": {e}")

    def close(self) -> None:
        """Close serial port."""
        if self.ser and self.ser.is_open:
            self.ser.close()
            logger.debug(f"Closed {self.port}")
        self.ser = None

    def _require_open(self) -> serial.Serial:
        if not self.is_open:
            raise FocusTransportError("Serial port not open")
        return self.ser

    def set_ready(self) -> None:
        """
        Assert DTR so the keyboard knows a host is listening.

        Raises:
            FocusTransportError: If the control line cannot be set
        """
        ser = self._require_open()
        try:
            ser.dtr = True
        except (serial.SerialException, OSError) as e:
            raise FocusTransportError(f"Cannot assert DTR: {e}")

    def write_all(self, data: bytes) -> None:
        """
        Send raw bytes to the keyboard, blocking until all are accepted.

        Args:
            data: Bytes to send

        Raises:
            FocusTransportError: If write fails
        """
        ser = self._require_open()

        try:
            written = ser.write(data)
        except (serial.SerialException, OSError) as e:
            raise FocusTransportError(f"Write error: {e}")

        if written is not None and written != len(data):
            raise FocusTransportError(
                f"Incomplete write: sent {written}/{len(data)} bytes"
            )
        logger.debug(f">>> {data!r}")

    def read(self, size: int) -> bytes:
        """
        Receive whatever bytes arrive within one read timeout.

        Blocks until the first byte arrives (or the timeout expires), then
        returns it together with everything else already buffered.

        Args:
            size: Maximum number of bytes to return

        Returns:
            Bytes received; an empty result means end of file

        Raises:
            ReadTimeout: If nothing arrived within the read timeout
            FocusTransportError: If read fails
        """
        ser = self._require_open()

        try:
            data = ser.read(1)
            if not data:
                raise ReadTimeout(f"No data from {self.port} within {self.read_timeout}s")

            pending = min(ser.in_waiting, size - len(data))
            if pending > 0:
                data += ser.read(pending)
        except (serial.SerialException, OSError) as e:
            raise FocusTransportError(f"Read error: {e}")

        logger.debug(f"<<< {data!r}")
        return data

    def bytes_available(self) -> int:
        """
        Return the number of bytes waiting in the receive buffer.

        Raises:
            FocusTransportError: If the port cannot be queried
        """
        ser = self._require_open()
        try:
            return ser.in_waiting
        except (serial.SerialException, OSError) as e:
            raise FocusTransportError(f"Cannot query input buffer: {e}")
