"""
Focus protocol session.

Focus is a plain-text, line-oriented request/reply protocol:

    REQUEST:  "<command> [<arg> ...]\\n"
    REPLY:    zero or more lines of text, optionally followed by a "." line

A reply carries no length and the "." sentinel is not emitted by every
firmware, so the end of a reply is detected by the line going quiet for one
read timeout. Requests are written in small paced chunks because some
firmware and some USB-serial stacks corrupt long single writes.

Only one request may be in flight at a time; the next request must not be
sent before the previous reply cycle has finished.
"""

import logging
import time
from typing import Optional, Sequence

from .transport import ReadTimeout

logger = logging.getLogger(__name__)

READ_BUFFER_SIZE = 1024
DEFAULT_CHUNK_SIZE = 32
DEFAULT_INTERVAL = 0.05
SENTINEL_LINE = "."


class ProgressReport:
    """
    Observer for I/O progress.

    `reset(length)` is called once before every send or receive pass with
    the expected size of the pass (0 when unknown), `progress(delta)` each
    time bytes are written or read. Purely advisory.

    The base class ignores every call and is used when no observer is set.
    """

    def reset(self, length: int) -> None:
        pass

    def progress(self, delta: int) -> None:
        pass


def encode_request(command: str, args: Sequence[str] = ()) -> bytes:
    """
    Build the wire form of a request.

    The command is always followed by one space, then the arguments joined
    by single spaces, then a newline. There is no escaping: an argument
    containing whitespace reaches the keyboard as several arguments.

    Args:
        command: Focus command name
        args: Argument strings

    Returns:
        UTF-8 encoded request
    """
    return f"{command} {' '.join(args)}\n".encode("utf-8")


def normalize_reply(raw: bytes) -> str:
    """
    Turn accumulated reply bytes into clean text.

    Invalid UTF-8 is replaced rather than rejected. Empty lines and "."
    sentinel lines are dropped, the rest rejoined with "\\n".

    Args:
        raw: Bytes read from the keyboard

    Returns:
        Normalized reply, possibly empty
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    lines = (line.rstrip("\r") for line in text.split("\n"))
    return "\n".join(line for line in lines if line and line != SENTINEL_LINE)


class FocusSession:
    """
    A connection to a keyboard, used for all Focus communication.

    Owns its transport exclusively. The transport must provide `set_ready()`,
    `write_all(data)`, `read(size)` (raising ReadTimeout when the line is
    quiet) and `bytes_available()`.

    Example:
        session = FocusSession(transport, chunk_size=32, interval=0.05)
        reply = session.flush().command("version")
        session.request("led.brightness", ["128"])
    """

    def __init__(
        self,
        transport,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        interval: float = DEFAULT_INTERVAL,
        progress_report: Optional[ProgressReport] = None,
    ):
        """
        Initialize a session over an already open transport.

        Args:
            transport: Open transport
            chunk_size: Maximum bytes per write; 0 writes every request at once
            interval: Seconds to sleep between chunks, polls and reads
            progress_report: Optional I/O progress observer
        """
        if chunk_size < 0:
            raise ValueError(f"chunk_size must not be negative, got {chunk_size}")
        if interval < 0:
            raise ValueError(f"interval must not be negative, got {interval}")

        self.transport = transport
        self.chunk_size = chunk_size
        self.interval = interval
        self._progress = progress_report or ProgressReport()

    @property
    def port_name(self) -> Optional[str]:
        """Return the port name of the connected keyboard, if known."""
        return getattr(self.transport, "port", None)

    def set_progress_report(self, progress_report: Optional[ProgressReport]) -> None:
        """Set the I/O progress observer (None disables reporting)."""
        self._progress = progress_report or ProgressReport()

    def send(self, command: str, args: Sequence[str] = ()) -> "FocusSession":
        """
        Send a request without waiting for the reply.

        Args:
            command: Focus command name
            args: Argument strings

        Returns:
            The session, so `read_reply()` can be chained

        Raises:
            FocusTransportError: If the write fails
        """
        request = encode_request(command, args)
        logger.debug(f"Sending {command!r} ({len(request)} bytes)")

        self.transport.set_ready()
        self._progress.reset(len(request))

        if self.chunk_size > 0:
            for start in range(0, len(request), self.chunk_size):
                chunk = request[start:start + self.chunk_size]
                self.transport.write_all(chunk)
                time.sleep(self.interval)
                self._progress.progress(len(chunk))
        else:
            self.transport.write_all(request)
            self._progress.progress(len(request))

        return self

    def wait_for_data(self) -> None:
        """
        Block until the keyboard has started replying.

        There is no timeout: a keyboard that never answers blocks the caller
        until the transport is closed from elsewhere.
        """
        while self.transport.bytes_available() == 0:
            time.sleep(self.interval)

    def read_reply(self) -> str:
        """
        Read a reply from the keyboard.

        Waits for the first byte, then reads until the line stays quiet for
        one read timeout (or the transport reports end of file).

        Returns:
            Normalized reply; empty if the command is unknown or had no output

        Raises:
            FocusTransportError: If a read fails for any reason other than
                a timeout
        """
        self.wait_for_data()
        self._progress.reset(0)

        reply = bytearray()
        while True:
            try:
                data = self.transport.read(READ_BUFFER_SIZE)
            except ReadTimeout:
                break
            if not data:
                break

            reply.extend(data)
            self._progress.progress(len(data))
            time.sleep(self.interval)

        logger.debug(f"Received {len(reply)} bytes")
        return normalize_reply(bytes(reply))

    def request(self, command: str, args: Sequence[str] = ()) -> str:
        """
        Send a request to the keyboard and return its reply.

        Args:
            command: Focus command name
            args: Argument strings

        Returns:
            Normalized reply, possibly empty
        """
        return self.send(command, args).read_reply()

    def command(self, command: str) -> str:
        """Send a request without arguments and return its reply."""
        return self.request(command)

    def flush(self) -> "FocusSession":
        """
        Flush any pending output.

        Sends an empty command and discards everything that comes back,
        including unsolicited output queued before this session took over.

        Returns:
            The session, so the next request can be chained
        """
        self.request(" ")
        return self

    def close(self) -> None:
        """Close the underlying transport."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "FocusSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
