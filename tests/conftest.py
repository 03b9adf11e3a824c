"""Shared fixtures: an in-memory Focus keyboard behind a fake transport."""

import pytest

from kaleidoscope_focus.protocol import FocusSession, ProgressReport, ReadTimeout


class FakeKeyboard:
    """
    Transport double that behaves like Kaleidoscope firmware.

    Requests are parsed once their newline arrives, however they were
    chunked. Replies use CRLF line endings and end with the "." sentinel,
    as the firmware does. Reading with nothing queued raises ReadTimeout.
    """

    def __init__(self, settings=None, supports_backup=True, unsolicited=b""):
        self.settings = dict(settings or {})
        self.supports_backup = supports_backup
        self.port = "/dev/ttyACM0"
        self.ready = False
        self.closed = False
        self.written = bytearray()
        self.writes = []
        self.requests = []
        self._line = bytearray()
        self._outbox = bytearray(unsolicited)

    def set_ready(self):
        self.ready = True

    def write_all(self, data):
        self.writes.append(bytes(data))
        self.written.extend(data)
        self._line.extend(data)
        while b"\n" in self._line:
            line, _, rest = bytes(self._line).partition(b"\n")
            self._line = bytearray(rest)
            self._handle(line.decode("utf-8"))

    def _handle(self, line):
        command, _, arg = line.partition(" ")
        arg = arg.strip()
        self.requests.append((command, arg))

        if command == "backup" and self.supports_backup:
            body = list(self.settings)
        elif command in self.settings and arg:
            self.settings[command] = arg
            body = []
        elif command in self.settings and self.settings[command]:
            body = [self.settings[command]]
        else:
            body = []

        reply = "".join(f"{line}\r\n" for line in body) + ".\r\n"
        self._outbox.extend(reply.encode("utf-8"))

    def bytes_available(self):
        return len(self._outbox)

    def read(self, size):
        if not self._outbox:
            raise ReadTimeout("quiet")
        data = bytes(self._outbox[:size])
        del self._outbox[:size]
        return data

    def close(self):
        self.closed = True


class RecordingProgress(ProgressReport):
    """Progress observer that records every call."""

    def __init__(self):
        self.calls = []

    def reset(self, length):
        self.calls.append(("reset", length))

    def progress(self, delta):
        self.calls.append(("progress", delta))


@pytest.fixture
def keyboard():
    return FakeKeyboard(
        settings={
            "keymap.custom": "0 1 2 3",
            "led.brightness": "128",
            "hostos.type": "",
        }
    )


@pytest.fixture
def make_keyboard():
    """Build a fake keyboard with custom settings."""
    return FakeKeyboard


@pytest.fixture
def make_session():
    """Build a session over a fake transport, without any pacing delays."""
    def _make(transport, chunk_size=32, progress=None):
        return FocusSession(transport, chunk_size=chunk_size, interval=0, progress_report=progress)
    return _make


@pytest.fixture
def recording_progress():
    return RecordingProgress()
