"""Group consecutive log lines into multi-line messages (stack traces and the like)."""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .level import Level, guess_level
from .timestamp import contains_timestamp

MULTILINE_COLLECTOR_LIMIT = 64 * 1024

_PYTHON_CHAINED_EXCEPTION_LINES = frozenset(
    {
        "The above exception was the direct cause of the following exception:",
        "During handling of the above exception, another exception occurred:",
    }
)


@dataclass(frozen=True)
class LogEntry:
    """A single raw line read from a log stream."""

    timestamp: datetime
    content: str
    level: Level = Level.UNKNOWN


@dataclass(frozen=True)
class Message:
    """A complete, possibly multi-line, log message."""

    timestamp: datetime
    content: str
    level: Level


def _is_valid_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class MultilineCollector:
    """Joins log lines that belong together into messages.

    Finished messages are put on the ``messages`` queue. A message is
    complete when a line that starts a new message arrives, or when no line
    has arrived for ``timeout`` seconds. :meth:`close` emits the message still
    being collected and then puts ``None`` on the queue to mark the end.
    The total size of a message is capped at ``limit`` bytes.
    """

    def __init__(self, timeout: float = 1.0, limit: int = MULTILINE_COLLECTOR_LIMIT) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self.limit = limit
        self.messages: queue.Queue[Optional[Message]] = queue.Queue()

        self._lock = threading.Lock()
        self._closed = False
        self._last_receive = time.monotonic()
        self._reset()

        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._dispatch, daemon=True)
        self._thread.start()

    def __enter__(self) -> MultilineCollector:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop the timer, emit the pending message and mark the end of the stream."""
        with self._lock:
            if self._closed:
                return
        self._stop.set()
        self._thread.join()
        with self._lock:
            self._flush()
            self._closed = True
        self.messages.put(None)

    def add(self, entry: LogEntry) -> None:
        """Feed one line into the collector."""
        if not _is_valid_utf8(entry.content):
            return
        content = entry.content.removesuffix("\n")
        with self._lock:
            if self._closed:
                return
            if not content:
                if self._lines:
                    self._append(entry, content)
                return
            if self._is_next_message(content):
                python_traceback = self._python_traceback
                self._flush()
                self._python_traceback = python_traceback
            self._append(entry, content)

    def _dispatch(self) -> None:
        while not self._stop.wait(self.timeout):
            with self._lock:
                if time.monotonic() - self._last_receive > self.timeout:
                    self._flush()

    def _append(self, entry: LogEntry, content: str) -> None:
        remaining = self.limit - self._size
        if remaining <= 0:
            return
        if not self._lines:
            self._timestamp = entry.timestamp
            self._level = guess_level(content)
            if self._level == Level.UNKNOWN and entry.level != Level.UNKNOWN:
                self._level = entry.level
            self._first_line_has_timestamp = contains_timestamp(content)
        raw = content.encode("utf-8")
        if len(raw) > remaining:
            while remaining > 0 and (raw[remaining] & 0xC0) == 0x80:
                remaining -= 1
            if remaining == 0:
                return
            raw = raw[:remaining]
            content = raw.decode("utf-8")
        self._lines.append(content)
        self._size += len(raw) + 1
        self._last_receive = time.monotonic()

    def _is_next_message(self, line: str) -> bool:
        if line in ("", "}") or line.startswith(("\t", "  ")):
            return False
        if self._first_line_has_timestamp:
            return contains_timestamp(line)
        if line.startswith(("Caused by: ", "for call at")):
            return False
        if line.startswith("Traceback "):
            self._python_traceback = True
            if self._python_traceback_expected:
                self._python_traceback_expected = False
                return False
            return bool(self._lines)
        if line in _PYTHON_CHAINED_EXCEPTION_LINES:
            self._python_traceback_expected = True
            return False
        if self._python_traceback:
            self._python_traceback = False
            return False
        return True

    def _flush(self) -> None:
        if self._closed or not self._lines:
            return
        message = Message(
            timestamp=self._timestamp,
            content="\n".join(self._lines).strip(),
            level=self._level,
        )
        self._reset()
        self.messages.put(message)

    def _reset(self) -> None:
        self._timestamp: Optional[datetime] = None
        self._level = Level.UNKNOWN
        self._lines: list[str] = []
        self._size = 0
        self._first_line_has_timestamp = False
        self._python_traceback = False
        self._python_traceback_expected = False