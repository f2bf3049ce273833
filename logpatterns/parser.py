"""Count log messages, grouping warnings and errors by pattern."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .decoder import DecodeError, Decoder
from .level import Level
from .multiline import MULTILINE_COLLECTOR_LIMIT, LogEntry, Message, MultilineCollector
from .pattern import Pattern, new_pattern

OnMessage = Callable[[Optional[datetime], Level, str, str], None]

_UNPATTERNED_LEVELS = frozenset({Level.UNKNOWN, Level.DEBUG, Level.INFO})


@dataclass(frozen=True)
class LogCounter:
    """How many messages of one level (and, for severe levels, one pattern) were seen."""

    level: Level
    hash: str
    sample: str
    messages: int


@dataclass
class _PatternStat:
    pattern: Optional[Pattern] = None
    sample: str = ""
    messages: int = 0


class Parser:
    """Collects log lines into messages and counts them.

    Messages of unknown, debug and info level are only counted per level.
    More severe messages are grouped by their pattern: a message joins an
    existing group when its pattern hash matches or the patterns are weakly
    equal. ``on_message`` is called for every message with its timestamp,
    level, pattern hash (empty for unpatterned levels) and content.
    """

    def __init__(
        self,
        decoder: Optional[Decoder] = None,
        on_message: Optional[OnMessage] = None,
        multiline_timeout: float = 1.0,
        limit: int = MULTILINE_COLLECTOR_LIMIT,
    ) -> None:
        self._decoder = decoder
        self._on_message = on_message
        self._patterns: dict[tuple[Level, str], _PatternStat] = {}
        self._lock = threading.Lock()
        self._collector = MultilineCollector(multiline_timeout, limit)
        self._stopped = False
        self._consumer = threading.Thread(target=self._consume, daemon=True)
        self._consumer.start()

    def __enter__(self) -> Parser:
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def add(self, entry: LogEntry) -> None:
        """Feed one raw line; lines the decoder rejects are skipped."""
        if self._decoder is not None:
            try:
                content = self._decoder.decode(entry.content)
            except DecodeError:
                return
            entry = dataclasses.replace(entry, content=content)
        self._collector.add(entry)

    def stop(self) -> None:
        """Finish the pending message and wait until every message is counted."""
        if self._stopped:
            return
        self._stopped = True
        self._collector.close()
        self._consumer.join()

    def get_counters(self) -> list[LogCounter]:
        """Return a snapshot of the counters."""
        with self._lock:
            return [
                LogCounter(level=level, hash=digest, sample=stat.sample, messages=stat.messages)
                for (level, digest), stat in self._patterns.items()
            ]

    def _consume(self) -> None:
        while True:
            message = self._collector.messages.get()
            if message is None:
                return
            self._count(message)

    def _count(self, message: Message) -> None:
        with self._lock:
            if message.level in _UNPATTERNED_LEVELS:
                stat = self._patterns.setdefault((message.level, ""), _PatternStat())
                stat.messages += 1
                self._notify(message, "")
                return

            pattern = new_pattern(message.content)
            key = (message.level, pattern.hash())
            stat = self._patterns.get(key)
            if stat is None:
                stat = next(
                    (
                        candidate
                        for (level, _), candidate in self._patterns.items()
                        if level == message.level
                        and candidate.pattern is not None
                        and candidate.pattern.weak_equal(pattern)
                    ),
                    None,
                )
                if stat is None:
                    stat = _PatternStat(pattern=pattern, sample=message.content)
                    self._patterns[key] = stat
            self._notify(message, key[1])
            stat.messages += 1

    def _notify(self, message: Message, digest: str) -> None:
        if self._on_message is not None:
            self._on_message(message.timestamp, message.level, digest, message.content)