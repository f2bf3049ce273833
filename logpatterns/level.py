"""Log severity levels and heuristics for guessing them from a raw line."""

from __future__ import annotations

import enum
import re

MAX_LINE_LEN_FOR_GUESSING_LEVEL = 255
GUESS_LEVEL_IN_FIELDS = 7


class Level(enum.IntEnum):
    """Severity of a log message; lower values are more severe (except UNKNOWN)."""

    UNKNOWN = 0
    CRITICAL = 1
    ERROR = 2
    WARNING = 3
    INFO = 4
    DEBUG = 5

    def __str__(self) -> str:
        return self.name.lower()


_GLOG_LEVELS = {
    "I": Level.INFO,
    "W": Level.WARNING,
    "E": Level.ERROR,
    "F": Level.CRITICAL,
}

_PRIORITY_LEVELS = {
    "0": Level.CRITICAL,
    "1": Level.CRITICAL,
    "2": Level.CRITICAL,
    "3": Level.ERROR,
    "4": Level.WARNING,
    "5": Level.INFO,
    "6": Level.INFO,
    "7": Level.DEBUG,
}

_NAMED_LEVELS = {
    "critical": Level.CRITICAL,
    "error": Level.ERROR,
    "warning": Level.WARNING,
    "info": Level.INFO,
    "debug": Level.DEBUG,
}

_SHORT_KEYWORDS = {
    "dbg": Level.DEBUG,
    "trc": Level.DEBUG,
    "inf": Level.INFO,
    "wrn": Level.WARNING,
    "err": Level.ERROR,
    "ftl": Level.CRITICAL,
}

_KEYWORD_PREFIXES = {
    "debu": Level.DEBUG,
    "info": Level.INFO,
    "noti": Level.INFO,
    "warn": Level.WARNING,
    "erro": Level.ERROR,
    "crit": Level.CRITICAL,
}

_CRITICAL_HEADS = ("emer", "fata", "aler")
_CRITICAL_WORDS = ("emerg", "fatal", "alert")

_REDIS_LEVELS = {
    ".": Level.DEBUG,
    "-": Level.INFO,
    "*": Level.WARNING,
    "#": Level.WARNING,
}

_SUBFIELD_SEPARATORS = re.compile(r"[\]);|:,.]")


def level_by_priority(priority: str) -> Level:
    """Map a syslog priority digit ("0".."7") to a level."""
    return _PRIORITY_LEVELS.get(priority, Level.UNKNOWN)


def level_from_string(s: str) -> Level:
    """Parse a level name case-insensitively; unknown names give UNKNOWN."""
    return _NAMED_LEVELS.get(s.lower(), Level.UNKNOWN)


def _truncate(line: str) -> str:
    raw = line.encode("utf-8", "surrogatepass")
    if len(raw) <= MAX_LINE_LEN_FOR_GUESSING_LEVEL:
        return line
    return raw[:MAX_LINE_LEN_FOR_GUESSING_LEVEL].decode("utf-8", "replace")


def _keyword_level(word: str) -> Level:
    if len(word) == 3:
        return _SHORT_KEYWORDS.get(word, Level.UNKNOWN)
    if len(word) >= 4:
        head = word[:4]
        if head in _KEYWORD_PREFIXES:
            return _KEYWORD_PREFIXES[head]
        if head in _CRITICAL_HEADS and word[:5] in _CRITICAL_WORDS:
            return Level.CRITICAL
    return Level.UNKNOWN


def guess_level(line: str) -> Level:
    """Guess the severity of a log line from its leading words."""
    fields = _truncate(line).split()
    if not fields:
        return Level.UNKNOWN

    level = _try_glog(fields)
    if level != Level.UNKNOWN:
        return level

    for field in fields[:GUESS_LEVEL_IN_FIELDS]:
        for sub in _SUBFIELD_SEPARATORS.split(field):
            if not sub:
                continue
            word = sub.lower().lstrip("\"[(<'").removeprefix("level=")
            level = _keyword_level(word)
            if level != Level.UNKNOWN:
                return level

    return _guess_redis_level(fields)


def _try_glog(fields: list[str]) -> Level:
    first = fields[0]
    if len(first.encode("utf-8", "surrogatepass")) != 5:
        return Level.UNKNOWN
    level = _GLOG_LEVELS.get(first[0])
    if level is None:
        return Level.UNKNOWN
    if not first[1:].isdecimal():
        return Level.UNKNOWN
    return level


def _guess_redis_level(fields: list[str]) -> Level:
    # redis 2.x:  [pid] date loglevel message
    # redis 3.x+: pid:role timestamp loglevel message
    # redis 5.x+: the year was added to the timestamp
    if len(fields) < 6:
        return Level.UNKNOWN
    first = fields[0]
    if first.startswith("[") and first.endswith("]"):
        return _REDIS_LEVELS.get(fields[4], Level.UNKNOWN)
    if len(first.split(":")) == 2:
        if len(fields[3].encode("utf-8", "surrogatepass")) == 4:
            return _REDIS_LEVELS.get(fields[5], Level.UNKNOWN)
        return _REDIS_LEVELS.get(fields[4], Level.UNKNOWN)
    return Level.UNKNOWN