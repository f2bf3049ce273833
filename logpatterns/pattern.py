"""Reduce log messages to patterns of significant words."""

from __future__ import annotations

import hashlib
import itertools
import re
from dataclasses import dataclass
from functools import cached_property

PATTERN_MAX_WORDS = 100
PATTERN_MIN_WORD_LEN = 2
PATTERN_MAX_DIFF = 1

_HEX_WITH_PREFIX = re.compile(r"0x[a-fA-F0-9]+")
_HEX = re.compile(r"[a-fA-F0-9]{4,}")
_UUID = re.compile(
    r"[a-fA-F0-9]{8}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{12}"
)
_WORD = re.compile(r"[a-zA-Z][a-zA-Z._-]*[a-zA-Z]")
_DIGITS = re.compile(r"[0-9]")

_OPENING = "[({"
_CLOSING = {"]": "[", ")": "(", "}": "{"}
_QUOTES = "\"'"


@dataclass(frozen=True)
class Pattern:
    """An ordered sequence of the significant words of a message."""

    words: tuple[str, ...] = ()

    @cached_property
    def _text(self) -> str:
        return " ".join(self.words)

    @cached_property
    def _digest(self) -> str:
        return hashlib.md5(self._text.encode("utf-8", "surrogatepass")).hexdigest()

    def __str__(self) -> str:
        return self._text

    def hash(self) -> str:
        """Hex MD5 digest of the pattern's text."""
        return self._digest

    def weak_equal(self, other: Pattern) -> bool:
        """True if both patterns have as many words and differ in at most one."""
        if len(self.words) != len(other.words):
            return False
        diffs = sum(a != b for a, b in zip(self.words, other.words))
        return diffs <= PATTERN_MAX_DIFF


def _is_variable(word: str) -> bool:
    return bool(
        _HEX_WITH_PREFIX.fullmatch(word) or _HEX.fullmatch(word) or _UUID.fullmatch(word)
    )


def new_pattern(text: str) -> Pattern:
    """Build a pattern from a message, dropping quoted parts, numbers and identifiers."""
    words: list[str] = []
    for field in remove_quoted_and_brackets(text).split():
        field = field.rstrip("=:],;")
        if len(field) < PATTERN_MIN_WORD_LEN or _is_variable(field):
            continue
        field = _DIGITS.sub("", field)
        if not _WORD.fullmatch(field):
            continue
        words.append(field)
        if len(words) >= PATTERN_MAX_WORDS:
            break
    return Pattern(tuple(words))


def pattern_from_words(text: str) -> Pattern:
    """Build a pattern from words already separated by single spaces."""
    return Pattern(tuple(text.split(" ")))


def remove_quoted_and_brackets(s: str) -> str:
    """Drop quoted strings and bracketed groups from ``s``."""
    out: list[str] = []
    quote = ""
    brackets: list[str] = []
    for prev, ch in zip(itertools.chain([""], s), s):
        if ch in _OPENING:
            if not quote:
                brackets.append(ch)
        elif ch in _CLOSING:
            if brackets and brackets[-1] == _CLOSING[ch]:
                brackets.pop()
                continue
        elif ch in _QUOTES:
            if prev != "\\" and not brackets:
                if not quote:
                    quote = ch
                elif quote == ch:
                    quote = ""
                    continue
        if quote or brackets:
            continue
        out.append(ch)
    return "".join(out)