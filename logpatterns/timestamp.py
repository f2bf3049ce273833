"""Cheap detection of a time of day (hh:mm:ss) near the start of a line."""

from __future__ import annotations

LOOK_FOR_TIMESTAMP_LIMIT = 100

_COLON = ord(":")
_ZERO = ord("0")
_NINE = ord("9")


def contains_timestamp(line: str) -> bool:
    """Return True if the first bytes of the line contain a ``dd:dd:dd`` sequence."""
    data = line.encode("utf-8", "surrogatepass")[:LOOK_FOR_TIMESTAMP_LIMIT]
    digits = colons = 0
    for byte in data:
        if _ZERO <= byte <= _NINE:
            digits += 1
            if digits > 2:
                digits = 0
            if digits == 2 and colons == 2:
                return True
        elif byte == _COLON:
            if digits == 2:
                colons += 1
            digits = 0
        else:
            digits = colons = 0
    return False