"""Decoders that extract the log text from container runtime log records."""

from __future__ import annotations

import abc
import json
from typing import Any


class DecodeError(ValueError):
    """Raised when a log record cannot be decoded."""


class Decoder(abc.ABC):
    """Turns a raw log record into the message it carries."""

    @abc.abstractmethod
    def decode(self, src: str) -> str:
        """Return the log text held in ``src``."""


class _JsonObject(list):
    """Key/value pairs of a JSON object in document order."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


class DockerJsonDecoder(Decoder):
    """Decoder for the Docker ``json-file`` log driver format."""

    def decode(self, src: str) -> str:
        try:
            obj = json.loads(src, object_pairs_hook=_JsonObject, parse_constant=_reject_constant)
        except ValueError as exc:
            raise DecodeError(f'failed to unmarshal docker log entry "{src}": {exc}') from exc
        if obj is None:
            return ""
        if not isinstance(obj, _JsonObject):
            raise DecodeError(
                f'failed to unmarshal docker log entry "{src}": '
                f"cannot unmarshal {type(obj).__name__} into a log record"
            )
        log = ""
        for key, value in obj:
            if key.lower() != "log" or value is None:
                continue
            if not isinstance(value, str):
                raise DecodeError(
                    f'failed to unmarshal docker log entry "{src}": '
                    f"field {key!r} is not a string"
                )
            log = value
        return log


class CriDecoder(Decoder):
    """Decoder for the CRI log format: ``<time> <stream> <tag> <message>``."""

    def decode(self, src: str) -> str:
        parts = src.split(" ", 3)
        if len(parts) < 4:
            raise DecodeError(f"unexpected entry format: {src}")
        return parts[3]