"""Exceptions raised by the engine."""

from __future__ import annotations
from collections.abc import Iterable


class RedactionError(Exception):
    """Base class for all engine errors."""


class RestoreMismatch(RedactionError, ValueError):
    """The redacted text and the redaction map do not agree.

    ``unknown`` are placeholders found in the text but missing from the map;
    ``missing`` are map entries whose placeholder no longer appears in the text.
    """

    def __init__(self, unknown: Iterable[str] = (), missing: Iterable[str] = ()) -> None:
        self.unknown = sorted(set(unknown))
        self.missing = sorted(set(missing))
        parts = []
        if self.unknown:
            parts.append(f"placeholders not in map: {', '.join(self.unknown)}")
        if self.missing:
            parts.append(f"map entries not in text: {', '.join(self.missing)}")
        super().__init__("; ".join(parts) or "redaction map mismatch")


class InputTooLarge(RedactionError, ValueError):
    """Input text exceeds the configured ``max_input_chars``."""

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(f"input is {length} characters, limit is {limit}")
