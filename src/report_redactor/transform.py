"""Text transformer and restorer.

``apply_redaction`` and ``restore`` are exact inverses for any ScanResult
this engine produces:

    restore(apply_redaction(text, spans), redaction_map) == text
"""

from __future__ import annotations
from collections.abc import Iterable, Sequence
from typing import Any

from .errors import RestoreMismatch
from .patterns import get_pattern
from .scanner import PLACEHOLDER_RE
from .types import AcceptedSpan, RedactionMap


def apply_redaction(text: str, spans: Iterable[AcceptedSpan]) -> str:
    """Replace each span with its placeholder, rightmost first."""
    result = text
    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        result = result[:span.start] + span.placeholder + result[span.end:]
    return result


def mask_text(text: str, spans: Iterable[AcceptedSpan]) -> str:
    """Human-facing preview using each category's cosmetic mask.

    Not reversible: two different values can mask to the same string.
    """
    result = text
    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        masked = get_pattern(span.category).redactor(span.text)
        result = result[:span.start] + masked + result[span.end:]
    return result


def highlight_segments(text: str, spans: Sequence[AcceptedSpan]) -> list[dict[str, Any]]:
    """Split text into plain and PII segments for display."""
    if not spans:
        return [{"text": text, "is_pii": False}]

    parts: list[dict[str, Any]] = []
    last = 0
    for span in sorted(spans, key=lambda s: s.start):
        if span.start > last:
            parts.append({"text": text[last:span.start], "is_pii": False})
        parts.append({
            "text": span.text,
            "is_pii": True,
            "category": span.category.value,
            "placeholder": span.placeholder,
        })
        last = span.end
    if last < len(text):
        parts.append({"text": text[last:], "is_pii": False})
    return parts


def restore(redacted_text: str, redaction_map: RedactionMap, *, strict: bool = True) -> str:
    """Put the original values back.

    Raises RestoreMismatch if the text holds a placeholder the map does not
    know, or (strict mode) if a map entry's placeholder is missing from the
    text.  Never returns partially restored text.
    """
    unknown: list[str] = []
    seen: set[str] = set()

    def _sub(m) -> str:
        token = m.group()
        entry = redaction_map.get(token)
        if entry is not None:
            seen.add(token)
            return entry.original
        if token not in redaction_map.passthrough:
            unknown.append(token)
        return token

    # Single pass: restored values are never re-scanned for placeholders
    restored = PLACEHOLDER_RE.sub(_sub, redacted_text)

    missing = [ph for ph in redaction_map if ph not in seen] if strict else []
    if unknown or missing:
        raise RestoreMismatch(unknown=unknown, missing=missing)
    return restored
