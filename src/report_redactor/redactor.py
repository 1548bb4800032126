"""Redactor, the main API.  Scan, resolve, map and transform; restore separately.

Usage:
    from report_redactor import Redactor

    redactor = Redactor()        # reusable, thread-safe

    result = redactor.scan("Email me at john@acme.com")
    print(result.redacted_text)  # "Email me at [EMAIL_1]"

    original = redactor.restore(result.redacted_text, result.redaction_map)
"""

from __future__ import annotations
import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import InputTooLarge
from .patterns import PIIPattern, list_patterns, registry_order
from .scanner import (
    placeholder_spans, propagate_occurrences, resolve_overlaps, scan as scan_matches,
)
from .transform import apply_redaction, restore as restore_text
from .types import Category, RedactionMap, ScanOptions, ScanResult
from .vault import assign_placeholders

logger = logging.getLogger(__name__)


@dataclass
class RedactorConfig:
    """Configuration for the Redactor."""
    options: ScanOptions = field(default_factory=ScanOptions)   # default toggles
    # Categories to never redact (e.g. don't redact dates)
    skip_categories: set[Category] = field(default_factory=set)
    # Allow-list: values that should NEVER be redacted
    allow_list: set[str] = field(default_factory=set)
    # Extra patterns, checked after the built-in registry
    custom_patterns: list[PIIPattern] = field(default_factory=list)
    max_input_chars: int | None = None


class Redactor:
    """PII detection and reversible redaction engine.

    Holds only immutable configuration, so one instance can serve many
    threads; every scan builds its own placeholder vault.
    """

    def __init__(self, config: RedactorConfig | None = None) -> None:
        self.config = config or RedactorConfig()
        skip = {Category(c) for c in self.config.skip_categories}
        self._patterns: tuple[PIIPattern, ...] = tuple(
            p for p in (*list_patterns(), *self.config.custom_patterns)
            if p.category not in skip
        )
        self._order = registry_order(self._patterns)

    def active_patterns(self, options: ScanOptions | None = None) -> tuple[PIIPattern, ...]:
        opts = options or self.config.options
        return tuple(
            p for p in self._patterns
            if p.gated_by is None or getattr(opts, p.gated_by)
        )

    def scan(self, text: str | None, options: ScanOptions | None = None) -> ScanResult:
        """Detect PII in text and replace it with placeholders.

        Empty or missing text is not an error: it yields an empty result.
        """
        if not text:
            return ScanResult(redacted_text="")

        limit = self.config.max_input_chars
        if limit is not None and len(text) > limit:
            raise InputTooLarge(len(text), limit)

        # --- Detect ---
        candidates = scan_matches(text, self.active_patterns(options))

        # --- Filter ---
        if self.config.allow_list:
            candidates = [m for m in candidates if m.text not in self.config.allow_list]

        # --- Resolve overlaps, then catch repeats the patterns missed ---
        protected = placeholder_spans(text)
        spans = resolve_overlaps(candidates, self._order)
        spans = propagate_occurrences(text, spans, protected=protected)

        # --- Assign placeholders, never reusing ones already in the text ---
        reserved = {text[s:e] for s, e in protected}
        detections, redaction_map = assign_placeholders(spans, reserved)

        # --- Apply replacements (right-to-left to preserve offsets) ---
        redacted = apply_redaction(text, detections)

        stats = Counter(d.category for d in detections)
        logger.debug(
            "scanned %d chars: %d candidates, %d redacted",
            len(text), len(candidates), len(detections),
        )
        return ScanResult(
            redacted_text=redacted,
            redaction_map=redaction_map,
            detections=detections,
            detection_stats=dict(stats),
        )

    def restore(
        self,
        redacted_text: str,
        redaction_map: RedactionMap | Mapping,
        *,
        strict: bool = True,
    ) -> str:
        """Reconstruct the original text.  Raises RestoreMismatch on disagreement."""
        if not isinstance(redaction_map, RedactionMap):
            redaction_map = RedactionMap.from_dict(redaction_map)
        return restore_text(redacted_text, redaction_map, strict=strict)

    def scan_fields(
        self,
        fields: Mapping[str, str | None],
        options: ScanOptions | None = None,
    ) -> dict[str, ScanResult]:
        """Scan several named report fields independently.

        Each field gets its own map, so each must be restored on its own.
        """
        return {
            name: self.scan(value if isinstance(value, str) else None, options)
            for name, value in fields.items()
        }


_default: Redactor | None = None


def _get_default() -> Redactor:
    global _default
    if _default is None:
        _default = Redactor()
    return _default


def scan(
    text: str | None,
    *,
    include_names: bool = True,
    include_addresses: bool = True,
) -> ScanResult:
    """Scan with the default configuration."""
    return _get_default().scan(
        text,
        ScanOptions(include_names=include_names, include_addresses=include_addresses),
    )


def restore(redacted_text: str, redaction_map: RedactionMap | Mapping, *, strict: bool = True) -> str:
    """Restore with the default configuration."""
    return _get_default().restore(redacted_text, redaction_map, strict=strict)
