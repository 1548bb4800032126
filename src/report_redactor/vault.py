"""Vault: per-scan bidirectional mapping between PII and placeholders.

Design goals:
  - Deterministic: the same value maps to the same placeholder within a scan,
    and identical input always yields an identical map (no clock, no RNG)
  - Scoped: a fresh Vault is built for every scan and discarded afterwards
  - Collision-free: placeholders already present in the input are never issued
"""

from __future__ import annotations
from collections import defaultdict
from collections.abc import Iterable

from .types import AcceptedSpan, Category, Match, RedactionEntry, RedactionMap


# Placeholder format: [LABEL_N], e.g. [EMAIL_1], [NAME_3]
_TOKEN_FMT = "[{label}_{idx}]"


class Vault:
    """Assigns placeholders for one scan and builds its RedactionMap."""

    __slots__ = ("_value_to_token", "_entries", "_counters", "_reserved")

    def __init__(self, reserved: Iterable[str] = ()) -> None:
        self._value_to_token: dict[tuple[str, str], tuple[str, int]] = {}
        # placeholder -> [original, category, occurrences]
        self._entries: dict[str, tuple[str, Category, list[tuple[int, int]]]] = {}
        self._counters: dict[str, int] = defaultdict(int)
        self._reserved = frozenset(reserved)

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def get_or_create_token(self, category: Category, original: str) -> tuple[str, int]:
        """Return ``(placeholder, token_id)`` for this value, creating it if new."""
        key = (category.label, original)
        if key in self._value_to_token:
            return self._value_to_token[key]

        while True:
            self._counters[category.label] += 1
            idx = self._counters[category.label]
            token = _TOKEN_FMT.format(label=category.label, idx=idx)
            if token not in self._reserved:
                break

        self._value_to_token[key] = (token, idx)
        self._entries[token] = (original, category, [])
        return token, idx

    def record(self, match: Match) -> AcceptedSpan:
        """Assign a placeholder to an accepted match and remember where it was."""
        token, idx = self.get_or_create_token(match.category, match.text)
        self._entries[token][2].append((match.start, match.end))
        return AcceptedSpan(
            category=match.category,
            text=match.text,
            start=match.start,
            end=match.end,
            severity=match.severity,
            placeholder=token,
            token_id=idx,
        )

    def lookup_token(self, token: str) -> str | None:
        entry = self._entries.get(token)
        return entry[0] if entry else None

    def lookup_pii(self, category: Category, original: str) -> str | None:
        found = self._value_to_token.get((category.label, original))
        return found[0] if found else None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._entries)

    def build_map(self) -> RedactionMap:
        entries = {}
        for token, (original, category, occurrences) in self._entries.items():
            first = occurrences[0] if occurrences else (-1, -1)
            entries[token] = RedactionEntry(
                original=original,
                category=category,
                start=first[0],
                end=first[1],
                occurrences=tuple(occurrences),
            )
        return RedactionMap(entries, self._reserved)


def assign_placeholders(
    spans: Iterable[Match],
    reserved: Iterable[str] = (),
) -> tuple[tuple[AcceptedSpan, ...], RedactionMap]:
    """Number accepted spans in text order and build the redaction map.

    ``spans`` must already be non-overlapping; they are processed by start
    offset so the first occurrence of each label gets ``_1``.
    """
    vault = Vault(reserved)
    accepted = tuple(vault.record(m) for m in sorted(spans, key=lambda m: m.start))
    return accepted, vault.build_map()
