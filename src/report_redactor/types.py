"""Core types."""

from __future__ import annotations
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Category(str, Enum):
    """PII categories, in registry order.  Member names equal their values."""
    EMAIL = "EMAIL"
    URL_WITH_EMAIL = "URL_WITH_EMAIL"
    URL = "URL"
    EMPLOYEE_ID = "EMPLOYEE_ID"
    SSN = "SSN"
    NI_NUMBER = "NI_NUMBER"
    PASSPORT_UK = "PASSPORT_UK"
    PASSPORT_US = "PASSPORT_US"
    DRIVERS_LICENSE_UK = "DRIVERS_LICENSE_UK"
    NHS_NUMBER = "NHS_NUMBER"
    CREDIT_CARD = "CREDIT_CARD"
    IBAN = "IBAN"
    SORT_CODE_UK = "SORT_CODE_UK"
    BANK_ACCOUNT_UK = "BANK_ACCOUNT_UK"
    PHONE = "PHONE"
    IP_ADDRESS = "IP_ADDRESS"
    IPV6_ADDRESS = "IPV6_ADDRESS"
    MAC_ADDRESS = "MAC_ADDRESS"
    POSTCODE = "POSTCODE"
    POSTCODE_US = "POSTCODE_US"
    DATE_OF_BIRTH = "DATE_OF_BIRTH"
    DATE = "DATE"
    SPECIFIC_DATE = "SPECIFIC_DATE"
    ADDRESS = "ADDRESS"
    POSSIBLE_NAME = "POSSIBLE_NAME"
    STANDALONE_NAME = "STANDALONE_NAME"

    @property
    def label(self) -> str:
        """Token label used in placeholders, e.g. ``NAME`` in ``[NAME_1]``."""
        return _LABELS.get(self, self.value)


# Categories that share placeholder numbering with another category
_LABELS: dict[Category, str] = {
    Category.SPECIFIC_DATE: "DATE",
    Category.POSSIBLE_NAME: "NAME",
    Category.STANDALONE_NAME: "NAME",
}


@dataclass(frozen=True, slots=True)
class Match:
    """A raw candidate span that passed its pattern's validator."""
    category: Category
    text: str
    start: int
    end: int
    severity: Severity

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class AcceptedSpan:
    """A Match that survived overlap resolution, with its placeholder."""
    category: Category
    text: str
    start: int
    end: int
    severity: Severity
    placeholder: str       # e.g. "[EMAIL_1]"
    token_id: int          # the numeric suffix of the placeholder

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "severity": self.severity.value,
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True, slots=True)
class RedactionEntry:
    """What a placeholder stands for."""
    original: str
    category: Category
    start: int                                      # first occurrence
    end: int
    occurrences: tuple[tuple[int, int], ...] = ()   # every (start, end) replaced

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": self.original,
            "category": self.category.value,
            "start": self.start,
            "end": self.end,
            "occurrences": [list(o) for o in self.occurrences],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RedactionEntry":
        start, end = int(data["start"]), int(data["end"])
        occurrences = data.get("occurrences") or [(start, end)]
        return cls(
            original=data["original"],
            category=Category(data["category"]),
            start=start,
            end=end,
            occurrences=tuple((int(s), int(e)) for s, e in occurrences),
        )


class RedactionMap(Mapping[str, RedactionEntry]):
    """Read-only ``placeholder -> RedactionEntry`` mapping for one scan.

    ``passthrough`` holds placeholder-shaped strings that were already in the
    input text; they are left alone by both redaction and restoration.
    """

    __slots__ = ("_entries", "_passthrough")

    def __init__(
        self,
        entries: Mapping[str, RedactionEntry] | None = None,
        passthrough: frozenset[str] | set[str] = frozenset(),
    ) -> None:
        self._entries: dict[str, RedactionEntry] = dict(entries or {})
        self._passthrough = frozenset(passthrough)

    def __getitem__(self, placeholder: str) -> RedactionEntry:
        return self._entries[placeholder]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RedactionMap):
            return NotImplemented
        return self._entries == other._entries and self._passthrough == other._passthrough

    def __hash__(self) -> int:
        return hash((tuple(self._entries.items()), self._passthrough))

    def __repr__(self) -> str:
        return f"RedactionMap({len(self._entries)} entries)"

    @property
    def passthrough(self) -> frozenset[str]:
        return self._passthrough

    def originals(self) -> dict[str, str]:
        """Flat ``placeholder -> original`` view."""
        return {ph: e.original for ph, e in self._entries.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": {ph: e.to_dict() for ph, e in self._entries.items()},
            "passthrough": sorted(self._passthrough),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RedactionMap":
        """Inverse of ``to_dict``.  Also accepts a bare ``{placeholder: entry}`` dict."""
        if "entries" in data and isinstance(data["entries"], Mapping):
            raw = data["entries"]
            passthrough = frozenset(data.get("passthrough", ()))
        else:
            raw, passthrough = data, frozenset()
        return cls(
            {ph: RedactionEntry.from_dict(e) for ph, e in raw.items()},
            passthrough,
        )


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Toggles for the heuristic, higher-false-positive categories."""
    include_names: bool = True
    include_addresses: bool = True


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Result of scanning one text blob."""
    redacted_text: str
    redaction_map: RedactionMap = field(default_factory=RedactionMap)
    detections: tuple[AcceptedSpan, ...] = ()          # sorted by start
    detection_stats: Mapping[Category, int] = field(default_factory=dict)

    @property
    def pii_detected(self) -> bool:
        return bool(self.detections)

    @property
    def privacy_score(self) -> int:
        from .scoring import score
        return score(self.detection_stats)

    @property
    def summary(self) -> str:
        from .scoring import summarize
        return summarize(self.detections)

    def to_dict(self) -> dict[str, Any]:
        return {
            "redacted_text": self.redacted_text,
            "redaction_map": self.redaction_map.to_dict(),
            "detections": [d.to_dict() for d in self.detections],
            "detection_stats": {c.value: n for c, n in self.detection_stats.items()},
            "pii_detected": self.pii_detected,
            "privacy_score": self.privacy_score,
            "summary": self.summary,
        }
