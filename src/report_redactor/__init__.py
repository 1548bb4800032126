"""Report Redactor: PII detection and reversible redaction for report text."""

from .redactor import Redactor, RedactorConfig, scan, restore
from .patterns import PIIPattern, list_patterns, get_pattern
from .scoring import score, summarize, redaction_stats, format_category
from .store import SqliteMapStore
from .config import create_redactor, create_store, load_config, load_from_yaml
from .errors import RedactionError, RestoreMismatch, InputTooLarge
from .types import (
    AcceptedSpan, Category, Match, RedactionEntry, RedactionMap,
    ScanOptions, ScanResult, Severity,
)

__all__ = [
    "Redactor", "RedactorConfig", "scan", "restore",
    "PIIPattern", "list_patterns", "get_pattern",
    "score", "summarize", "redaction_stats", "format_category",
    "SqliteMapStore",
    "create_redactor", "create_store", "load_config", "load_from_yaml",
    "RedactionError", "RestoreMismatch", "InputTooLarge",
    "AcceptedSpan", "Category", "Match", "RedactionEntry", "RedactionMap",
    "ScanOptions", "ScanResult", "Severity",
]
__version__ = "0.1.0"
