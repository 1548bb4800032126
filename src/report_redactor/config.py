"""YAML/dict config loader for report-redactor.

Supports loading from a YAML file or a plain dict (for embedding
in a larger application config).

Example YAML:

    report_redactor:
      enabled: true
      include_names: true
      include_addresses: false
      max_input_chars: 100000
      skip_categories:
        - URL
      allow_list:
        - whistleblowing@example.com
      store:
        path: ~/.report-redactor/maps.db
        retention_hours: 24
"""

from __future__ import annotations
from datetime import timedelta
from pathlib import Path
from typing import Any

from .patterns import PIIPattern
from .redactor import Redactor, RedactorConfig
from .store import SqliteMapStore
from .types import Category, ScanOptions


class _NoopRedactor(Redactor):
    """Pass-through redactor when redaction is disabled."""

    def active_patterns(self, options: ScanOptions | None = None) -> tuple[PIIPattern, ...]:
        return ()


def load_config(data: dict[str, Any]) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    # Support nested under "report_redactor" key or flat
    if "report_redactor" in data:
        data = data["report_redactor"] or {}

    store = data.get("store") or {}
    return {
        "enabled": data.get("enabled", True),
        "include_names": data.get("include_names", True),
        "include_addresses": data.get("include_addresses", True),
        "max_input_chars": data.get("max_input_chars"),
        "skip_categories": {Category(c) for c in data.get("skip_categories", [])},
        "allow_list": set(data.get("allow_list", [])),
        "store_path": store.get("path", "maps.db"),
        "retention_hours": float(store.get("retention_hours", 24)),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f) or {})


def _normalized(config: dict[str, Any]) -> dict[str, Any]:
    return config if "store_path" in config else load_config(config)


def create_redactor(config: dict[str, Any]) -> Redactor:
    """Create a configured Redactor from a config dict."""
    cfg = _normalized(config)
    redactor_config = RedactorConfig(
        options=ScanOptions(
            include_names=cfg["include_names"],
            include_addresses=cfg["include_addresses"],
        ),
        skip_categories=cfg["skip_categories"],
        allow_list=cfg["allow_list"],
        max_input_chars=cfg["max_input_chars"],
    )
    if not cfg["enabled"]:
        return _NoopRedactor(redactor_config)
    return Redactor(redactor_config)


def create_store(config: dict[str, Any]) -> SqliteMapStore:
    """Create the redaction-map store described by a config dict."""
    cfg = _normalized(config)
    return SqliteMapStore(
        cfg["store_path"],
        retention=timedelta(hours=cfg["retention_hours"]),
    )
