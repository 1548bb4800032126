"""CLI interface for report-redactor.

Usage:
    # Scan text (stdin: plain text, stdout: JSON ScanResult)
    echo 'Contact john@example.com' | report-redactor scan

    # Scan and keep the map for 24 hours under an ID
    echo 'Contact john@example.com' | report-redactor scan --scan-id case-42

    # Restore (stdin: redacted text, stdout: original text)
    echo 'Contact [EMAIL_1]' | report-redactor restore --scan-id case-42
    echo 'Contact [EMAIL_1]' | report-redactor restore --map result.json

    # Drop maps past the retention window
    report-redactor purge

    # Run the HTTP sidecar
    report-redactor serve --port 18792
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from datetime import timedelta
from pathlib import Path

from .config import create_redactor, load_from_yaml
from .errors import RedactionError
from .redactor import Redactor, RedactorConfig
from .store import SqliteMapStore
from .types import RedactionMap, ScanOptions

logger = logging.getLogger(__name__)

DEFAULT_DB = os.environ.get(
    "REPORT_REDACTOR_DB",
    str(Path.home() / ".report-redactor" / "maps.db"),
)


def _build_redactor(args: argparse.Namespace) -> Redactor:
    if args.config:
        return create_redactor(load_from_yaml(args.config))
    config = RedactorConfig(max_input_chars=args.max_chars or None)
    if args.skip:
        config.skip_categories = set(args.skip.split(","))
    if args.allow_list:
        config.allow_list = set(args.allow_list.split(","))
    return Redactor(config)


def _open_store(args: argparse.Namespace) -> SqliteMapStore:
    return SqliteMapStore(args.db, retention=timedelta(hours=args.retention_hours))


def cmd_scan(args: argparse.Namespace) -> int:
    """Scan plain text on stdin."""
    redactor = _build_redactor(args)
    options = ScanOptions(
        include_names=not args.no_names,
        include_addresses=not args.no_addresses,
    )
    result = redactor.scan(sys.stdin.read(), options)

    if args.scan_id:
        store = _open_store(args)
        store.save(args.scan_id, result.redaction_map)
        store.close()

    if args.text_only:
        sys.stdout.write(result.redacted_text)
    else:
        json.dump(result.to_dict(), sys.stdout, ensure_ascii=False)
        sys.stdout.write("\n")
    return 0


def cmd_restore(args: argparse.Namespace) -> int:
    """Restore placeholders in text on stdin."""
    if args.map:
        with open(args.map) as f:
            data = json.load(f)
        # Accept a whole ScanResult dump as well as a bare map
        redaction_map = RedactionMap.from_dict(data.get("redaction_map", data))
    elif args.scan_id:
        store = _open_store(args)
        redaction_map = store.load(args.scan_id)
        store.close()
        if redaction_map is None:
            sys.stderr.write(f"No redaction map for {args.scan_id} (missing or expired)\n")
            return 1
    else:
        sys.stderr.write("restore needs --map or --scan-id\n")
        return 2

    text = sys.stdin.read()
    sys.stdout.write(Redactor().restore(text, redaction_map, strict=not args.lenient))
    return 0


def cmd_purge(args: argparse.Namespace) -> int:
    """Delete maps older than the retention window."""
    store = _open_store(args)
    removed = store.purge_expired()
    store.close()
    sys.stderr.write(f"Purged {removed} expired map(s)\n")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .server import serve
    serve(port=args.port, db_path=args.db)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="report-redactor",
        description="PII detection and reversible redaction for report text",
    )
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite map store path")
    parser.add_argument("--retention-hours", type=float, default=24.0,
                        help="How long stored maps stay valid")
    parser.add_argument("--config", default="", help="YAML config file")
    parser.add_argument("--skip", default="", help="Comma-separated categories to skip")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never redact")
    parser.add_argument("--max-chars", type=int, default=200_000, help="Input size limit (0 = none)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)

    p_scan = sub.add_parser("scan", help="Scan and redact text (stdin)")
    p_scan.add_argument("--scan-id", default="", help="Store the map under this ID")
    p_scan.add_argument("--no-names", action="store_true", help="Skip name heuristics")
    p_scan.add_argument("--no-addresses", action="store_true", help="Skip street addresses")
    p_scan.add_argument("--text-only", action="store_true", help="Print only the redacted text")

    p_restore = sub.add_parser("restore", help="Restore redacted text (stdin)")
    p_restore.add_argument("--scan-id", default="", help="Load the map stored under this ID")
    p_restore.add_argument("--map", default="", help="JSON file with a map or scan result")
    p_restore.add_argument("--lenient", action="store_true",
                           help="Allow map entries that no longer appear in the text")

    sub.add_parser("purge", help="Delete expired maps")

    p_serve = sub.add_parser("serve", help="Run the HTTP sidecar")
    p_serve.add_argument("--port", type=int, default=18792)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    cmds = {
        "scan": cmd_scan,
        "restore": cmd_restore,
        "purge": cmd_purge,
        "serve": cmd_serve,
    }
    try:
        return cmds[args.command](args)
    except RedactionError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
