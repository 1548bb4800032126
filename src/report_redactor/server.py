"""HTTP sidecar server for report-redactor.

Runs as a lightweight stdlib HTTP server on localhost so the surrounding
application can call the engine over a simple request/response boundary.

Endpoints:
    POST /scan      {"text", "include_names"?, "include_addresses"?, "scan_id"?}
    POST /restore   {"text", "redaction_map"? | "scan_id"?, "strict"?}
    POST /score     {"detection_stats": {"EMAIL": 2, ...}}
    GET  /health    Health check

When a store is configured, /scan with a "scan_id" saves the map and
/restore with a "scan_id" loads it back.  All endpoints expect/return JSON.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

from .errors import InputTooLarge, RestoreMismatch
from .redactor import Redactor, RedactorConfig
from .scoring import redaction_stats, score
from .store import SqliteMapStore
from .types import RedactionMap, ScanOptions

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("REPORT_REDACTOR_PORT", "18792"))
DEFAULT_DB = os.environ.get(
    "REPORT_REDACTOR_DB",
    str(Path.home() / ".report-redactor" / "maps.db"),
)
DEFAULT_MAX_INPUT = 200_000


class RedactionHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the redaction sidecar."""

    redactor: Redactor = Redactor(RedactorConfig(max_input_chars=DEFAULT_MAX_INPUT))
    store: SqliteMapStore | None = None

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - " + format, self.address_string(), *args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok", "store": self.store is not None})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
        except (ValueError, UnicodeDecodeError) as e:
            self._respond(400, {"error": f"invalid JSON: {e}"})
            return

        try:
            if self.path == "/scan":
                self._scan(body)
            elif self.path == "/restore":
                self._restore(body)
            elif self.path == "/score":
                stats = body.get("detection_stats", {})
                self._respond(200, {"score": score(stats), "stats": redaction_stats(stats)})
            else:
                self._respond(404, {"error": "not found"})
        except RestoreMismatch as e:
            self._respond(409, {"error": str(e), "unknown": e.unknown, "missing": e.missing})
        except InputTooLarge as e:
            self._respond(413, {"error": str(e)})
        except (KeyError, ValueError, TypeError) as e:
            self._respond(400, {"error": str(e)})
        except Exception as e:
            logger.exception("request to %s failed", self.path)
            self._respond(500, {"error": str(e)})

    def _scan(self, body: dict[str, Any]) -> None:
        text = body.get("text", "")
        if not isinstance(text, str):
            raise TypeError("text must be a string")
        options = ScanOptions(
            include_names=bool(body.get("include_names", True)),
            include_addresses=bool(body.get("include_addresses", True)),
        )
        result = self.redactor.scan(text, options)
        scan_id = body.get("scan_id")
        if scan_id and self.store is not None:
            self.store.save(scan_id, result.redaction_map)
        self._respond(200, result.to_dict())

    def _restore(self, body: dict[str, Any]) -> None:
        text = body.get("text", "")
        if "redaction_map" in body:
            redaction_map = RedactionMap.from_dict(body["redaction_map"])
        elif body.get("scan_id") and self.store is not None:
            redaction_map = self.store.load(body["scan_id"])
            if redaction_map is None:
                self._respond(404, {"error": "redaction map not found or expired"})
                return
        else:
            raise KeyError("redaction_map or scan_id is required")
        restored = self.redactor.restore(
            text, redaction_map, strict=bool(body.get("strict", True)),
        )
        self._respond(200, {"text": restored})


def make_server(
    port: int = DEFAULT_PORT,
    *,
    redactor: Redactor | None = None,
    store: SqliteMapStore | None = None,
    host: str = "127.0.0.1",
) -> ThreadingHTTPServer:
    """Build (but don't start) the sidecar server.  ``port=0`` picks a free port."""
    handler = type("BoundRedactionHandler", (RedactionHandler,), {
        "redactor": redactor or RedactionHandler.redactor,
        "store": store,
    })
    return ThreadingHTTPServer((host, port), handler)


def serve(port: int = DEFAULT_PORT, db_path: str | None = DEFAULT_DB) -> None:
    """Start the redaction HTTP sidecar."""
    store = SqliteMapStore(db_path) if db_path else None
    server = make_server(port, store=store)
    logger.info("report-redactor sidecar listening on http://127.0.0.1:%d", port)
    logger.info("  map store: %s", db_path or "disabled")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
    finally:
        server.server_close()
        if store is not None:
            store.close()


if __name__ == "__main__":
    import argparse
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="report-redactor HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--db", default=DEFAULT_DB)
    args = parser.parse_args()
    serve(port=args.port, db_path=args.db)
