"""JSON HTTP runtime backing a web client with a live BuildState.

Routes:
    GET  /api/state          current build payload
    POST /api/commander      {"commander_id": "RI"}
    POST /api/node           {"color": "red", "index": 3, "direction": "increase"}
    POST /api/reset          zero every talent
    POST /api/clear          drop the commander
    POST /api/load           {"token": "..."} or {"query": "?..."}
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from talent_planner.engine.build_config import BuildConfig
from talent_planner.engine.build_state import BuildState
from talent_planner.models.catalog import Catalog
from talent_planner.webui.export_state import build_state_payload


logger = logging.getLogger(__name__)

STATE_PATHS = frozenset({"/api/state", "/state.json"})


@dataclass(slots=True)
class ActionResult:
    ok: bool
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class WebUiRuntime:
    """Live, mutable planner runtime backing web API requests.

    A lock serialises requests so each operation runs to completion before
    the next one starts.
    """

    def __init__(self, catalog: Catalog, config: BuildConfig | None = None) -> None:
        self.state = BuildState(catalog, config)
        self._lock = threading.RLock()
        self._routes: dict[str, Callable[[dict], ActionResult]] = {
            "/api/commander": self._action_commander,
            "/api/node": self._action_node,
            "/api/reset": self._action_reset,
            "/api/clear": self._action_clear,
            "/api/load": self._action_load,
        }

    def snapshot(self) -> dict:
        with self._lock:
            return build_state_payload(self.state)

    def apply(self, path: str, payload: dict) -> ActionResult:
        action = self._routes.get(path)
        if action is None:
            return ActionResult(ok=False, message=f"Unknown API endpoint: {path}")
        with self._lock:
            return action(payload)

    # --- Actions -----------------------------------------------------------

    def _action_commander(self, payload: dict) -> ActionResult:
        try:
            self.state.select_commander(str(payload.get("commander_id", "")))
        except ValueError as exc:
            return ActionResult(ok=False, message=str(exc))
        return ActionResult(ok=True)

    def _action_node(self, payload: dict) -> ActionResult:
        index = payload.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            return ActionResult(ok=False, message=f"Node index must be an integer, got {index!r}")
        try:
            result = self.state.mutate_node(
                str(payload.get("color", "")),
                index,
                str(payload.get("direction", "increase")),
            )
        except ValueError as exc:
            return ActionResult(ok=False, message=str(exc))
        verdict = result.verdict
        # A click on a maxed node is a quiet no-op, not a failure.
        return ActionResult(
            ok=not verdict.denied,
            message=verdict.message or None,
            details=verdict.to_dict(),
        )

    def _action_reset(self, payload: dict) -> ActionResult:
        self.state.reset()
        return ActionResult(ok=True)

    def _action_clear(self, payload: dict) -> ActionResult:
        self.state.clear()
        return ActionResult(ok=True)

    def _action_load(self, payload: dict) -> ActionResult:
        if "query" in payload:
            query = payload["query"]
            if query is not None and not isinstance(query, str):
                return ActionResult(ok=False, message=f"Link query must be a string, got {query!r}")
            result = self.state.load_from_query(query)
        else:
            result = self.state.load_from_token(str(payload.get("token", "")))
        if result.error is None:
            return ActionResult(ok=True)
        return ActionResult(ok=False, message=result.error.message, details=result.error.to_dict())


class WebUiRequestHandler(BaseHTTPRequestHandler):
    """JSON API routes over a WebUiRuntime."""

    def __init__(self, *args, runtime: WebUiRuntime, **kwargs):
        self._runtime = runtime
        super().__init__(*args, **kwargs)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)

    def _reply(self, payload: dict, status: HTTPStatus = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        for name, value in (
            ("Content-Type", "application/json; charset=utf-8"),
            ("Content-Length", str(len(body))),
            ("Cache-Control", "no-store"),
        ):
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def _fail(self, message: str, status: HTTPStatus) -> None:
        self._reply({"ok": False, "message": message}, status)

    def _read_payload(self) -> dict:
        """Parse the request body as a JSON object; an empty body is ``{}``.

        Raises ValueError with a client-facing message for anything else.
        """
        try:
            length = max(int(self.headers.get("Content-Length") or 0), 0)
        except ValueError:
            length = 0
        raw = self.rfile.read(length) if length else b""
        if not raw.strip():
            return {}
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValueError("Invalid JSON body") from None
        if not isinstance(payload, dict):
            raise ValueError("JSON body must be an object")
        return payload

    def do_GET(self) -> None:  # noqa: N802
        if urlparse(self.path).path in STATE_PATHS:
            self._reply(self._runtime.snapshot())
        else:
            self._fail("Unknown endpoint", HTTPStatus.NOT_FOUND)

    def do_POST(self) -> None:  # noqa: N802
        route = urlparse(self.path).path
        if not route.startswith("/api/"):
            self._fail("Unknown endpoint", HTTPStatus.NOT_FOUND)
            return
        try:
            payload = self._read_payload()
        except ValueError as exc:
            self._fail(str(exc), HTTPStatus.BAD_REQUEST)
            return

        result = self._runtime.apply(route, payload)
        self._reply(
            {
                "ok": result.ok,
                "message": result.message,
                "details": result.details,
                "state": self._runtime.snapshot(),
            },
            HTTPStatus.OK if result.ok else HTTPStatus.BAD_REQUEST,
        )


def write_state(path: Path, runtime: WebUiRuntime) -> dict:
    """Write a one-shot JSON snapshot for offline inspection."""
    snapshot = runtime.snapshot()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
    return snapshot


def make_server(host: str, port: int, runtime: WebUiRuntime) -> ThreadingHTTPServer:
    server = ThreadingHTTPServer((host, port), partial(WebUiRequestHandler, runtime=runtime))
    server.webui_runtime = runtime  # type: ignore[attr-defined]
    return server


def serve(
    catalog: Catalog,
    *,
    host: str = "127.0.0.1",
    port: int = 4173,
    config: BuildConfig | None = None,
    initial_query: str | None = None,
) -> None:
    """Serve the API until interrupted, optionally preloading a share link."""
    runtime = WebUiRuntime(catalog, config)
    if initial_query:
        result = runtime.state.load_from_query(initial_query)
        if result.error is not None:
            print(f"Warning: could not load link ({result.error.kind}): {result.error.message}")
    server = make_server(host, port, runtime)
    print(f"Talent planner API listening on http://{host}:{port}/api/state")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("Stopping.")
    finally:
        server.server_close()
