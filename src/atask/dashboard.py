"""Web dashboard for atask: a Kanban board over the local issue store.

A module-level ``_db`` is set at startup (or by test fixtures) and injected
into every handler via ``Depends(_get_db)``.

Usage:
    atask dashboard                    # Opens browser at localhost:8377
    atask dashboard --port 9000        # Custom port
    atask dashboard --no-browser       # Skip auto-open
"""

from __future__ import annotations

import json
import logging
import webbrowser
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi.responses import JSONResponse
    from starlette.requests import Request

from atask.core import DB_FILENAME, VALID_STATUSES, AtaskDB, find_atask_root
from atask.errors import ParseError

STATIC_DIR = Path(__file__).parent / "static"
DEFAULT_PORT = 8377

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state: set by main() or test fixtures
# ---------------------------------------------------------------------------

_db: AtaskDB | None = None


def _error_response(
    message: str,
    code: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    return JSONResponse(
        {"error": {"message": message, "code": code, "details": details or {}}},
        status_code=status_code,
    )


async def _parse_json_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parse and validate a JSON object body, returning 400 on failure."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
        return _error_response("Invalid JSON body", "VALIDATION_ERROR", 400)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", "VALIDATION_ERROR", 400)
    return body


def _safe_int(value: str, name: str, *, min_value: int | None = None) -> int | JSONResponse:
    """Parse a query-param string to int, returning a 400 error response on failure."""
    try:
        result = int(value)
    except (ValueError, TypeError):
        return _error_response(
            f'Invalid value for {name}: "{value}". Must be an integer.',
            "VALIDATION_ERROR",
            400,
        )
    if min_value is not None and result < min_value:
        return _error_response(
            f"Invalid value for {name}: {result}. Must be >= {min_value}.",
            "VALIDATION_ERROR",
            400,
        )
    return result


def _get_db() -> AtaskDB:
    """Return the active database connection."""
    from fastapi import HTTPException

    if _db is None:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return _db


def create_app() -> Any:
    """Create the FastAPI application with all dashboard endpoints."""
    from fastapi import Depends, FastAPI, Request
    from fastapi.responses import HTMLResponse, JSONResponse

    # Expose these in module globals so PEP 563 deferred annotations resolve
    globals()["Request"] = Request
    globals()["JSONResponse"] = JSONResponse
    globals()["HTMLResponse"] = HTMLResponse

    app = FastAPI(title="atask Dashboard", docs_url=None, redoc_url=None)

    @app.exception_handler(ParseError)
    async def _parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
        logger.error("Unreadable data while serving %s: %s", request.url.path, exc)
        return _error_response(str(exc), "DATA_CORRUPTION", 500)

    # NOTE: Handlers are async despite doing synchronous SQLite I/O. This
    # keeps every DB call on the event loop thread, so the single shared
    # connection is never used from two threads at once.

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        html = (STATIC_DIR / "dashboard.html").read_text()
        return HTMLResponse(html)

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.get("/api/board")
    async def api_board(db: AtaskDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse(db.get_board())

    @app.get("/api/issues")
    async def api_issues(status: str | None = None, db: AtaskDB = Depends(_get_db)) -> JSONResponse:
        if status is not None and status not in VALID_STATUSES:
            return _error_response(
                f"Invalid status {status!r}",
                "VALIDATION_ERROR",
                400,
                {"valid": sorted(VALID_STATUSES)},
            )
        return JSONResponse([i.to_dict() for i in db.get_all_issues(status=status)])

    @app.get("/api/stats")
    async def api_stats(db: AtaskDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse(db.get_stats())

    @app.get("/api/commits")
    async def api_commits(request: Request, db: AtaskDB = Depends(_get_db)) -> JSONResponse:
        raw_limit = request.query_params.get("limit")
        limit: int | None = None
        if raw_limit is not None:
            parsed = _safe_int(raw_limit, "limit", min_value=1)
            if not isinstance(parsed, int):
                return parsed
            limit = parsed
        return JSONResponse([c.to_dict() for c in db.get_all_commits(limit=limit)])

    @app.post("/api/move")
    async def api_move(request: Request, db: AtaskDB = Depends(_get_db)) -> JSONResponse:
        """Move a card to another column, i.e. change the issue's status."""
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        issue_id = body.get("issue_id")
        status = body.get("status")
        if not isinstance(issue_id, int) or isinstance(issue_id, bool):
            return _error_response("issue_id must be an integer", "VALIDATION_ERROR", 400)
        if not isinstance(status, str):
            return _error_response("status must be a string", "VALIDATION_ERROR", 400)
        try:
            updated = db.update_status(issue_id, status)
        except ValueError as e:
            return _error_response(str(e), "INVALID_STATUS", 400, {"valid": sorted(VALID_STATUSES)})
        if not updated:
            return _error_response(f"Issue not found: {issue_id}", "ISSUE_NOT_FOUND", 404)
        issue = db.get_issue(issue_id)
        if issue is None:  # pragma: no cover (row was just updated)
            return _error_response(f"Issue not found: {issue_id}", "ISSUE_NOT_FOUND", 404)
        logger.info("Moved issue %d to %s", issue_id, status, extra={"command": "move"})
        return JSONResponse(issue.to_dict())

    return app


def main(port: int = DEFAULT_PORT, *, no_browser: bool = False) -> None:
    """Start the dashboard server for the project containing cwd."""
    import threading

    import uvicorn

    from atask.logging import setup_logging

    global _db

    atask_dir = find_atask_root()
    setup_logging(atask_dir)
    _db = AtaskDB(atask_dir / DB_FILENAME, check_same_thread=False)
    _db.initialize()

    app = create_app()

    if not no_browser:
        threading.Timer(0.5, lambda: webbrowser.open(f"http://localhost:{port}")).start()

    print(f"atask Dashboard: http://localhost:{port}")
    try:
        uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")
    finally:
        _db.close()
        _db = None
