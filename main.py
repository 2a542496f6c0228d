import os
import time
import uuid
import json as _json
import argparse
import html
import logging
from typing import List, Optional

from fastapi import FastAPI, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
import uvicorn

from access import Gate, cookie_gate, gtr2cookie_gate, open_gate
from content import TEST_FILENAME, build_test_content
from ranges import MalformedRange, resolve_range

# Server configuration
DEV_SERVER_HOST = os.environ.get("DEV_SERVER_HOST", "0.0.0.0")
DEV_SERVER_PORT = int(os.environ.get("DEV_SERVER_PORT", "8080"))

# Logging configuration
LOG_REQUESTS = os.environ.get("LOG_REQUESTS", "1") not in {"0", "false", "False"}
LOG_HEADERS_MODE = os.environ.get("LOG_HEADERS", "all").lower()  # 'all'|'minimal'
LOG_RESP_HEADERS = os.environ.get("LOG_RESP_HEADERS", "1") not in {"0", "false", "False"}
LOG_REDACT = os.environ.get("LOG_REDACT", "1") not in {"0", "false", "False"}
_logger = logging.getLogger("gtr2dev")
if not _logger.handlers:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

_REDACTED_HEADERS = {"authorization", "cookie", "set-cookie", "proxy-authorization"}

INDEX_HTML = """<html>
<body>
  <h1>Gargantuan Takeout Rocket 2 Dev Server</h1>
  <p>This is a development and test server for the Gargantuan Takeout Rocket 2 project.</p>

  <h2>Test Links:</h2>
  <ul>
    <li><a href="/setup.html">Cookie Setup Page</a> - Set up cookies for testing</li>
    <li><a href="/download/test.txt">Download Test File</a> - Requires valid cookie to download</li>
    <li><a href="/download-no-cookie/test.txt">Download Test File (No Cookie)</a> - Download without cookie requirement</li>
    <li><a href="/download-gtr2cookie-auth/test.txt">Download Test File (Gtr2Cookie Auth)</a> - Requires 'Authorization: Gtr2Cookie testcookie=valid' header</li>
  </ul>

  <h2>Resources:</h2>
  <ul>
    <li><a href="https://github.com/nelsonjchen/gtr-2-dev-server" target="_blank">GitHub Repository</a></li>
  </ul>
</body>
</html>"""

SETUP_HTML = """<html>
<body>
  <h1>Cookie Setup</h1>
  <p><a href="/">Home</a></p>
  <p><a href="/download/test.txt">Download Test File (Requires Cookie)</a></p>

  <button onclick="setCookie()">Set Cookie</button>
  <button onclick="clearCookie()">Clear Cookie</button>
  <script>
    function setCookie() {
      document.cookie = "testcookie=valid; path=/";
      alert("Cookie set!");
    }
    function clearCookie() {
      document.cookie = "testcookie=; path=/; expires=Thu, 01 Jan 1970 00:00:00 GMT";
      alert("Cookie cleared!");
    }
  </script>
</body>
</html>"""

# (path, access gate, log label) for each download variant
DOWNLOAD_ROUTES = [
    ("/download/test.txt", cookie_gate, "Cookie-protected endpoint"),
    ("/download-no-cookie/test.txt", open_gate, "No-cookie endpoint"),
    ("/download-gtr2cookie-auth/test.txt", gtr2cookie_gate, "Gtr2Cookie-protected endpoint"),
]


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> Response:
    """Plain-text error body terminated by a newline."""
    hdrs = {"X-Content-Type-Options": "nosniff"}
    if headers:
        hdrs.update(headers)
    return PlainTextResponse(f"{message}\n", status_code=status_code, headers=hdrs)


def redirect_response(status_code: int, location: str, text: str = "Found") -> Response:
    """Redirect with the small HTML link body browsers show when they do not follow it."""
    body = f'<a href="{html.escape(location)}">{text}</a>.\n\n'
    return HTMLResponse(body, status_code=status_code, headers={"Location": location})


def build_download_response(
    content: bytes,
    range_header: Optional[str],
    log_prefix: str = "Download",
    filename: str = TEST_FILENAME,
) -> Response:
    """Answer a download request for ``content`` honoring an optional Range header.

    200 with the whole body when no range is asked for, 206 with
    ``Content-Range`` for a satisfiable range, 400 for anything else.
    """
    size = len(content)
    try:
        rng = resolve_range(range_header, size)
    except MalformedRange as e:
        _logger.info("%s: Rejecting Range %r (%s)", log_prefix, e.header, e.reason)
        return error_response(400, str(e))

    headers = {
        "Content-Type": "text/plain",
        "Content-Disposition": f"attachment; filename={filename}",
        "Accept-Ranges": "bytes",
    }
    if not rng.partial:
        _logger.info("%s: Serving full %s content", log_prefix, filename)
        headers["Content-Length"] = str(size)
        return Response(content=content, status_code=200, headers=headers)

    headers["Content-Length"] = str(rng.length)
    headers["Content-Range"] = rng.content_range(size)
    _logger.info("%s: Serving partial content: %s", log_prefix, headers["Content-Range"])
    return Response(content=content[rng.start:rng.end + 1], status_code=206, headers=headers)


def _redact(k: str, v: str) -> str:
    if LOG_REDACT and k.lower() in _REDACTED_HEADERS:
        return "***"
    return v


async def _log_http_requests(request: Request, call_next):
    """Log inbound requests with method, path, query and selected headers, then the response.

    Credentials (Authorization, Cookie) are redacted unless LOG_REDACT is off.
    """
    if not LOG_REQUESTS:
        return await call_next(request)

    req_id = uuid.uuid4().hex[:12]
    method = request.method
    path = request.url.path
    query = request.url.query
    client_host = getattr(request.client, "host", None)
    client_port = getattr(request.client, "port", None)
    headers = request.headers
    http_version = request.scope.get("http_version") or "-"

    headers_snapshot = {k: _redact(k, v) for k, v in headers.items()} if LOG_HEADERS_MODE == "all" else {
        "user-agent": headers.get("user-agent", "-"),
        "range": headers.get("range", "-"),
        "authorization": _redact("authorization", headers.get("authorization", "-")),
        "cookie": _redact("cookie", headers.get("cookie", "-")),
    }

    _logger.info(
        "[%s] HTTP %s %s%s from %s%s proto=%s",
        req_id,
        method,
        path,
        ("?" + query) if query else "",
        client_host or "-",
        (f":{client_port}" if client_port is not None else ""),
        http_version,
    )
    _logger.info("[%s] Headers: %s", req_id, _json.dumps(headers_snapshot, ensure_ascii=False))

    started = time.time()
    try:
        response = await call_next(request)
    except Exception:
        _logger.exception("[%s] Unhandled error while processing %s %s", req_id, method, path)
        raise
    response.headers["X-Request-ID"] = req_id
    dur_ms = int((time.time() - started) * 1000)
    _logger.info(
        "[%s] Response %s %s -> %s (%d ms) ct=%s len=%s",
        req_id,
        method,
        path,
        response.status_code,
        dur_ms,
        response.headers.get("content-type", "-"),
        response.headers.get("content-length", "-"),
    )
    if LOG_RESP_HEADERS:
        resp_headers = {k: _redact(k, v) for k, v in response.headers.items()}
        _logger.info("[%s] Response headers: %s", req_id, _json.dumps(resp_headers, ensure_ascii=False))
    return response


def _download_endpoint(gate: Gate, log_prefix: str):
    async def download(request: Request):
        gate(request)
        return build_download_response(request.app.state.content, request.headers.get("range"), log_prefix)

    return download


def create_app(content: bytes) -> FastAPI:
    """Build the dev server around an already-generated, read-only content buffer."""
    app = FastAPI(title="Gargantuan Takeout Rocket 2 Dev Server")
    app.state.content = content
    app.middleware("http")(_log_http_requests)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        headers = getattr(exc, "headers", None) or {}
        if 300 <= exc.status_code < 400 and "Location" in headers:
            return redirect_response(exc.status_code, headers["Location"], str(exc.detail))
        return error_response(exc.status_code, str(exc.detail), headers)

    @app.api_route("/setup.html", methods=["GET", "HEAD"])
    async def setup_page():
        _logger.info("Accessed /setup.html")
        return Response(content=SETUP_HTML, headers={"Content-Type": "text/html"})

    for path, gate, label in DOWNLOAD_ROUTES:
        app.add_api_route(
            path,
            _download_endpoint(gate, label),
            methods=["GET", "HEAD"],
            name=label,
        )

    # Registered last: any other path falls through to the index page.
    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    async def index_page(path: str):
        _logger.info("Accessed /%s", path)
        return Response(content=INDEX_HTML, headers={"Content-Type": "text/html"})

    _logger.info("Test content ready: %d bytes", len(content))
    return app


app = create_app(build_test_content())


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="gtr2-dev-server",
        description="Dev server emulating cookie- and header-gated downloads with Range support",
    )
    p.add_argument("--host", default=DEV_SERVER_HOST, help=f"Bind address (default: {DEV_SERVER_HOST})")
    p.add_argument("--port", type=int, default=DEV_SERVER_PORT, help=f"Listen port (default: {DEV_SERVER_PORT})")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    _logger.info("Starting server on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
