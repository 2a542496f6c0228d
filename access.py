"""Access gates for the download endpoints.

A gate takes the incoming request and either returns (access granted) or
raises ``HTTPException`` describing the rejection. The download routes share
one serving routine and differ only in the gate they run first.
"""
import logging
from typing import Callable, Optional

from fastapi import HTTPException
from starlette.requests import Request

_logger = logging.getLogger("gtr2dev.access")

COOKIE_NAME = "testcookie"
COOKIE_VALUE = "valid"
SETUP_PAGE = "/setup.html"
AUTH_SCHEME = "Gtr2Cookie"

AUTH_REQUIRED = "Authorization header required"
INVALID_SCHEME = f"Invalid Authorization scheme. Expected '{AUTH_SCHEME}'"
INVALID_DATA = (
    f"Invalid Authorization data. Expected '{COOKIE_NAME}={COOKIE_VALUE}' within data part."
)

Gate = Callable[[Request], None]


def first_cookie(header: Optional[str], name: str) -> Optional[str]:
    """Return the value of the first cookie called ``name`` in a raw Cookie header.

    ``request.cookies`` keeps the last duplicate; browsers list the most
    specific path first, so the first occurrence is the one that counts.
    """
    if not header:
        return None
    for part in header.split(";"):
        kv = part.strip().split("=", 1)
        if len(kv) != 2 or kv[0] != name:
            continue
        value = kv[1]
        if len(value) > 1 and value[0] == value[-1] == '"':
            value = value[1:-1]
        return value
    return None


def cookie_gate(request: Request) -> None:
    """Require ``testcookie=valid``; send the browser to the setup page otherwise."""
    if first_cookie(request.headers.get("cookie"), COOKIE_NAME) != COOKIE_VALUE:
        _logger.info("Redirecting due to missing/invalid cookie")
        raise HTTPException(status_code=302, detail="Found", headers={"Location": SETUP_PAGE})


def open_gate(request: Request) -> None:
    return None


def _has_test_cookie(data: str) -> bool:
    for pair in data.split(";"):
        kv = pair.strip().split("=", 1)
        if len(kv) == 2 and kv[0] == COOKIE_NAME and kv[1] == COOKIE_VALUE:
            return True
    return False


def check_gtr2cookie_authorization(value: Optional[str]) -> None:
    """Validate an ``Authorization: Gtr2Cookie k=v; k2=v2`` header value.

    Raises 401 with a message naming the first check that failed: missing
    header, wrong scheme, or no ``testcookie=valid`` pair in the data part.
    """
    if not value or not value.strip():
        _logger.info("Missing Authorization header")
        raise HTTPException(status_code=401, detail=AUTH_REQUIRED)

    parts = value.strip().split(None, 1)
    if len(parts) != 2 or parts[0] != AUTH_SCHEME:
        _logger.info("Invalid Authorization header scheme: %s", parts[0])
        raise HTTPException(status_code=401, detail=INVALID_SCHEME)

    if not _has_test_cookie(parts[1]):
        _logger.info("Required '%s=%s' not found in Authorization data", COOKIE_NAME, COOKIE_VALUE)
        raise HTTPException(status_code=401, detail=INVALID_DATA)

    _logger.info("Authorization successful")


def gtr2cookie_gate(request: Request) -> None:
    check_gtr2cookie_authorization(request.headers.get("authorization"))
