import os

import pytest
import requests

from content import build_test_content

LOCAL_BASE = os.environ.get("DEV_SERVER_ENDPOINT", "http://127.0.0.1:8080").rstrip("/")


def _check_server_available() -> bool:
    try:
        r = requests.get(f"{LOCAL_BASE}/setup.html", timeout=5)
        return r.status_code == 200 and "Cookie Setup" in r.text
    except requests.RequestException:
        return False


SERVER_AVAILABLE = _check_server_available()
pytestmark = pytest.mark.skipif(not SERVER_AVAILABLE, reason="Dev server not reachable")


def test_live_partial_download():
    data = build_test_content()
    r = requests.get(
        f"{LOCAL_BASE}/download-no-cookie/test.txt",
        headers={"Range": "bytes=0-99"},
        timeout=15,
    )
    assert r.status_code == 206, f"Expected 206, got {r.status_code}"
    assert r.headers.get("Content-Range") == f"bytes 0-99/{len(data)}"
    assert r.content == data[:100]


def test_live_resume_after_interruption():
    data = build_test_content()
    url = f"{LOCAL_BASE}/download-no-cookie/test.txt"
    first = requests.get(url, headers={"Range": "bytes=0-9999"}, timeout=15)
    rest = requests.get(url, headers={"Range": f"bytes={len(first.content)}-"}, timeout=15)
    assert rest.status_code == 206
    assert first.content + rest.content == data


def test_live_cookie_redirect():
    r = requests.get(f"{LOCAL_BASE}/download/test.txt", allow_redirects=False, timeout=15)
    assert r.status_code == 302
    assert r.headers.get("Location") == "/setup.html"


def test_live_cookie_download():
    r = requests.get(f"{LOCAL_BASE}/download/test.txt", cookies={"testcookie": "valid"}, timeout=15)
    assert r.status_code == 200
    assert r.content == build_test_content()


def test_live_gtr2cookie_auth():
    url = f"{LOCAL_BASE}/download-gtr2cookie-auth/test.txt"
    denied = requests.get(url, timeout=15)
    assert denied.status_code == 401
    assert denied.text == "Authorization header required\n"
    ok = requests.get(url, headers={"Authorization": "Gtr2Cookie testcookie=valid", "Range": "bytes=-10"}, timeout=15)
    assert ok.status_code == 206
    assert ok.content == build_test_content()[-10:]
