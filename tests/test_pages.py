def test_index_page(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["Content-Type"] == "text/html"
    assert "Gargantuan Takeout Rocket 2 Dev Server" in r.text
    for link in ("/setup.html", "/download/test.txt", "/download-no-cookie/test.txt", "/download-gtr2cookie-auth/test.txt"):
        assert f'href="{link}"' in r.text, f"Index page missing link to {link}"


def test_unknown_path_falls_back_to_index(client):
    r = client.get("/no/such/page")
    assert r.status_code == 200
    assert "Gargantuan Takeout Rocket 2 Dev Server" in r.text


def test_setup_page(client):
    r = client.get("/setup.html")
    assert r.status_code == 200
    assert r.headers["Content-Type"] == "text/html"
    assert "Cookie Setup" in r.text
    assert 'document.cookie = "testcookie=valid; path=/"' in r.text
    assert "clearCookie()" in r.text


def test_responses_carry_request_id(client):
    r = client.get("/setup.html")
    assert len(r.headers.get("X-Request-ID", "")) == 12


def test_index_answers_head(client):
    r = client.head("/")
    assert r.status_code == 200, f"Expected 200, got {r.status_code}"
    assert r.headers["Content-Type"] == "text/html"


def test_setup_page_answers_head(client):
    assert client.head("/setup.html").status_code == 200
