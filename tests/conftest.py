import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is importable when running under pytest without an install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from content import build_test_content  # noqa: E402
from main import create_app  # noqa: E402


@pytest.fixture
def content() -> bytes:
    return build_test_content()


@pytest.fixture
def client(content: bytes):
    with TestClient(create_app(content)) as c:
        yield c
