"""Fixtures for the API and editor tests."""
import itertools
import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway SQLite file before app.core.config is imported
_TMP_DIR = tempfile.mkdtemp(prefix="achot-tests-")
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{Path(_TMP_DIR) / 'test.db'}"
os.environ["DRAFT_STORAGE_DIR"] = str(Path(_TMP_DIR) / "local_storage")
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ.setdefault("JWT_SECRET", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402

from app.core.storage import MemoryStorage  # noqa: E402
from app.modules.users.auth import AuthService  # noqa: E402


_user_ids = itertools.count(1)


def make_token(user_id: int, role: str = "ACCOUNTANT") -> str:
    return AuthService.create_access_token(
        {"user_id": user_id, "sub": f"user{user_id}", "role": role}
    )


@pytest.fixture
def client():
    """Test client with the lifespan run, so the tables exist."""
    from app.main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    """Bearer header of a fresh user, so tests never see each other's reports."""
    return {"Authorization": f"Bearer {make_token(next(_user_ids))}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {make_token(next(_user_ids))}"}


@pytest.fixture
def storage():
    return MemoryStorage()
