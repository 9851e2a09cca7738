# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets up environment variables before the application is imported and
# provides repositories and clients shared by the test modules.
# =============================================================================

import os

# This must happen before importing user_crud_api.app.core.config, which
# reads the environment at import time.
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from user_crud_api.app.core.config import Settings
from user_crud_api.app.core.db import connect_with_retry
from user_crud_api.app.main import create_app
from user_crud_api.app.repositories import InMemoryUserRepository, SqlUserRepository


@pytest.fixture
def sqlite_settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return replace(
        Settings(),
        storage_backend="sqlite",
        database_url=str(tmp_path / "users.db"),
        db_connect_attempts=1,
        db_connect_backoff=0.0,
    )


@pytest.fixture
def memory_repo():
    return InMemoryUserRepository()


@pytest.fixture
def sqlite_repo(sqlite_settings):
    repo = SqlUserRepository(connect_with_retry(sqlite_settings))
    repo.init_schema()
    yield repo
    repo.close()


@pytest.fixture(params=["memory", "sqlite"])
def repo(request):
    """Every repository implementation, for contract tests."""
    return request.getfixturevalue(f"{request.param}_repo")


@pytest.fixture
def client(memory_repo):
    app = create_app(Settings(), repository=memory_repo)
    with TestClient(app) as test_client:
        yield test_client
