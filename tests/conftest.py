"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-unit-tests-0123456789")

from tests.factories import OPTION_ROWS, SUPABASE_CLIENT_TARGETS, make_query  # noqa: E402


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    # Clear the cache to ensure fresh settings
    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    # Clean up cache after tests
    get_settings.cache_clear()


@pytest.fixture
def option_rows() -> list[dict[str, Any]]:
    """Active option rows as stored in the options table."""
    return [dict(row) for row in OPTION_ROWS]


@pytest.fixture
def query_factory() -> Callable[..., MagicMock]:
    """Expose make_query to tests."""
    return make_query


@pytest.fixture
def mock_supabase_client(option_rows: list[dict[str, Any]]) -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client shared by every service module.

    Each table gets its own chainable query mock, reachable through
    ``mock_client.tables[name]``. The options table serves option_rows.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()
    tables: dict[str, MagicMock] = {"options": make_query(option_rows)}

    def table(name: str) -> MagicMock:
        if name not in tables:
            tables[name] = make_query([])
        return tables[name]

    mock_client.table.side_effect = table
    mock_client.tables = tables
    mock_client.rpc.return_value.execute.return_value = MagicMock(data={"matched": False, "match_id": None})

    patchers = [patch(target, return_value=mock_client) for target in SUPABASE_CLIENT_TARGETS]
    for patcher in patchers:
        patcher.start()
    # Fresh registry per test so it binds to this client
    registry_patcher = patch("src.services.option_registry._option_registry", None)
    registry_patcher.start()
    try:
        yield mock_client
    finally:
        registry_patcher.stop()
        for patcher in reversed(patchers):
            patcher.stop()


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
