"""Pytest fixtures for web API tests.

Route tests patch the core services they call, so no database is needed.
Identity comes from dependency overrides instead of real session cookies.
"""

import pytest
from fastapi.testclient import TestClient

TEST_USER_ID = 1


@pytest.fixture
def app():
    from main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Test client without lifespan (no scheduler, no engine)."""
    return TestClient(app)


@pytest.fixture
def as_user(app):
    """Authenticate every request as TEST_USER_ID."""
    from web_api.auth import get_current_user

    app.dependency_overrides[get_current_user] = lambda: {
        "sub": str(TEST_USER_ID),
        "name": "Alice",
    }
    return TEST_USER_ID


@pytest.fixture
def as_admin(app, as_user):
    """Authenticate as an admin user."""
    from web_api.auth import require_admin

    app.dependency_overrides[require_admin] = lambda: {
        "sub": str(TEST_USER_ID),
        "name": "Alice",
    }
    return TEST_USER_ID
