"""
Pytest configuration and shared fixtures.
Settings are read at import time, so the environment is prepared before
any boardguru module is imported.
"""

import os

os.environ["LOG_TO_FILE"] = "false"
os.environ["ENABLE_REQUEST_AUDIT"] = "false"
os.environ["DB_AUTO_MIGRATE"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["STORAGE_BUCKET"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret-key-minimum-32-chars-long-for-hs256"

import pytest
from fastapi.testclient import TestClient

from boardguru.api import dependencies
from boardguru.core.auth_service import AuthService
from fakes import FakeBackend


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def owner(backend):
    return backend.add_user("owner@acme.test", "Olivia Owner")


@pytest.fixture
def member(backend):
    return backend.add_user("member@acme.test", "Max Member")


@pytest.fixture
def outsider(backend):
    return backend.add_user("outsider@elsewhere.test", "Oscar Outsider")


@pytest.fixture
def organization(backend, owner, member):
    return backend.add_organization(owner["user_id"], members={member["user_id"]: "member"})


@pytest.fixture
def app(backend):
    """The FastAPI app with every service wired to the in-memory backend."""
    from main import app

    overrides = {
        dependencies.get_notification_service: backend.notification_service,
        dependencies.get_auth_service: backend.auth_service,
        dependencies.get_registration_service: backend.registration_service,
        dependencies.get_organization_service: backend.organization_service,
        dependencies.get_board_service: backend.board_service,
        dependencies.get_meeting_service: backend.meeting_service,
        dependencies.get_vault_service: backend.vault_service,
        dependencies.get_asset_service: backend.asset_service,
        dependencies.get_annotation_service: backend.annotation_service,
    }
    app.dependency_overrides.update(overrides)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    # No context manager: the lifespan would open a database pool
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user row."""
    def build(user, platform_role=None):
        token = AuthService.issue_token({**user, "platform_role": platform_role or user.get("platform_role", "user")})
        return {"Authorization": f"Bearer {token['access_token']}"}
    return build
