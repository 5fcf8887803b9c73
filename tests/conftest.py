"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, no .env, job disabled)
  - Reset settings and container singletons between tests
  - Seed a user + hideout + admin member in the in-memory repositories
  - Provide session cookies and a FastAPI TestClient

Collaborators:
  - pytest: Test framework
  - hideout_api.container: in-memory adapters in test env
  - hideout_api.identity.auth: session tokens

Notes:
  - Fixtures are auto-discovered by pytest
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os
import sys
from pathlib import Path
from uuid import uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from hideout_api.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("ENABLE_REPLENISHMENT_JOB", "false")
os.environ.setdefault("FAKE_LLM", "true")

from hideout_api.container import (  # noqa: E402
    get_hideout_repository,
    get_party_member_repository,
    get_user_repository,
    reset_container,
)
from hideout_api.domain.entities import (  # noqa: E402
    Hideout,
    MemberRole,
    PartyMember,
    User,
)
from hideout_api.identity.auth import create_session_token  # noqa: E402


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


@pytest.fixture(autouse=True)
def _fresh_singletons():
    """R: Settings y repos nuevos por test (los in-memory no comparten estado)."""
    app_config.get_settings.cache_clear()
    reset_container()
    yield
    app_config.get_settings.cache_clear()
    reset_container()


# ============================================================================
# Seed data
# ============================================================================


@pytest.fixture
def user() -> User:
    return get_user_repository().add_user(
        User(id=str(uuid4()), email="exile@example.com", name="Exile")
    )


@pytest.fixture
def hideout() -> Hideout:
    return get_hideout_repository().create_hideout(
        Hideout(id=str(uuid4()), name="Lioneye's Watch", invite_code="ABC123")
    )


@pytest.fixture
def admin_member(user: User, hideout: Hideout) -> PartyMember:
    return get_party_member_repository().create_member(
        PartyMember(
            id=str(uuid4()),
            hideout_id=hideout.id,
            name=user.name,
            email=user.email,
            user_id=user.id,
            is_guest=False,
            role=MemberRole.ADMIN,
        )
    )


@pytest.fixture
def session_cookie():
    """Factory: cookies con un token de sesión firmado con el secret de test."""

    def _make(user_id: str, hideout_id: str | None = None) -> dict[str, str]:
        return {"auth_token": create_session_token(user_id, hideout_id)}

    return _make


@pytest.fixture
def admin_cookies(user: User, hideout: Hideout, admin_member: PartyMember, session_cookie):
    return session_cookie(user.id, hideout.id)


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from hideout_api.api.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
