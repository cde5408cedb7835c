"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and give every test a fresh set of
collaborators (in-memory store, fake directory, fake scheduling client) so
API tests never touch the network or a database.
"""
import os
import sys
from pathlib import Path

import pytest

# Ensure `backend.*` and `utils.*` are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

TEST_JWT_SECRET = "test-only-jwt-secret"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Keep env-driven behavior deterministic per test.

    Behavior:
        - Default to `dev` unless a test opts into prod semantics explicitly.
        - Provide a JWT secret for token verification.
        - Drop DSNs so the default store never reaches for Postgres.
    """
    for var in (
        "CLASSROOM_ENV",
        "CLASSROOM_DATABASE_URL",
        "DATABASE_URL",
        "DIRECTORY_TOKEN",
        "JWT_COOKIE_NAME",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    yield


@pytest.fixture
def store():
    from backend.classrooms.store import InMemoryClassroomStore

    return InMemoryClassroomStore()


@pytest.fixture
def directory():
    from utils.fakes import FakeDirectory

    return FakeDirectory()


@pytest.fixture
def scheduler():
    from utils.fakes import FakeSchedulingClient

    return FakeSchedulingClient()


@pytest.fixture(autouse=True)
def _wire_fakes(store, directory, scheduler):
    """Swap the web wiring to per-test fakes and reset afterwards."""
    from backend.web import wiring

    wiring.set_store(store)
    wiring.set_directory(directory)
    wiring.set_scheduling_client(scheduler)
    yield
    wiring.set_store(None)
    wiring.set_directory(None)
    wiring.set_scheduling_client(None)


@pytest.fixture
def secret() -> str:
    return os.getenv("JWT_SECRET", TEST_JWT_SECRET)
