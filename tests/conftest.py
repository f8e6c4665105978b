"""Shared pytest fixtures for gateway tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from gusteau_gateway.api.factory import create_app  # noqa: E402

from helpers import FakeBackend, FakeEngine, make_settings  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def app(settings, engine, backend):
    return create_app(settings=settings, engine=engine, backend=backend)


@pytest.fixture
def client(app):
    """Client without lifespan: routes only, no dispatcher task."""
    return TestClient(app)
