"""Fixtures for API tests."""

import pytest
from falcon.testing import TestClient

from postdb.config import Settings
from postdb.main import create_postdb_app

from tests.conftest import FakeStorage, make_uow_factory


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def settings() -> Settings:
    return Settings(cluster_id="node-a", changes_poll_interval=0.01, changes_longpoll_timeout=0.05)


@pytest.fixture
def app(storage: FakeStorage, settings: Settings):
    """Falcon ASGI app wired over in-memory storage."""
    return create_postdb_app(settings, uow_factory=make_uow_factory(storage))


@pytest.fixture
def client(app) -> TestClient:
    """Falcon ASGI test client."""
    return TestClient(app)


@pytest.fixture
def orders(client: TestClient) -> TestClient:
    """Client with an ``orders`` collection already created."""
    result = client.simulate_put("/orders")
    assert result.status_code == 201
    return client
