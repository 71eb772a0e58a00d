"""
Fixtures for the auth service tests.
"""

import pytest
from fastapi.testclient import TestClient

from shared.test_helpers import (
    MockAuthServer,
    MockTokenGenerator,
    create_mock_user,
    make_oauth_config,
)
from service_auth.app.main import create_app


@pytest.fixture(scope="session")
def token_generator():
    """One RSA key pair for the whole run; generating keys is slow."""
    return MockTokenGenerator()


@pytest.fixture
def mock_user():
    return create_mock_user()


@pytest.fixture
def auth_server(token_generator):
    return MockAuthServer(tokens=token_generator)


@pytest.fixture
def oauth_config():
    return make_oauth_config()


@pytest.fixture
def client(oauth_config, auth_server):
    """Auth service wired to the in-process auth server."""
    app = create_app(oauth_config, transport=auth_server.transport())
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
