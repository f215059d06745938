from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from retirement_sim.app import create_app
from retirement_sim.config import AppConfig


@pytest.fixture()
def app():
    return create_app(AppConfig())


@pytest.fixture()
def client(app) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
