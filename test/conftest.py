from __future__ import annotations

from test import client_context

import pytest


@pytest.fixture(scope="session", autouse=True)
def test_setup_and_teardown():
    yield
    if client_context.client is not None:
        client_context.client.close()
