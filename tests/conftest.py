"""
Pytest fixtures for the Tetto SDK tests.
"""
from types import SimpleNamespace

import pytest

from tetto_sdk.gateway import _rate_limited_log
from tests.test_helpers import (
    JSON_HEADERS, TEST_AGENT_ID, TEST_API_URL, agent_json, build_response_json, call_response_json,
    create_test_client, create_test_wallet
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer environment variables out of the tests."""
    for name in ("TETTO_AGENT_ID", "TETTO_INSECURE_GW", "TETTO_TIMEOUT", "ANTHROPIC_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    _rate_limited_log.reset()
    yield
    _rate_limited_log.reset()


@pytest.fixture
def wallet():
    return create_test_wallet()


@pytest.fixture
def client():
    tetto = create_test_client()
    yield tetto
    tetto.close()


@pytest.fixture
def gateway(requests_mock, wallet):
    """
    Mock the three gateway endpoints a successful call touches.

    Returns a namespace with the registered routes so tests can inspect
    call counts and request bodies.
    """
    agent_route = requests_mock.get(
        f"{TEST_API_URL}/api/agents/{TEST_AGENT_ID}",
        json={"ok": True, "agent": agent_json()},
        headers=JSON_HEADERS,
    )
    build_route = requests_mock.post(
        f"{TEST_API_URL}/api/agents/{TEST_AGENT_ID}/build-transaction",
        json=build_response_json(wallet),
        headers=JSON_HEADERS,
    )
    call_route = requests_mock.post(
        f"{TEST_API_URL}/api/agents/call",
        json=call_response_json(),
        headers=JSON_HEADERS,
    )
    return SimpleNamespace(mock=requests_mock, agent=agent_route, build=build_route, call=call_route)
