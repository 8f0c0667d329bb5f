"""
Tests for the TettoClient class.
"""
import logging

import pytest
from pydantic import ValidationError

from tetto_sdk import AgentMetadata, MissingCredential, TettoClient, get_default_config
from tests.test_helpers import (
    JSON_HEADERS, TEST_AGENT_ID, TEST_API_URL, TEST_OWNER_WALLET, TEST_RECEIPT_ID, agent_json, create_test_client
)

REGISTER_URL = f"{TEST_API_URL}/api/agents/register"


def metadata(**fields):
    values = {
        "name": "Title Generator",
        "description": "Generates a title",
        "endpoint": "https://agents.example.com/api/title",
        "input_schema": {"type": "object", "properties": {"text": {"type": "string"}}},
        "output_schema": {"type": "object", "properties": {"title": {"type": "string"}}},
        "price_usdc": 0.01,
        "owner_wallet": TEST_OWNER_WALLET,
        "token_mint": "USDC",
    }
    values.update(fields)
    return values


def test_client_initialization():
    client = TettoClient(get_default_config("devnet"))

    assert client.api_url == "https://dev.tetto.io"
    assert client.network == "devnet"
    assert client.calling_agent_id is None
    assert client.list_plugins() == []


def test_repr_hides_secrets():
    client = create_test_client(api_key="sk-very-secret")

    assert "sk-very-secret" not in repr(client)
    assert "sk-very-secret" not in repr(client.config)


def test_register_agent(requests_mock):
    route = requests_mock.post(REGISTER_URL, json={"ok": True, "agent": agent_json()}, headers=JSON_HEADERS)
    client = create_test_client(api_key="sk-test")

    agent = client.register_agent(metadata())

    assert agent.id == TEST_AGENT_ID
    body = route.last_request.json()
    assert body["endpoint_url"] == "https://agents.example.com/api/title"
    assert body["owner_wallet_pubkey"] == TEST_OWNER_WALLET
    assert body["token_mint"] == "USDC"
    assert route.last_request.headers["Authorization"] == "Bearer sk-test"


def test_register_agent_accepts_model(requests_mock):
    requests_mock.post(REGISTER_URL, json={"ok": True, "agent": agent_json()}, headers=JSON_HEADERS)
    client = create_test_client(api_key="sk-test")

    assert client.register_agent(AgentMetadata(**metadata())).id == TEST_AGENT_ID


def test_register_agent_without_key(requests_mock):
    requests_mock.post(REGISTER_URL, status_code=401, json={"ok": False, "error": "Unauthorized"})
    client = create_test_client()

    with pytest.raises(MissingCredential):
        client.register_agent(metadata())


@pytest.mark.parametrize("fields", [{"price_usdc": 0}, {"name": ""}, {"token_mint": "BONK"}])
def test_register_agent_validates_metadata(requests_mock, fields):
    client = create_test_client(api_key="sk-test")

    with pytest.raises(ValidationError):
        client.register_agent(metadata(**fields))
    assert not requests_mock.called


def test_registration_logs_never_include_key(requests_mock, caplog):
    requests_mock.post(REGISTER_URL, json={"ok": True, "agent": agent_json()}, headers=JSON_HEADERS)
    client = create_test_client(api_key="sk-very-secret", debug=True)

    with caplog.at_level(logging.DEBUG):
        client.register_agent(metadata())

    assert "sk-very-secret" not in caplog.text
    assert "Agent registered" in caplog.text


def test_get_receipt(requests_mock, client):
    requests_mock.get(
        f"{TEST_API_URL}/api/receipts/{TEST_RECEIPT_ID}",
        json={"ok": True, "receipt": {
            "id": TEST_RECEIPT_ID,
            "agent": {"id": TEST_AGENT_ID, "name": "Title Generator"},
            "caller_wallet": "CallerWa11et111111111111111111111111111111111",
            "token": "USDC",
            "amount_display": 0.01,
            "tx_signature": "sig",
        }},
        headers=JSON_HEADERS,
    )

    assert client.get_receipt(TEST_RECEIPT_ID).id == TEST_RECEIPT_ID


def test_list_and_get_agent(requests_mock, client):
    requests_mock.get(f"{TEST_API_URL}/api/agents", json={"ok": True, "agents": [agent_json()]}, headers=JSON_HEADERS)
    requests_mock.get(
        f"{TEST_API_URL}/api/agents/{TEST_AGENT_ID}", json={"ok": True, "agent": agent_json()}, headers=JSON_HEADERS
    )

    assert [agent.id for agent in client.list_agents()] == [TEST_AGENT_ID]
    assert client.get_agent(TEST_AGENT_ID).name == "Title Generator"


def test_clients_do_not_share_plugins():
    first, second = create_test_client(), create_test_client()

    first.use(lambda api, options: {"name": "stats"})

    assert first.has_plugin("stats")
    assert not second.has_plugin("stats")
    assert not hasattr(second, "stats")
