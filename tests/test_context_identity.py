"""
Tests for calling-agent identity and context propagation.
"""
import pytest
from hypothesis import given, strategies as st

from tetto_sdk import AgentRequestContext, CallContext, TettoClient, derive_config, get_default_config
from tetto_sdk.agent import create_agent_handler
from tetto_sdk.config import NETWORK_DEFAULTS
from tetto_sdk.context import coerce_context
from tests.test_helpers import (
    TEST_AGENT_ID, TEST_API_URL, TEST_COORDINATOR_ID, context_json, create_test_client, create_test_wallet
)


def test_direct_caller_sends_no_identity(gateway, wallet):
    tetto = create_test_client()
    assert tetto.calling_agent_id is None

    tetto.call_agent(TEST_AGENT_ID, {"text": "hello"}, wallet)

    assert "calling_agent_id" not in gateway.build.last_request.json()


def test_configured_identity_is_sent(gateway, wallet):
    tetto = create_test_client(agent_id=TEST_COORDINATOR_ID)

    tetto.call_agent(TEST_AGENT_ID, {"text": "hello"}, wallet)

    assert gateway.build.last_request.json()["calling_agent_id"] == TEST_COORDINATOR_ID


def test_identity_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("TETTO_AGENT_ID", "env-agent")

    assert create_test_client().calling_agent_id == "env-agent"


def test_explicit_identity_beats_environment(monkeypatch):
    monkeypatch.setenv("TETTO_AGENT_ID", "env-agent")

    assert create_test_client(agent_id="explicit-agent").calling_agent_id == "explicit-agent"


def test_environment_fallback_can_be_disabled(monkeypatch):
    monkeypatch.setenv("TETTO_AGENT_ID", "env-agent")

    assert create_test_client(agent_id_env_fallback=False).calling_agent_id is None


def test_blank_environment_identity_is_ignored(monkeypatch):
    monkeypatch.setenv("TETTO_AGENT_ID", "   ")

    assert create_test_client().calling_agent_id is None


def test_from_context_propagates_caller_agent():
    context = AgentRequestContext(tetto_context=CallContext(**context_json(caller_agent_id="agent-a")))

    tetto = TettoClient.from_context(context, network="devnet", api_url=TEST_API_URL)

    assert tetto.calling_agent_id == "agent-a"
    assert tetto.network == "devnet"
    assert tetto.config.protocol_wallet == NETWORK_DEFAULTS["devnet"]["protocol_wallet"]


def test_from_context_direct_caller_has_no_identity(monkeypatch):
    """A human caller upstream means no identity downstream, even with TETTO_AGENT_ID set"""
    monkeypatch.setenv("TETTO_AGENT_ID", "env-agent")

    tetto = TettoClient.from_context(context_json(caller_agent_id=None), api_url=TEST_API_URL)

    assert tetto.calling_agent_id is None


def test_from_context_defaults_to_mainnet():
    tetto = TettoClient.from_context(context_json(caller_agent_id="agent-a"))

    assert tetto.network == "mainnet"
    assert tetto.api_url == NETWORK_DEFAULTS["mainnet"]["api_url"]


@pytest.mark.parametrize("override", ["agent_id", "agent_id_env_fallback"])
def test_identity_cannot_be_overridden_when_deriving(override):
    with pytest.raises(ValueError, match="inbound context only"):
        derive_config(context_json(caller_agent_id="agent-a"), **{override: "someone-else"})


def test_unknown_override_is_rejected():
    with pytest.raises(ValueError, match="Unknown config overrides: colour"):
        derive_config(context_json(), colour="blue")


def test_derived_config_keeps_api_key():
    config = derive_config(context_json(caller_agent_id="agent-a"), api_key="sk-test")

    assert config.api_key.get_secret_value() == "sk-test"
    assert config.agent_id == "agent-a"
    assert config.agent_id_env_fallback is False


@pytest.mark.parametrize("shape", ["call_context", "request_context", "raw_context", "raw_body"])
def test_coerce_context_accepts_every_shape(shape):
    raw = context_json(caller_agent_id="agent-a")
    call_context = CallContext(**raw)
    context = {
        "call_context": call_context,
        "request_context": AgentRequestContext(tetto_context=call_context),
        "raw_context": raw,
        "raw_body": {"tetto_context": raw},
    }[shape]

    assert coerce_context(context) == call_context


def test_coerce_context_rejects_other_types():
    with pytest.raises(TypeError):
        coerce_context("agent-a")


@given(st.text(alphabet=" \t\n", max_size=5))
def test_blank_identities_are_absent(blank):
    context = CallContext(**context_json(caller_agent_id=blank, caller_agent_name=blank))
    config = get_default_config("devnet", agent_id=blank)

    assert context.caller_agent_id is None
    assert context.caller_agent_name is None
    assert not context.is_agent_call
    assert config.agent_id is None


def test_coordinator_forwards_its_callers_identity(gateway):
    """
    Caller agent A invokes coordinator C, which calls a downstream agent.
    The downstream build request must name A.
    """
    coordinator_wallet = create_test_wallet()

    def coordinator(input, context):
        tetto = TettoClient.from_context(context, network="devnet", api_url=TEST_API_URL)
        result = tetto.call_agent(TEST_AGENT_ID, {"text": input["text"]}, coordinator_wallet)
        return {"title": result.output["title"], "caller": context.tetto_context.caller_agent_id}

    handle = create_agent_handler(coordinator)
    response = handle({"input": {"text": "hello"}, "tetto_context": context_json(caller_agent_id="agent-a")})

    assert response.status_code == 200
    assert response.body == {"title": "A Short Title", "caller": "agent-a"}
    assert gateway.build.last_request.json()["calling_agent_id"] == "agent-a"


def test_coordinator_called_directly_forwards_nothing(gateway):
    coordinator_wallet = create_test_wallet()

    def coordinator(input, context):
        tetto = TettoClient.from_context(context, network="devnet", api_url=TEST_API_URL)
        return tetto.call_agent(TEST_AGENT_ID, input, coordinator_wallet).output

    handle = create_agent_handler(coordinator)
    response = handle({"input": {"text": "hello"}, "tetto_context": context_json(caller_agent_id=None)})

    assert response.status_code == 200
    body = gateway.build.last_request.json()
    assert "calling_agent_id" not in body
    assert "null" not in gateway.build.last_request.text
