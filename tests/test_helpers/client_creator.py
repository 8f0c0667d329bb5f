"""
Utility functions for creating test clients and gateway payloads.
"""
import base64
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from tetto_sdk.client import TettoClient
from tetto_sdk.config import get_default_config
from tetto_sdk.transaction import encode_length
from tetto_sdk.wallet import KeypairWallet

# Test constants used throughout tests
TEST_API_URL = "https://gateway.example.com"
TEST_AGENT_ID = "title-generator"
TEST_COORDINATOR_ID = "coordinator-agent"
TEST_INTENT_ID = "pi_7f3c2a"
TEST_RECEIPT_ID = "2b1f6a0e-8c4d-4e7a-9f3b-5d6c7e8f9a0b"
TEST_TX_SIGNATURE = "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
TEST_OWNER_WALLET = "AgentOwner1111111111111111111111111111111111"
TEST_SEED = bytes(range(1, 33))
JSON_HEADERS = {"Content-Type": "application/json"}


def create_test_wallet(seed: bytes = TEST_SEED) -> KeypairWallet:
    """Deterministic keypair wallet"""
    return KeypairWallet.from_secret_key(seed)


def create_test_client(api_url: str = TEST_API_URL, network: str = "devnet", **overrides: Any) -> TettoClient:
    """
    Create a client pointed at the mocked gateway.

    Args:
        api_url: Gateway URL registered with requests_mock
        network: "mainnet" or "devnet"
        **overrides: Any other TettoConfig field (agent_id, api_key, debug, ...)
    """
    return TettoClient(get_default_config(network, api_url=api_url, **overrides))


def build_unsigned_transaction(
    signers: Iterable[bytes],
    readonly_keys: Iterable[bytes] = (),
    versioned: bool = False,
) -> bytes:
    """
    Serialize a minimal transaction with empty signature slots.

    The message has the given signer keys, extra read-only keys, a zero
    blockhash and no instructions.
    """
    signers = list(signers)
    readonly_keys = list(readonly_keys)
    keys = signers + readonly_keys

    message = bytearray()
    if versioned:
        message.append(0x80)
    message += bytes([len(signers), 0, len(readonly_keys)])
    message += encode_length(len(keys))
    for key in keys:
        message += key
    message += bytes(32)
    message += encode_length(0)
    if versioned:
        message += encode_length(0)

    return encode_length(len(signers)) + bytes(64 * len(signers)) + bytes(message)


def agent_json(agent_id: str = TEST_AGENT_ID, **fields: Any) -> Dict[str, Any]:
    """Agent descriptor as the gateway returns it"""
    agent = {
        "id": agent_id,
        "name": "Title Generator",
        "description": "Generates a title for a piece of text",
        "endpoint_url": f"https://agents.example.com/api/{agent_id}",
        "price_display": 0.01,
        "price_base": 10000,
        "token": "USDC",
        "token_mint": "EGzSiubUqhzWFR2KxWCx6jHD6XNsVhKrnebjcQdN6qK4",
        "token_decimals": 6,
        "input_schema": {"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]},
        "output_schema": {"type": "object", "properties": {"title": {"type": "string"}}},
        "owner_wallet": TEST_OWNER_WALLET,
        "fee_bps": 1000,
        "status": "active",
    }
    agent.update(fields)
    return agent


def build_response_json(
    wallet: KeypairWallet,
    intent_id: str = TEST_INTENT_ID,
    expires_at: Optional[datetime] = None,
    **fields: Any,
) -> Dict[str, Any]:
    """Successful build-transaction envelope with a transaction ``wallet`` can sign"""
    if expires_at is None:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=5)
    raw = build_unsigned_transaction([wallet.public_key_bytes], readonly_keys=[bytes([7]) * 32])
    body = {
        "ok": True,
        "payment_intent_id": intent_id,
        "transaction": base64.b64encode(raw).decode("ascii"),
        "amount_base": 10000,
        "token": "USDC",
        "expires_at": expires_at.isoformat(),
        "input_hash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
    }
    body.update(fields)
    return body


def call_response_json(output: Optional[Dict[str, Any]] = None, **fields: Any) -> Dict[str, Any]:
    """Successful call envelope"""
    body = {
        "ok": True,
        "message": "Agent call completed",
        "output": output if output is not None else {"title": "A Short Title"},
        "tx_signature": TEST_TX_SIGNATURE,
        "receipt_id": TEST_RECEIPT_ID,
        "explorer_url": f"https://explorer.solana.com/tx/{TEST_TX_SIGNATURE}?cluster=devnet",
        "agent_received": 9000,
        "protocol_fee": 1000,
    }
    body.update(fields)
    return body


def context_json(caller_agent_id: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
    """tetto_context as the gateway sends it to agents"""
    context = {
        "caller_wallet": "CallerWa11et111111111111111111111111111111111",
        "caller_agent_id": caller_agent_id,
        "caller_agent_name": "Coordinator" if caller_agent_id else None,
        "intent_id": TEST_INTENT_ID,
        "timestamp": 1735689600000,
        "version": "1.0.0",
    }
    context.update(fields)
    return context
