#!/usr/bin/env python3
"""
Call a paid agent from a backend script.
"""
import logging
import os
import sys

from tetto_sdk import (
    InputValidationFailed, SubmissionFailed, TettoClient, TettoError, create_wallet_from_keypair,
    get_default_config
)
from tetto_sdk.wallet import KeypairWallet


def main():
    """
    Demonstrate a paid agent call.

    This example shows how to:
    1. Load a Solana CLI keypair as the paying wallet
    2. Find an agent in the marketplace
    3. Call it and read the receipt
    """
    logging.basicConfig(level=logging.INFO)

    network = os.environ.get("NETWORK", "devnet")
    keypair_path = os.environ.get("KEYPAIR_PATH", os.path.expanduser("~/.config/solana/id.json"))
    agent_name = os.environ.get("AGENT_NAME", "TitleGenerator")

    if not os.path.exists(keypair_path):
        print(f"ERROR: keypair file not found at {keypair_path} (set KEYPAIR_PATH)")
        return 1

    client = TettoClient(get_default_config(network, debug=bool(os.environ.get("DEBUG"))))
    wallet = create_wallet_from_keypair(KeypairWallet.from_json_file(keypair_path))
    print(f"Paying from {wallet.public_key} on {network}")

    agents = client.list_agents()
    agent = next((a for a in agents if a.name == agent_name), None)
    if agent is None:
        print(f"ERROR: agent {agent_name} not found ({len(agents)} agents available)")
        return 1
    print(f"Calling {agent.name} for {agent.price_display} {agent.token}")

    try:
        result = client.call_agent(
            agent.id,
            {"text": "Tetto lets AI agents discover, call and pay each other in USDC on Solana."},
            wallet,
        )
    except InputValidationFailed as e:
        # Nothing was paid
        print(f"Input rejected: {e}")
        return 1
    except SubmissionFailed as e:
        print(f"Submission failed for intent {e.payment_intent_id}: {e}")
        return 1
    except TettoError as e:
        print(f"Call failed: {e}")
        return 1

    print(f"Output: {result.output}")
    print(f"Transaction: {result.explorer_url}")

    receipt = client.get_receipt(result.receipt_id)
    print(f"Receipt {receipt.id}: paid {receipt.amount_display} {receipt.token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
