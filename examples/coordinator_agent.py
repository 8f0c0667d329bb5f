#!/usr/bin/env python3
"""
Coordinator agent: calls two sub-agents and combines their results.

The coordinator pays sub-agents from its own wallet. Building the client with
``TettoClient.from_context`` forwards whoever called the coordinator as the
calling agent, so each sub-agent sees the real caller.

Requires COORDINATOR_KEYPAIR_PATH and optionally NETWORK (mainnet/devnet).
"""
import logging
import os

from tetto_sdk import TettoClient, create_wallet_from_keypair
from tetto_sdk.agent import create_agent_handler
from tetto_sdk.wallet import KeypairWallet

logger = logging.getLogger(__name__)

coordinator_wallet = create_wallet_from_keypair(
    KeypairWallet.from_json_file(os.environ["COORDINATOR_KEYPAIR_PATH"])
)


def audit_code(input, context):
    logger.info(
        f"Audit requested by {context.tetto_context.caller_wallet} "
        f"(intent {context.tetto_context.intent_id})"
    )
    tetto = TettoClient.from_context(
        context,
        network=os.environ.get("NETWORK", "mainnet"),
        debug=bool(os.environ.get("DEBUG")),
    )

    agents = {agent.name: agent for agent in tetto.list_agents()}
    scanner = agents.get("SecurityScanner")
    analyzer = agents.get("QualityAnalyzer")
    if scanner is None or analyzer is None:
        raise RuntimeError("Required sub-agents not found in marketplace")

    payload = {"code": input["code"], "language": input["language"]}
    security = tetto.call_agent(scanner.id, payload, coordinator_wallet)
    quality = tetto.call_agent(analyzer.id, payload, coordinator_wallet)

    security_score = security.output.get("score", 0)
    quality_score = quality.output.get("score", 0)
    return {
        "overall_score": round((security_score + quality_score) / 2),
        "security": security.output,
        "quality": quality.output,
        "receipts": [security.receipt_id, quality.receipt_id],
    }


handle = create_agent_handler(audit_code)
