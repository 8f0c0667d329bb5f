#!/usr/bin/env python3
"""
A plugin that wraps a key-value memory agent.

Plugins get a restricted API: they can call agents, but only with a wallet
handed to them by the caller, and they never see the client's API key.
"""
import os
import sys

from tetto_sdk import PluginInstance, TettoClient, create_wallet_from_keypair, get_default_config
from tetto_sdk.wallet import KeypairWallet


class WarmMemory(PluginInstance):
    name = "memory"
    id = "warm-memory"

    def __init__(self, api, options):
        self.api = api
        self.agent_id = options.get("agent_id", "warmmemory")

    def on_init(self):
        print(f"memory plugin ready on {self.api.get_config().network}")

    def store(self, key, value, wallet):
        return self.api.call_agent(self.agent_id, {"action": "store", "key": key, "value": value}, wallet)

    def retrieve(self, key, wallet):
        return self.api.call_agent(self.agent_id, {"action": "retrieve", "key": key}, wallet).output


def main():
    client = TettoClient(get_default_config(os.environ.get("NETWORK", "devnet")))
    wallet = create_wallet_from_keypair(KeypairWallet.from_json_file(os.environ["KEYPAIR_PATH"]))

    client.use(WarmMemory)
    try:
        client.memory.store("greeting", "hello", wallet)
        print(client.memory.retrieve("greeting", wallet))
    finally:
        client.destroy()
    return 0


if __name__ == "__main__":
    sys.exit(main())
