from .client_creator import (
    JSON_HEADERS, TEST_AGENT_ID, TEST_API_URL, TEST_COORDINATOR_ID, TEST_INTENT_ID, TEST_OWNER_WALLET,
    TEST_RECEIPT_ID, TEST_SEED, TEST_TX_SIGNATURE, agent_json, build_response_json,
    build_unsigned_transaction, call_response_json, context_json, create_test_client,
    create_test_wallet
)
