"""
Call protocol engine.

One agent invocation is four strictly ordered steps:

1. build    - the gateway validates the input against the agent's schema and,
              only if it passes, issues a PaymentIntent with an unsigned
              transaction. Nothing can be lost before this returns.
2. sign     - the wallet signs the transaction bytes exactly as received.
3. submit   - the signed transaction is sent once, together with the intent
              id; the gateway settles on-chain and invokes the agent.
4. normalize the confirmed response into a CallOutcome.

Any failure aborts the call. Submission is never retried here: a second
attempt after a partial success could settle twice, so repeated submission
is left to the gateway's idempotency on the payment intent.
"""
import re
import base64
import binascii
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ._awaitable import resolve_awaitable
from .exceptions import (
    AgentNotFound, InputValidationFailed, PaymentIntentExpired, SigningRejected,
    SubmissionFailed, TransactionBuildFailed
)
from .gateway.client import GatewayClient
from .gateway.exceptions import GatewayConnectionError, GatewayError, GatewayResponseError
from .models import AgentDescriptor, CallOptions, CallOutcome, PaymentIntent
from .wallet import Wallet, normalize_signed_transaction, wallet_public_key

_VALIDATION_RE = re.compile(r"validat|schema|invalid input", re.IGNORECASE)


def _summarize_input(payload: Mapping[str, Any]) -> str:
    """Describe an input payload for logs without its values"""
    keys = sorted(str(k) for k in payload.keys())
    return f"{len(keys)} field(s): {', '.join(keys)}" if keys else "empty"


class CallProtocol:
    """
    Drives validate -> build -> sign -> submit for single agent calls.

    The engine holds no per-call state: concurrent invocations each carry
    their own PaymentIntent and transaction and share only the HTTP session.
    It holds no credential either, which is what lets plugins use it.
    """

    __slots__ = ("_gateway", "_calling_agent_id", "_log")

    def __init__(
        self,
        gateway: GatewayClient,
        calling_agent_id: Optional[str] = None,
        debug: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self._gateway = gateway
        self._calling_agent_id = calling_agent_id or None
        logger = logger or logging.getLogger(__name__)
        self._log = logger.info if debug else logger.debug

    @property
    def calling_agent_id(self) -> Optional[str]:
        return self._calling_agent_id

    # ------------------------------------------------------------------
    # read-only marketplace queries
    # ------------------------------------------------------------------

    def get_agent(self, agent_id: str) -> AgentDescriptor:
        return self._gateway.get_agent(agent_id)

    def list_agents(self) -> List[AgentDescriptor]:
        return self._gateway.list_agents()

    # ------------------------------------------------------------------
    # protocol
    # ------------------------------------------------------------------

    def invoke(
        self,
        agent_id: str,
        input: Mapping[str, Any],
        wallet: Wallet,
        options: Union[CallOptions, Mapping[str, Any], None] = None,
    ) -> CallOutcome:
        """
        Call an agent and pay for it from ``wallet``.

        Args:
            agent_id: Agent id
            input: Input payload matching the agent's input schema
            wallet: Wallet that pays and signs
            options: CallOptions or a mapping of its fields

        Returns:
            CallOutcome once the gateway has confirmed settlement

        Raises:
            ValueError: If the wallet does not satisfy the Wallet contract
            AgentNotFound: If the agent does not exist
            InputValidationFailed: If the input was rejected (no funds at risk)
            TransactionBuildFailed: If the gateway could not build the payment
            SigningRejected: If the wallet declined or failed to sign
            PaymentIntentExpired: If the intent expired before submission
            SubmissionFailed: If settlement could not be confirmed
        """
        if not isinstance(options, CallOptions):
            options = CallOptions.model_validate(dict(options or {}))
        payer = wallet_public_key(wallet)

        self._log(f"Calling agent {agent_id} (payer {payer})")
        agent = self._gateway.get_agent(agent_id)
        self._log(f"Agent {agent.name}: {agent.price_display} {agent.token}")

        intent = self.build_payment(agent_id, input, payer, options.preferred_token)
        signed = self.sign_payment(intent, wallet)
        return self.submit_payment(intent, signed)

    def build_payment(
        self,
        agent_id: str,
        input: Mapping[str, Any],
        payer_wallet: str,
        preferred_token: Optional[str] = None,
    ) -> PaymentIntent:
        """
        Step 1: have the gateway validate ``input`` and build the payment.

        Raises:
            InputValidationFailed, AgentNotFound, TransactionBuildFailed
        """
        if not isinstance(input, Mapping):
            raise InputValidationFailed(f"Input must be a JSON object, got {type(input).__name__}")

        body: Dict[str, Any] = {"payer_wallet": payer_wallet, "input": dict(input)}
        if preferred_token:
            body["selected_token"] = preferred_token
        if self._calling_agent_id:
            body["calling_agent_id"] = self._calling_agent_id

        self._log(f"Requesting transaction (input {_summarize_input(input)})")
        try:
            result = self._gateway.build_transaction(agent_id, body)
        except GatewayResponseError as e:
            self._log(f"Transaction building failed: {e.message}")
            raise self._classify_build_error(agent_id, e) from e
        except GatewayConnectionError as e:
            raise TransactionBuildFailed(
                e.message, "No payment intent was created; it is safe to call again."
            ) from e

        try:
            intent = PaymentIntent(
                payment_intent_id=result.get("payment_intent_id"),
                agent_id=agent_id,
                payer_wallet=payer_wallet,
                transaction=result.get("transaction"),
                amount_base=result.get("amount_base"),
                token=result.get("token"),
                expires_at=result.get("expires_at"),
                input_hash=result.get("input_hash"),
            )
        except ValidationError as e:
            raise TransactionBuildFailed(f"Malformed build-transaction response: {e}") from e

        self._log(
            f"Transaction built: intent={intent.payment_intent_id} "
            f"amount={intent.amount_base} {intent.token} input_hash={intent.input_hash}"
        )
        return intent

    def sign_payment(self, intent: PaymentIntent, wallet: Wallet) -> bytes:
        """
        Step 2: hand the unsigned transaction bytes to the wallet, unmodified.

        Raises:
            TransactionBuildFailed: If the intent's transaction is not base64
            SigningRejected: If the wallet raises or returns nothing usable
        """
        try:
            raw = base64.b64decode(intent.transaction, validate=True)
        except binascii.Error as e:
            raise TransactionBuildFailed(f"Gateway returned a malformed transaction: {e}") from e

        self._log("Signing transaction")
        try:
            result = resolve_awaitable(wallet.sign_transaction(raw))
        except Exception as e:
            self._log(f"Transaction signing failed: {e}")
            raise SigningRejected(f"Transaction signing failed: {e}") from e

        try:
            signed = normalize_signed_transaction(result)
        except (TypeError, ValueError) as e:
            raise SigningRejected(f"Wallet returned an unusable signed transaction: {e}") from e
        if not signed:
            raise SigningRejected("Wallet returned an empty signed transaction")
        return signed

    def submit_payment(self, intent: PaymentIntent, signed_transaction: bytes) -> CallOutcome:
        """
        Step 3 and 4: submit once and normalize the confirmed result.

        Raises:
            PaymentIntentExpired: If the intent is already past its expiry
            SubmissionFailed: If the gateway reports an error or does not
                confirm settlement
        """
        if intent.is_expired():
            raise PaymentIntentExpired(intent.payment_intent_id, intent.expires_at)

        body = {
            "payment_intent_id": intent.payment_intent_id,
            "signed_transaction": base64.b64encode(signed_transaction).decode("ascii"),
        }
        self._log(f"Submitting signed transaction for intent {intent.payment_intent_id}")
        try:
            result = self._gateway.submit_call(body)
        except GatewayError as e:
            self._log(f"Agent call failed: {e.message}")
            raise SubmissionFailed(e.message, payment_intent_id=intent.payment_intent_id) from e

        if not result.get("tx_signature") or not result.get("receipt_id"):
            raise SubmissionFailed(
                "Gateway did not confirm settlement (missing transaction signature or receipt)",
                payment_intent_id=intent.payment_intent_id,
            )

        outcome = CallOutcome(
            output=result.get("output") or {},
            tx_signature=result["tx_signature"],
            receipt_id=result["receipt_id"],
            explorer_url=result.get("explorer_url") or "",
            agent_received=result.get("agent_received") or 0,
            protocol_fee=result.get("protocol_fee") or 0,
            message=result.get("message") or "",
            payment_intent_id=intent.payment_intent_id,
        )
        self._log(f"Agent call settled: tx={outcome.tx_signature} receipt={outcome.receipt_id}")
        return outcome

    @staticmethod
    def _classify_build_error(agent_id: str, error: GatewayResponseError) -> Exception:
        message = error.message
        if error.http_status == 404:
            return AgentNotFound(agent_id, message=message)
        if error.http_status == 422 or _VALIDATION_RE.search(message):
            return InputValidationFailed(
                message, "No payment was created. Fix the input to match the agent's input schema."
            )
        return TransactionBuildFailed(message)
