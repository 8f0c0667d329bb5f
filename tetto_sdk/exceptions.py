"""
Exceptions for the Tetto SDK.

Every error raised by the SDK derives from :class:`TettoError`. Each class
carries a stable ``code`` (used by the agent handler when serializing
failures), an optional remediation ``hint`` and an HTTP-like ``status_code``.
"""
from typing import Any, List, Optional


class TettoError(Exception):
    """Base exception for all Tetto SDK errors."""

    code = "TettoError"
    status_code = 500

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\n{self.hint}"
        return self.message

    def to_dict(self) -> dict:
        """Serialize to the failure envelope returned by agent handlers."""
        body = {"error": self.message, "code": self.code}
        if self.hint:
            body["hint"] = self.hint
        return body


# Marketplace lookups

class AgentNotFound(TettoError):
    """No agent descriptor exists for the requested id."""
    code = "AgentNotFound"
    status_code = 404

    def __init__(self, agent_id: str, message: Optional[str] = None, hint: Optional[str] = None):
        self.agent_id = agent_id
        super().__init__(message or f"Agent not found: {agent_id}", hint)


class ReceiptNotFound(TettoError):
    code = "ReceiptNotFound"
    status_code = 404

    def __init__(self, receipt_id: str, message: Optional[str] = None, hint: Optional[str] = None):
        self.receipt_id = receipt_id
        super().__init__(message or f"Receipt not found: {receipt_id}", hint)


# Call protocol

class InputValidationFailed(TettoError):
    """
    The gateway rejected the input before a payment intent was created.

    No funds were ever at risk when this is raised.
    """
    code = "InputValidationFailed"
    status_code = 400


class TransactionBuildFailed(TettoError):
    """The gateway could not build the payment transaction (e.g. balance)."""
    code = "TransactionBuildFailed"
    status_code = 502


class PaymentIntentExpired(TettoError):
    """The payment intent expired before the signed transaction was submitted."""
    code = "PaymentIntentExpired"
    status_code = 409

    def __init__(self, payment_intent_id: str, expires_at: Any):
        self.payment_intent_id = payment_intent_id
        self.expires_at = expires_at
        super().__init__(
            f"Payment intent {payment_intent_id} expired at {expires_at}",
            "Nothing was submitted. Call the agent again to obtain a fresh payment intent.",
        )


class SigningRejected(TettoError):
    """The wallet declined or failed to sign the payment transaction."""
    code = "SigningRejected"
    status_code = 402


class SubmissionFailed(TettoError):
    """
    The gateway reported a failure after the signed transaction was sent.

    Funds may or may not have moved; check the receipt before retrying.
    """
    code = "SubmissionFailed"
    status_code = 502

    def __init__(self, message: str, payment_intent_id: Optional[str] = None, hint: Optional[str] = None):
        self.payment_intent_id = payment_intent_id
        if hint is None:
            hint = (
                "Settlement state is unknown. Check your receipts before retrying "
                f"(payment intent: {payment_intent_id or 'unknown'})."
            )
        super().__init__(message, hint)


# Inbound invocations (agent side)

class InvalidInvocation(TettoError):
    """Base class for malformed inbound agent invocations."""
    code = "InvalidInvocation"
    status_code = 400


class InvalidRequestBody(InvalidInvocation):
    code = "InvalidRequestBody"


class MissingInput(InvalidInvocation):
    code = "MissingInput"


class MissingContext(InvalidInvocation):
    code = "MissingContext"


class InvalidContext(InvalidInvocation):
    code = "InvalidContext"


# Plugins

class PluginError(TettoError):
    code = "PluginError"


class PluginNamespaceCollision(PluginError):
    """A plugin tried to attach under a name or id that is already taken."""
    code = "PluginNamespaceCollision"

    def __init__(self, name: str, conflict: str):
        self.name = name
        self.conflict = conflict
        super().__init__(
            f"Plugin namespace collision: '{name}' conflicts with {conflict}.",
            "Solutions:\n"
            f"  1. Register under a custom name: client.use(plugin, {{\"name\": \"customName\"}})\n"
            "  2. Remove the conflicting plugin before registering this one",
        )


class PluginTeardownError(PluginError):
    """One or more plugins failed during destroy()."""
    code = "PluginTeardownError"

    def __init__(self, errors: List[tuple]):
        self.errors = errors
        failed = ", ".join(f"{plugin_id}: {err}" for plugin_id, err in errors)
        super().__init__(f"{len(errors)} plugin(s) failed to tear down: {failed}")


# Credentials and environment

class AuthenticationFailed(TettoError):
    code = "AuthenticationFailed"
    status_code = 401


class MissingCredential(AuthenticationFailed):
    """An operation needs an API key but none is configured."""
    code = "MissingCredential"

    def __init__(self, message: str):
        super().__init__(
            message,
            "To fix this:\n"
            "  1. Generate an API key at https://www.tetto.io/dashboard/api-keys\n"
            "  2. Pass it to the client: get_default_config('mainnet', api_key=os.environ['TETTO_API_KEY'])\n"
            "  3. Set the environment variable: TETTO_API_KEY=your-key-here",
        )


class MissingEnvironmentVariables(TettoError):
    code = "MissingEnvironmentVariables"

    def __init__(self, missing: List[str], hint: Optional[str] = None):
        self.missing = missing
        listing = "\n".join(f"  - {key}" for key in missing)
        super().__init__(
            f"Missing required environment variables:\n\n{listing}",
            hint or "Add these to your .env file or deployment environment.",
        )
