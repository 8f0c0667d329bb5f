"""
Call context and identity propagation.

Every inbound agent invocation carries a ``tetto_context`` describing who
paid for it. A coordinator agent that calls other agents derives its
outbound client from that context so downstream agents (and the gateway)
see the inbound caller-agent identity rather than whatever is configured
locally.
"""
import logging
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .config import TettoConfig, get_default_config

logger = logging.getLogger(__name__)

CONTEXT_VERSION = "1.0.0"

# Fields a caller may override when deriving; identity is not among them.
_OVERRIDABLE = frozenset({
    "network", "api_url", "protocol_wallet", "debug", "api_key", "timeout", "retry_count",
})


class CallContext(BaseModel):
    """Metadata the gateway attaches to every agent invocation"""
    model_config = ConfigDict(frozen=True)

    caller_wallet: str
    caller_agent_id: Optional[str] = None
    caller_agent_name: Optional[str] = None
    intent_id: str
    timestamp: int
    version: str = CONTEXT_VERSION

    @field_validator("caller_agent_id", "caller_agent_name")
    @classmethod
    def _blank_is_absent(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    @property
    def is_agent_call(self) -> bool:
        return self.caller_agent_id is not None


class AgentRequestContext(BaseModel):
    """Second argument passed to agent handlers"""
    model_config = ConfigDict(frozen=True)

    tetto_context: CallContext


ContextLike = Union[CallContext, AgentRequestContext, Mapping[str, Any]]


def coerce_context(context: ContextLike) -> CallContext:
    """Accept a CallContext, an AgentRequestContext or a raw tetto_context mapping."""
    if isinstance(context, CallContext):
        return context
    if isinstance(context, AgentRequestContext):
        return context.tetto_context
    if isinstance(context, Mapping):
        if "tetto_context" in context:
            return CallContext.model_validate(context["tetto_context"])
        return CallContext.model_validate(context)
    raise TypeError(f"Expected a call context, got {type(context).__name__}")


def derive_config(context: ContextLike, **overrides: Any) -> TettoConfig:
    """
    Build a client configuration from an inbound call context.

    The outbound calling-agent identity is taken only from the context. It
    cannot be supplied through ``overrides`` and is not read from the
    environment, so a direct (non-agent) caller yields no identity at all.

    Args:
        context: Inbound context
        **overrides: network, api_url, protocol_wallet, debug, api_key,
            timeout, retry_count

    Raises:
        ValueError: If overrides try to set the calling-agent identity or
            name an unknown field
    """
    call_context = coerce_context(context)

    forbidden = {"agent_id", "agent_id_env_fallback"} & set(overrides)
    if forbidden:
        raise ValueError(
            f"Cannot override {', '.join(sorted(forbidden))} when deriving from a call context; "
            "the calling agent identity comes from the inbound context only"
        )
    unknown = set(overrides) - _OVERRIDABLE
    if unknown:
        raise ValueError(f"Unknown config overrides: {', '.join(sorted(unknown))}")

    network = overrides.pop("network", None) or "mainnet"
    config = get_default_config(
        network,
        agent_id=call_context.caller_agent_id,
        agent_id_env_fallback=False,
        **overrides,
    )
    logger.debug(
        f"Derived config from context intent={call_context.intent_id} "
        f"calling_agent_id={call_context.caller_agent_id}"
    )
    return config
