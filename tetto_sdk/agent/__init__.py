"""
Helpers for building agents that are called through the Tetto gateway.
"""
from ..context import AgentRequestContext, CallContext
from .anthropic_client import create_anthropic
from .env import load_agent_env
from .handler import AgentResponse, create_agent_handler, create_async_agent_handler
from .token_mint import SOL_MINT, get_token_mint

__all__ = [
    "AgentRequestContext",
    "AgentResponse",
    "CallContext",
    "SOL_MINT",
    "create_agent_handler",
    "create_async_agent_handler",
    "create_anthropic",
    "get_token_mint",
    "load_agent_env",
]
