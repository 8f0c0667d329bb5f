"""
Anthropic client factory for agents that call Claude.
"""
import os
from typing import Any, Optional

from ..exceptions import MissingEnvironmentVariables
from ._deps import ensure_anthropic_installed

API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"


def create_anthropic(api_key: Optional[str] = None, **client_options: Any) -> Any:
    """
    Create an ``anthropic.Anthropic`` client, loading the key from
    ``ANTHROPIC_API_KEY`` when none is given.

    Raises:
        ImportError: If the ``anthropic`` extra is not installed
        MissingEnvironmentVariables: If no API key is available
    """
    ensure_anthropic_installed()
    import anthropic

    key = api_key or os.environ.get(API_KEY_ENV_VAR)
    if not key:
        raise MissingEnvironmentVariables(
            [API_KEY_ENV_VAR],
            "Add it to your .env file:\n"
            f"  {API_KEY_ENV_VAR}=sk-ant-xxxxx\n\n"
            "Get your API key at: https://console.anthropic.com/",
        )
    return anthropic.Anthropic(api_key=key, **client_options)
