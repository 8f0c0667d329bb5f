"""
Environment loading for agent processes.
"""
import os
from typing import Dict, Literal, Mapping, Optional

from ..exceptions import MissingEnvironmentVariables

Requirement = Literal["required", "optional"]


def load_agent_env(config: Mapping[str, Requirement]) -> Dict[str, Optional[str]]:
    """
    Load environment variables, failing once with every missing name listed.

    Args:
        config: Variable name -> "required" or "optional"

    Returns:
        Variable name -> value (None for unset optional variables)

    Raises:
        MissingEnvironmentVariables: If any required variable is unset or empty

    Example:
        >>> env = load_agent_env({"ANTHROPIC_API_KEY": "required", "CLAUDE_MODEL": "optional"})
    """
    env: Dict[str, Optional[str]] = {}
    missing = []
    for key, requirement in config.items():
        if requirement not in ("required", "optional"):
            raise ValueError(f"Invalid requirement for {key}: {requirement!r} (expected 'required' or 'optional')")
        value = os.environ.get(key) or None
        if value is None and requirement == "required":
            missing.append(key)
        else:
            env[key] = value

    if missing:
        raise MissingEnvironmentVariables(missing)
    return env
