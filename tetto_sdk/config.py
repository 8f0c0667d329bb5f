"""
Client configuration and network defaults.
"""
import os
import logging
import urllib.parse
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

logger = logging.getLogger(__name__)

Network = Literal["mainnet", "devnet"]

NETWORK_DEFAULTS: Dict[str, Dict[str, str]] = {
    "mainnet": {
        "api_url": "https://tetto.io",
        "protocol_wallet": "CYSnefexbvrRU6VxzGfvZqKYM4UixupvDeZg3sUSWm84",
        "usdc_mint": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "rpc_url": "https://api.mainnet-beta.solana.com",
    },
    "devnet": {
        "api_url": "https://dev.tetto.io",
        "protocol_wallet": "BubFsAG8cSEH7NkLpZijctRpsZkCiaWqCdRfh8kUpXEt",
        "usdc_mint": "EGzSiubUqhzWFR2KxWCx6jHD6XNsVhKrnebjcQdN6qK4",
        "rpc_url": "https://api.devnet.solana.com",
    },
}

AGENT_ID_ENV_VAR = "TETTO_AGENT_ID"
TIMEOUT_ENV_VAR = "TETTO_TIMEOUT"
INSECURE_ENV_VAR = "TETTO_INSECURE_GW"


def _default_timeout() -> float:
    raw = os.environ.get(TIMEOUT_ENV_VAR, "30")
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{TIMEOUT_ENV_VAR} must be a number of seconds, got {raw!r}") from None


def validate_api_url(url: str) -> str:
    """
    Validate the gateway URL is secure and strip any trailing slash.

    Args:
        url: Gateway URL to validate

    Returns:
        Normalized URL

    Raises:
        ValueError: If URL is invalid or uses insecure HTTP
    """
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid api_url '{url}': expected http(s)://host")

    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get(INSECURE_ENV_VAR) != "1":
            raise ValueError(
                f"api_url must use https:// for security (got: {parsed.scheme}://). "
                f"Set {INSECURE_ENV_VAR}=1 to allow HTTP for development."
            )
    return url.rstrip("/")


class SafeConfig(BaseModel):
    """Non-secret configuration subset that plugins may read."""
    model_config = ConfigDict(frozen=True)

    api_url: str
    network: Network
    protocol_wallet: str
    debug: bool


class TettoConfig(BaseModel):
    """
    Configuration for :class:`tetto_sdk.TettoClient`.

    ``api_key`` is only needed for agent registration. ``agent_id`` is the
    calling-agent identity sent with outbound calls; when it is not set and
    ``agent_id_env_fallback`` is true, ``TETTO_AGENT_ID`` is used instead.
    """
    model_config = ConfigDict(frozen=True)

    api_url: str
    network: Network
    protocol_wallet: str
    debug: bool = False
    api_key: Optional[SecretStr] = None
    agent_id: Optional[str] = None
    agent_id_env_fallback: bool = True
    timeout: float = Field(default_factory=_default_timeout, gt=0)
    retry_count: int = Field(default=3, ge=0)

    @field_validator("api_url")
    @classmethod
    def _check_api_url(cls, value: str) -> str:
        return validate_api_url(value)

    @field_validator("protocol_wallet")
    @classmethod
    def _check_protocol_wallet(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("protocol_wallet is required")
        return value

    @field_validator("agent_id")
    @classmethod
    def _blank_agent_id_is_absent(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    def resolve_calling_agent_id(self) -> Optional[str]:
        """
        Resolve the identity this client declares on outbound calls.

        Explicit configuration always wins over the environment.
        """
        if self.agent_id:
            return self.agent_id
        if not self.agent_id_env_fallback:
            return None
        env_value = os.environ.get(AGENT_ID_ENV_VAR, "").strip()
        if env_value:
            logger.debug(f"Using calling agent id from {AGENT_ID_ENV_VAR}")
            return env_value
        return None

    def safe(self) -> SafeConfig:
        return SafeConfig(
            api_url=self.api_url,
            network=self.network,
            protocol_wallet=self.protocol_wallet,
            debug=self.debug,
        )


def get_default_config(network: Network = "mainnet", **overrides: Any) -> TettoConfig:
    """
    Get the default configuration for a network.

    Args:
        network: "mainnet" or "devnet"
        **overrides: Any other TettoConfig field

    Returns:
        TettoConfig instance

    Example:
        >>> config = get_default_config("devnet", debug=True)
    """
    if network not in NETWORK_DEFAULTS:
        raise ValueError(f"Unknown network '{network}'. Valid networks: {', '.join(NETWORK_DEFAULTS)}")
    defaults = NETWORK_DEFAULTS[network]
    values: Dict[str, Any] = {
        "api_url": defaults["api_url"],
        "network": network,
        "protocol_wallet": defaults["protocol_wallet"],
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return TettoConfig(**values)


def get_usdc_mint(network: Network) -> str:
    """Get the USDC mint address for a network."""
    if network not in NETWORK_DEFAULTS:
        raise ValueError(f"Unknown network '{network}'")
    return NETWORK_DEFAULTS[network]["usdc_mint"]
