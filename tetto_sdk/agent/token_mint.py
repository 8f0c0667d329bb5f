"""
Token mint lookup for agent registration.
"""
from ..config import NETWORK_DEFAULTS

SOL_MINT = "So11111111111111111111111111111111111111112"


def get_token_mint(token: str, network: str) -> str:
    """
    Get the mint address for ``token`` ("USDC" or "SOL") on ``network``.

    Raises:
        ValueError: For an unknown token/network combination

    Example:
        >>> get_token_mint("USDC", "mainnet")
        'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v'
    """
    defaults = NETWORK_DEFAULTS.get(network)
    if defaults is not None:
        if token == "SOL":
            return SOL_MINT
        if token == "USDC":
            return defaults["usdc_mint"]
    raise ValueError(
        f"Unknown token/network combination: {token} on {network}. "
        "Valid combinations: USDC/SOL on mainnet/devnet."
    )
