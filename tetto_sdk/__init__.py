"""
Tetto SDK - call, pay for and build agents on the Tetto marketplace.
"""
from .client import TettoClient
from .config import NETWORK_DEFAULTS, SafeConfig, TettoConfig, get_default_config, get_usdc_mint
from .context import AgentRequestContext, CallContext, derive_config
from .exceptions import (
    AgentNotFound, AuthenticationFailed, InputValidationFailed, InvalidContext, InvalidInvocation,
    InvalidRequestBody, MissingContext, MissingCredential, MissingEnvironmentVariables, MissingInput,
    PaymentIntentExpired, PluginError, PluginNamespaceCollision, PluginTeardownError, ReceiptNotFound,
    SigningRejected, SubmissionFailed, TettoError, TransactionBuildFailed
)
from .gateway import GatewayConnectionError, GatewayError, GatewayResponseError
from .models import (
    AgentDescriptor, AgentMetadata, CallOptions, CallOutcome, PaymentIntent, Receipt
)
from .plugins import ErrorContext, PluginAPI, PluginInstance
from .protocol import CallProtocol
from .version import __version__
from .wallet import (
    AdapterWallet, KeypairWallet, Wallet, WalletNotConnected, create_wallet_from_adapter,
    create_wallet_from_keypair
)

__all__ = [
    "TettoClient",
    "TettoConfig",
    "SafeConfig",
    "NETWORK_DEFAULTS",
    "get_default_config",
    "get_usdc_mint",
    "CallContext",
    "AgentRequestContext",
    "derive_config",
    "CallProtocol",
    "AgentDescriptor",
    "AgentMetadata",
    "CallOptions",
    "CallOutcome",
    "PaymentIntent",
    "Receipt",
    "PluginAPI",
    "PluginInstance",
    "ErrorContext",
    "Wallet",
    "KeypairWallet",
    "AdapterWallet",
    "WalletNotConnected",
    "create_wallet_from_keypair",
    "create_wallet_from_adapter",
    "TettoError",
    "AgentNotFound",
    "ReceiptNotFound",
    "InputValidationFailed",
    "TransactionBuildFailed",
    "PaymentIntentExpired",
    "SigningRejected",
    "SubmissionFailed",
    "InvalidInvocation",
    "InvalidRequestBody",
    "MissingInput",
    "MissingContext",
    "InvalidContext",
    "PluginError",
    "PluginNamespaceCollision",
    "PluginTeardownError",
    "AuthenticationFailed",
    "MissingCredential",
    "MissingEnvironmentVariables",
    "GatewayError",
    "GatewayConnectionError",
    "GatewayResponseError",
    "__version__",
]
