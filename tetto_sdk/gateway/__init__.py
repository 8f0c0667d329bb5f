"""
Gateway module for the Tetto SDK.

HTTP access to the Tetto gateway: agent discovery, receipts, registration
and the build/call endpoints of the payment protocol.
"""
from .client import GatewayClient
from .exceptions import GatewayError, GatewayConnectionError, GatewayResponseError

__all__ = ['GatewayClient', 'GatewayError', 'GatewayConnectionError', 'GatewayResponseError']
