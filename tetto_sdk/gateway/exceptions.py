"""
Exceptions for the Gateway module.
"""
from typing import Optional

from ..exceptions import TettoError


class GatewayError(TettoError):
    """Base exception for Gateway-related errors."""
    code = "GatewayError"
    status_code = 502


class GatewayConnectionError(GatewayError):
    """Raised when the Gateway could not be reached."""
    code = "GatewayConnectionError"


class GatewayResponseError(GatewayError):
    """
    Raised when the Gateway returns an error envelope or an unreadable body.

    ``message`` is the gateway's own error text, unmodified.
    """
    code = "GatewayResponseError"

    def __init__(self, message: str, http_status: Optional[int] = None, hint: Optional[str] = None):
        self.http_status = http_status
        super().__init__(message, hint)
