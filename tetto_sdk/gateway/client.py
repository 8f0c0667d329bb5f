"""
HTTP client for the Tetto gateway.

This module covers the request/response side of every gateway endpoint the
SDK touches: marketplace discovery, receipts, registration, and the two
protocol steps (build-transaction and call). Classification of protocol
failures into the SDK's error taxonomy happens in :mod:`tetto_sdk.protocol`.
"""
import re
import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import (
    AgentNotFound, AuthenticationFailed, MissingCredential, ReceiptNotFound
)
from ..models import AgentDescriptor, Receipt
from ._rate_limited_log import rate_limited_log
from .exceptions import GatewayConnectionError, GatewayResponseError


UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

_AUTH_MARKERS = ("API key", "Unauthorized", "Not authenticated")


class GatewayClient:
    """
    Stateless HTTP client for the gateway's JSON API.

    Every response is an envelope with an ``ok`` boolean and either a payload
    or an ``error`` string. GET requests are retried on connection errors and
    5xx responses; POST requests are never replayed, since a repeated call
    submission could settle twice.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 30,
        retry_count: int = 3,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the gateway client

        Args:
            api_url: Gateway base URL (already validated by TettoConfig)
            timeout: Timeout for HTTP requests in seconds
            retry_count: Number of retries for idempotent (GET) requests
            session: Optional pre-built requests session
            logger: Optional logger instance
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=retry_count,
                connect=retry_count,
                read=retry_count,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET"],
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retries)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Send one request and decode the JSON envelope.

        Returns:
            (HTTP status, decoded body)

        Raises:
            GatewayConnectionError: If the request could not be completed
            GatewayResponseError: If the body is not a JSON object
        """
        url = f"{self.api_url}{path}"
        request_headers = {"Content-Type": "application/json"}
        if headers:
            request_headers.update(headers)

        try:
            response = self.session.request(
                method, url, json=json, headers=request_headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Gateway request {method} {path} failed: {e}")
            raise GatewayConnectionError(f"Gateway request failed: {e}") from e

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            rate_limited_log(
                f"Unexpected Content-Type from gateway: {content_type or 'none'} (expected application/json)",
                logger_instance=self.logger,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayResponseError(
                f"Invalid JSON response from gateway (HTTP {response.status_code})",
                http_status=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise GatewayResponseError(
                f"Unexpected response shape from gateway: {type(body).__name__}",
                http_status=response.status_code,
            )
        return response.status_code, body

    @staticmethod
    def _unwrap(status: int, body: Dict[str, Any], default_error: str) -> Dict[str, Any]:
        if not body.get("ok"):
            raise GatewayResponseError(body.get("error") or default_error, http_status=status)
        return body

    @staticmethod
    def _quote(segment: str) -> str:
        return urllib.parse.quote(segment, safe="")

    # ------------------------------------------------------------------
    # discovery
    # ------------------------------------------------------------------

    def list_agents(self) -> List[AgentDescriptor]:
        """List all active agents in the marketplace"""
        status, body = self._request("GET", "/api/agents")
        body = self._unwrap(status, body, "Failed to list agents")
        agents = body.get("agents")
        if agents is None:
            raise GatewayResponseError("Agents data missing from response", http_status=status)
        return [AgentDescriptor.model_validate(agent) for agent in agents]

    def get_agent(self, agent_id: str) -> AgentDescriptor:
        """
        Get agent details by ID

        Raises:
            ValueError: If agent_id is empty
            AgentNotFound: If the gateway has no such agent
            GatewayError: For transport or server failures
        """
        if not agent_id or not str(agent_id).strip():
            raise ValueError("agent_id must be a non-empty string")

        status, body = self._request("GET", f"/api/agents/{self._quote(agent_id)}")
        if not body.get("ok"):
            if status != 404 and status >= 400:
                raise GatewayResponseError(body.get("error") or "Failed to fetch agent", http_status=status)
            raise AgentNotFound(
                agent_id,
                message=body.get("error") or None,
                hint=f"This agent may not exist or has been removed. Browse available agents: {self.api_url}/agents",
            )
        agent = body.get("agent")
        if not agent:
            raise GatewayResponseError("Agent data missing from response", http_status=status)
        return AgentDescriptor.model_validate(agent)

    def get_receipt(self, receipt_id: str) -> Receipt:
        """
        Get receipt details by ID

        Raises:
            ValueError: If receipt_id is not a UUID
            ReceiptNotFound: If the gateway has no such receipt
        """
        if not receipt_id or not UUID_RE.match(receipt_id):
            raise ValueError("Invalid receipt ID format. Expected UUID.")

        status, body = self._request("GET", f"/api/receipts/{receipt_id}")
        if not body.get("ok"):
            if status != 404 and status >= 400:
                raise GatewayResponseError(body.get("error") or "Failed to fetch receipt", http_status=status)
            raise ReceiptNotFound(
                receipt_id,
                message=body.get("error") or None,
                hint=f"Receipts are available immediately after agent calls complete. "
                     f"Check your dashboard: {self.api_url}/dashboard/analytics",
            )
        receipt = body.get("receipt")
        if not receipt:
            raise GatewayResponseError("Receipt data missing from response", http_status=status)
        return Receipt.model_validate(receipt)

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------

    def register_agent(self, payload: Dict[str, Any], api_key: Optional[str] = None) -> AgentDescriptor:
        """
        Register a new agent.

        Args:
            payload: Registration body (see AgentMetadata.to_payload)
            api_key: Bearer credential; omitted from the request when None

        Raises:
            MissingCredential: If the gateway requires a key and none was given
            AuthenticationFailed: If the given key was rejected
        """
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        status, body = self._request("POST", "/api/agents/register", json=payload, headers=headers)

        if not body.get("ok"):
            error = body.get("error") or "Agent registration failed"
            is_auth_error = status in (401, 403) or any(marker in error for marker in _AUTH_MARKERS)
            if is_auth_error:
                if not api_key:
                    raise MissingCredential(f"Authentication failed: {error}")
                raise AuthenticationFailed(
                    f"Authentication failed: {error}",
                    "Check that your API key is valid and has not been revoked.",
                )
            raise GatewayResponseError(error, http_status=status)

        agent = body.get("agent")
        if not agent:
            raise GatewayResponseError("Agent data missing from response", http_status=status)
        return AgentDescriptor.model_validate(agent)

    # ------------------------------------------------------------------
    # call protocol
    # ------------------------------------------------------------------

    def build_transaction(self, agent_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST to the agent-scoped build endpoint; returns the success envelope."""
        status, result = self._request(
            "POST", f"/api/agents/{self._quote(agent_id)}/build-transaction", json=body
        )
        return self._unwrap(status, result, "Transaction building failed")

    def submit_call(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST the signed transaction to the call endpoint; returns the success envelope."""
        status, result = self._request("POST", "/api/agents/call", json=body)
        return self._unwrap(status, result, "Agent call failed")

    def close(self) -> None:
        self.session.close()
