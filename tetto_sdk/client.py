"""
TettoClient - Main client for the Tetto agent marketplace.
"""
import logging
from typing import Any, List, Mapping, Optional, Union

import requests

from .config import TettoConfig
from .context import ContextLike, derive_config
from .exceptions import PluginTeardownError
from .gateway.client import GatewayClient
from .models import AgentDescriptor, AgentMetadata, CallOptions, CallOutcome, Receipt
from .plugins import PluginAPI, PluginFactory, PluginRegistry, resolve_identity, resolve_instance
from .protocol import CallProtocol
from .wallet import Wallet


class TettoClient:
    """
    Client for calling and registering agents on Tetto.

    This client handles:
    1. Marketplace discovery (agents, receipts)
    2. Paid agent calls (validate, build, sign, submit)
    3. Agent registration (requires an API key)
    4. Plugins attached as attributes via :meth:`use`

    Example:
        >>> client = TettoClient(get_default_config("mainnet"))
        >>> wallet = create_wallet_from_keypair(secret_key)
        >>> result = client.call_agent(agent_id, {"text": "hello"}, wallet)
    """

    def __init__(
        self,
        config: TettoConfig,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the TettoClient

        Args:
            config: Client configuration (see get_default_config)
            logger: Optional logger instance to use for debug/info logging
            session: Optional requests session (mainly for tests)
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self._gateway = GatewayClient(
            config.api_url,
            timeout=config.timeout,
            retry_count=config.retry_count,
            session=session,
            logger=self.logger,
        )
        self._protocol = CallProtocol(
            self._gateway,
            calling_agent_id=config.resolve_calling_agent_id(),
            debug=config.debug,
            logger=self.logger,
        )
        self._plugins = PluginRegistry(self.logger)

        if config.debug:
            self.logger.info(
                f"TettoClient initialized: api_url={config.api_url} network={config.network} "
                f"calling_agent_id={self._protocol.calling_agent_id}"
            )

        # Plugins may not shadow anything defined up to this point.
        self._core_names = frozenset(dir(self)) | {"_core_names"}

    @classmethod
    def from_context(
        cls,
        context: ContextLike,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
        **overrides: Any,
    ) -> "TettoClient":
        """
        Create a client that propagates the inbound caller identity.

        Use this inside an agent handler whenever the agent calls other
        agents, so each downstream hop sees who is actually calling it.

        Args:
            context: The handler's context (or its ``tetto_context``)
            **overrides: Config overrides other than identity (network,
                api_url, debug, ...)

        Example:
            >>> def handler(input, context):
            ...     client = TettoClient.from_context(context, network="devnet")
            ...     return client.call_agent("summarizer", input, wallet).output
        """
        return cls(derive_config(context, **overrides), logger=logger, session=session)

    @property
    def calling_agent_id(self) -> Optional[str]:
        """Identity declared on outbound calls, or None for direct callers"""
        return self._protocol.calling_agent_id

    @property
    def api_url(self) -> str:
        return self.config.api_url

    @property
    def network(self) -> str:
        return self.config.network

    # ------------------------------------------------------------------
    # marketplace
    # ------------------------------------------------------------------

    def register_agent(self, metadata: Union[AgentMetadata, Mapping[str, Any]]) -> AgentDescriptor:
        """
        Register a new agent in the marketplace.

        Requires ``api_key`` in the config.

        Raises:
            MissingCredential: If no API key is configured
            AuthenticationFailed: If the API key was rejected
        """
        if not isinstance(metadata, AgentMetadata):
            metadata = AgentMetadata.model_validate(dict(metadata))

        api_key = self.config.api_key.get_secret_value() if self.config.api_key else None
        if self.config.debug:
            self.logger.info(f"Registering agent {metadata.name} (authenticated: {api_key is not None})")

        agent = self._gateway.register_agent(metadata.to_payload(), api_key=api_key)
        self.logger.info(f"Agent registered: {agent.id}")
        return agent

    def get_agent(self, agent_id: str) -> AgentDescriptor:
        return self._protocol.get_agent(agent_id)

    def list_agents(self) -> List[AgentDescriptor]:
        return self._protocol.list_agents()

    def get_receipt(self, receipt_id: str) -> Receipt:
        return self._gateway.get_receipt(receipt_id)

    def call_agent(
        self,
        agent_id: str,
        input: Mapping[str, Any],
        wallet: Wallet,
        options: Union[CallOptions, Mapping[str, Any], None] = None,
    ) -> CallOutcome:
        """
        Call an agent with payment.

        The input is validated by the gateway before any transaction is
        built, so an invalid input never costs anything. The signed
        transaction is submitted exactly once.

        Args:
            agent_id: Agent id
            input: Input payload matching the agent's input schema
            wallet: Wallet that pays for the call
            options: Optional CallOptions (e.g. ``{"preferred_token": "SOL"}``)

        Returns:
            CallOutcome with the agent output, transaction signature and receipt id
        """
        return self._protocol.invoke(agent_id, input, wallet, options)

    # ------------------------------------------------------------------
    # plugins
    # ------------------------------------------------------------------

    def use(self, factory: PluginFactory, options: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Register a plugin and attach it as ``client.<name>``.

        The factory is called as ``factory(api, options)`` with a
        :class:`PluginAPI`, never this client. ``options["name"]`` overrides
        the attribute name. The plugin's ``on_init`` hook runs in the
        background and its failures go to ``on_error`` and the log.

        Returns:
            The plugin instance

        Raises:
            PluginNamespaceCollision: If the name or id is already taken
            PluginError: If the factory returned nothing usable
        """
        options = dict(options or {})
        api = PluginAPI(self._protocol, self.config.safe(), self._plugins.directory)
        instance = resolve_instance(factory, api, options)
        name, plugin_id = resolve_identity(factory, instance, options)

        registration = self._plugins.register(name, plugin_id, instance, self._core_names)
        setattr(self, name, instance)
        self.logger.debug(f"Plugin {plugin_id} attached as '{name}'")

        self._plugins.start_init(registration)
        return instance

    def has_plugin(self, plugin_id: str) -> bool:
        return self._plugins.has(plugin_id)

    def get_plugin(self, plugin_id: str) -> Optional[Any]:
        return self._plugins.get(plugin_id)

    def list_plugins(self) -> List[str]:
        return self._plugins.ids()

    def destroy(self, timeout: Optional[float] = 5.0) -> None:
        """
        Tear down all plugins.

        Waits for pending ``on_init`` hooks, then calls every ``on_destroy``
        hook even if some fail, detaches the plugins and empties the
        registry.

        Raises:
            PluginTeardownError: Listing every hook that failed
        """
        registrations, errors = self._plugins.unregister_all(timeout)
        for registration in registrations:
            self.__dict__.pop(registration.name, None)

        if errors:
            raise PluginTeardownError(errors)
        self.logger.debug(f"Destroyed {len(registrations)} plugin(s)")

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._gateway.close()

    def __repr__(self) -> str:
        return (
            f"TettoClient(api_url={self.config.api_url!r}, network={self.config.network!r}, "
            f"plugins={self._plugins.ids()!r})"
        )
