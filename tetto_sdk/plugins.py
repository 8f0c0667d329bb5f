"""
Plugin support.

A plugin is a factory ``factory(api, options) -> instance``. The factory
receives a :class:`PluginAPI`, never the client: the API object is built
fresh for each registration from the credential-free call protocol engine,
a snapshot of the non-secret configuration and a membership-only view of
the plugin registry.

Security model:

* plugins cannot read the API key or the client's calling-agent id
  (``get_config`` returns a :class:`SafeConfig`)
* plugins cannot spend funds on their own: ``call_agent`` requires a wallet
  from the plugin's caller on every call and the API stores none
* plugins cannot reach each other: ``has_plugin`` answers yes/no only
* the API object is read-only; assigning to it raises AttributeError

Python has no hard object-capability isolation, so the boundary is about
what is handed out, not about what determined code could dig up through
private attributes.
"""
import logging
import threading
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from ._awaitable import resolve_awaitable
from .config import SafeConfig
from .exceptions import PluginError, PluginNamespaceCollision
from .models import AgentDescriptor, CallOutcome
from .protocol import CallProtocol

PluginFactory = Callable[["PluginAPI", Dict[str, Any]], Any]


@dataclass(frozen=True)
class ErrorContext:
    """Passed to a plugin's ``on_error`` hook"""
    operation: str
    agent_id: Optional[str] = None
    input: Any = None


class PluginInstance:
    """
    Optional base class for plugin instances.

    Subclasses set ``name`` (attribute name on the client) and ``id`` (unique
    identifier), and may override the lifecycle hooks. Hooks may be plain or
    ``async`` functions.
    """
    name: Optional[str] = None
    id: Optional[str] = None

    def on_init(self) -> None:
        pass

    def on_destroy(self) -> None:
        pass

    def on_error(self, error: Exception, context: ErrorContext) -> None:
        pass


class _PluginDirectory:
    """Membership-only view of registered plugin ids."""

    __slots__ = ("_ids",)

    def __init__(self) -> None:
        object.__setattr__(self, "_ids", frozenset())

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("plugin directory is read-only")

    def _replace(self, ids: FrozenSet[str]) -> None:
        object.__setattr__(self, "_ids", ids)

    def contains(self, plugin_id: str) -> bool:
        return plugin_id in self._ids


class PluginAPI:
    """Restricted interface handed to plugin factories"""

    __slots__ = ("_invoke", "_get_agent", "_list_agents", "_safe_config", "_directory")

    def __init__(self, protocol: CallProtocol, safe_config: SafeConfig, directory: _PluginDirectory):
        # Only the allowed operations are kept, not the engine itself.
        object.__setattr__(self, "_invoke", protocol.invoke)
        object.__setattr__(self, "_get_agent", protocol.get_agent)
        object.__setattr__(self, "_list_agents", protocol.list_agents)
        object.__setattr__(self, "_safe_config", safe_config)
        object.__setattr__(self, "_directory", directory)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"PluginAPI is read-only (cannot set '{name}')")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"PluginAPI is read-only (cannot delete '{name}')")

    def call_agent(self, agent_id: str, input: Mapping[str, Any], wallet: Any, options: Any = None) -> CallOutcome:
        """
        Call an agent with payment.

        The wallet must come from whoever called the plugin method:

            def store(self, key, value, wallet):
                return api.call_agent("warmmemory", {"action": "store"}, wallet)
        """
        if wallet is None:
            raise ValueError("wallet is required: plugin methods must accept a wallet from their caller")
        return self._invoke(agent_id, input, wallet, options)

    def get_agent(self, agent_id: str) -> AgentDescriptor:
        return self._get_agent(agent_id)

    def list_agents(self) -> List[AgentDescriptor]:
        return self._list_agents()

    def get_config(self) -> SafeConfig:
        """Non-secret configuration: api_url, network, protocol_wallet, debug"""
        return self._safe_config

    def has_plugin(self, plugin_id: str) -> bool:
        return self._directory.contains(plugin_id)

    def __repr__(self) -> str:
        return f"PluginAPI(network={self._safe_config.network!r})"


@dataclass(frozen=True)
class PluginRegistration:
    id: str
    name: str
    instance: Any


def _run_hook(hook: Callable[..., Any], *args: Any) -> None:
    resolve_awaitable(hook(*args))


def _notify_error(registration: PluginRegistration, error: Exception, context: ErrorContext,
                  logger: logging.Logger) -> None:
    on_error = getattr(registration.instance, "on_error", None)
    if not callable(on_error):
        return
    try:
        _run_hook(on_error, error, context)
    except Exception as hook_error:
        logger.error(f"Plugin {registration.id} on_error hook failed: {hook_error}")


class PluginRegistry:
    """
    Plugins registered on one client instance.

    Mutation (register/teardown) is serialized by a lock; ``has`` and the
    directory can be read at any time.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._registrations: Dict[str, PluginRegistration] = {}
        self._init_threads: Dict[str, threading.Thread] = {}
        self.directory = _PluginDirectory()

    def __len__(self) -> int:
        return len(self._registrations)

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self._registrations

    def ids(self) -> List[str]:
        return list(self._registrations)

    def names(self) -> FrozenSet[str]:
        return frozenset(reg.name for reg in self._registrations.values())

    def get(self, plugin_id: str) -> Optional[Any]:
        registration = self._registrations.get(plugin_id)
        return registration.instance if registration else None

    def register(self, name: str, plugin_id: str, instance: Any, reserved: FrozenSet[str]) -> PluginRegistration:
        """
        Record a plugin after checking its name and id are free.

        Raises:
            PluginError: If ``name`` is not a usable attribute name
            PluginNamespaceCollision: If the name or id is taken
        """
        if not isinstance(name, str) or not name.isidentifier() or name.startswith("_"):
            raise PluginError(f"Invalid plugin name {name!r}: must be a public Python identifier")

        with self._lock:
            if name in reserved:
                raise PluginNamespaceCollision(name, "a core TettoClient attribute")
            for existing in self._registrations.values():
                if existing.name == name:
                    raise PluginNamespaceCollision(name, f"plugin '{existing.id}' already attached as '{name}'")
            if plugin_id in self._registrations:
                raise PluginNamespaceCollision(plugin_id, f"an already registered plugin with id '{plugin_id}'")

            registration = PluginRegistration(id=plugin_id, name=name, instance=instance)
            self._registrations[plugin_id] = registration
            self.directory._replace(frozenset(self._registrations))
        return registration

    def start_init(self, registration: PluginRegistration) -> None:
        """Run ``on_init`` in the background; registration does not wait for it."""
        on_init = getattr(registration.instance, "on_init", None)
        if not callable(on_init):
            return

        def _init() -> None:
            try:
                _run_hook(on_init)
                self.logger.debug(f"Plugin {registration.id} initialized")
            except Exception as e:
                self.logger.error(f"Plugin {registration.id} on_init failed: {e}")
                _notify_error(registration, e, ErrorContext(operation="on_init"), self.logger)

        thread = threading.Thread(target=_init, name=f"tetto-plugin-init-{registration.id}", daemon=True)
        with self._lock:
            self._init_threads[registration.id] = thread
        thread.start()

    def wait_for_init(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            threads = list(self._init_threads.values())
        for thread in threads:
            thread.join(timeout)

    def unregister_all(self, timeout: Optional[float] = None) -> Tuple[List[PluginRegistration], List[Tuple[str, Exception]]]:
        """
        Call every ``on_destroy`` hook and empty the registry.

        A failing hook does not stop the others.

        Returns:
            (registrations removed, [(plugin id, error), ...])
        """
        self.wait_for_init(timeout)

        with self._lock:
            registrations = list(self._registrations.values())

        errors: List[Tuple[str, Exception]] = []
        for registration in registrations:
            on_destroy = getattr(registration.instance, "on_destroy", None)
            if not callable(on_destroy):
                continue
            try:
                _run_hook(on_destroy)
            except Exception as e:
                self.logger.error(f"Plugin {registration.id} on_destroy failed: {e}")
                errors.append((registration.id, e))
                _notify_error(registration, e, ErrorContext(operation="on_destroy"), self.logger)

        with self._lock:
            self._registrations.clear()
            self._init_threads.clear()
            self.directory._replace(frozenset())
        return registrations, errors


def resolve_instance(factory: PluginFactory, api: PluginAPI, options: Dict[str, Any]) -> Any:
    """Run a plugin factory and normalize what it returns."""
    instance = factory(api, options)
    if instance is None:
        raise PluginError(f"Plugin factory {getattr(factory, '__name__', factory)!r} returned no instance")
    if isinstance(instance, Mapping):
        instance = SimpleNamespace(**instance)
    return instance


def resolve_identity(factory: PluginFactory, instance: Any, options: Dict[str, Any]) -> Tuple[str, str]:
    """
    Work out (name, id) for a plugin.

    name: explicit option, then the instance's ``name``, then the factory's
    ``name`` attribute, then the id. id: the instance's ``id``, then the
    factory's ``id`` attribute, then the name.
    """
    name = options.get("name") or getattr(instance, "name", None) or getattr(factory, "name", None)
    plugin_id = getattr(instance, "id", None) or getattr(factory, "id", None)
    if not name:
        name = plugin_id or getattr(factory, "__name__", None)
    if not plugin_id:
        plugin_id = name
    if not name or not plugin_id:
        raise PluginError("Plugin must provide a name or an id")
    return str(name), str(plugin_id)
