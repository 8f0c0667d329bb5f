"""
Request handler wrapper for agents served behind the gateway.

The gateway POSTs ``{"input": {...}, "tetto_context": {...}}`` to an agent's
endpoint. :func:`create_agent_handler` turns a plain ``handler(input,
context)`` function into a callable that takes the raw request body and
returns an :class:`AgentResponse`, so any web framework can serve it:

    handle = create_agent_handler(summarize)

    @app.post("/api/summarize")
    def summarize_route():
        response = handle(request.get_data())
        return response.body, response.status_code
"""
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Tuple, Union

from pydantic import BaseModel, ValidationError

from .._awaitable import resolve_awaitable
from ..context import AgentRequestContext, CallContext
from ..exceptions import InvalidContext, InvalidRequestBody, MissingContext, MissingInput, TettoError

logger = logging.getLogger(__name__)

AgentHandlerFunc = Callable[[Any, AgentRequestContext], Any]
RequestBody = Union[bytes, bytearray, str, Mapping[str, Any]]


@dataclass(frozen=True)
class AgentResponse:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_json(self) -> str:
        return json.dumps(self.body)


def _parse_body(body: RequestBody) -> Dict[str, Any]:
    if isinstance(body, Mapping):
        return dict(body)
    try:
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8")
        parsed = json.loads(body)
    except (UnicodeDecodeError, TypeError, ValueError) as e:
        raise InvalidRequestBody("Invalid JSON in request body") from e
    if not isinstance(parsed, dict):
        raise InvalidRequestBody(f"Request body must be a JSON object, got {type(parsed).__name__}")
    return parsed


def _build_context(body: Dict[str, Any]) -> AgentRequestContext:
    raw = body.get("tetto_context")
    if raw is None:
        raise MissingContext(
            "Missing 'tetto_context' field in request body",
            "The gateway provides tetto_context for all agent calls. Update to the latest gateway version.",
        )
    if not isinstance(raw, Mapping):
        raise InvalidContext(f"'tetto_context' must be an object, got {type(raw).__name__}")
    try:
        return AgentRequestContext(tetto_context=CallContext.model_validate(raw))
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidContext(f"Malformed 'tetto_context' (fields: {fields})") from e


def _serialize_output(output: Any) -> Any:
    if isinstance(output, BaseModel):
        return output.model_dump(mode="json")
    return output


def _prepare(body: RequestBody) -> Tuple[Any, AgentRequestContext]:
    payload = _parse_body(body)
    if payload.get("input") is None:
        raise MissingInput("Missing 'input' field in request body")
    return payload["input"], _build_context(payload)


def _error_response(error: Exception) -> AgentResponse:
    if isinstance(error, TettoError):
        if error.status_code >= 500:
            logger.error(f"Agent error: {error.message}")
        else:
            logger.warning(f"Rejected agent request: {error.message}")
        return AgentResponse(error.status_code, error.to_dict())
    logger.error(f"Agent error: {error}")
    return AgentResponse(500, {"error": str(error) or type(error).__name__, "code": "AgentError"})


def _wraps(handle: Callable[..., Any], handler: AgentHandlerFunc) -> None:
    handle.__name__ = getattr(handler, "__name__", "handle")
    handle.__doc__ = getattr(handler, "__doc__", None)


def create_agent_handler(handler: AgentHandlerFunc) -> Callable[[RequestBody], AgentResponse]:
    """
    Wrap an agent function with request parsing and error handling.

    The handler is always called with two arguments, ``(input, context)``.
    It may be a plain function or a coroutine function. The returned
    ``handle`` is synchronous and blocks until a coroutine handler finishes,
    also when called from inside a running event loop; async servers should
    prefer :func:`create_async_agent_handler`.

    Responses:
        200: handler output (pydantic models are dumped to JSON-able dicts)
        400: malformed body, missing ``input``, missing or malformed
             ``tetto_context``
        500: any exception raised by the handler (``TettoError`` subclasses
             keep their own status and code)

    Example:
        >>> def summarize(input, context):
        ...     return {"summary": input["text"][:100]}
        >>> handle = create_agent_handler(summarize)
        >>> handle(b'{"input": {"text": "..."}, "tetto_context": {...}}').status_code
        200
    """
    if not callable(handler):
        raise TypeError("handler must be callable")

    def handle(body: RequestBody) -> AgentResponse:
        try:
            agent_input, context = _prepare(body)
            output = resolve_awaitable(handler(agent_input, context))
            return AgentResponse(200, _serialize_output(output))
        except Exception as e:
            return _error_response(e)

    _wraps(handle, handler)
    return handle


def create_async_agent_handler(handler: AgentHandlerFunc) -> Callable[[RequestBody], Awaitable[AgentResponse]]:
    """
    Like :func:`create_agent_handler`, but ``handle`` is a coroutine
    function, for FastAPI, Starlette, aiohttp and other async servers:

        handle = create_async_agent_handler(summarize)

        @app.post("/api/summarize")
        async def summarize_route(request: Request):
            response = await handle(await request.body())
            return JSONResponse(response.body, status_code=response.status_code)

    The handler may be sync or async; its result is awaited on the server's
    loop when it is awaitable.
    """
    if not callable(handler):
        raise TypeError("handler must be callable")

    async def handle(body: RequestBody) -> AgentResponse:
        try:
            agent_input, context = _prepare(body)
            output = handler(agent_input, context)
            if inspect.isawaitable(output):
                output = await output
            return AgentResponse(200, _serialize_output(output))
        except Exception as e:
            return _error_response(e)

    _wraps(handle, handler)
    return handle
