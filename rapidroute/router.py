"""
Router

Declares routes (path + method -> validators, middleware, handler), composes
route collections under path prefixes, and runs the request pipeline:

    params validation -> body/query/cookies validation -> middleware -> handler

Every stage converts its failure into an ErrorEnvelope; nothing raised by
route code escapes ``dispatch``.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .config import config
from .core.chain import Middleware, MiddlewareChain, call_maybe_async
from .core.context import RequestContext
from .core.error_logger import log_unexpected
from .core.exceptions import ApiError, ContextCollisionError, RouteConflictError
from .core.paths import normalize_path, param_names, path_shape, path_to_regex
from .core.routes import CHANNELS, HTTPMethod, RouteEntry, RouteKey, ValidatorSet
from .core.schema import as_schema, validate
from .models import ErrorEnvelope, InboundRequest, PipelineResult

logger = logging.getLogger("rapidroute.router")

Handler = Callable[[RequestContext], Any]
ValidatorDecl = Union[Mapping[str, Any], ValidatorSet]

_VALIDATOR_KEYS = frozenset(CHANNELS + ("params",))


def build_validators(path: str, decl: Optional[ValidatorDecl]) -> ValidatorSet:
    """
    Normalize a validator declaration for ``path``.

    Raises:
        ValueError: unknown channel, or a params schema for a parameter
            the path does not declare
        TypeError: a declared schema cannot validate anything
    """
    if decl is None:
        return ValidatorSet()
    if isinstance(decl, ValidatorSet):
        decl = {
            "body": decl.body,
            "query": decl.query,
            "cookies": decl.cookies,
            "params": decl.params,
        }

    unknown = set(decl) - _VALIDATOR_KEYS
    if unknown:
        raise ValueError(f"Unknown validator channel(s) for {path}: {', '.join(sorted(unknown))}")

    params = decl.get("params") or {}
    if not isinstance(params, Mapping):
        raise TypeError(f"params validators for {path} must map parameter names to schemas")
    declared = set(param_names(path))
    missing = set(params) - declared
    if missing:
        raise ValueError(f"Path {path} has no parameter(s): {', '.join(sorted(missing))}")

    def _schema(channel: str):
        value = decl.get(channel)
        return as_schema(value) if value is not None else None

    return ValidatorSet(
        body=_schema("body"),
        query=_schema("query"),
        cookies=_schema("cookies"),
        params=MappingProxyType({name: as_schema(s) for name, s in params.items()}),
    )


def _unexpected(message: str, err: Exception) -> PipelineResult:
    log_unexpected(message, err)
    return PipelineResult.failed(ErrorEnvelope.internal())


def _domain_error(err: ApiError) -> PipelineResult:
    try:
        envelope = err.envelope
    except ValidationError as exc:
        # The domain error itself is malformed (e.g. a non-integer code).
        return _unexpected("A domain error could not be converted into an error response", exc)
    return PipelineResult.failed(envelope)


async def run_pipeline(entry: RouteEntry, inbound: InboundRequest) -> PipelineResult:
    """Run validation, middleware and handler for one request."""
    validators = entry.validators
    params: Dict[str, Any] = dict(inbound.path_params)
    values: Dict[str, Any] = {
        "body": inbound.body,
        "query": inbound.query,
        "cookies": inbound.cookies,
    }

    # A params failure means the resource does not exist: 404.
    # Channels without a validator pass through unvalidated.
    try:
        for key, schema in validators.params.items():
            outcome = await validate(schema, params.get(key))
            if not outcome.success:
                return PipelineResult.failed(ErrorEnvelope.not_found_param(key, outcome.issues))
            params[key] = outcome.data

        for channel in CHANNELS:
            schema = validators.channel(channel)
            if schema is None:
                continue
            outcome = await validate(schema, values[channel])
            if not outcome.success:
                return PipelineResult.failed(ErrorEnvelope.bad_request(channel, outcome.issues))
            values[channel] = outcome.data
    except Exception as err:
        return _unexpected("An unexpected validator error occurred while processing the request", err)

    context = RequestContext(
        {
            "request": inbound.request,
            "response": inbound.response,
            "params": params,
            **values,
        }
    )

    try:
        context = await entry.chain.run(context)
    except ApiError as err:
        return _domain_error(err)
    except ContextCollisionError as err:
        return _unexpected("Middleware attempted to overwrite an existing context key", err)
    except Exception as err:
        return _unexpected("An unexpected middleware error occurred while processing the request", err)

    try:
        body = await call_maybe_async(entry.handler, context)
    except ApiError as err:
        return _domain_error(err)
    except Exception as err:
        return _unexpected("An error occurred while processing the request", err)

    return PipelineResult(status_code=config.SUCCESS_STATUS_CODE, body=body)


class Router:
    """
    An ordered route collection with the registration API.

    Example::

        users = Router()
        users.get("/:user_id", {"params": {"user_id": int}}, load_user, show_user)

        api = Router().subroute("/users", users)
    """

    def __init__(self) -> None:
        self._routes: Dict[RouteKey, RouteEntry] = {}

    @property
    def routes(self) -> Mapping[RouteKey, RouteEntry]:
        return MappingProxyType(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"Router({[str(key) for key in self._routes]})"

    # ===========================================
    # Registration
    # ===========================================

    def add(self, method: Union[str, HTTPMethod], path: str, *args: Any):
        """
        Register ``handler`` for ``method`` and ``path``.

        Accepted forms::

            router.add("GET", path, handler)
            router.add("GET", path, validators, mw1, mw2, handler)
            @router.add("GET", path, validators)  # decorator

        Returns the router, or a decorator when no handler is given.
        """
        http_method = HTTPMethod.parse(method)
        path = normalize_path(path)
        rest = list(args)
        decl = rest.pop(0) if rest and isinstance(rest[0], (Mapping, ValidatorSet)) else None
        validators = build_validators(path, decl)

        if not rest:

            def decorator(handler: Handler) -> Handler:
                self._register_entry(http_method, path, validators, (), handler)
                return handler

            return decorator

        handler = rest.pop()
        self._register_entry(http_method, path, validators, rest, handler)
        return self

    def _register_entry(
        self,
        method: HTTPMethod,
        path: str,
        validators: ValidatorSet,
        middleware: Sequence[Middleware],
        handler: Handler,
    ) -> None:
        if not callable(handler):
            raise TypeError(f"Handler for {method.value} {path} must be callable, got {handler!r}")
        entry = RouteEntry(method, path, validators, MiddlewareChain(middleware), handler)
        self._insert([entry])

    def _insert(self, entries: Sequence[RouteEntry]) -> None:
        # Check every entry before inserting any, so a failed mount leaves no trace.
        # Patterns of the same shape conflict when their methods overlap; ALL overlaps every method.
        seen: Dict[str, set] = {}
        for key in self._routes:
            seen.setdefault(path_shape(key.path), set()).add(key.method)
        for entry in entries:
            methods = seen.setdefault(path_shape(entry.path), set())
            if entry.method in methods or (methods and HTTPMethod.ALL in (entry.method, *methods)):
                raise RouteConflictError(entry.method.value, entry.path)
            methods.add(entry.method)
        for entry in entries:
            self._routes[entry.key] = entry
            logger.debug("Registered route %s", entry.key)

    def all(self, path: str, *args: Any):
        return self.add(HTTPMethod.ALL, path, *args)

    def get(self, path: str, *args: Any):
        return self.add(HTTPMethod.GET, path, *args)

    def post(self, path: str, *args: Any):
        return self.add(HTTPMethod.POST, path, *args)

    def put(self, path: str, *args: Any):
        return self.add(HTTPMethod.PUT, path, *args)

    def delete(self, path: str, *args: Any):
        return self.add(HTTPMethod.DELETE, path, *args)

    def patch(self, path: str, *args: Any):
        return self.add(HTTPMethod.PATCH, path, *args)

    def options(self, path: str, *args: Any):
        return self.add(HTTPMethod.OPTIONS, path, *args)

    def head(self, path: str, *args: Any):
        return self.add(HTTPMethod.HEAD, path, *args)

    def path(self, path: str) -> "RouteBuilder":
        """Start a builder for ``path``."""
        return RouteBuilder(self, path)

    # ===========================================
    # Composition
    # ===========================================

    def subroute(self, prefix_or_router: Union[str, "Router"], router: Optional["Router"] = None) -> "Router":
        """
        Mount another router's routes into this one, in place.

        ``subroute(child)`` mounts at the root, ``subroute("/api", child)``
        prefixes every child path. The child is left unchanged.
        """
        prefix, child = _split_mount_args(prefix_or_router, router)
        self._insert([entry.with_prefix(prefix) for entry in list(child._routes.values())])
        return self

    def mount(self, prefix_or_router: Union[str, "Router"], router: Optional["Router"] = None) -> "Router":
        """Like ``subroute`` but returns a new router, leaving both inputs untouched."""
        prefix, child = _split_mount_args(prefix_or_router, router)
        combined = Router()
        combined._routes = dict(self._routes)
        return combined.subroute(prefix, child)

    # ===========================================
    # Dispatch
    # ===========================================

    def resolve(self, method: str, path: str) -> Optional[Tuple[RouteEntry, Dict[str, str]]]:
        """
        Find the first route matching ``method`` and the concrete ``path``.

        Returns:
            (entry, path_params), or None if no route matches
        """
        for entry in self._routes.values():
            if not entry.method.matches(method):
                continue
            match = path_to_regex(entry.path).match(path)
            if match:
                return entry, match.groupdict()
        return None

    async def dispatch(self, entry: RouteEntry, inbound: InboundRequest) -> PipelineResult:
        return await run_pipeline(entry, inbound)

    async def handle(self, inbound: InboundRequest) -> PipelineResult:
        """Resolve ``inbound`` against this router and dispatch it."""
        resolved = self.resolve(inbound.method, inbound.path)
        if resolved is None:
            return PipelineResult.failed(
                ErrorEnvelope(
                    name="Not Found",
                    code=404,
                    message=f"Cannot {inbound.method.upper()} {inbound.path}",
                )
            )
        entry, params = resolved
        if not inbound.path_params:
            inbound = inbound.model_copy(update={"path_params": params})
        return await self.dispatch(entry, inbound)


def _split_mount_args(prefix_or_router: Union[str, Router], router: Optional[Router]) -> Tuple[str, Router]:
    if isinstance(prefix_or_router, Router):
        if router is not None:
            raise TypeError("Pass the prefix first: subroute(prefix, router)")
        return "", prefix_or_router
    if not isinstance(router, Router):
        raise TypeError(f"Expected a Router to mount under {prefix_or_router!r}, got {router!r}")
    return prefix_or_router, router


class RouteBuilder:
    """
    Step-by-step route declaration, sealed by a method call with the handler.

    Example::

        router.path("/user/:user_id").params(user_id=str).body(UserIn).use(auth).put(update_user)

    Each call returns a new builder, so a partial chain can be shared.
    """

    def __init__(
        self,
        router: Router,
        path: str,
        validators: Optional[Dict[str, Any]] = None,
        middleware: Tuple[Middleware, ...] = (),
    ):
        self._router = router
        self._path = path
        self._validators: Dict[str, Any] = dict(validators or {})
        self._middleware = middleware

    def _with_validator(self, channel: str, schema: Any) -> "RouteBuilder":
        validators = dict(self._validators)
        validators[channel] = schema
        return RouteBuilder(self._router, self._path, validators, self._middleware)

    def params(self, **schemas: Any) -> "RouteBuilder":
        merged = dict(self._validators.get("params") or {})
        merged.update(schemas)
        return self._with_validator("params", merged)

    def body(self, schema: Any) -> "RouteBuilder":
        return self._with_validator("body", schema)

    def query(self, schema: Any) -> "RouteBuilder":
        return self._with_validator("query", schema)

    def cookies(self, schema: Any) -> "RouteBuilder":
        return self._with_validator("cookies", schema)

    def use(self, *middleware: Middleware) -> "RouteBuilder":
        return RouteBuilder(self._router, self._path, self._validators, self._middleware + middleware)

    def _seal(self, method: HTTPMethod, handler: Handler) -> Handler:
        self._router.add(method, self._path, self._validators, *self._middleware, handler)
        return handler

    # Sealing methods return the handler so they double as decorators.
    def all(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.ALL, handler)

    def get(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.GET, handler)

    def post(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.POST, handler)

    def put(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.PUT, handler)

    def delete(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.DELETE, handler)

    def patch(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.PATCH, handler)

    def options(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.OPTIONS, handler)

    def head(self, handler: Handler) -> Handler:
        return self._seal(HTTPMethod.HEAD, handler)
