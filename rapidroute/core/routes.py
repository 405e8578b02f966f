"""
Route models.

Declaration-time structures: an entry is created when a route is registered
and never mutated afterwards.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, NamedTuple, Optional

from .chain import MiddlewareChain
from .paths import join_paths
from .schema import Schema


class HTTPMethod(str, Enum):
    ALL = "ALL"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"

    @classmethod
    def parse(cls, value: Any) -> "HTTPMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {value}") from None

    def matches(self, method: str) -> bool:
        return self is HTTPMethod.ALL or self.value == method.upper()


class RouteKey(NamedTuple):
    """(method, effective path) identity of a route."""

    method: HTTPMethod
    path: str

    def __str__(self) -> str:
        return f"{self.method.value} {self.path}"


# Validated channels in the order they are checked after params.
CHANNELS = ("body", "query", "cookies")


@dataclass(frozen=True)
class ValidatorSet:
    """Optional schema per input channel. ``params`` maps parameter name to schema."""

    body: Optional[Schema] = None
    query: Optional[Schema] = None
    cookies: Optional[Schema] = None
    params: Mapping[str, Schema] = field(default_factory=lambda: MappingProxyType({}))

    def channel(self, name: str) -> Optional[Schema]:
        return getattr(self, name)


@dataclass(frozen=True)
class RouteEntry:
    method: HTTPMethod
    path: str
    validators: ValidatorSet
    chain: MiddlewareChain
    handler: Callable[..., Any]

    @property
    def key(self) -> RouteKey:
        return RouteKey(self.method, self.path)

    def with_prefix(self, prefix: str) -> "RouteEntry":
        """Copy of this entry mounted under ``prefix``."""
        return replace(self, path=join_paths(prefix, self.path))
