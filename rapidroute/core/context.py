"""
Per-request context.

Every middleware step may only add keys; ``merge`` enforces that no
contributed key overwrites one already present.
"""

from typing import Any, Iterator, Mapping, Optional

from .exceptions import ContextCollisionError, InvalidMiddlewareResult

# Keys every context starts with.
BASE_KEYS = ("request", "response", "body", "query", "params", "cookies")


class RequestContext(Mapping[str, Any]):
    """
    Read-only mapping of context keys, also readable as attributes.

    ``ctx["user"]`` and ``ctx.user`` are equivalent.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        object.__setattr__(self, "_data", dict(data or {}))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError:
            raise AttributeError(f"Request context has no key {key!r}") from None

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("RequestContext is read-only; return new keys from middleware")

    def __repr__(self) -> str:
        return f"RequestContext({sorted(self._data)})"

    def merge(self, additions: Optional[Mapping[str, Any]], step: Optional[str] = None) -> "RequestContext":
        return merge(self, additions, step)


def merge(
    base: RequestContext, additions: Any, step: Optional[str] = None
) -> RequestContext:
    """
    Return the union of ``base`` and ``additions``.

    Raises:
        ContextCollisionError: a key of ``additions`` already exists in ``base``
        InvalidMiddlewareResult: ``additions`` is neither a mapping nor None
    """
    if additions is None:
        return base
    if not isinstance(additions, Mapping):
        raise InvalidMiddlewareResult(step, additions)

    collisions = [key for key in additions if key in base]
    if collisions:
        raise ContextCollisionError(collisions, step)

    data = dict(base)
    data.update(additions)
    return RequestContext(data)
