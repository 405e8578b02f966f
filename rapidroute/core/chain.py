"""
Middleware chain.

Runs context-transforming steps strictly in declaration order. Each step
receives the context assembled so far and returns a mapping of new keys
(or None). Any exception aborts the chain and propagates to the caller.
"""

import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Tuple, Union

from .context import RequestContext, merge

Middleware = Callable[[RequestContext], Union[Optional[Mapping[str, Any]], Awaitable[Optional[Mapping[str, Any]]]]]


def step_name(step: Callable[..., Any]) -> str:
    return getattr(step, "__qualname__", None) or getattr(step, "__name__", None) or repr(step)


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    """Call ``fn`` and await the result when it is awaitable."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class MiddlewareChain:
    """Immutable, ordered sequence of middleware steps."""

    def __init__(self, steps: Sequence[Middleware] = ()):
        for step in steps:
            if not callable(step):
                raise TypeError(f"Middleware must be callable, got {step!r}")
        self._steps: Tuple[Middleware, ...] = tuple(steps)

    @property
    def steps(self) -> Tuple[Middleware, ...]:
        return self._steps

    def extend(self, *steps: Middleware) -> "MiddlewareChain":
        return MiddlewareChain(self._steps + steps)

    def __len__(self) -> int:
        return len(self._steps)

    async def run(self, context: RequestContext) -> RequestContext:
        """
        Execute every step and return the final context.

        Raises:
            ApiError: a step aborted the request with a domain error
            ContextCollisionError: a step tried to overwrite an existing key
            Exception: anything else a step raised
        """
        for step in self._steps:
            additions = await call_maybe_async(step, context)
            context = merge(context, additions, step_name(step))
        return context


def combine_middlewares(*steps: Middleware) -> Middleware:
    """
    Bundle several steps into one reusable step.

    The combined step runs ``steps`` in order and returns only the keys they
    added, so it merges into the route's context like any single step.
    """
    chain = MiddlewareChain(steps)

    async def combined(context: RequestContext) -> Mapping[str, Any]:
        final = await chain.run(context)
        return {key: value for key, value in final.items() if key not in context}

    combined.__qualname__ = f"combine_middlewares({', '.join(step_name(s) for s in steps)})"
    return combined
