"""
Core logic package.

Provides the pipeline building blocks: schema adaptation, context merging,
the middleware chain, route declarations and error reporting.
"""

from .chain import MiddlewareChain, combine_middlewares
from .context import RequestContext, merge
from .error_logger import get_error_logger, log_unexpected, set_error_logger
from .exceptions import (
    ApiError,
    ContextCollisionError,
    InvalidMiddlewareResult,
    RouteConflictError,
    define_errors,
)
from .paths import join_paths
from .routes import HTTPMethod, RouteEntry, RouteKey, ValidatorSet
from .schema import PydanticSchema, Schema, ValidationOutcome, as_schema, validate

__all__ = [
    "ApiError",
    "ContextCollisionError",
    "HTTPMethod",
    "InvalidMiddlewareResult",
    "MiddlewareChain",
    "PydanticSchema",
    "RequestContext",
    "RouteConflictError",
    "RouteEntry",
    "RouteKey",
    "Schema",
    "ValidationOutcome",
    "ValidatorSet",
    "as_schema",
    "combine_middlewares",
    "define_errors",
    "get_error_logger",
    "join_paths",
    "log_unexpected",
    "merge",
    "set_error_logger",
    "validate",
]
