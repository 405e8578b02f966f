"""
rapidroute - schema-validated request pipeline with additive middleware context.
"""

from .core.chain import MiddlewareChain, combine_middlewares
from .core.context import RequestContext
from .core.error_logger import set_error_logger
from .core.exceptions import ApiError, ContextCollisionError, RouteConflictError, define_errors
from .core.routes import HTTPMethod
from .core.schema import Schema, ValidationOutcome
from .models import ErrorEnvelope, InboundRequest, PipelineResult
from .router import RouteBuilder, Router

__all__ = [
    "ApiError",
    "ContextCollisionError",
    "ErrorEnvelope",
    "HTTPMethod",
    "InboundRequest",
    "MiddlewareChain",
    "PipelineResult",
    "RequestContext",
    "RouteBuilder",
    "RouteConflictError",
    "Router",
    "Schema",
    "ValidationOutcome",
    "combine_middlewares",
    "define_errors",
    "set_error_logger",
]
