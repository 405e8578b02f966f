"""
Custom exception classes.

Domain errors raised by route code, and the configuration/wiring errors
raised by the pipeline itself.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..models.error import ErrorEnvelope


class ApiError(Exception):
    """
    Domain error raised by middleware or handler code.

    Sent to the caller verbatim with its declared status code.
    """

    def __init__(
        self,
        name: str,
        code: int,
        message: Optional[str] = None,
        cause: Any = None,
    ):
        self.name = name
        self.code = code
        self.message = message
        self.cause = cause
        super().__init__(message or name)

    @classmethod
    def from_envelope(cls, error: ErrorEnvelope, cause: Any = None) -> "ApiError":
        """Raise a predefined error, optionally attaching a cause."""
        return cls(
            name=error.name,
            code=error.code,
            message=error.message,
            cause=cause if cause is not None else error.cause,
        )

    @property
    def envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(
            name=self.name, code=self.code, message=self.message, cause=self.cause
        )

    def __repr__(self) -> str:
        return f"ApiError(name={self.name!r}, code={self.code}, message={self.message!r})"


def define_errors(errors: Mapping[str, Tuple[int, str]]) -> Dict[str, ErrorEnvelope]:
    """
    Creates an object of errors.

    Example::

        errors = define_errors({"NOT_FOUND": (404, "User not found")})
        raise ApiError.from_envelope(errors["NOT_FOUND"])
    """
    return {
        name: ErrorEnvelope(name=name, code=code, message=message)
        for name, (code, message) in errors.items()
    }


class PipelineError(Exception):
    """Base exception class for wiring defects detected while serving a request."""

    pass


class ContextCollisionError(PipelineError):
    """Raised when a middleware step returns a key the context already holds."""

    def __init__(self, keys: Iterable[str], step: Optional[str] = None):
        self.keys = tuple(sorted(keys))
        self.step = step
        where = f" by middleware {step}" if step else ""
        super().__init__(f"Context key collision{where}: {', '.join(self.keys)}")


class InvalidMiddlewareResult(PipelineError):
    """Raised when a middleware step returns neither a mapping nor None."""

    def __init__(self, step: Optional[str], result: Any):
        self.step = step
        super().__init__(
            f"Middleware {step} must return a mapping or None, got {type(result).__name__}"
        )


class RouteConflictError(ValueError):
    """Raised at declaration time when two routes share (method, effective path)."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"Route already registered: {method} {path}")
