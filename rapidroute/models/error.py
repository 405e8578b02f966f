"""
Error envelope model.

The single wire shape for every failure the pipeline reports.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..config import config


class ErrorEnvelope(BaseModel):
    """
    Uniform error value: ``{"name", "code", "message"?, "cause"?}``.

    Sent with an HTTP status equal to ``code``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    code: int
    message: Optional[str] = None
    cause: Any = None

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the response body, omitting absent optional fields."""
        payload: Dict[str, Any] = {"name": self.name, "code": self.code}
        if self.message is not None:
            payload["message"] = self.message
        if self.cause is not None:
            payload["cause"] = self.cause
        return payload

    @classmethod
    def internal(cls) -> "ErrorEnvelope":
        """Generic 500 that leaks no internal detail."""
        return cls(
            name=config.INTERNAL_ERROR_NAME,
            code=500,
            message=config.INTERNAL_ERROR_MESSAGE,
        )

    @classmethod
    def not_found_param(cls, key: str, issues: List[Any]) -> "ErrorEnvelope":
        return cls(
            name="Not Found",
            code=404,
            message=f"Invalid route param {key}",
            cause=issues,
        )

    @classmethod
    def bad_request(cls, channel: str, issues: List[Any]) -> "ErrorEnvelope":
        return cls(name="Bad Request", code=400, message=f"Invalid {channel}", cause=issues)
