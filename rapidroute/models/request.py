"""
Pipeline input/output models.

Decouple the pipeline from the transport's request and response objects.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .error import ErrorEnvelope


class InboundRequest(BaseModel):
    """
    Everything the transport supplies for one request.

    ``request`` and ``response`` are the transport's native handles, exposed
    to middleware and handlers untouched.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str
    path: str
    path_params: Dict[str, str] = Field(default_factory=dict)
    body: Any = None
    query: Any = Field(default_factory=dict)
    cookies: Any = Field(default_factory=dict)
    request: Any = None
    response: Any = None


class PipelineResult(BaseModel):
    """
    Outcome of dispatching one request.

    Exactly one of ``body`` (success) or ``error`` is meaningful.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status_code: int
    body: Any = None
    error: Optional[ErrorEnvelope] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: ErrorEnvelope) -> "PipelineResult":
        return cls(status_code=error.code, error=error)
