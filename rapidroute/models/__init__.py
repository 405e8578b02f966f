"""
Data model definitions package.

Aggregates the models exchanged between the pipeline and the transport.
"""

from .error import ErrorEnvelope
from .request import InboundRequest, PipelineResult

__all__ = [
    "ErrorEnvelope",
    "InboundRequest",
    "PipelineResult",
]
