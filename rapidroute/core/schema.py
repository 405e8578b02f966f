"""
Schema adapter.

Uniform interface over the validators a route declares. A schema is any
object with a ``validate(value)`` method returning a ``ValidationOutcome``
(directly or as an awaitable). Pydantic models and plain type annotations
are adapted through ``pydantic.TypeAdapter``.
"""

import inspect
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Mapping, Protocol, Union, get_origin, runtime_checkable

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter, ValidationError


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one value: parsed data, or the validator's issues."""

    success: bool
    data: Any = None
    issues: List[Any] = field(default_factory=list)

    @classmethod
    def ok(cls, data: Any) -> "ValidationOutcome":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, issues: List[Any]) -> "ValidationOutcome":
        return cls(success=False, issues=list(issues))


@runtime_checkable
class Schema(Protocol):
    def validate(self, value: Any) -> Union[ValidationOutcome, Awaitable[ValidationOutcome]]: ...


class PydanticSchema:
    """Adapts a pydantic model or any type annotation to ``Schema``."""

    def __init__(self, tp: Any):
        self.type = tp
        try:
            self._adapter = TypeAdapter(tp)
        except PydanticSchemaGenerationError as e:
            raise TypeError(f"{tp!r} cannot be used as a schema: {e}") from e

    def validate(self, value: Any) -> ValidationOutcome:
        try:
            data = self._adapter.validate_python(value)
        except ValidationError as exc:
            # Round-trip through JSON so issues are plain, serialisable values.
            return ValidationOutcome.fail(json.loads(exc.json(include_url=False)))
        return ValidationOutcome.ok(data)

    def __repr__(self) -> str:
        return f"PydanticSchema({self.type!r})"


def as_schema(obj: Any) -> Schema:
    """
    Normalize a declared validator into a ``Schema``.

    Raises:
        TypeError: obj is neither a schema nor something pydantic can validate
    """
    if isinstance(obj, PydanticSchema):
        return obj
    if isinstance(obj, type) and issubclass(obj, BaseModel):
        return PydanticSchema(obj)
    if not isinstance(obj, type) and get_origin(obj) is None and isinstance(obj, Schema):
        return obj
    return PydanticSchema(obj)


def _coerce_outcome(result: Any) -> ValidationOutcome:
    if isinstance(result, ValidationOutcome):
        return result
    if isinstance(result, Mapping):
        success, data, issues = result.get("success"), result.get("data"), result.get("issues")
    else:
        success = getattr(result, "success")
        data = getattr(result, "data", None)
        issues = getattr(result, "issues", None)
    if success:
        return ValidationOutcome.ok(data)
    return ValidationOutcome.fail(issues or [])


async def validate(schema: Schema, value: Any) -> ValidationOutcome:
    """
    Validate ``value`` against ``schema``.

    Ordinary validation failure is returned, never raised.
    """
    result = schema.validate(value)
    if inspect.isawaitable(result):
        result = await result
    return _coerce_outcome(result)
