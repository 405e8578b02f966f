from typing import Dict, List

import pytest
from pydantic import BaseModel, Field

from rapidroute.core.schema import (
    PydanticSchema,
    Schema,
    ValidationOutcome,
    as_schema,
    validate,
)


class UserIn(BaseModel):
    username: str = Field(min_length=3)
    age: int


class EvenNumber:
    """Hand-written schema: accepts even integers only."""

    def validate(self, value):
        if isinstance(value, int) and value % 2 == 0:
            return ValidationOutcome.ok(value)
        return ValidationOutcome.fail([{"msg": "not even", "input": value}])


class AsyncUpper:
    async def validate(self, value):
        if isinstance(value, str):
            return {"success": True, "data": value.upper()}
        return {"success": False, "issues": ["expected a string"]}


def test_as_schema_wraps_pydantic_models_and_annotations():
    assert isinstance(as_schema(UserIn), PydanticSchema)
    assert isinstance(as_schema(int), PydanticSchema)
    assert isinstance(as_schema(Dict[str, List[int]]), PydanticSchema)


def test_as_schema_keeps_objects_with_validate():
    schema = EvenNumber()
    assert as_schema(schema) is schema
    assert isinstance(schema, Schema)


def test_as_schema_rejects_unusable_objects():
    with pytest.raises(TypeError):
        as_schema(object())


@pytest.mark.asyncio
async def test_pydantic_model_success_returns_parsed_instance():
    outcome = await validate(as_schema(UserIn), {"username": "nlfmt", "age": "30"})

    assert outcome.success is True
    assert isinstance(outcome.data, UserIn)
    assert outcome.data.age == 30


@pytest.mark.asyncio
async def test_pydantic_failure_is_returned_not_raised():
    outcome = await validate(as_schema(UserIn), {"username": "ab"})

    assert outcome.success is False
    locations = sorted(tuple(issue["loc"]) for issue in outcome.issues)
    assert locations == [("age",), ("username",)]
    # Issues are plain JSON values
    assert all("url" not in issue for issue in outcome.issues)


@pytest.mark.asyncio
async def test_annotation_schema_coerces_like_pydantic():
    outcome = await validate(as_schema(int), "42")
    assert outcome == ValidationOutcome.ok(42)


@pytest.mark.asyncio
async def test_custom_schema_outcomes():
    schema = EvenNumber()

    assert (await validate(schema, 4)).data == 4
    failed = await validate(schema, 3)
    assert failed.success is False
    assert failed.issues == [{"msg": "not even", "input": 3}]


@pytest.mark.asyncio
async def test_async_schema_with_mapping_outcome():
    schema = AsyncUpper()

    assert (await validate(schema, "abc")).data == "ABC"
    failed = await validate(schema, 1)
    assert failed.success is False
    assert failed.issues == ["expected a string"]
