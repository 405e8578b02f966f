"""
Pipeline behaviour driven through Router.handle, without an HTTP transport.
"""

from typing import Dict, Optional

import pytest
from pydantic import BaseModel, Field

from rapidroute.core.exceptions import ApiError
from rapidroute.models import InboundRequest
from rapidroute.router import Router


class WidgetIn(BaseModel):
    name: str = Field(min_length=1)
    size: int


class Paging(BaseModel):
    page: int = 1
    limit: Optional[int] = None


def _inbound(method="GET", path="/", **kwargs):
    return InboundRequest(method=method, path=path, **kwargs)


@pytest.mark.asyncio
async def test_body_error_wins_over_query_error():
    router = Router()
    router.post(
        "/widget/:id",
        {"params": {"id": int}, "body": WidgetIn, "query": Paging},
        lambda ctx: "unreachable",
    )

    result = await router.handle(
        _inbound("POST", "/widget/7", body={"size": "big"}, query={"page": "first"})
    )

    assert result.status_code == 400
    assert result.error.name == "Bad Request"
    assert result.error.message == "Invalid body"
    assert {tuple(issue["loc"]) for issue in result.error.cause} == {("name",), ("size",)}


@pytest.mark.asyncio
async def test_query_then_cookies_order():
    router = Router()
    router.get("/", {"query": Paging, "cookies": Dict[str, int]}, lambda ctx: "ok")

    query_failure = await router.handle(_inbound(query={"page": "x"}, cookies={"a": "b"}))
    cookies_failure = await router.handle(_inbound(query={"page": "2"}, cookies={"a": "b"}))

    assert query_failure.error.message == "Invalid query"
    assert cookies_failure.error.message == "Invalid cookies"


@pytest.mark.asyncio
async def test_invalid_param_is_404_with_issue_list():
    router = Router()
    router.get("/widget/:id", {"params": {"id": int}}, lambda ctx: "unreachable")

    result = await router.handle(_inbound(path="/widget/abc"))

    assert result.status_code == 404
    assert result.error.name == "Not Found"
    assert result.error.message == "Invalid route param id"
    assert result.error.cause[0]["type"] == "int_parsing"


@pytest.mark.asyncio
async def test_params_are_checked_before_body():
    router = Router()
    router.put("/widget/:id", {"params": {"id": int}, "body": WidgetIn}, lambda ctx: "unreachable")

    result = await router.handle(_inbound("PUT", "/widget/abc", body={}))

    assert result.status_code == 404


@pytest.mark.asyncio
async def test_validated_values_reach_the_handler():
    router = Router()
    captured = {}

    def handler(ctx):
        captured.update(ctx)
        return {"id": ctx.params["id"], "name": ctx.body.name}

    router.put("/widget/:id/:slug", {"params": {"id": int}, "body": WidgetIn}, handler)

    result = await router.handle(
        _inbound("PUT", "/widget/5/blue", body={"name": "gear", "size": "3"})
    )

    assert result.success
    assert result.status_code == 200
    assert result.body == {"id": 5, "name": "gear"}
    # Undeclared params stay raw strings
    assert captured["params"] == {"id": 5, "slug": "blue"}
    assert captured["body"].size == 3


@pytest.mark.asyncio
async def test_channel_without_validator_passes_raw_value():
    router = Router()
    router.get("/", {"query": Paging}, lambda ctx: {"cookies": ctx.cookies, "body": ctx.body})

    result = await router.handle(_inbound(query={}, cookies={"session": "abc"}, body="raw"))

    assert result.body == {"cookies": {"session": "abc"}, "body": "raw"}


@pytest.mark.asyncio
async def test_handler_sees_every_middleware_key_and_input_key():
    router = Router()
    router.post(
        "/",
        {"body": WidgetIn},
        lambda ctx: {"a": 1},
        lambda ctx: {"b": ctx.a + 1},
        lambda ctx: {"c": ctx.b + 1},
        lambda ctx: sorted(ctx),
    )

    result = await router.handle(_inbound("POST", "/", body={"name": "n", "size": 1}))

    assert result.body == [
        "a",
        "b",
        "body",
        "c",
        "cookies",
        "params",
        "query",
        "request",
        "response",
    ]


@pytest.mark.asyncio
async def test_key_collision_is_500_and_detail_only_goes_to_logger(captured_errors):
    handler_called = []
    router = Router()
    router.get(
        "/",
        lambda ctx: {"user": "first"},
        lambda ctx: {"user": "second"},
        lambda ctx: handler_called.append(True),
    )

    result = await router.handle(_inbound())

    assert result.status_code == 500
    assert result.error.to_wire() == {
        "name": "Internal Server Error",
        "code": 500,
        "message": "An error occurred while processing the request",
    }
    assert handler_called == []
    assert len(captured_errors) == 1
    message, err = captured_errors[0]
    assert "overwrite" in message
    assert "user" in str(err)


@pytest.mark.asyncio
async def test_middleware_may_not_overwrite_input_keys(captured_errors):
    router = Router()
    router.get("/", lambda ctx: {"body": "replaced"}, lambda ctx: "unreachable")

    result = await router.handle(_inbound())

    assert result.status_code == 500
    assert len(captured_errors) == 1


@pytest.mark.asyncio
async def test_domain_error_from_handler_is_sent_verbatim(captured_errors):
    router = Router()

    def handler(ctx):
        raise ApiError(name="NOT_FOUND", code=404, message="User not found")

    router.get("/user/:id", handler)

    result = await router.handle(_inbound(path="/user/abc"))

    assert result.status_code == 404
    assert result.error.to_wire() == {"name": "NOT_FOUND", "code": 404, "message": "User not found"}
    assert captured_errors == []


@pytest.mark.asyncio
async def test_domain_error_from_middleware_skips_later_steps_and_handler():
    calls = []

    async def deny(ctx):
        raise ApiError(name="UNAUTHORIZED", code=401, message="Wrong Password", cause={"hint": "x"})

    router = Router()
    router.get("/", deny, lambda ctx: calls.append("mw"), lambda ctx: calls.append("handler"))

    result = await router.handle(_inbound())

    assert result.status_code == 401
    assert result.error.cause == {"hint": "x"}
    assert calls == []


@pytest.mark.asyncio
async def test_unexpected_handler_error_is_sanitized(captured_errors):
    boom = RuntimeError("database password is hunter2")
    router = Router()

    async def handler(ctx):
        raise boom

    router.get("/", handler)

    result = await router.handle(_inbound())

    assert result.status_code == 500
    wire = result.error.to_wire()
    assert "hunter2" not in str(wire)
    assert "cause" not in wire
    assert captured_errors == [("An error occurred while processing the request", boom)]


@pytest.mark.asyncio
async def test_unexpected_middleware_error_is_logged(captured_errors):
    def broken(ctx):
        raise KeyError("missing")

    router = Router()
    router.get("/", broken, lambda ctx: "unreachable")

    result = await router.handle(_inbound())

    assert result.status_code == 500
    assert captured_errors[0][0] == "An unexpected middleware error occurred while processing the request"
    assert isinstance(captured_errors[0][1], KeyError)


@pytest.mark.asyncio
async def test_invalid_middleware_return_value_is_internal_error(captured_errors):
    router = Router()
    router.get("/", lambda ctx: "not a mapping", lambda ctx: "unreachable")

    result = await router.handle(_inbound())

    assert result.status_code == 500
    assert len(captured_errors) == 1


@pytest.mark.asyncio
async def test_unknown_path_is_404():
    result = await Router().handle(_inbound(path="/nothing"))

    assert result.status_code == 404
    assert result.error.message == "Cannot GET /nothing"


@pytest.mark.asyncio
async def test_success_status_follows_config(monkeypatch):
    from rapidroute.config import config

    monkeypatch.setattr(config, "SUCCESS_STATUS_CODE", 201)
    router = Router()
    router.post("/", lambda ctx: {"created": True})

    result = await router.handle(_inbound("POST", "/"))

    assert result.status_code == 201


@pytest.mark.asyncio
async def test_malformed_domain_error_becomes_internal_error(captured_errors):
    router = Router()

    def handler(ctx):
        raise ApiError(name="TEAPOT", code="teapot")

    router.get("/", handler)

    result = await router.handle(_inbound())

    assert result.status_code == 500
    assert result.error.name == "Internal Server Error"
    assert len(captured_errors) == 1
    assert captured_errors[0][0] == "A domain error could not be converted into an error response"
