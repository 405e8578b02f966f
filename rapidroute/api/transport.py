"""
Where: rapidroute/api/transport.py
What: Binds a Router onto FastAPI/Starlette and converts between their
      request/response objects and the pipeline models.
Why: Keep the pipeline independent of the HTTP framework serving it.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, Optional, Tuple, Union
from urllib.parse import parse_qsl

from fastapi import APIRouter, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ..core.error_logger import log_unexpected
from ..core.paths import to_transport_path
from ..core.routes import HTTPMethod, RouteEntry
from ..models import ErrorEnvelope, InboundRequest, PipelineResult
from ..router import Router

logger = logging.getLogger("rapidroute.transport")

# Methods an ALL route is registered for.
TRANSPORT_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


class MalformedBodyError(ValueError):
    """Raised when a JSON body cannot be decoded."""

    pass


def multi_to_dict(items: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """Collapse multi-valued pairs into a dict; repeated keys become lists."""
    result: Dict[str, Any] = {}
    for key, value in items:
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result


async def read_body(request: Request) -> Any:
    """
    Parse the request body by content type.

    Returns:
        decoded JSON, a dict for url-encoded forms, text for ``text/*``,
        raw bytes otherwise, or None when the body is empty
    """
    raw = await request.body()
    if not raw:
        return None

    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedBodyError(str(e)) from e
    if content_type == "application/x-www-form-urlencoded":
        return multi_to_dict(parse_qsl(raw.decode("utf-8", errors="replace"), keep_blank_values=True))
    if content_type.startswith("text/"):
        return raw.decode("utf-8", errors="replace")
    return raw


def new_response_handle() -> Response:
    """
    Response exposed to route code for setting headers, cookies or a status.

    The status starts as None so only an explicit assignment overrides the
    default.
    """
    handle = Response()
    del handle.headers["content-length"]
    handle.status_code = None  # type: ignore[assignment]
    return handle


async def extract_inbound(request: Request) -> InboundRequest:
    return InboundRequest(
        method=request.method,
        path=request.url.path,
        path_params=dict(request.path_params),
        body=await read_body(request),
        query=multi_to_dict(request.query_params.multi_items()),
        cookies=dict(request.cookies),
        request=request,
        response=new_response_handle(),
    )


def render_result(result: PipelineResult, response_handle: Optional[Response] = None) -> Response:
    """
    Convert a pipeline result into a Starlette response.

    A Response returned by the handler is sent untouched.
    """
    if result.error is not None:
        response: Response = JSONResponse(
            status_code=result.error.code,
            content=jsonable_encoder(result.error.to_wire()),
        )
    else:
        body = result.body
        if isinstance(body, Response):
            return body
        if body is None:
            response = Response(status_code=result.status_code)
        elif isinstance(body, (str, bytes)):
            response = PlainTextResponse(body, status_code=result.status_code)
        else:
            response = JSONResponse(jsonable_encoder(body), status_code=result.status_code)

    if response_handle is not None:
        response.headers.raw.extend(response_handle.headers.raw)
        if result.error is None and response_handle.status_code:
            response.status_code = response_handle.status_code
    return response


def build_endpoint(router: Router, entry: RouteEntry):
    """Create the FastAPI endpoint that feeds requests into ``entry``'s pipeline."""

    async def endpoint(request: Request) -> Response:
        try:
            inbound = await extract_inbound(request)
        except MalformedBodyError as e:
            logger.info(
                "Rejected malformed JSON body",
                extra={"method": request.method, "path": request.url.path, "error_detail": str(e)},
            )
            return render_result(
                PipelineResult.failed(
                    ErrorEnvelope(name="Bad Request", code=400, message="Malformed JSON body")
                )
            )

        result = await router.dispatch(entry, inbound)
        try:
            return render_result(result, inbound.response)
        except Exception as err:
            log_unexpected("Failed to serialize the response", err)
            return render_result(PipelineResult.failed(ErrorEnvelope.internal()))

    endpoint.__name__ = re.sub(r"\W", "_", f"{entry.method.value.lower()}_{entry.path.strip('/') or 'root'}")
    return endpoint


def include_routes(target: Union[FastAPI, APIRouter], router: Router) -> None:
    """Register every route of ``router`` on a FastAPI app or APIRouter."""
    for entry in router.routes.values():
        methods = TRANSPORT_METHODS if entry.method is HTTPMethod.ALL else [entry.method.value]
        target.add_api_route(
            to_transport_path(entry.path),
            build_endpoint(router, entry),
            methods=methods,
            name=str(entry.key),
            include_in_schema=False,
        )
    logger.info("Included %d routes", len(router))
