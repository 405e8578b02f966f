"""
Where: rapidroute/exceptions.py
What: App-level exception handlers rendering the error wire format.
Why: Errors raised outside a route pipeline (unmatched paths, transport
     failures) must still reach the client as an ErrorEnvelope.
"""

from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.error_logger import log_unexpected
from .models import ErrorEnvelope


def envelope_response(error: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(status_code=error.code, content=jsonable_encoder(error.to_wire()))


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.

    Full detail goes to the error logger; the caller gets the generic 500.
    """
    log_unexpected(f"Unhandled exception for {request.method} {request.url.path}", exc)
    return envelope_response(ErrorEnvelope.internal())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException (404 for unknown paths, 405 for wrong methods).
    """
    try:
        name = HTTPStatus(exc.status_code).phrase
    except ValueError:
        name = "HTTP Error"
    message = exc.detail if isinstance(exc.detail, str) else None
    response = envelope_response(ErrorEnvelope(name=name, code=exc.status_code, message=message))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
