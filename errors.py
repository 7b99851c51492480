"""
Error envelope for the products API.

Every failure leaves the service as ``{"error": <label>, "message": <text>}``
with the matching HTTP status. Domain code raises an ``APIError`` subclass;
the handlers registered by ``register_error_handlers`` turn those, routing
misses and uncaught exceptions into the envelope.
"""
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from metrics import ERROR_COUNT


class APIError(Exception):
    status_code = 500
    label = "Internal Server Error"
    error_type = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PayloadValidationError(APIError):
    status_code = 400
    label = "Validation Error"
    error_type = "validation_error"


class UnauthorizedError(APIError):
    status_code = 401
    label = "Unauthorized"
    error_type = "unauthorized"


class NotFoundError(APIError):
    status_code = 404
    label = "Not Found"
    error_type = "not_found"


def error_response(request: Request, status_code: int, label: str, message: str, error_type: str) -> JSONResponse:
    service = getattr(request.app.state, "service_name", "products-service")
    ERROR_COUNT.labels(service=service, endpoint=request.url.path, error_type=error_type).inc()
    response = JSONResponse(status_code=status_code, content={"error": label, "message": message})
    # Les erreurs non gerees sortent hors du middleware de log: on repose le trace id ici
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get("X-Trace-ID")
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


def fault_status(exc: Exception) -> int:
    """Status declared by an uncaught exception (``status`` or ``status_code``), else 500."""
    status_code = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    if not isinstance(status_code, int) or not 400 <= status_code <= 599:
        return 500
    return status_code


def _request_target(request: Request) -> str:
    target = request.url.path
    if request.url.query:
        target += f"?{request.url.query}"
    return target


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return error_response(request, exc.status_code, exc.label, exc.message, exc.error_type)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing misses (404, and 405 for a known path) share the route-not-found envelope."""
    if exc.status_code in (404, 405):
        logger.warning(f"Route not found: {request.method} {request.url.path}")
        return error_response(
            request, 404, NotFoundError.label,
            f"Route {request.method} {_request_target(request)} not found", "route_not_found",
        )
    try:
        label = HTTPStatus(exc.status_code).phrase
    except ValueError:
        label = "Error"
    return error_response(request, exc.status_code, label, str(exc.detail), "http_error")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in exc.errors()]
    return error_response(
        request, 400, PayloadValidationError.label, "; ".join(messages) or "Invalid request", "validation_error",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        request, fault_status(exc), "Internal Server Error", str(exc) or "Something went wrong", "unhandled_exception",
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
