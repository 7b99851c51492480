"""
Request interceptors for the products API.

- ``log_requests``: HTTP middleware on every request (logging, trace id, metrics).
- ``require_api_key``: route dependency gating mutating routes.
- ``validated_payload``: route dependency turning the JSON body into a
  ``ProductPayload``.

Route-level dependencies run in declaration order before the handler's own
parameters, so listing ``require_api_key`` first means an unauthenticated
request never has its body inspected.
"""
import json
import secrets
import time
import uuid

from fastapi import Request
from loguru import logger
from pydantic import ValidationError

from errors import PayloadValidationError, UnauthorizedError, fault_status
from metrics import REQUEST_COUNT, REQUEST_LATENCY
from models import ProductStore
from schemas import ProductPayload


# Middleware pour logger les requests avec correlation ID
async def log_requests(request: Request, call_next):
    # Generate or propagate correlation ID (trace-id)
    trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
    service = request.app.state.service_name
    start_time = time.time()
    request.state.trace_id = trace_id

    with logger.contextualize(trace_id=trace_id, service=service):
        logger.info(
            f"Request: {request.method} {request.url.path}",
            extra={"method": request.method, "url": str(request.url), "trace_id": trace_id}
        )
        try:
            response = await call_next(request)
        except Exception as e:
            REQUEST_COUNT.labels(
                service=service, method=request.method, endpoint=request.url.path, status=fault_status(e)
            ).inc()
            raise

        latency = time.time() - start_time
        REQUEST_COUNT.labels(
            service=service,
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(
            service=service,
            method=request.method,
            endpoint=request.url.path
        ).observe(latency)

        logger.info(
            f"Response status: {response.status_code}",
            extra={"status": response.status_code, "latency": latency, "trace_id": trace_id}
        )

        response.headers["X-Trace-ID"] = trace_id
        return response


def get_store(request: Request) -> ProductStore:
    return request.app.state.store


async def require_api_key(request: Request) -> None:
    settings = request.app.state.settings
    api_key = request.headers.get(settings.api_key_header)
    if not api_key or not secrets.compare_digest(api_key.encode(), settings.api_key.encode()):
        logger.warning(f"Rejected {request.method} {request.url.path}: missing or invalid API key")
        raise UnauthorizedError("Valid API key required")


async def validated_payload(request: Request) -> ProductPayload:
    body = await request.body()
    try:
        # Un corps vide equivaut a un objet sans champs
        data = json.loads(body) if body.strip() else {}
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
        raise PayloadValidationError("Request body must be valid JSON")
    try:
        return ProductPayload.model_validate(data)
    except ValidationError as e:
        message = e.errors()[0]["msg"]
        logger.info(f"Invalid product payload: {message}")
        raise PayloadValidationError(message)
