import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response

from .config import settings
from .metrics import inc_http_request, observe_latency_ms


logger = logging.getLogger("messages_api")
logger.setLevel(settings.LOG_LEVEL)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(settings.LOG_LEVEL)
    logger.addHandler(handler)

access_logger = logging.getLogger("messages_api.access")


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _route_path(request: Request) -> str:
    # templated path keeps /messages/{message_id} as one metrics series
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    request_id = str(uuid.uuid4())
    start = time.perf_counter()

    request.state.request_id = request_id
    request.state.log_extra = {}

    response: Response
    try:
        response = await call_next(request)
    except Exception:
        latency_ms = (time.perf_counter() - start) * 1000.0
        log = {
            "ts": iso_now(),
            "level": "error",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": 500,
            "latency_ms": round(latency_ms, 2),
        }
        access_logger.error(json.dumps(log))
        raise

    latency_ms = (time.perf_counter() - start) * 1000.0
    status_code = response.status_code

    inc_http_request(_route_path(request), status_code)
    observe_latency_ms(latency_ms)

    log = {
        "ts": iso_now(),
        "level": "info",
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status": status_code,
        "latency_ms": round(latency_ms, 2),
    }

    # extra fields from handlers (search totals, error kind)
    if isinstance(getattr(request.state, "log_extra", None), dict):
        log.update(request.state.log_extra)

    access_logger.info(json.dumps(log))
    return response
