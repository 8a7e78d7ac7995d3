"""
Request Logging

One structured log line per request, tagged with a request id that is
echoed back in ``X-Request-ID``. When the authorization gate resolved an
account the line carries its id, so request logs can be joined with the
access audit ledger.
"""

import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from accessgate.api.access.audit import ClientInfo
from accessgate.api.config import settings

logger = logging.getLogger("accessgate.requests")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


def _request_id(request: Request) -> str:
    # Keep a caller-supplied id so traces span the proxy and this service
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming:
        return incoming[:MAX_REQUEST_ID_LENGTH]
    return uuid.uuid4().hex[:12]


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id
        start = time.perf_counter()

        response: Response = await call_next(request)

        account_id = getattr(request.state, "account_id", None)
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            "account_id": str(account_id) if account_id is not None else None,
            "client_ip": ClientInfo.from_request(request).ip_address,
        }

        # Denials are expected traffic; only server errors are warnings
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, json.dumps(log_data))

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
