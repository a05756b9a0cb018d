from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("lplookup.api.access")

REQUEST_ID_HEADER = "X-Request-ID"

# Client ids are echoed into logs; keep them short and printable.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def request_id_for(request: Request) -> str:
    """Reuse a well-formed client X-Request-ID, otherwise mint one."""

    rid = request.headers.get(REQUEST_ID_HEADER, "")
    return rid if _REQUEST_ID_RE.match(rid) else uuid4().hex


class LookupAccessMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and emit one `api_request` log line.

    Routes may record `policy_name`, `policy_type`, `lookup_error_kind` and
    `actor_id` on request.state; they are copied into the log line. Response
    bodies (policy documents) are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request_id_for(request)
        request.state.request_id = rid
        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            state = request.state
            log.info(
                "api_request",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code if response is not None else 500,
                    "actor_id": getattr(state, "actor_id", None),
                    "policy_name": getattr(state, "policy_name", None),
                    "policy_type": getattr(state, "policy_type", None),
                    "lookup_error_kind": getattr(state, "lookup_error_kind", None),
                    "duration_ms": round((time.monotonic() - start) * 1000, 1),
                },
            )
