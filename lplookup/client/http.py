from __future__ import annotations

import json
import os
import ssl
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import RemoteRejection, TransportFailure
from .protocol import BatchGetLifecyclePolicyOutput

TARGET_PREFIX = "OpenSearchServerless"
CONTENT_TYPE = "application/x-amz-json-1.0"
DEFAULT_TIMEOUT_SEC = 30.0

# Status codes treated as authentication failures rather than service rejections.
_AUTH_STATUSES = frozenset({401, 403})


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return float(default)
    try:
        value = float(raw)
    except ValueError:
        return float(default)
    # NaN and non-positive values would disable or break the socket deadline.
    return value if 0 < value < float("inf") else float(default)


def _positive_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"timeout_seconds must be a number, got {value!r}")
    if not 0 < value < float("inf"):
        raise ValueError(f"timeout_seconds must be a positive number, got {value!r}")
    return float(value)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Remote endpoint configuration.

    Reads:
    - LPLOOKUP_ENDPOINT_URL: base URL of the management API (or a signing proxy)
    - LPLOOKUP_REMOTE_API_KEY: optional bearer token for that endpoint
    - LPLOOKUP_TIMEOUT_SEC: default per-call timeout

    """

    endpoint_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SEC

    @staticmethod
    def from_env() -> "ClientConfig":
        return ClientConfig(
            endpoint_url=(os.environ.get("LPLOOKUP_ENDPOINT_URL", "").strip() or None),
            api_key=(os.environ.get("LPLOOKUP_REMOTE_API_KEY", "").strip() or None),
            timeout_seconds=_env_float("LPLOOKUP_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC),
        )


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """HTTP response wrapper. Treat `body_bytes` as untrusted."""

    status: int
    headers: Mapping[str, str]
    body_bytes: bytes

    def json(self) -> Any:
        """Decode body as JSON."""

        return json.loads(self.body_bytes.decode("utf-8", errors="strict"))


class OpenSearchServerlessHttpClient:
    """stdlib-only client for the lifecycle policy read API (JSON 1.0 protocol).

    Request signing is not done here: point `endpoint_url` at a signing proxy
    or an emulator, optionally with a bearer `api_key`.

    TLS verification is always on.
    """

    def __init__(
        self,
        endpoint_url: str,
        *,
        api_key: Optional[str] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SEC,
    ):
        if not endpoint_url:
            raise ValueError("endpoint_url is required")
        self.endpoint_url = endpoint_url.rstrip("/") + "/"
        self.api_key = api_key
        self.timeout_seconds = _positive_timeout(timeout_seconds)

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> "OpenSearchServerlessHttpClient":
        if not cfg.endpoint_url:
            raise ValueError("LPLOOKUP_ENDPOINT_URL is not set")
        return cls(cfg.endpoint_url, api_key=cfg.api_key, timeout_seconds=cfg.timeout_seconds)

    def call(
        self, operation: str, payload: Mapping[str, Any], *, timeout_seconds: Optional[float] = None
    ) -> Dict[str, Any]:
        """POST one JSON 1.0 operation and return the decoded response object."""

        body = json.dumps(dict(payload)).encode("utf-8")
        req = Request(url=self.endpoint_url, data=body, method="POST")
        req.add_header("Content-Type", CONTENT_TYPE)
        req.add_header("X-Amz-Target", f"{TARGET_PREFIX}.{operation}")
        req.add_header("Content-Length", str(len(body)))
        if self.api_key:
            req.add_header("Authorization", f"Bearer {self.api_key}")

        timeout = self.timeout_seconds
        if timeout_seconds is not None:
            timeout = _positive_timeout(timeout_seconds)
        resp = _do_request(req, timeout=timeout)

        data: Any = None
        try:
            data = resp.json() if resp.body_bytes else {}
        except (UnicodeDecodeError, ValueError) as e:
            # Error bodies may be non-JSON (proxies); only success bodies must decode.
            if resp.status < 400:
                raise TransportFailure(f"undecodable response body from {operation}") from e

        if resp.status in _AUTH_STATUSES:
            code, message = _error_fields(data)
            raise TransportFailure(
                f"authentication failed ({resp.status} {code or 'unauthorized'}): {message}"
            )
        if resp.status >= 400:
            code, message = _error_fields(data)
            raise RemoteRejection(message, status=resp.status, error_code=code)
        if not isinstance(data, dict):
            raise TransportFailure(f"unexpected response shape from {operation}")
        return data

    def batch_get_lifecycle_policy(
        self,
        identifiers: Sequence[Mapping[str, str]],
        *,
        timeout_seconds: Optional[float] = None,
    ) -> BatchGetLifecyclePolicyOutput:
        data = self.call(
            "BatchGetLifecyclePolicy",
            {"identifiers": [dict(i) for i in identifiers]},
            timeout_seconds=timeout_seconds,
        )
        return BatchGetLifecyclePolicyOutput(
            details=_list_of_mappings(data, "lifecyclePolicyDetails"),
            errors=_list_of_mappings(data, "lifecyclePolicyErrorDetails"),
        )


def _list_of_mappings(data: Mapping[str, Any], field: str) -> Tuple[Mapping[str, Any], ...]:
    """Read an optional list-of-objects member; any other shape is a rejection."""

    raw = data.get(field)
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(x, Mapping) for x in raw):
        raise RemoteRejection(
            f"malformed response: {field} is not a list of objects",
            status=200,
            error_code="MalformedResponse",
        )
    return tuple(raw)


def _error_fields(data: Any) -> tuple[Optional[str], str]:
    """Extract (error_code, message) from a JSON 1.0 error body.

    `__type` may be namespaced ("com.amazonaws...#ValidationException").
    """

    if not isinstance(data, Mapping):
        return None, ""
    code = data.get("__type") or data.get("code")
    if isinstance(code, str) and "#" in code:
        code = code.rsplit("#", 1)[1]
    message = data.get("message") or data.get("Message") or ""
    return (str(code) if code else None), str(message)


def _do_request(req: Request, *, timeout: float) -> HttpResponse:
    """Execute a request with the default SSL context.

    HTTP error statuses come back as responses; everything that prevents a
    complete response (connection errors, timeouts, truncated bodies) raises
    TransportFailure.
    """

    try:
        ctx = ssl.create_default_context()
        with urlopen(req, context=ctx, timeout=timeout) as resp:
            body = resp.read()
            headers = {k: v for k, v in resp.headers.items()}
            return HttpResponse(status=int(resp.status), headers=headers, body_bytes=body)
    except HTTPError as e:
        try:
            body = e.read() if hasattr(e, "read") else b""
        except (HTTPException, OSError):
            body = b""
        headers = dict(getattr(e, "headers", {}) or {})
        return HttpResponse(
            status=int(getattr(e, "code", 0) or 0), headers=headers, body_bytes=body
        )
    except URLError as e:
        raise TransportFailure(f"network error: {e.reason}") from e
    except TimeoutError as e:
        raise TransportFailure(f"request timed out after {timeout}s") from e
    except (HTTPException, OSError) as e:
        raise TransportFailure(f"incomplete response: {e.__class__.__name__}: {e}") from e
