from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from starlette.requests import Request

from lplookup.api.auth import AccessDenied, AccessPolicy, Actor
from lplookup.api.middleware import LookupAccessMiddleware
from lplookup.api.models import ApiError, PolicyRecordOut, PolicyTypesOut, ViolationOut
from lplookup.client.http import ClientConfig, OpenSearchServerlessHttpClient
from lplookup.client.protocol import LifecyclePolicyClient
from lplookup.core.lookup import (
    KeyValidationError,
    LifecyclePolicyDataSource,
    LifecyclePolicyType,
    PolicyResolver,
    ResolveError,
    ResolveErrorKind,
)

log = logging.getLogger("lplookup.api")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_STATUS_BY_KIND: Dict[ResolveErrorKind, int] = {
    ResolveErrorKind.NOT_FOUND: 404,
    ResolveErrorKind.AMBIGUOUS_RESULT: 409,
    ResolveErrorKind.DOCUMENT_SERIALIZATION_FAILED: 502,
    ResolveErrorKind.REMOTE_SERVICE_ERROR: 502,
    ResolveErrorKind.TRANSPORT_ERROR: 504,
}


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service.

    `timeout_seconds` bounds each remote lookup; the remote endpoint itself is
    configured through ClientConfig.
    """

    timeout_seconds: Optional[float] = None
    log_level: str = "INFO"


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if 0 < value < float("inf") else default


def _env_log_level(name: str, default: str) -> str:
    raw = os.environ.get(name, "").strip().upper()
    return raw if raw in LOG_LEVELS else default


def _default_client() -> Optional[LifecyclePolicyClient]:
    cfg = ClientConfig.from_env()
    if not cfg.endpoint_url:
        return None
    return OpenSearchServerlessHttpClient.from_config(cfg)


def create_app(*, client: Optional[LifecyclePolicyClient] = None) -> FastAPI:
    """Create the FastAPI app.

    If `client` is None, an HTTP client is built from LPLOOKUP_ENDPOINT_URL;
    without one, lookups answer 503. A malformed LPLOOKUP_API_KEYS raises
    ValueError here, at startup.
    """

    cfg = ServiceConfig(
        timeout_seconds=_env_float("LPLOOKUP_TIMEOUT_SEC", None),
        log_level=_env_log_level("LPLOOKUP_LOG_LEVEL", "INFO"),
    )
    access = AccessPolicy.from_env()
    log.setLevel(cfg.log_level)

    remote = client if client is not None else _default_client()
    data_source: Optional[LifecyclePolicyDataSource] = None
    if remote is not None:
        data_source = LifecyclePolicyDataSource(
            PolicyResolver(remote, timeout_seconds=cfg.timeout_seconds)
        )

    app = FastAPI(title="Lifecycle Policy Lookup API", version="0.1")
    app.state.cfg = cfg
    app.state.access = access
    app.state.data_source = data_source

    app.add_middleware(LookupAccessMiddleware)

    def get_actor(
        request: Request,
        x_lplookup_api_key: Optional[str] = Header(default=None),
    ) -> Actor:
        """Resolve the caller allowed to read lifecycle policies (401/403 otherwise)."""

        try:
            actor = access.authorize_read(x_lplookup_api_key)
        except AccessDenied as e:
            raise HTTPException(
                status_code=e.status_code,
                detail=ApiError(
                    error="unauthorized" if e.status_code == 401 else "forbidden",
                    summary=e.reason,
                ).model_dump(),
            )
        request.state.actor_id = actor.actor_id
        return actor

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "auth_required": access.required,
            "remote_configured": data_source is not None,
        }

    @app.get("/lifecycle-policy-types", response_model=PolicyTypesOut)
    def list_types() -> PolicyTypesOut:
        return PolicyTypesOut(types=LifecyclePolicyType.values())

    @app.get("/lifecycle-policies/{policy_type}/{name}", response_model=PolicyRecordOut)
    def read_lifecycle_policy(
        policy_type: str,
        name: str,
        request: Request,
        actor: Actor = Depends(get_actor),
    ) -> PolicyRecordOut:
        """Look up one lifecycle policy by (type, name).

        Requires the `read` scope when API keys are configured.

        Status codes
        - 422 invalid key, 404 not found, 409 ambiguous
        - 502 remote rejection or unserializable document
        - 503 no remote configured, 504 transport failure

        """

        request.state.policy_type = policy_type
        request.state.policy_name = name
        if data_source is None:
            raise HTTPException(
                status_code=503,
                detail=ApiError(error="remote_not_configured").model_dump(),
            )

        try:
            record = data_source.read(name, policy_type)
        except KeyValidationError as e:
            request.state.lookup_error_kind = "ValidationError"
            diag = e.diagnostic()
            raise HTTPException(
                status_code=422,
                detail=ApiError(
                    error="invalid_lookup_key",
                    summary=diag["summary"],
                    detail=diag["detail"],
                    violations=[ViolationOut(**v.to_dict()) for v in e.violations],
                ).model_dump(),
            )
        except ResolveError as e:
            request.state.lookup_error_kind = e.kind.value
            diag = e.diagnostic()
            raise HTTPException(
                status_code=_STATUS_BY_KIND.get(e.kind, 502),
                detail=ApiError(
                    error=e.kind.value, summary=diag["summary"], detail=diag["detail"]
                ).model_dump(),
            )

        return PolicyRecordOut(**record.to_dict())

    return app


def app_from_env() -> FastAPI:
    """Factory for Uvicorn (`uvicorn --factory lplookup.api.server:app_from_env`)."""

    return create_app()
