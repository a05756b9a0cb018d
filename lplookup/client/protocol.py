from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class BatchGetLifecyclePolicyOutput:
    """
    Raw result of one BatchGetLifecyclePolicy call.

    details: remote records (name, description, type, createdDate,
             lastModifiedDate, policy, policyVersion)
    errors:  per-identifier failures (name, type, errorCode, errorMessage)

    Both hold untrusted remote mappings; nothing here is normalized.
    """

    details: Tuple[Mapping[str, Any], ...] = ()
    errors: Tuple[Mapping[str, Any], ...] = ()


class LifecyclePolicyClient(Protocol):
    """
    Read side of the remote management API, as used by PolicyResolver.

    Implementations own authentication, retries and connection handling, and
    raise only TransportFailure or RemoteRejection.
    """

    def batch_get_lifecycle_policy(
        self,
        identifiers: Sequence[Mapping[str, str]],
        *,
        timeout_seconds: Optional[float] = None,
    ) -> BatchGetLifecyclePolicyOutput:
        ...
