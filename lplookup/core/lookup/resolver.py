from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, List, Mapping, Optional

from lplookup.client.errors import RemoteRejection, TransportFailure
from lplookup.client.protocol import BatchGetLifecyclePolicyOutput, LifecyclePolicyClient

from .errors import (
    AmbiguousResultError,
    DocumentSerializationError,
    PolicyNotFoundError,
    RemoteServiceError,
    TransportError,
)
from .timestamps import epoch_millis_to_rfc3339
from .types import LookupKey, PolicyRecord

log = logging.getLogger("lplookup.resolver")

# HTML-sensitive characters and JS line separators are escaped the way the
# service's own SDK encoder does, so documents compare byte-for-byte.
# They can only occur inside JSON strings, so a plain replace is safe.
_HTML_ESCAPES = (
    ("&", "\\u0026"),
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def serialize_policy_document(document: Any) -> str:
    """Serialize an opaque policy document to compact JSON text.

    Keys are sorted and `& < >` are escaped as \\u0026, \\u003c, \\u003e, so
    the same document always yields the same text. The document's internal
    schema is never interpreted.

    Raises:
      TypeError / ValueError: the document is absent, contains values JSON
      cannot represent (sets, bytes, NaN), or is circular
    """

    if document is None:
        raise ValueError("remote record has no policy document")
    text = json.dumps(
        document,
        sort_keys=True,
        separators=(",", ":"),
        allow_nan=False,
        ensure_ascii=False,
    )
    for raw, escaped in _HTML_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def check_timeout(timeout_seconds: Optional[float]) -> Optional[float]:
    """Return a usable timeout or raise ValueError. None means "no deadline"."""

    if timeout_seconds is None:
        return None
    if isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, (int, float)):
        raise ValueError(f"timeout_seconds must be a number, got {timeout_seconds!r}")
    if not 0 < timeout_seconds < float("inf"):
        raise ValueError(f"timeout_seconds must be positive and finite, got {timeout_seconds!r}")
    return float(timeout_seconds)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    text = str(value)
    return text or None


def _type_str(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


def _timestamp(key: LookupKey, detail: Mapping[str, Any], field: str) -> Optional[str]:
    raw = detail.get(field)
    if raw is None:
        return None
    try:
        return epoch_millis_to_rfc3339(raw)
    except (TypeError, OverflowError) as e:
        raise RemoteServiceError(key, f"malformed {field} in remote record: {e}") from e


def _check_well_formed(key: LookupKey, out: BatchGetLifecyclePolicyOutput) -> None:
    """Reject response shapes that cannot be told apart from "no match".

    Every detail must be a mapping with a non-empty string name, and every
    error entry a mapping.
    """

    for d in out.details:
        if not isinstance(d, Mapping):
            raise RemoteServiceError(key, "malformed remote response: detail is not an object")
        name = d.get("name")
        if not isinstance(name, str) or not name:
            raise RemoteServiceError(key, "malformed remote record: missing name")
    for err in out.errors:
        if not isinstance(err, Mapping):
            raise RemoteServiceError(key, "malformed remote response: error entry is not an object")


def _matches_key(key: LookupKey, detail: Mapping[str, Any]) -> bool:
    if detail.get("name") != key.name:
        return False
    remote_type = detail.get("type")
    if remote_type is None:
        return True
    return _type_str(remote_type).casefold() == key.type.value.casefold()


def _is_not_found_code(code: str) -> bool:
    return code == "ResourceNotFoundException" or code.endswith("NotFound")


def select_single_detail(key: LookupKey, out: BatchGetLifecyclePolicyOutput) -> Mapping[str, Any]:
    """Pick the one remote record for `key`, or raise.

    - several candidates: AmbiguousResultError (never "first wins")
    - none, with a not-found error entry or no entry at all: PolicyNotFoundError
    - none, with any other error entry: RemoteServiceError
    - malformed details or error entries: RemoteServiceError
    """

    _check_well_formed(key, out)
    candidates: List[Mapping[str, Any]] = [d for d in out.details if _matches_key(key, d)]
    if len(candidates) > 1:
        raise AmbiguousResultError(key, len(candidates))
    if candidates:
        return candidates[0]

    for err in out.errors:
        code = str(err.get("errorCode") or "")
        message = str(err.get("errorMessage") or "")
        if code and not _is_not_found_code(code):
            raise RemoteServiceError(key, f"{code}: {message}" if message else code)
        if code:
            raise PolicyNotFoundError(key, message or "no lifecycle policy matched")
    raise PolicyNotFoundError(key, "no lifecycle policy matched")


def normalize_policy_detail(key: LookupKey, detail: Mapping[str, Any]) -> PolicyRecord:
    """Convert one remote record into a PolicyRecord.

    Fields are filled in order; the document goes last so a serialization
    failure can report everything else on the error's `partial` record.
    """

    name = detail.get("name")
    if not isinstance(name, str) or not name:
        raise RemoteServiceError(key, "malformed remote record: missing name")

    partial = PolicyRecord(
        identifier=name,
        name=name,
        type=_type_str(detail.get("type")),
        description=_optional_str(detail.get("description")),
        created_at=_timestamp(key, detail, "createdDate"),
        last_modified_at=_timestamp(key, detail, "lastModifiedDate"),
        policy_version=_optional_str(detail.get("policyVersion")),
    )

    try:
        document = serialize_policy_document(detail.get("policy"))
    except (TypeError, ValueError, RecursionError) as e:
        raise DocumentSerializationError(key, e, partial=partial) from e

    return PolicyRecord(
        identifier=partial.identifier,
        name=partial.name,
        type=partial.type,
        description=partial.description,
        created_at=partial.created_at,
        last_modified_at=partial.last_modified_at,
        policy_document=document,
        policy_version=partial.policy_version,
    )


class PolicyResolver:
    """Fetch and normalize exactly one remote lifecycle policy per key.

    The remote client is injected; the resolver keeps no per-call state, so
    one instance can serve concurrent lookups.

    Failure surface (all ResolveError subclasses):
    - PolicyNotFoundError, AmbiguousResultError
    - DocumentSerializationError (other fields on `.partial`)
    - TransportError (network/timeout/auth, from TransportFailure)
    - RemoteServiceError (service rejection or malformed record)
    """

    def __init__(self, client: LifecyclePolicyClient, *, timeout_seconds: Optional[float] = None):
        if client is None:
            raise TypeError("client is required")
        self._client = client
        self.timeout_seconds = check_timeout(timeout_seconds)

    def resolve(self, key: LookupKey, *, timeout_seconds: Optional[float] = None) -> PolicyRecord:
        if not isinstance(key, LookupKey):
            raise TypeError("key must be a LookupKey; use validate_lookup_key() for raw input")

        timeout = self.timeout_seconds
        if timeout_seconds is not None:
            timeout = check_timeout(timeout_seconds)
        try:
            out = self._client.batch_get_lifecycle_policy(
                [key.to_identifier()], timeout_seconds=timeout
            )
        except TransportFailure as e:
            raise TransportError(key, e) from e
        except RemoteRejection as e:
            raise RemoteServiceError(key, e) from e

        detail = select_single_detail(key, out)
        record = normalize_policy_detail(key, detail)
        log.info(
            "lifecycle_policy_resolved",
            extra={
                "policy_name": record.name,
                "policy_type": record.type,
                "policy_version": record.policy_version,
            },
        )
        return record
