"""Lifecycle policy lookup core.

Two steps, composed linearly:
- validate_lookup_key: local checks on the raw (name, type) pair
- PolicyResolver.resolve: one remote query, then field-by-field normalization

Notes:
- Remote records are untrusted; normalization never interprets the policy document.
- No caching, no retries, no state between calls.
"""

from .data_source import TYPE_NAME, LifecyclePolicyDataSource
from .errors import (
    ACTION_READING,
    RESOURCE_DISPLAY_NAME,
    AmbiguousResultError,
    DocumentSerializationError,
    FieldViolation,
    KeyValidationError,
    LifecyclePolicyLookupError,
    PolicyNotFoundError,
    RemoteServiceError,
    ResolveError,
    ResolveErrorKind,
    TransportError,
    ViolationKind,
    problem_message,
)
from .resolver import PolicyResolver, normalize_policy_detail, serialize_policy_document
from .timestamps import epoch_millis_to_rfc3339
from .types import NAME_MAX_LENGTH, NAME_MIN_LENGTH, LifecyclePolicyType, LookupKey, PolicyRecord
from .validation import KeyValidationResult, validate_lookup_key

__all__ = [
    "ACTION_READING",
    "RESOURCE_DISPLAY_NAME",
    "TYPE_NAME",
    "NAME_MIN_LENGTH",
    "NAME_MAX_LENGTH",
    "LifecyclePolicyType",
    "LookupKey",
    "PolicyRecord",
    "FieldViolation",
    "ViolationKind",
    "KeyValidationResult",
    "validate_lookup_key",
    "PolicyResolver",
    "normalize_policy_detail",
    "serialize_policy_document",
    "epoch_millis_to_rfc3339",
    "LifecyclePolicyDataSource",
    "LifecyclePolicyLookupError",
    "KeyValidationError",
    "ResolveError",
    "ResolveErrorKind",
    "PolicyNotFoundError",
    "AmbiguousResultError",
    "DocumentSerializationError",
    "TransportError",
    "RemoteServiceError",
    "problem_message",
]
