from __future__ import annotations

import logging
from typing import Any, Optional

from .errors import KeyValidationError, ResolveError
from .resolver import PolicyResolver
from .types import PolicyRecord
from .validation import validate_lookup_key

log = logging.getLogger("lplookup.data_source")

TYPE_NAME = "lifecycle_policy"


class LifecyclePolicyDataSource:
    """Read-only lifecycle policy lookup: validate, then resolve.

    Errors propagate unchanged; their str() is the standardized problem
    message and `diagnostic()` gives the summary/detail pair.
    """

    def __init__(self, resolver: PolicyResolver):
        self.resolver = resolver

    def read(self, name: Any, type: Any, *, timeout_seconds: Optional[float] = None) -> PolicyRecord:
        result = validate_lookup_key(name, type)
        try:
            key = result.raise_for_violations()
        except KeyValidationError as e:
            log.warning(
                "lifecycle_policy_invalid_key",
                extra={"violations": [v.to_dict() for v in e.violations]},
            )
            raise

        try:
            return self.resolver.resolve(key, timeout_seconds=timeout_seconds)
        except ResolveError as e:
            log.warning(
                "lifecycle_policy_read_failed",
                extra={
                    "policy_name": key.name,
                    "policy_type": key.type.value,
                    "error_kind": e.kind.value,
                    "summary": str(e),
                },
            )
            raise
