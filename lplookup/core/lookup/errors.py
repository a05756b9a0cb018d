from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .types import LookupKey, PolicyRecord

ACTION_READING: str = "reading"
RESOURCE_DISPLAY_NAME: str = "Lifecycle Policy"


def problem_message(action: str, resource: str, identifier: Optional[str], cause: Any) -> str:
    """Build the single-line diagnostic used for every lookup failure.

    Example:
      reading Lifecycle Policy ("my-policy", retention): no lifecycle policy matched
    """

    msg = f"{action} {resource}"
    if identifier:
        msg += f" ({identifier})"
    if cause is not None and str(cause):
        msg += f": {cause}"
    return msg


class ViolationKind(str, Enum):
    LENGTH_OUT_OF_RANGE = "LengthOutOfRange"
    UNKNOWN_ENUM_VALUE = "UnknownEnumValue"


class ResolveErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    AMBIGUOUS_RESULT = "AmbiguousResult"
    DOCUMENT_SERIALIZATION_FAILED = "DocumentSerializationFailed"
    TRANSPORT_ERROR = "TransportError"
    REMOTE_SERVICE_ERROR = "RemoteServiceError"


@dataclass(frozen=True)
class FieldViolation:
    """One failed lookup-key constraint, naming the offending field."""

    field: str
    kind: ViolationKind
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "kind": self.kind.value, "message": self.message}


class LifecyclePolicyLookupError(Exception):
    """
    Base exception for all lifecycle policy lookup failures.
    """

    def cause_text(self) -> str:
        return ""

    def diagnostic(self) -> Dict[str, str]:
        return {"summary": str(self), "detail": self.cause_text()}


class KeyValidationError(LifecyclePolicyLookupError):
    """
    Raised when a lookup key fails local validation. Never reaches the network.
    """

    def __init__(self, violations: Sequence[FieldViolation], *, name: Any = None, type: Any = None):
        self.violations: Tuple[FieldViolation, ...] = tuple(violations)
        self.name = name
        self.type = type
        super().__init__(
            problem_message(ACTION_READING, RESOURCE_DISPLAY_NAME, self._display_id(), self.cause_text())
        )

    def _display_id(self) -> str:
        return f'"{self.name}", {self.type}'

    def cause_text(self) -> str:
        return "invalid lookup key: " + "; ".join(v.message for v in self.violations)


class ResolveError(LifecyclePolicyLookupError):
    """
    Base for failures after the key passed validation.

    Carries the lookup key and the underlying cause (a message or exception).
    """

    kind: ResolveErrorKind = ResolveErrorKind.REMOTE_SERVICE_ERROR

    def __init__(self, key: LookupKey, cause: Union[str, BaseException]):
        self.key = key
        self.cause = cause
        super().__init__(
            problem_message(ACTION_READING, RESOURCE_DISPLAY_NAME, key.display_id(), self.cause_text())
        )

    def cause_text(self) -> str:
        return str(self.cause)


class PolicyNotFoundError(ResolveError):
    """The remote service has no policy for the key."""

    kind = ResolveErrorKind.NOT_FOUND


class AmbiguousResultError(ResolveError):
    """The remote service returned more than one candidate for the key."""

    kind = ResolveErrorKind.AMBIGUOUS_RESULT

    def __init__(self, key: LookupKey, count: int):
        self.count = int(count)
        super().__init__(key, f"expected 1 lifecycle policy, remote returned {self.count}")


class DocumentSerializationError(ResolveError):
    """
    The policy document could not be serialized.

    `partial` holds the record with every other field populated. The lookup is
    still a failure; callers must not persist `partial` as if it were complete.
    """

    kind = ResolveErrorKind.DOCUMENT_SERIALIZATION_FAILED

    def __init__(self, key: LookupKey, cause: Union[str, BaseException], *, partial: PolicyRecord):
        self.partial = partial
        super().__init__(key, cause)

    def cause_text(self) -> str:
        return f"serializing policy document: {self.cause}"


class TransportError(ResolveError):
    """Network, timeout or authentication failure reported by the remote client."""

    kind = ResolveErrorKind.TRANSPORT_ERROR


class RemoteServiceError(ResolveError):
    """The remote service rejected the request or answered with a malformed record."""

    kind = ResolveErrorKind.REMOTE_SERVICE_ERROR
