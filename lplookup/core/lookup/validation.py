from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .errors import FieldViolation, KeyValidationError, ViolationKind
from .types import NAME_MAX_LENGTH, NAME_MIN_LENGTH, LifecyclePolicyType, LookupKey


@dataclass(frozen=True)
class KeyValidationResult:
    """Outcome of validate_lookup_key.

    `key` is set only when there are no violations.
    """

    key: Optional[LookupKey]
    violations: Tuple[FieldViolation, ...] = ()
    raw_name: Any = None
    raw_type: Any = None

    @property
    def ok(self) -> bool:
        return self.key is not None and not self.violations

    def raise_for_violations(self) -> LookupKey:
        """Return the validated key or raise KeyValidationError with every violation."""

        if not self.ok or self.key is None:
            raise KeyValidationError(self.violations, name=self.raw_name, type=self.raw_type)
        return self.key


def check_name(name: Any) -> Optional[FieldViolation]:
    if isinstance(name, str) and NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        return None
    got = f"got {len(name)}" if isinstance(name, str) else f"got {type(name).__name__}"
    return FieldViolation(
        field="name",
        kind=ViolationKind.LENGTH_OUT_OF_RANGE,
        message=f"name length must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters, {got}",
    )


def check_type(raw_type: Any) -> Tuple[Optional[LifecyclePolicyType], Optional[FieldViolation]]:
    parsed = LifecyclePolicyType.parse(raw_type)
    if parsed is not None:
        return parsed, None
    allowed = ", ".join(LifecyclePolicyType.values())
    return None, FieldViolation(
        field="type",
        kind=ViolationKind.UNKNOWN_ENUM_VALUE,
        message=f"type must be one of [{allowed}], got {raw_type!r}",
    )


def validate_lookup_key(name: Any, type: Any) -> KeyValidationResult:
    """Validate a raw (name, type) pair.

    Both constraints are always checked so the caller sees every problem at
    once. Pure: no I/O, never raises for bad input.
    """

    violations: List[FieldViolation] = []

    name_violation = check_name(name)
    if name_violation is not None:
        violations.append(name_violation)

    policy_type, type_violation = check_type(type)
    if type_violation is not None:
        violations.append(type_violation)

    if violations or policy_type is None:
        return KeyValidationResult(
            key=None, violations=tuple(violations), raw_name=name, raw_type=type
        )
    return KeyValidationResult(
        key=LookupKey(name=name, type=policy_type), raw_name=name, raw_type=type
    )
