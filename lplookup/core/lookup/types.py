from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

NAME_MIN_LENGTH: int = 3
NAME_MAX_LENGTH: int = 32


class LifecyclePolicyType(str, Enum):
    """
    Lifecycle policy types known to the remote service.

    Values are the remote spelling and are what goes over the wire.
    """

    RETENTION = "retention"

    @classmethod
    def values(cls) -> List[str]:
        return [m.value for m in cls]

    @classmethod
    def parse(cls, raw: Any) -> Optional["LifecyclePolicyType"]:
        """Match a raw input against member values, ignoring case.

        Returns None for anything that is not a member (including non-strings).
        """

        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        folded = raw.casefold()
        for member in cls:
            if member.value.casefold() == folded:
                return member
        return None


@dataclass(frozen=True)
class LookupKey:
    """
    Composite key of a lifecycle policy.

    Invariants
    - name length in [NAME_MIN_LENGTH, NAME_MAX_LENGTH]
    - type is a LifecyclePolicyType member (never a free string)

    Prefer validate_lookup_key() for untrusted input; direct construction
    raises on bad values.
    """

    name: str
    type: LifecyclePolicyType

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError("name must be a string")
        if not NAME_MIN_LENGTH <= len(self.name) <= NAME_MAX_LENGTH:
            raise ValueError(
                f"name length must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH}"
            )
        if not isinstance(self.type, LifecyclePolicyType):
            raise TypeError("type must be a LifecyclePolicyType")

    def display_id(self) -> str:
        return f'"{self.name}", {self.type.value}'

    def to_identifier(self) -> Dict[str, str]:
        """Remote request identifier for this key."""

        return {"name": self.name, "type": self.type.value}


@dataclass(frozen=True)
class PolicyRecord:
    """
    Normalized lifecycle policy, built fresh on every successful lookup.

    identifier always equals name. Timestamps are RFC 3339 strings in UTC.
    """

    identifier: str
    name: str
    type: str
    description: Optional[str] = None
    created_at: Optional[str] = None
    last_modified_at: Optional[str] = None
    policy_document: Optional[str] = None
    policy_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "identifier": self.identifier,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "created_at": self.created_at,
            "last_modified_at": self.last_modified_at,
            "policy_document": self.policy_document,
            "policy_version": self.policy_version,
        }
