from __future__ import annotations

from pydantic import BaseModel, Field
from typing import List, Optional


class ViolationOut(BaseModel):
    """One failed lookup-key constraint."""

    field: str
    kind: str
    message: str


class ApiError(BaseModel):
    """Standard API error payload.

    `error` is a stable machine-readable code, `summary` the problem message
    (action, key, cause), `detail` the bare cause.
    """

    error: str
    summary: Optional[str] = None
    detail: Optional[str] = None
    violations: List[ViolationOut] = Field(default_factory=list)


class PolicyRecordOut(BaseModel):
    """Normalized lifecycle policy. `id` mirrors `identifier`."""

    id: str
    identifier: str
    name: str
    description: Optional[str] = None
    type: str
    created_at: Optional[str] = None
    last_modified_at: Optional[str] = None
    policy_document: Optional[str] = None
    policy_version: Optional[str] = None


class PolicyTypesOut(BaseModel):
    types: List[str]
