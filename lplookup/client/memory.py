from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .protocol import BatchGetLifecyclePolicyOutput

NOT_FOUND_CODE = "ResourceNotFoundException"


class InMemoryLifecyclePolicyClient:
    """Client backed by a fixed list of remote-shaped records.

    Matches on exact name and case-insensitive type, like the remote service.
    Misses produce a ResourceNotFoundException error entry.

    `calls` records every identifier batch, for tests.
    """

    def __init__(self, details: Iterable[Mapping[str, Any]] = ()):
        self.details: List[Mapping[str, Any]] = list(details)
        self.calls: List[Dict[str, Any]] = []

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryLifecyclePolicyClient":
        """Load records from a JSON file.

        Accepts either a list of records or a BatchGetLifecyclePolicy response
        object with `lifecyclePolicyDetails`.
        """

        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(raw, Mapping):
            raw = raw.get("lifecyclePolicyDetails", [])
        if not isinstance(raw, list):
            raise ValueError("fixture must be a list of lifecycle policy records")
        return cls(x for x in raw if isinstance(x, Mapping))

    def batch_get_lifecycle_policy(
        self,
        identifiers: Sequence[Mapping[str, str]],
        *,
        timeout_seconds: Optional[float] = None,
    ) -> BatchGetLifecyclePolicyOutput:
        self.calls.append(
            {"identifiers": [dict(i) for i in identifiers], "timeout_seconds": timeout_seconds}
        )
        found: List[Mapping[str, Any]] = []
        errors: List[Mapping[str, Any]] = []
        for ident in identifiers:
            name = ident.get("name")
            ptype = str(ident.get("type") or "").casefold()
            matches = [
                d
                for d in self.details
                if d.get("name") == name and str(d.get("type") or "").casefold() == ptype
            ]
            if matches:
                found.extend(matches)
            else:
                errors.append(
                    {
                        "name": name,
                        "type": ident.get("type"),
                        "errorCode": NOT_FOUND_CODE,
                        "errorMessage": f"Lifecycle policy {name} not found",
                    }
                )
        return BatchGetLifecyclePolicyOutput(details=tuple(found), errors=tuple(errors))
