from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping


def to_jsonable(obj: Any) -> Any:
    """
    Convert lookup values (records, violations, enums) to JSON-serializable data.

    Objects with a `to_dict()` method are trusted to produce their own public
    shape (PolicyRecord adds `id`, FieldViolation flattens its kind).
    """
    if obj is None or isinstance(obj, (bool, int, float)):
        return obj

    # str enums are also str, so check Enum first
    if isinstance(obj, Enum):
        return to_jsonable(obj.value)

    if isinstance(obj, str):
        return obj

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_jsonable(to_dict())

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return str(obj)
