"""
Conversion of engine value objects into JSON-ready structures.
"""

import dataclasses
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any


def to_jsonable(obj: Any) -> Any:
    """
    Recursively convert dataclasses, enums, datetimes, tuples and sets into
    plain dicts, strings and lists.

    Field order of dataclasses is preserved so serialized output is stable.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_jsonable(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (dict, MappingProxyType)):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(to_jsonable(item) for item in obj)
    return obj
