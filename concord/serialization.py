"""
Serialization helpers for concord result dataclasses.

Results leave the engine as JSON-compatible dictionaries. SerializableMixin
gives dataclasses a ``to_dict()`` that handles:
- Enum → value
- Nested dataclasses → recursive to_dict()
- Mappings → dict with string keys, insertion order kept
- Sets/frozensets → sorted lists (stable output across runs)

Usage:
    from dataclasses import dataclass
    from concord.serialization import SerializableMixin

    @dataclass
    class NodeRow(SerializableMixin):
        node_id: str
        kind: NodeKind

    NodeRow("G1", NodeKind.GOAL).to_dict()
    # {"node_id": "G1", "kind": "Goal"}
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Dict


def serialize_value(value: Any) -> Any:
    """Recursively serialize a value for JSON export.

    Non-finite floats become None so the output is strict JSON.

    Args:
        value: Any value to serialize

    Returns:
        JSON-serializable value
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if is_dataclass(value) and not isinstance(value, type) and hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {str(k): serialize_value(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return [serialize_value(v) for v in sorted(value)]
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


class SerializableMixin:
    """Mixin providing consistent serialization for dataclasses.

    Configuration:
    - _exclude_fields: Tuple of field names to exclude from serialization
    """

    _exclude_fields: ClassVar[tuple[str, ...]] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Raises:
            TypeError: If the class is not a dataclass
        """
        if not is_dataclass(self):
            raise TypeError(f"{self.__class__.__name__} must be a dataclass")

        result: Dict[str, Any] = {}
        for f in fields(self):
            if f.name in self._exclude_fields or f.name.startswith("_"):
                continue
            result[f.name] = serialize_value(getattr(self, f.name))
        return result

    def to_json(self, indent: int | None = None) -> str:
        """Serialize to a JSON string with stable key order."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


__all__ = [
    "SerializableMixin",
    "serialize_value",
]
