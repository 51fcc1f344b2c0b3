"""Entity -> API representation mapping.

A transformer declares an ordered tuple of fields. ``transform`` always emits
every declared key in declaration order, coercing each value to a wire-safe
primitive; missing values become the type's zero value, never an omitted key.
Related collections are only added on request through ``includes``.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from invoicing.utils.hashing import IdentifierEncoder
from invoicing.utils.time import to_date_string, to_epoch


class FieldKind(str, enum.Enum):
    ID = "id"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    TIMESTAMP = "timestamp"
    DATE = "date"


@dataclass(frozen=True, slots=True)
class Field:
    key: str
    kind: FieldKind
    source: Optional[str] = None  # entity attribute when it differs from key

    @property
    def attribute(self) -> str:
        return self.source or self.key


class EntityTransformer:
    fields: Tuple[Field, ...] = ()
    available_includes: Tuple[str, ...] = ()

    def __init__(self, encoder: IdentifierEncoder) -> None:
        self.encoder = encoder
        self._coercers: Dict[FieldKind, Callable[[Any], Any]] = {
            FieldKind.ID: self.encoder.encode_optional,
            FieldKind.STRING: _as_string,
            FieldKind.INT: _as_int,
            FieldKind.FLOAT: _as_float,
            FieldKind.BOOL: bool,
            FieldKind.TIMESTAMP: _as_epoch,
            FieldKind.DATE: _as_date,
        }

    def keys(self) -> List[str]:
        return [f.key for f in self.fields]

    def transform(self, entity: Any) -> Dict[str, Any]:
        return {
            f.key: self._coercers[f.kind](getattr(entity, f.attribute, None))
            for f in self.fields
        }

    def include_handlers(self) -> Mapping[str, Callable[[Any], Any]]:
        """Explicit include name -> loader table; subclasses override."""
        return {}

    def transform_with_includes(self, entity: Any, includes: Iterable[str] = ()) -> Dict[str, Any]:
        data = self.transform(entity)
        handlers = self.include_handlers()
        for name in includes:
            if name in self.available_includes and name in handlers:
                data[name] = handlers[name](entity)
        return data


def parse_includes(raw: Optional[str]) -> List[str]:
    """Split the ``include`` query parameter (``a,b``) preserving order, without duplicates."""
    if not raw:
        return []
    seen: List[str] = []
    for part in raw.split(","):
        name = part.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def _as_string(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def _as_epoch(value: Optional[datetime]) -> int:
    return to_epoch(value)


def _as_date(value: Optional[date]) -> str:
    return to_date_string(value)


__all__ = ["EntityTransformer", "Field", "FieldKind", "parse_includes"]
