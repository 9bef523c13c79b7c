"""Runtime shape inspection for binding targets.

Targets are dataclass instances. Each field's annotation is resolved to a
``TypeInfo`` describing its kind, bit width and element type, and zero values
are built from the same information.
"""

import dataclasses
import enum
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import MISSING, dataclass
from types import UnionType
from typing import Any, Dict, List, NewType, Union, get_args, get_origin, get_type_hints


Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Uint = NewType("Uint", int)
Uint8 = NewType("Uint8", int)
Uint16 = NewType("Uint16", int)
Uint32 = NewType("Uint32", int)
Uint64 = NewType("Uint64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)


class Kind(enum.Enum):
    INT = "int"
    UINT = "uint"
    BOOL = "bool"
    FLOAT = "float"
    STRING = "string"
    PTR = "ptr"
    SLICE = "slice"
    MAP = "map"
    STRUCT = "struct"
    INTERFACE = "interface"
    OTHER = "other"


# NewType aliases carry their width; bits=0 means unbounded.
_SIZED = {
    Int8: (Kind.INT, 8),
    Int16: (Kind.INT, 16),
    Int32: (Kind.INT, 32),
    Int64: (Kind.INT, 64),
    Uint: (Kind.UINT, 0),
    Uint8: (Kind.UINT, 8),
    Uint16: (Kind.UINT, 16),
    Uint32: (Kind.UINT, 32),
    Uint64: (Kind.UINT, 64),
    Float32: (Kind.FLOAT, 32),
    Float64: (Kind.FLOAT, 64),
}

_SEQUENCE_ORIGINS = (list, List, Sequence, MutableSequence)
_MAPPING_ORIGINS = (dict, Dict, Mapping, MutableMapping)


@dataclass(frozen=True)
class TypeInfo:
    kind: Kind
    annotation: Any
    bits: int = 0
    elem: Any = None


def describe(annotation: Any) -> TypeInfo:
    """Resolve an annotation to its binding kind."""
    origin = get_origin(annotation)
    if origin is Union or origin is UnionType:
        args = get_args(annotation)
        present = [a for a in args if a is not type(None)]
        if len(present) == 1 and len(args) == 2:
            return TypeInfo(Kind.PTR, annotation, elem=present[0])
        return TypeInfo(Kind.OTHER, annotation)
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(annotation)
        return TypeInfo(Kind.SLICE, annotation, elem=args[0] if args else Any)
    if origin in _MAPPING_ORIGINS:
        args = get_args(annotation)
        return TypeInfo(Kind.MAP, annotation, elem=args[1] if len(args) == 2 else Any)

    if annotation is Any:
        return TypeInfo(Kind.INTERFACE, annotation)
    if hasattr(annotation, "__supertype__"):
        if annotation in _SIZED:
            kind, bits = _SIZED[annotation]
            return TypeInfo(kind, annotation, bits)
        info = describe(annotation.__supertype__)
        return TypeInfo(info.kind, annotation, info.bits, info.elem)
    if annotation is bool:
        return TypeInfo(Kind.BOOL, annotation)
    if annotation is int:
        return TypeInfo(Kind.INT, annotation)
    if annotation is float:
        return TypeInfo(Kind.FLOAT, annotation, 64)
    if annotation is str:
        return TypeInfo(Kind.STRING, annotation)
    if annotation is list:
        return TypeInfo(Kind.SLICE, annotation, elem=Any)
    if annotation is dict:
        return TypeInfo(Kind.MAP, annotation, elem=Any)
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return TypeInfo(Kind.STRUCT, annotation)
    return TypeInfo(Kind.OTHER, annotation)


def type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or repr(annotation)


def is_record(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def field_types(record_type: type) -> Dict[str, Any]:
    """Return resolved annotations for a dataclass type, falling back to the raw ``Field.type``."""
    hints = get_type_hints(record_type)
    return {f.name: hints.get(f.name, f.type) for f in dataclasses.fields(record_type)}


def settable(record: Any, field: dataclasses.Field) -> bool:
    if field.name.startswith("_"):
        return False
    params = getattr(type(record), "__dataclass_params__", None)
    return not (params is not None and params.frozen)


def zero_value(annotation: Any) -> Any:
    """Build the empty value of ``annotation``: 0, "", False, [], {}, None or a zeroed record."""
    info = describe(annotation)
    if info.kind in (Kind.INT, Kind.UINT):
        return 0
    if info.kind is Kind.FLOAT:
        return 0.0
    if info.kind is Kind.BOOL:
        return False
    if info.kind is Kind.STRING:
        return ""
    if info.kind is Kind.SLICE:
        return []
    if info.kind is Kind.MAP:
        return {}
    if info.kind in (Kind.PTR, Kind.INTERFACE):
        return None
    if info.kind is Kind.STRUCT:
        return new_record(annotation)
    if isinstance(annotation, type):
        return annotation()
    return None


def new_record(record_type: type) -> Any:
    """Instantiate a dataclass, filling fields that have no default with zero values."""
    types = field_types(record_type)
    kwargs = {}
    for f in dataclasses.fields(record_type):
        if not f.init:
            continue
        if f.default is MISSING and f.default_factory is MISSING:
            kwargs[f.name] = zero_value(types[f.name])
    return record_type(**kwargs)


def tagged(default: Any = MISSING, *, default_factory: Any = MISSING, **tags: str) -> Any:
    """Declare a dataclass field with per-namespace source names.

    ``city: str = tagged("", query="city", json="city")``
    """
    return dataclasses.field(default=default, default_factory=default_factory, metadata=tags)


class Ref:
    """An addressable slot: a record attribute, a list index or a mapping key."""

    __slots__ = ("owner", "key")

    def __init__(self, owner: Any, key: Any):
        self.owner = owner
        self.key = key

    def _indexed(self) -> bool:
        return isinstance(self.owner, (MutableSequence, MutableMapping))

    def get(self) -> Any:
        if self._indexed():
            return self.owner[self.key]
        return getattr(self.owner, self.key)

    def set(self, value: Any) -> None:
        if self._indexed():
            self.owner[self.key] = value
        else:
            setattr(self.owner, self.key, value)

    def ensure_initialized(self, annotation: Any) -> Any:
        """Fill an unset slot with a fresh zero value of ``annotation`` and return the slot's value."""
        current = self.get()
        if current is None:
            current = zero_value(annotation)
            self.set(current)
        return current

    def __repr__(self) -> str:
        return f"Ref({type(self.owner).__name__}, {self.key!r})"
