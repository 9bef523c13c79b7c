"""Field-by-field binding of string multimaps onto records.

Used for form bodies, query strings and path parameters. Each namespace
resolves source names from its own field tag and falls back to the field
name, matched exactly first and case-insensitively second.
"""

import dataclasses
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional, Sequence

from .coercion import coerce
from .errors import BindingTargetError
from .typeinfo import Kind, Ref, TypeInfo, describe, field_types, is_record, settable, zero_value
from .unmarshal import is_unmarshaler, try_unmarshal


@dataclass
class FieldDescriptor:
    name: str
    annotation: Any
    info: TypeInfo
    tags: Mapping[str, str]

    def tag(self, namespace: str) -> str:
        return self.tags.get(namespace, "") or ""

    @property
    def is_nested_record(self) -> bool:
        return self.info.kind is Kind.STRUCT and not is_unmarshaler(self.annotation)

    @property
    def sequence_elem(self) -> Optional[Any]:
        """Element annotation for ``list[T]`` and ``Optional[list[T]]`` fields."""
        if self.info.kind is Kind.SLICE:
            return self.info.elem
        if self.info.kind is Kind.PTR:
            inner = describe(self.info.elem)
            if inner.kind is Kind.SLICE:
                return inner.elem
        return None


def describe_fields(record: Any) -> Iterator[FieldDescriptor]:
    """Yield descriptors for the settable fields of ``record`` in declaration order."""
    types = field_types(type(record))
    for f in dataclasses.fields(record):
        if not settable(record, f):
            continue
        annotation = types[f.name]
        yield FieldDescriptor(f.name, annotation, describe(annotation), f.metadata)


def lookup(data: Mapping[str, Sequence[str]], name: str) -> Optional[Sequence[str]]:
    if name in data:
        return data[name]
    lowered = name.lower()
    for key, values in data.items():
        if key.lower() == lowered:
            return values
    return None


def bind_data(target: Any, data: Mapping[str, Sequence[str]], tag: str) -> None:
    """Populate ``target`` from ``data`` using the ``tag`` namespace.

    Mapping targets receive the first value of every entry. Missing source
    values are skipped. The first failing field raises and leaves earlier
    fields bound.

    Raises:
        BindingTargetError: ``target`` is neither a record nor a mapping.
        NumError: a scalar value could not be parsed.
        UnknownTypeError: a field type has no text conversion.
    """
    if target is None or not data:
        return

    if isinstance(target, MutableMapping):
        for key, values in data.items():
            target[key] = values[0]
        return

    if not is_record(target):
        raise BindingTargetError()

    for field in describe_fields(target):
        ref = Ref(target, field.name)
        input_name = field.tag(tag)
        if not input_name:
            input_name = field.name
            if field.is_nested_record:
                bind_data(ref.ensure_initialized(field.annotation), data, tag)
                continue

        values = lookup(data, input_name)
        if not values:
            continue

        if try_unmarshal(field.annotation, values[0], ref):
            continue

        elem = field.sequence_elem
        if elem is not None:
            ref.set(_build_sequence(elem, values))
        else:
            coerce(field.annotation, values[0], ref)


def _build_sequence(elem: Any, values: Sequence[str]) -> List[Any]:
    items = [zero_value(elem) for _ in values]
    for index, value in enumerate(values):
        coerce(elem, value, Ref(items, index))
    return items
