"""Custom unmarshal hooks.

A field type can take over its own text conversion by implementing one of
two methods on instances:

- ``unmarshal_param(self, value: str)`` for single query/form/path values
- ``unmarshal_text(self, data: bytes)`` for generic text decoding

The hook mutates the instance in place. Whatever it raises is re-raised as
``UnmarshalError`` with the hook's exception as the cause.
"""

from typing import Any, Protocol, runtime_checkable

from .errors import UnmarshalError
from .typeinfo import Kind, Ref, describe


@runtime_checkable
class ParamUnmarshaler(Protocol):
    def unmarshal_param(self, value: str) -> None: ...


@runtime_checkable
class TextUnmarshaler(Protocol):
    def unmarshal_text(self, data: bytes) -> None: ...


def is_unmarshaler(annotation: Any) -> bool:
    if not isinstance(annotation, type):
        return False
    return issubclass(annotation, ParamUnmarshaler) or issubclass(annotation, TextUnmarshaler)


def is_text_unmarshaler(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, TextUnmarshaler)


def try_unmarshal(annotation: Any, value: str, ref: Ref) -> bool:
    """Run a custom hook for the slot behind ``ref`` if its type declares one.

    Optional slots are initialized before the check so the hook has an
    instance to work on.

    Returns:
        True when a hook handled the value.
    """
    info = describe(annotation)
    if info.kind is Kind.PTR:
        ref.ensure_initialized(info.elem)
        return _unmarshal_value(info.elem, value, ref)
    return _unmarshal_value(annotation, value, ref)


def _unmarshal_value(annotation: Any, value: str, ref: Ref) -> bool:
    if not is_unmarshaler(annotation):
        return False
    target = ref.ensure_initialized(annotation)
    try:
        if isinstance(target, ParamUnmarshaler):
            target.unmarshal_param(value)
        else:
            target.unmarshal_text(value.encode("utf-8"))
    except Exception as e:
        raise UnmarshalError(str(e)) from e
    return True


def unmarshal_text(target: TextUnmarshaler, data: bytes) -> None:
    """Run ``target.unmarshal_text``, re-raising any failure as ``UnmarshalError``."""
    try:
        target.unmarshal_text(data)
    except Exception as e:
        raise UnmarshalError(str(e)) from e
