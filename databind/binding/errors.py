"""Exceptions raised by the binding engine.

Input problems are ``ValueError`` subclasses, target-shape problems are
``TypeError`` subclasses. None of them carry an HTTP status; the router wraps
them into ``BindingError`` envelopes.
"""

from typing import Optional


class NumError(ValueError):
    """A scalar token could not be parsed."""

    SYNTAX = "invalid syntax"
    RANGE = "value out of range"

    def __init__(self, func: str, num: str, reason: str):
        self.func = func
        self.num = num
        self.reason = reason
        super().__init__(f'{func}: parsing "{num}": {reason}')


class UnknownTypeError(TypeError):
    def __init__(self, message: str = "unknown type"):
        super().__init__(message)


class BindingTargetError(TypeError):
    def __init__(self, message: str = "binding element must be a struct"):
        super().__init__(message)


class UnmarshalTypeError(ValueError):
    """A JSON value does not fit the annotated field type."""

    def __init__(self, value: str, expected: str, field: Optional[str] = None, offset: int = 0):
        self.value = value
        self.expected = expected
        self.field = field
        self.offset = offset
        if field:
            message = f"cannot unmarshal {value} into field {field} of type {expected}"
        else:
            message = f"cannot unmarshal {value} into value of type {expected}"
        super().__init__(message)


class UnmarshalError(ValueError):
    """A custom unmarshal hook rejected its input; the hook's exception is the cause."""


class UnsupportedTypeError(TypeError):
    """The XML decoder cannot populate values of this type."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"xml: unsupported type: {type_name}")
