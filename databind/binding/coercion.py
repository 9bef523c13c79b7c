"""Conversion of single text tokens into scalar field values."""

import math
import re
import struct
from typing import Any

from .errors import NumError, UnknownTypeError
from .typeinfo import Kind, Ref, describe
from .unmarshal import try_unmarshal


_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")
_DECIMAL = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_SPECIAL_FLOATS = {"inf", "+inf", "-inf", "infinity", "+infinity", "-infinity", "nan"}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_FLOAT32_MAX = 3.4028234663852886e38


def parse_int(value: str, bits: int = 0) -> int:
    """Parse a base-10 signed integer; ``bits`` of 0 means unbounded."""
    if not _SIGNED.fullmatch(value):
        raise NumError("parse_int", value, NumError.SYNTAX)
    number = int(value)
    if bits:
        limit = 1 << (bits - 1)
        if not -limit <= number < limit:
            raise NumError("parse_int", value, NumError.RANGE)
    return number


def parse_uint(value: str, bits: int = 0) -> int:
    if not _UNSIGNED.fullmatch(value):
        raise NumError("parse_uint", value, NumError.SYNTAX)
    number = int(value)
    if bits and number >= 1 << bits:
        raise NumError("parse_uint", value, NumError.RANGE)
    return number


def parse_bool(value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise NumError("parse_bool", value, NumError.SYNTAX)


def parse_float(value: str, bits: int = 64) -> float:
    """Parse a decimal float, rounding to single precision when ``bits`` is 32."""
    special = value.lower() in _SPECIAL_FLOATS
    if not special and not _DECIMAL.fullmatch(value):
        raise NumError("parse_float", value, NumError.SYNTAX)
    number = float(value)
    if math.isinf(number) and not special:
        raise NumError("parse_float", value, NumError.RANGE)
    if bits == 32 and math.isfinite(number):
        if abs(number) > _FLOAT32_MAX:
            raise NumError("parse_float", value, NumError.RANGE)
        number = struct.unpack("f", struct.pack("f", number))[0]
    return number


def coerce(annotation: Any, value: str, ref: Ref) -> None:
    """Store ``value`` converted to ``annotation`` into the slot behind ``ref``.

    Empty input stands for the zero value of numeric and bool kinds. Parse
    errors are raised as ``NumError`` without further wrapping.
    """
    if try_unmarshal(annotation, value, ref):
        return

    info = describe(annotation)
    if info.kind is Kind.PTR:
        coerce(info.elem, value, ref)
    elif info.kind is Kind.INT:
        ref.set(parse_int(value or "0", info.bits))
    elif info.kind is Kind.UINT:
        ref.set(parse_uint(value or "0", info.bits))
    elif info.kind is Kind.BOOL:
        ref.set(parse_bool(value or "false"))
    elif info.kind is Kind.FLOAT:
        ref.set(parse_float(value or "0.0", info.bits))
    elif info.kind is Kind.STRING:
        ref.set(value)
    else:
        raise UnknownTypeError()
