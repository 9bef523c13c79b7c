"""Request binding engine.

Populates dataclass records (or dicts) from JSON/XML bodies, form fields,
query strings and path parameters.
"""

from .coercion import coerce, parse_bool, parse_float, parse_int, parse_uint
from .decoders import decode_json, decode_xml
from .dependency import bind_dependency
from .errors import BindingTargetError, NumError, UnknownTypeError, UnmarshalError, UnmarshalTypeError, UnsupportedTypeError
from .fields import FieldDescriptor, bind_data, describe_fields
from .router import bind
from .typeinfo import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    Ref,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    describe,
    new_record,
    tagged,
    zero_value,
)
from .unmarshal import ParamUnmarshaler, TextUnmarshaler, try_unmarshal

__all__ = [
    "BindingTargetError",
    "FieldDescriptor",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Kind",
    "NumError",
    "ParamUnmarshaler",
    "Ref",
    "TextUnmarshaler",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "UnknownTypeError",
    "UnmarshalError",
    "UnmarshalTypeError",
    "UnsupportedTypeError",
    "bind",
    "bind_data",
    "bind_dependency",
    "coerce",
    "decode_json",
    "decode_xml",
    "describe",
    "describe_fields",
    "new_record",
    "parse_bool",
    "parse_float",
    "parse_int",
    "parse_uint",
    "tagged",
    "try_unmarshal",
    "zero_value",
]
