"""Whole-body decoders for JSON and XML payloads.

Both decode into an existing record in place. JSON keys map to the ``json``
field tag (or the field name, case-insensitively); XML elements and
attributes map to the ``xml`` tag.
"""

import dataclasses
import json
from collections.abc import MutableMapping
from json.decoder import WHITESPACE, scanstring
from json.scanner import NUMBER_RE
from typing import Any, List, NamedTuple, Optional, Tuple

from defusedxml import ElementTree

from .coercion import parse_bool, parse_float, parse_int, parse_uint
from .errors import UnmarshalTypeError, UnsupportedTypeError
from .typeinfo import Kind, Ref, describe, field_types, is_record, settable, type_name, zero_value
from .unmarshal import is_text_unmarshaler, unmarshal_text


class _Node(NamedTuple):
    """A JSON value with its character span in the document.

    ``value`` is the Python value for null/bool/string, the literal text for
    numbers, a list of nodes for arrays and a list of ``(key, node)`` pairs
    for objects.
    """

    kind: str
    value: Any
    start: int
    end: int


_LITERALS = (("null", None), ("true", True), ("false", False))


def _skip(text: str, pos: int) -> int:
    return WHITESPACE.match(text, pos).end()


def _scan(text: str, pos: int) -> _Node:
    # Only called on text json.loads has already accepted.
    pos = _skip(text, pos)
    char = text[pos]
    if char == '"':
        value, end = scanstring(text, pos + 1)
        return _Node("string", value, pos, end)
    if char == "{":
        pairs: List[Tuple[str, _Node]] = []
        end = _skip(text, pos + 1)
        if text[end] == "}":
            return _Node("object", pairs, pos, end + 1)
        while True:
            key, end = scanstring(text, end + 1)
            item = _scan(text, _skip(text, end) + 1)
            pairs.append((key, item))
            end = _skip(text, item.end)
            if text[end] == "}":
                return _Node("object", pairs, pos, end + 1)
            end = _skip(text, end + 1)
    if char == "[":
        items: List[_Node] = []
        end = _skip(text, pos + 1)
        if text[end] == "]":
            return _Node("array", items, pos, end + 1)
        while True:
            item = _scan(text, end)
            items.append(item)
            end = _skip(text, item.end)
            if text[end] == "]":
                return _Node("array", items, pos, end + 1)
            end += 1
    for literal, value in _LITERALS:
        if text.startswith(literal, pos):
            return _Node("null" if value is None else "bool", value, pos, pos + len(literal))
    match = NUMBER_RE.match(text, pos)
    return _Node("number", match.group(), pos, match.end())


def _is_integer_literal(literal: str) -> bool:
    return not any(c in literal for c in ".eE")


def _plain(node: _Node) -> Any:
    if node.kind == "object":
        return {key: _plain(item) for key, item in node.value}
    if node.kind == "array":
        return [_plain(item) for item in node.value]
    if node.kind == "number":
        return int(node.value) if _is_integer_literal(node.value) else float(node.value)
    return node.value


def _json_kind(node: _Node) -> str:
    if node.kind == "number":
        return f"number {node.value}"
    return node.kind


def _json_names(record: Any) -> List[Tuple[str, dataclasses.Field]]:
    names = []
    for f in dataclasses.fields(record):
        if not settable(record, f):
            continue
        name = (f.metadata.get("json") or "").split(",")[0]
        if name == "-":
            continue
        names.append((name or f.name, f))
    return names


class JSONDecoder:
    """Apply a parsed JSON document to a target.

    Type mismatches do not stop decoding; the first one is raised once the
    whole document has been applied. Its offset is the UTF-8 byte position
    just past the offending value, or just past the opening bracket of an
    array or object.
    """

    def __init__(self):
        self.first_error: Optional[UnmarshalTypeError] = None
        self.text = ""

    def decode(self, body: bytes, target: Any) -> None:
        self.text = body.decode("utf-8")
        json.loads(self.text, parse_constant=_reject_constant)
        root = _scan(self.text, 0)
        if isinstance(target, MutableMapping):
            if root.kind == "object":
                target.update(_plain(root))
            elif root.kind != "null":
                self._mismatch(root, type(target))
        elif is_record(target):
            if root.kind == "object":
                self._decode_record(target, root, "")
            elif root.kind != "null":
                self._mismatch(root, type(target))
        else:
            self._mismatch(root, type(target))
        if self.first_error is not None:
            raise self.first_error

    def _mismatch(self, node: _Node, annotation: Any, path: str = "") -> None:
        if self.first_error is not None:
            return
        pos = node.start + 1 if node.kind in ("array", "object") else node.end
        offset = len(self.text[:pos].encode("utf-8"))
        self.first_error = UnmarshalTypeError(_json_kind(node), type_name(annotation), path or None, offset)

    def _decode_record(self, record: Any, node: _Node, path: str) -> None:
        names = _json_names(record)
        types = field_types(type(record))
        for key, item in node.value:
            match = next((f for name, f in names if name == key), None)
            if match is None:
                lowered = key.lower()
                match = next((f for name, f in names if name.lower() == lowered), None)
            if match is None:
                continue
            field_path = f"{path}.{key}" if path else key
            self._decode_value(types[match.name], item, Ref(record, match.name), field_path)

    def _decode_value(self, annotation: Any, node: _Node, ref: Ref, path: str) -> None:
        info = describe(annotation)

        if info.kind is Kind.PTR:
            if node.kind == "null":
                ref.set(None)
                return
            ref.ensure_initialized(info.elem)
            self._decode_value(info.elem, node, ref, path)
            return
        if info.kind is Kind.INTERFACE:
            ref.set(_plain(node))
            return
        if node.kind == "null":
            return

        if is_text_unmarshaler(annotation):
            if node.kind != "string":
                self._mismatch(node, annotation, path)
                return
            unmarshal_text(ref.ensure_initialized(annotation), node.value.encode("utf-8"))
            return

        if info.kind is Kind.BOOL:
            if node.kind == "bool":
                ref.set(node.value)
            else:
                self._mismatch(node, annotation, path)
        elif info.kind in (Kind.INT, Kind.UINT):
            if node.kind == "number" and _is_integer_literal(node.value) and _fits(info.kind, info.bits, int(node.value)):
                ref.set(int(node.value))
            else:
                self._mismatch(node, annotation, path)
        elif info.kind is Kind.FLOAT:
            if node.kind != "number":
                self._mismatch(node, annotation, path)
                return
            try:
                ref.set(parse_float(node.value, info.bits))
            except ValueError:
                self._mismatch(node, annotation, path)
        elif info.kind is Kind.STRING:
            if node.kind == "string":
                ref.set(node.value)
            else:
                self._mismatch(node, annotation, path)
        elif info.kind is Kind.SLICE:
            if node.kind != "array":
                self._mismatch(node, annotation, path)
                return
            items = [zero_value(info.elem) for _ in node.value]
            for index, item in enumerate(node.value):
                self._decode_value(info.elem, item, Ref(items, index), f"{path}[{index}]")
            ref.set(items)
        elif info.kind is Kind.MAP:
            if node.kind != "object":
                self._mismatch(node, annotation, path)
                return
            mapping = ref.ensure_initialized(annotation)
            for key, item in node.value:
                if key not in mapping:
                    mapping[key] = zero_value(info.elem)
                self._decode_value(info.elem, item, Ref(mapping, key), f"{path}.{key}")
        elif info.kind is Kind.STRUCT:
            if node.kind != "object":
                self._mismatch(node, annotation, path)
                return
            self._decode_record(ref.ensure_initialized(annotation), node, path)
        else:
            self._mismatch(node, annotation, path)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def _fits(kind: Kind, bits: int, value: int) -> bool:
    if kind is Kind.UINT:
        return value >= 0 and (not bits or value < 1 << bits)
    if not bits:
        return True
    limit = 1 << (bits - 1)
    return -limit <= value < limit


def decode_json(body: bytes, target: Any) -> None:
    """Decode a JSON document into ``target``.

    Raises:
        json.JSONDecodeError: the body is not valid JSON.
        UnicodeDecodeError: the body is not UTF-8.
        UnmarshalTypeError: a value does not fit its field.
        UnmarshalError: a field's ``unmarshal_text`` hook failed.
    """
    JSONDecoder().decode(body, target)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _xml_tag(field: dataclasses.Field) -> Tuple[str, List[str]]:
    name, *options = (field.metadata.get("xml") or "").split(",")
    return name or field.name, options


def _char_data(element: Any) -> str:
    return (element.text or "") + "".join(child.tail or "" for child in element)


def _decode_xml_text(annotation: Any, text: str, ref: Ref) -> None:
    info = describe(annotation)
    if info.kind is Kind.PTR:
        ref.ensure_initialized(info.elem)
        _decode_xml_text(info.elem, text, ref)
        return
    if is_text_unmarshaler(annotation):
        unmarshal_text(ref.ensure_initialized(annotation), text.encode("utf-8"))
        return

    stripped = text.strip()
    if info.kind is Kind.INT:
        ref.set(parse_int(stripped, info.bits) if stripped else 0)
    elif info.kind is Kind.UINT:
        ref.set(parse_uint(stripped, info.bits) if stripped else 0)
    elif info.kind is Kind.FLOAT:
        ref.set(parse_float(stripped, info.bits) if stripped else 0.0)
    elif info.kind is Kind.BOOL:
        ref.set(parse_bool(stripped) if stripped else False)
    elif info.kind in (Kind.STRING, Kind.INTERFACE):
        ref.set(text)
    else:
        raise UnsupportedTypeError(type_name(annotation))


def _decode_xml_element(annotation: Any, element: Any, ref: Ref) -> None:
    info = describe(annotation)
    if info.kind is Kind.PTR:
        ref.ensure_initialized(info.elem)
        _decode_xml_element(info.elem, element, ref)
    elif info.kind is Kind.STRUCT and not is_text_unmarshaler(annotation):
        _decode_xml_record(ref.ensure_initialized(annotation), element)
    elif info.kind is Kind.SLICE:
        items = ref.get()
        if items is None:
            items = []
            ref.set(items)
        items.append(zero_value(info.elem))
        _decode_xml_element(info.elem, element, Ref(items, len(items) - 1))
    else:
        _decode_xml_text(annotation, _char_data(element), ref)


def _decode_xml_record(record: Any, element: Any) -> None:
    types = field_types(type(record))
    for f in dataclasses.fields(record):
        if not settable(record, f):
            continue
        name, options = _xml_tag(f)
        if name == "-":
            continue
        annotation = types[f.name]
        if describe(annotation).kind is Kind.MAP:
            raise UnsupportedTypeError(type_name(annotation))
        ref = Ref(record, f.name)
        if "attr" in options:
            value = element.get(name)
            if value is not None:
                _decode_xml_text(annotation, value, ref)
        elif "chardata" in options:
            _decode_xml_text(annotation, _char_data(element), ref)
        else:
            for child in element:
                if _local_name(child.tag) == name:
                    _decode_xml_element(annotation, child, ref)


def decode_xml(body: bytes, target: Any) -> None:
    """Decode an XML document into the record ``target``; the root element name is not checked.

    Raises:
        xml.etree.ElementTree.ParseError: the body is not well-formed XML.
        UnsupportedTypeError: the target or one of its fields cannot hold XML data.
        NumError: numeric or bool text could not be parsed.
    """
    if not is_record(target):
        raise UnsupportedTypeError(type_name(type(target)))
    root = ElementTree.fromstring(body)
    _decode_xml_record(target, root)
