"""Entry point of the binder: picks the body decoder by content type, then
binds query and path parameters onto the same target."""

import json
from typing import Any
from xml.etree.ElementTree import ParseError

from ..core.errors import bad_request, unsupported_media_type
from ..core.http import (
    MIME_APPLICATION_FORM,
    MIME_APPLICATION_JSON,
    MIME_APPLICATION_XML,
    MIME_MULTIPART_FORM,
    MIME_TEXT_XML,
    RequestData,
    parse_form,
)
from .decoders import decode_json, decode_xml
from .errors import UnmarshalTypeError, UnsupportedTypeError
from .fields import bind_data
from .typeinfo import is_record


def bind(target: Any, request: RequestData) -> None:
    """Populate ``target`` from the body, query string and path of ``request``.

    Raises:
        BindingError: 400 for malformed input, 415 for an unsupported content type.
    """
    if request.content_length > 0:
        content_type = request.content_type or MIME_APPLICATION_JSON
        body = request.read_body()
        if content_type.startswith(MIME_APPLICATION_JSON):
            _bind_json(target, body)
        elif content_type.startswith((MIME_APPLICATION_XML, MIME_TEXT_XML)):
            _bind_xml(target, body)
        elif content_type.startswith((MIME_APPLICATION_FORM, MIME_MULTIPART_FORM)):
            _bind_form(target, request, body)
        else:
            raise unsupported_media_type()

    if is_record(target):
        _bind_namespace(target, request.query, "query")
        params = {name: [value] for name, value in request.path_params}
        _bind_namespace(target, params, "param")


def _bind_json(target: Any, body: bytes) -> None:
    try:
        decode_json(body, target)
    except UnmarshalTypeError as e:
        raise bad_request(f"Unmarshal type error: expected={e.expected}, got={e.value}, field={e.field}, offset={e.offset}", e) from e
    except json.JSONDecodeError as e:
        offset = len(e.doc[: e.pos].encode("utf-8"))
        raise bad_request(f"Syntax error: offset={offset}, error={e}", e) from e
    except (ValueError, TypeError) as e:
        raise bad_request(str(e), e) from e


def _bind_xml(target: Any, body: bytes) -> None:
    try:
        decode_xml(body, target)
    except UnsupportedTypeError as e:
        raise bad_request(f"Unsupported type error: type={e.type_name}, error={e}", e) from e
    except ParseError as e:
        line, _ = e.position
        raise bad_request(f"Syntax error: line={line}, error={e}", e) from e
    except (ValueError, TypeError) as e:
        raise bad_request(str(e), e) from e


def _bind_form(target: Any, request: RequestData, body: bytes) -> None:
    try:
        values = parse_form(request, body)
        bind_data(target, values, "form")
    except (ValueError, TypeError) as e:
        raise bad_request(str(e), e) from e


def _bind_namespace(target: Any, values, tag: str) -> None:
    try:
        bind_data(target, values, tag)
    except (ValueError, TypeError) as e:
        raise bad_request(str(e), e) from e
