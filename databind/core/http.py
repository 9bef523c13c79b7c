import io
import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Mapping, Sequence, Tuple
from urllib.parse import parse_qsl

from fastapi import Request
from python_multipart import parse_form as parse_multipart


logger = logging.getLogger(__name__)

MIME_APPLICATION_JSON = "application/json"
MIME_APPLICATION_XML = "application/xml"
MIME_TEXT_XML = "text/xml"
MIME_APPLICATION_FORM = "application/x-www-form-urlencoded"
MIME_MULTIPART_FORM = "multipart/form-data"


@dataclass
class RequestData:
    """Transport-independent description of an incoming request.

    ``query`` maps names to every value in order, ``path_params`` holds one
    value per name.
    """

    content_length: int = 0
    content_type: str = ""
    body: BinaryIO = field(default_factory=io.BytesIO)
    query: Mapping[str, Sequence[str]] = field(default_factory=dict)
    path_params: Sequence[Tuple[str, str]] = ()

    def read_body(self) -> bytes:
        """Read the whole body and put a fresh reader back so it can be read again."""
        try:
            data = self.body.read()
        except OSError as e:
            raise RuntimeError(f"fail to read body: {e}") from e
        self.body = io.BytesIO(data)
        return data


def _append(values: Dict[str, List[str]], pairs) -> None:
    for key, value in pairs:
        values.setdefault(key, []).append(value)


def parse_form(request: RequestData, body: bytes) -> Dict[str, List[str]]:
    """Parse a form body into a name -> values map.

    Query values are merged in as well: after the body values for URL-encoded
    forms, before them for multipart forms. File parts are not included.

    Raises:
        ValueError: the body is not valid UTF-8 or the multipart stream is malformed.
    """
    values: Dict[str, List[str]] = {}
    query_pairs = [(key, value) for key, items in request.query.items() for value in items]

    if request.content_type.startswith(MIME_MULTIPART_FORM):
        _append(values, query_pairs)
        fields: List[Tuple[str, str]] = []

        def on_field(part) -> None:
            name = part.field_name.decode("utf-8")
            fields.append((name, (part.value or b"").decode("utf-8")))

        headers = {"Content-Type": request.content_type, "Content-Length": str(len(body))}
        parse_multipart(headers, io.BytesIO(body), on_field, lambda part: None)
        _append(values, fields)
    else:
        _append(values, parse_qsl(body.decode("utf-8"), keep_blank_values=True, errors="strict"))
        _append(values, query_pairs)
    return values


async def read_request(request: Request) -> RequestData:
    """Describe a Starlette/FastAPI request for the binder.

    The body is awaited once; Starlette caches it so handlers can read it again.
    """
    body = await request.body()
    try:
        content_length = int(request.headers.get("content-length", len(body)))
    except ValueError:
        logger.warning(f"Invalid Content-Length header on {request.method} {request.url.path}")
        content_length = len(body)

    query: Dict[str, List[str]] = {}
    _append(query, request.query_params.multi_items())

    return RequestData(
        content_length=content_length,
        content_type=request.headers.get("content-type", ""),
        body=io.BytesIO(body),
        query=query,
        path_params=[(name, str(value)) for name, value in request.path_params.items()],
    )
