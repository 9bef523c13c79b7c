import io
import json
from dataclasses import dataclass, field
from typing import List

import pytest

from databind import BindingError, RequestData, bind, tagged
from databind.binding import Float32, NumError, UnmarshalError, UnmarshalTypeError


@dataclass
class Address:
    city: str = tagged("", query="city", form="city", json="city")


@dataclass
class Target:
    id: int = tagged(0, param="id", json="-")
    name: str = tagged("", json="name", form="name", xml="name")
    page: int = tagged(1, query="page", json="-", form="-")
    tags: List[str] = tagged(default_factory=list, query="tag", form="tag", json="tags")
    address: Address = field(default_factory=Address)


class Level:
    def __init__(self):
        self.value = 0

    def unmarshal_param(self, value: str) -> None:
        self.value = {"low": 1, "high": 10}[value]


@dataclass
class Reading:
    level: Level = tagged(default_factory=Level, query="level", form="level")
    score: float = tagged(0.0, json="score")
    ratio: Float32 = tagged(0.0, json="ratio")
    label: str = tagged("", json="label")


class FailingReader(io.RawIOBase):
    def read(self, size=-1):
        raise OSError("connection reset")


def make_request(body: bytes = b"", content_type: str = "", query=None, path_params=(), content_length=None) -> RequestData:
    return RequestData(
        content_length=len(body) if content_length is None else content_length,
        content_type=content_type,
        body=io.BytesIO(body),
        query=query or {},
        path_params=list(path_params),
    )


def test_json_body_query_and_path_all_contribute():
    target = Target()
    request = make_request(
        json.dumps({"name": "Ann", "tags": ["x"]}).encode(),
        "application/json; charset=utf-8",
        query={"page": ["3"], "city": ["NYC"]},
        path_params=[("id", "17")],
    )

    bind(target, request)

    assert target == Target(id=17, name="Ann", page=3, tags=["x"], address=Address("NYC"))


def test_empty_content_type_defaults_to_json():
    target = Target()
    bind(target, make_request(b'{"name": "Ann"}'))
    assert target.name == "Ann"


def test_zero_content_length_skips_body():
    target = Target()
    bind(target, make_request(b"not json", "application/octet-stream", content_length=0, query={"page": ["2"]}))
    assert target.page == 2


def test_body_is_restored_for_later_reads():
    request = make_request(b'{"name": "Ann"}', "application/json")
    bind(Target(), request)
    assert request.body.read() == b'{"name": "Ann"}'


def test_body_read_failure():
    request = RequestData(content_length=5, content_type="application/json", body=FailingReader())
    with pytest.raises(RuntimeError, match="fail to read body: connection reset"):
        bind(Target(), request)


def test_json_type_error_envelope():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request(b'{"name": 5}', "application/json"))

    error = exc_info.value
    assert error.status_code == 400
    assert error.detail == "Unmarshal type error: expected=str, got=number 5, field=name, offset=10"
    assert isinstance(error.internal, UnmarshalTypeError)
    assert error.__cause__ is error.internal


def test_json_syntax_error_envelope_reports_byte_offset():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request('{"name": "é" x}'.encode(), "application/json"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail.startswith("Syntax error: offset=14, error=")
    assert isinstance(exc_info.value.internal, json.JSONDecodeError)


def test_json_generic_decode_error_envelope():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request(b"\xff\xfe", "application/json"))
    assert exc_info.value.status_code == 400
    assert isinstance(exc_info.value.internal, UnicodeDecodeError)


@pytest.mark.parametrize("content_type", ["application/xml", "text/xml; charset=utf-8"])
def test_xml_body(content_type):
    target = Target()
    bind(target, make_request(b"<target><name>Bo</name></target>", content_type, query={"tag": ["q"]}))
    assert target.name == "Bo"
    assert target.tags == ["q"]


def test_xml_syntax_error_envelope():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request(b"<target>\n<name></target>", "application/xml"))
    assert exc_info.value.detail.startswith("Syntax error: line=2, error=")


def test_xml_unsupported_type_envelope():
    with pytest.raises(BindingError) as exc_info:
        bind({}, make_request(b"<a/>", "application/xml"))
    assert exc_info.value.detail.startswith("Unsupported type error: type=dict, error=")


def test_urlencoded_form_body():
    target = Target()
    bind(target, make_request(b"name=Cy&tag=a&tag=b&city=Oslo&page=9", "application/x-www-form-urlencoded"))
    assert target.name == "Cy"
    assert target.tags == ["a", "b"]
    assert target.address.city == "Oslo"
    assert target.page == 1


def test_form_error_is_a_client_error():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request(b"id=abc", "application/x-www-form-urlencoded"))

    assert exc_info.value.status_code == 400
    assert isinstance(exc_info.value.internal, NumError)


def test_multipart_form_body():
    body = (
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="name"\r\n\r\n'
        b"Dee\r\n"
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="tag"\r\n\r\n'
        b"m\r\n"
        b"--XyZ--\r\n"
    )
    target = Target()
    bind(target, make_request(body, "multipart/form-data; boundary=XyZ"))
    assert target.name == "Dee"
    assert target.tags == ["m"]


@pytest.mark.parametrize("content_type", ["application/octet-stream", "text/plain"])
def test_unsupported_media_type_leaves_target_untouched(content_type):
    target = Target()

    with pytest.raises(BindingError) as exc_info:
        bind(target, make_request(b"raw", content_type, query={"page": ["5"]}))

    assert exc_info.value.status_code == 415
    assert exc_info.value.detail == "Unsupported Media Type"
    assert target == Target()


def test_query_error_envelope():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request(query={"page": ["two"]}))
    assert exc_info.value.detail == 'parse_int: parsing "two": invalid syntax'


def test_path_error_envelope():
    with pytest.raises(BindingError) as exc_info:
        bind(Target(), make_request(path_params=[("id", "abc")]))
    assert exc_info.value.status_code == 400


def test_mapping_target_gets_body_but_no_query_or_path():
    target = {}
    bind(target, make_request(b'{"a": 1}', "application/json", query={"q": ["x"]}, path_params=[("id", "1")]))
    assert target == {"a": 1}


def test_json_type_error_offset_counts_utf8_bytes():
    with pytest.raises(BindingError) as exc_info:
        bind(Reading(), make_request('{"label": "é", "score": "x"}'.encode(), "application/json"))

    assert exc_info.value.detail == "Unmarshal type error: expected=float, got=string, field=score, offset=28"
    assert exc_info.value.internal.offset == 28


def test_json_type_error_offset_for_array_points_past_bracket():
    with pytest.raises(BindingError) as exc_info:
        bind(Reading(), make_request(b'{"label": [1, 2]}', "application/json"))
    assert exc_info.value.detail == "Unmarshal type error: expected=str, got=array, field=label, offset=11"


@pytest.mark.parametrize(
    "body, literal",
    [(b'{"score": 1e400}', "number 1e400"), (b'{"ratio": 3.5e38}', "number 3.5e38")],
)
def test_json_float_overflow_is_a_type_error(body, literal):
    target = Reading()

    with pytest.raises(BindingError) as exc_info:
        bind(target, make_request(body, "application/json"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.internal.value == literal
    assert target.score == 0.0
    assert target.ratio == 0.0


def test_query_hook_failure_is_a_client_error():
    target = Reading()

    with pytest.raises(BindingError) as exc_info:
        bind(target, make_request(query={"level": ["medium"]}))

    error = exc_info.value
    assert error.status_code == 400
    assert isinstance(error.internal, UnmarshalError)
    assert isinstance(error.internal.__cause__, KeyError)
    assert error.__cause__ is error.internal


def test_form_hook_failure_is_a_client_error():
    with pytest.raises(BindingError) as exc_info:
        bind(Reading(), make_request(b"level=extreme", "application/x-www-form-urlencoded"))

    assert exc_info.value.status_code == 400
    assert isinstance(exc_info.value.internal, UnmarshalError)


def test_query_hook_success():
    target = Reading()
    bind(target, make_request(query={"level": ["high"]}))
    assert target.level.value == 10
