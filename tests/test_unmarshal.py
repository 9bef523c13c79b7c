from dataclasses import dataclass
from typing import Optional

import pytest

from databind.binding import Ref, UnmarshalError, coerce, try_unmarshal
from databind.binding.unmarshal import is_text_unmarshaler, is_unmarshaler


class Level:
    NAMES = {"low": 1, "mid": 5, "high": 10}

    def __init__(self):
        self.value = 0
        self.calls = 0

    def unmarshal_param(self, value: str) -> None:
        self.calls += 1
        if value not in self.NAMES:
            raise ValueError(f"unknown level {value!r}")
        self.value = self.NAMES[value]


class Hex:
    def __init__(self):
        self.value = 0

    def unmarshal_text(self, data: bytes) -> None:
        self.value = int(data.decode(), 16)


class Both:
    def __init__(self):
        self.source = ""

    def unmarshal_param(self, value: str) -> None:
        self.source = "param"

    def unmarshal_text(self, data: bytes) -> None:
        self.source = "text"


@dataclass
class Holder:
    level: Level = None
    hex_value: Optional[Hex] = None
    both: Both = None
    plain: int = 0
    maybe_plain: Optional[int] = None


def test_capability_detection():
    assert is_unmarshaler(Level)
    assert is_unmarshaler(Hex)
    assert not is_unmarshaler(int)
    assert not is_unmarshaler(Optional[Level])
    assert is_text_unmarshaler(Hex)
    assert not is_text_unmarshaler(Level)


def test_param_hook_is_called_on_fresh_instance():
    holder = Holder()

    handled = try_unmarshal(Level, "high", Ref(holder, "level"))

    assert handled is True
    assert isinstance(holder.level, Level)
    assert holder.level.value == 10


def test_existing_instance_is_mutated_in_place():
    holder = Holder(level=Level())
    original = holder.level

    try_unmarshal(Level, "low", Ref(holder, "level"))

    assert holder.level is original
    assert original.value == 1


def test_text_hook_receives_bytes_through_optional():
    holder = Holder()

    handled = try_unmarshal(Optional[Hex], "ff", Ref(holder, "hex_value"))

    assert handled is True
    assert holder.hex_value.value == 255


def test_param_hook_wins_over_text_hook():
    holder = Holder()
    try_unmarshal(Both, "x", Ref(holder, "both"))
    assert holder.both.source == "param"


def test_hook_errors_propagate():
    holder = Holder()
    with pytest.raises(ValueError, match="unknown level"):
        try_unmarshal(Level, "extreme", Ref(holder, "level"))


def test_plain_types_are_not_handled():
    holder = Holder()
    assert try_unmarshal(int, "5", Ref(holder, "plain")) is False
    assert holder.plain == 0


def test_optional_plain_type_is_allocated_even_when_not_handled():
    holder = Holder()
    assert try_unmarshal(Optional[int], "5", Ref(holder, "maybe_plain")) is False
    assert holder.maybe_plain == 0


def test_coerce_prefers_hook_for_sequence_elements():
    items = [Level(), Level()]
    coerce(Level, "mid", Ref(items, 0))
    coerce(Level, "high", Ref(items, 1))
    assert [item.value for item in items] == [5, 10]


class Strict:
    def __init__(self):
        self.value = 0

    def unmarshal_param(self, value: str) -> None:
        self.value = {"one": 1}[value]


@dataclass
class StrictHolder:
    strict: Strict = None
    hex_value: Optional[Hex] = None


def test_hook_failure_of_any_type_becomes_unmarshal_error():
    holder = StrictHolder()

    with pytest.raises(UnmarshalError) as exc_info:
        try_unmarshal(Strict, "two", Ref(holder, "strict"))

    assert isinstance(exc_info.value, ValueError)
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_text_hook_failure_keeps_cause():
    holder = StrictHolder()

    with pytest.raises(UnmarshalError, match="invalid literal") as exc_info:
        try_unmarshal(Optional[Hex], "zz", Ref(holder, "hex_value"))

    assert isinstance(exc_info.value.__cause__, ValueError)
