import dataclasses
import json

import pytest

from pixelgate.structdiff import Entries, Entry, diff


@dataclasses.dataclass
class Inner:
    x: int = 0
    y: int = 0


@dataclasses.dataclass
class Outer:
    a: int = 1
    b: str = "b"
    inner: Inner = dataclasses.field(default_factory=Inner)
    _hidden: int = 0


@dataclasses.dataclass
class Other:
    a: int = 1


def test_equal_instances_have_no_diff():
    assert diff(Outer(), Outer()) == []


def test_changed_fields_listed_in_order():
    result = diff(Outer(), Outer(a=5, b="z"))
    assert [e.name for e in result] == ["a", "b"]
    assert [e.value for e in result] == [5, "z"]


def test_nested_dataclass_is_diffed():
    result = diff(Outer(), Outer(inner=Inner(y=3)))
    assert len(result) == 1
    assert result[0].name == "inner"
    assert isinstance(result[0].value, Entries)
    assert result[0].value == [Entry("y", 3)]


def test_private_fields_ignored():
    assert diff(Outer(), Outer(_hidden=9)) == []


def test_different_types_yield_nothing():
    assert diff(Outer(), Other()) == []


def test_non_dataclass_rejected():
    with pytest.raises(TypeError):
        diff(1, 2)


def test_string_form():
    result = diff(Outer(), Outer(a=5, inner=Inner(y=3)))
    assert str(result) == "a: 5; inner: {y: 3}"


def test_json_round_trip():
    result = diff(Outer(), Outer(a=5, b="q", inner=Inner(x=7)))
    assert json.loads(result.to_json()) == {"a": 5, "b": "q", "inner": {"x": 7}}


def test_empty_json():
    assert json.loads(Entries().to_json()) == {}