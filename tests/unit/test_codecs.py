"""Codec tests: accepted spellings, failure reporting, and encode/decode symmetry."""

from __future__ import annotations

from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_live_config.domain.codecs import (
    BOOLEAN,
    CODECS,
    DURATION,
    FLOAT,
    INTEGER,
    STRING,
    STRING_LIST,
    ListCodec,
)
from lib_live_config.domain.errors import DecodeError


@pytest.mark.parametrize("raw", ["true", "TRUE", "yes", "On", "1", " true "])
def test_boolean_truthy_spellings(raw: str) -> None:
    assert BOOLEAN.decode(raw) is True


@pytest.mark.parametrize("raw", ["false", "No", "off", "0"])
def test_boolean_falsy_spellings(raw: str) -> None:
    assert BOOLEAN.decode(raw) is False


@pytest.mark.parametrize(
    ("codec", "raw"),
    [(INTEGER, "eighty"), (INTEGER, "8.5"), (FLOAT, "fast"), (BOOLEAN, "maybe"), (DURATION, "5 weeks")],
)
def test_malformed_values_raise_decode_error(codec, raw: str) -> None:
    with pytest.raises(DecodeError, match=f"Cannot decode {raw!r} as {codec.name}"):
        codec.decode(raw)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("250ms", timedelta(milliseconds=250)),
        ("30s", timedelta(seconds=30)),
        ("5m", timedelta(minutes=5)),
        ("2h", timedelta(hours=2)),
        ("1d", timedelta(days=1)),
        ("45", timedelta(seconds=45)),
        ("1.5S", timedelta(seconds=1.5)),
    ],
)
def test_duration_units(raw: str, expected: timedelta) -> None:
    assert DURATION.decode(raw) == expected


def test_duration_encoding_prefers_the_coarsest_exact_unit() -> None:
    assert DURATION.encode(timedelta(seconds=90)) == "90s"
    assert DURATION.encode(timedelta(seconds=1, milliseconds=5)) == "1005ms"


def test_list_codec_skips_empty_items() -> None:
    assert STRING_LIST.decode(" a , ,b,") == ["a", "b"]
    assert STRING_LIST.decode("") == []
    assert ListCodec(INTEGER, separator="|").decode("1|2|3") == [1, 2, 3]


def test_list_codec_propagates_item_errors() -> None:
    with pytest.raises(DecodeError):
        ListCodec(INTEGER).decode("1,x")


def test_codec_names_match_cli_choices() -> None:
    assert sorted(CODECS) == ["bool", "duration", "float", "int", "list", "string"]
    for name, codec in CODECS.items():
        assert codec.name == name


@given(st.text())
def test_string_round_trip(value: str) -> None:
    assert STRING.decode(STRING.encode(value)) == value


@given(st.integers())
def test_integer_round_trip(value: int) -> None:
    assert INTEGER.decode(INTEGER.encode(value)) == value


@given(st.floats(allow_nan=False, allow_infinity=False))
def test_float_round_trip(value: float) -> None:
    assert FLOAT.decode(FLOAT.encode(value)) == value


@given(st.booleans())
def test_boolean_round_trip(value: bool) -> None:
    assert BOOLEAN.decode(BOOLEAN.encode(value)) is value


@given(st.integers(min_value=0, max_value=10**9))
def test_duration_round_trip_milliseconds(milliseconds: int) -> None:
    value = timedelta(milliseconds=milliseconds)
    assert DURATION.decode(DURATION.encode(value)) == value


@given(st.lists(st.text(alphabet="abcxyz019-_", min_size=1), max_size=5))
def test_string_list_round_trip(items: list[str]) -> None:
    assert STRING_LIST.decode(STRING_LIST.encode(items)) == items
