"""Value codecs converting raw source strings into typed property values.

Purpose
-------
Sources only ever produce strings. Codecs translate those strings into the
Python type a property advertises and back again for diagnostics. They are
pure, stateless, and safe to share between threads and registries.

Contents
--------
* :class:`BaseCodec` – shared ``encode`` default (``str(value)``).
* :class:`StringCodec`, :class:`IntegerCodec`, :class:`FloatCodec`,
  :class:`BooleanCodec`, :class:`DurationCodec`, :class:`ListCodec` – concrete
  codecs.
* Module-level singletons (:data:`STRING`, :data:`INTEGER`, :data:`FLOAT`,
  :data:`BOOLEAN`, :data:`DURATION`, :data:`STRING_LIST`).
* :data:`CODECS` – name lookup used by the CLI ``--type`` option.

System Role
-----------
Implements the :class:`lib_live_config.application.ports.Codec` protocol. Every
failure is reported as :class:`~lib_live_config.domain.errors.DecodeError` so
the registry can tell malformed values apart from missing ones.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Final, Generic, TypeVar

from .errors import DecodeError

T = TypeVar("T")

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"false", "no", "off", "0"})

_DURATION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$", re.IGNORECASE)
_DURATION_UNITS: Final[dict[str, str]] = {
    "ms": "milliseconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


class BaseCodec(Generic[T]):
    """Common behaviour shared by the bundled codecs.

    Why
    ----
    Most types render well through :func:`str`; subclasses only override
    :meth:`encode` when the textual form must be parseable again.
    """

    name: str = "value"

    def decode(self, raw: str) -> T:
        """Convert *raw* into the codec's type or raise :class:`DecodeError`."""

        raise NotImplementedError

    def encode(self, value: T) -> str:
        """Render *value* as a string that :meth:`decode` accepts."""

        return str(value)

    def _fail(self, raw: str, reason: str | None = None) -> DecodeError:
        detail = f": {reason}" if reason else ""
        return DecodeError(f"Cannot decode {raw!r} as {self.name}{detail}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StringCodec(BaseCodec[str]):
    """Identity codec; the raw string is the value.

    Examples
    --------
    >>> STRING.decode("demo")
    'demo'
    """

    name = "string"

    def decode(self, raw: str) -> str:
        return raw


class IntegerCodec(BaseCodec[int]):
    """Decode base-10 integers, tolerating surrounding whitespace.

    Examples
    --------
    >>> INTEGER.decode(" 8080 ")
    8080
    """

    name = "int"

    def decode(self, raw: str) -> int:
        try:
            return int(raw.strip())
        except ValueError as exc:
            raise self._fail(raw) from exc


class FloatCodec(BaseCodec[float]):
    """Decode floating point numbers.

    Examples
    --------
    >>> FLOAT.decode("0.25")
    0.25
    """

    name = "float"

    def decode(self, raw: str) -> float:
        try:
            return float(raw.strip())
        except ValueError as exc:
            raise self._fail(raw) from exc

    def encode(self, value: float) -> str:
        return repr(value)


class BooleanCodec(BaseCodec[bool]):
    """Decode the usual human spellings of true and false.

    Why
    ----
    Environment variables and ``.env`` files carry ``yes``/``on``/``1`` as often
    as ``true``; being strict here only produces surprising outages.

    Examples
    --------
    >>> BOOLEAN.decode("Yes"), BOOLEAN.decode("off")
    (True, False)
    >>> BOOLEAN.encode(True)
    'true'
    """

    name = "bool"

    def decode(self, raw: str) -> bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise self._fail(raw, "expected one of true/false/yes/no/on/off/1/0")

    def encode(self, value: bool) -> str:
        return "true" if value else "false"


class DurationCodec(BaseCodec[timedelta]):
    """Decode durations such as ``250ms``, ``30s``, ``5m``, ``2h`` or ``1d``.

    What
    ----
    A bare number is interpreted as seconds. :meth:`encode` always emits
    milliseconds when the duration is not a whole number of seconds, and
    seconds otherwise, so the textual form decodes back to the same value.

    Examples
    --------
    >>> DURATION.decode("5m")
    datetime.timedelta(seconds=300)
    >>> DURATION.decode("1.5")
    datetime.timedelta(seconds=1, microseconds=500000)
    >>> DURATION.encode(timedelta(milliseconds=250))
    '250ms'
    """

    name = "duration"

    def decode(self, raw: str) -> timedelta:
        match = _DURATION_PATTERN.match(raw)
        if match is None:
            raise self._fail(raw, "expected <number>[ms|s|m|h|d]")
        amount, unit = match.groups()
        return timedelta(**{_DURATION_UNITS[(unit or "s").lower()]: float(amount)})

    def encode(self, value: timedelta) -> str:
        milliseconds, remainder = divmod(value.microseconds, 1000)
        if remainder:
            return f"{value.total_seconds()!r}s"
        whole_seconds = value.days * 86_400 + value.seconds
        if milliseconds:
            return f"{whole_seconds * 1000 + milliseconds}ms"
        return f"{whole_seconds}s"


class ListCodec(BaseCodec[list[T]]):
    """Split a delimited string and decode every item with *item_codec*.

    Why
    ----
    Lists are the one composite type commonly expressed in flat key/value
    stores (``HOSTS=a,b,c``).

    What
    ----
    Items are stripped; empty items are dropped so trailing separators are
    harmless.

    Examples
    --------
    >>> STRING_LIST.decode("a, b,,c")
    ['a', 'b', 'c']
    >>> ListCodec(INTEGER).decode("1,2")
    [1, 2]
    >>> ListCodec(INTEGER, separator=";").encode([1, 2])
    '1;2'
    """

    name = "list"

    def __init__(self, item_codec: BaseCodec[T] | None = None, *, separator: str = ",") -> None:
        self._item_codec = item_codec if item_codec is not None else StringCodec()
        self._separator = separator

    def decode(self, raw: str) -> list[T]:
        items = [item.strip() for item in raw.split(self._separator)]
        return [self._item_codec.decode(item) for item in items if item]

    def encode(self, value: list[T]) -> str:
        return self._separator.join(self._item_codec.encode(item) for item in value)

    def __repr__(self) -> str:
        return f"ListCodec({self._item_codec!r}, separator={self._separator!r})"


STRING: Final[StringCodec] = StringCodec()
INTEGER: Final[IntegerCodec] = IntegerCodec()
FLOAT: Final[FloatCodec] = FloatCodec()
BOOLEAN: Final[BooleanCodec] = BooleanCodec()
DURATION: Final[DurationCodec] = DurationCodec()
STRING_LIST: Final[ListCodec[str]] = ListCodec(STRING)

#: Codecs addressable by name (CLI ``--type`` choices).
CODECS: Final[dict[str, BaseCodec]] = {
    "string": STRING,
    "int": INTEGER,
    "float": FLOAT,
    "bool": BOOLEAN,
    "duration": DURATION,
    "list": STRING_LIST,
}
