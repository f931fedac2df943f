"""Typed, observable configuration value cells.

Purpose
-------
A :class:`Prop` is the handle application code keeps: it knows its key, its
codec, its default, whether it is required or secret, and it always exposes the
latest value the registry resolved for it.

Contents
--------
* :class:`Prop` – generic value cell with validation hooks, a per-instance
  lock, and a lazily created :class:`~lib_live_config.application.notify.UpdateChannel`.

System Role
-----------
Only :class:`lib_live_config.application.registry.Registry` writes values (via
:meth:`Prop._set_value`). Reads may happen from any thread. Because a Prop
implements the :class:`~lib_live_config.application.ports.Codec` protocol the
registry can resolve it directly, without casting to a concrete type.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor
from typing import Any, Callable, Final, Generic, TypeVar

from ..domain.errors import DecodeError, InvalidArgument, ValidationError
from ..observability import REDACTED
from .notify import ErrorHandler, Subscription, UpdateChannel, ValueHandler
from .ports import Codec

T = TypeVar("T")

_UNSET: Final = object()


class Prop(Generic[T]):
    """Named, typed configuration value that updates while the process runs.

    Why
    ----
    Long-running services need configuration that changes without a restart,
    and code that reacts when it does.

    What
    ----
    ``value()`` returns the resolved value, falling back to ``default``; a
    required Prop without either raises :class:`ValidationError`. Subclasses
    override :meth:`validate_before_set` (or pass ``validator``) to reject
    values, and :meth:`redact` to customise the secret rendering.

    Parameters
    ----------
    key:
        Non-empty key, unique within a registry.
    codec:
        Converter between raw source strings and ``T``.
    default:
        Value returned when no source provides one.
    description:
        Free text shown in diagnostics.
    required:
        Reading without value or default raises :class:`ValidationError`.
    secret:
        Never render the value; :data:`~lib_live_config.observability.REDACTED`
        is shown instead.
    validator:
        Optional predicate; a falsy result rejects the new value.
    executor:
        Executor used for notification delivery (defaults to the shared one).

    Examples
    --------
    >>> from lib_live_config.domain.codecs import INTEGER
    >>> port = Prop("port", INTEGER, default=3000)
    >>> port.value()
    3000
    >>> port
    Prop(key='port', value=None)
    """

    def __init__(
        self,
        key: str,
        codec: Codec[T],
        *,
        default: T | None = None,
        description: str | None = None,
        required: bool = False,
        secret: bool = False,
        validator: Callable[[T], bool] | None = None,
        executor: Executor | None = None,
    ) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidArgument("A property key must be a non-empty string")
        if codec is None:
            raise InvalidArgument(f"A codec must be specified for '{key}'")
        self._key = key
        self._codec = codec
        self._default = default
        self._description = description
        self._required = required
        self._secret = secret
        self._validator = validator
        self._executor = executor
        self._current: T | None = None
        self._lock = threading.Lock()
        self._channel: UpdateChannel[T] | None = None
        self._channel_lock = threading.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def default(self) -> T | None:
        return self._default

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def required(self) -> bool:
        return self._required

    @property
    def secret(self) -> bool:
        return self._secret

    @property
    def current(self) -> T | None:
        """The value last stored by the registry, without default fallback."""

        with self._lock:
            return self._current

    def value(self) -> T | None:
        """Return the current value, or the default, after read-time validation."""

        return self.raw_value()

    def raw_value(self) -> T | None:
        """Resolve current-or-default and run :meth:`validate_before_get`."""

        with self._lock:
            value = self._current
        if value is None:
            value = self._default
        self.validate_before_get(value)
        return value

    def validate_before_get(self, value: T | None) -> None:
        """Raise :class:`ValidationError` when a required Prop has nothing to return.

        Overrides should call ``super().validate_before_get(value)`` to keep the
        required-value guarantee.
        """

        if self._required and value is None:
            raise ValidationError(
                f"Prop '{self._key}' is required, but neither a value or a default were specified",
                key=self._key,
            )

    def validate_before_set(self, value: T) -> None:
        """Hook run before a non-``None`` value is stored; raise to reject it."""

        if self._validator is not None and not self._validator(value):
            raise ValidationError(
                f"Prop '{self._key}' rejected value {self.render(value)}",
                key=self._key,
            )

    def decode(self, raw: str) -> T:
        """Decode *raw* with the Prop's codec, keeping secrets out of the error.

        Any :class:`ValueError` from the codec surfaces as :class:`DecodeError`.
        """

        try:
            return self._codec.decode(raw)
        except ValueError as exc:
            if self._secret:
                raise DecodeError(f"Cannot decode value for secret Prop '{self._key}': {REDACTED}") from None
            raise DecodeError(f"Prop '{self._key}': {exc}") from exc

    def encode(self, value: T) -> str:
        return self._codec.encode(value)

    def on_update(self, on_value: ValueHandler[T], on_error: ErrorHandler | None = None) -> Subscription[T]:
        """Subscribe to value changes (``None`` means the value became absent) and set-time errors."""

        return self._get_channel().subscribe(on_value, on_error)

    def redact(self, value: T) -> str:
        return REDACTED

    def render(self, value: T | None) -> str:
        """Return a printable form of *value* that honours the secret flag."""

        if value is None:
            return "None"
        if self._secret:
            return self.redact(value)
        return repr(value)

    def _set_value(self, value: T | None, *, expected: Any = _UNSET) -> bool:
        """Store *value* and publish it; registry use only.

        When *expected* is given the swap only happens if the stored value
        still equals it, so concurrent updates of the same Prop apply at most
        once. Returns ``True`` when the stored value changed.
        """

        if value is not None:
            try:
                self.validate_before_set(value)
            except Exception as exc:
                channel = self._channel
                if channel is not None:
                    channel.publish_error(exc)
                raise
        with self._lock:
            if expected is not _UNSET and self._current != expected:
                return False
            if self._current == value:
                return False
            self._current = value
            channel = self._channel
            if channel is not None:
                channel.publish(value)
        return True

    def _get_channel(self) -> UpdateChannel[T]:
        channel = self._channel
        if channel is None:
            with self._channel_lock:
                if self._channel is None:
                    self._channel = UpdateChannel(self._key, self._executor)
                channel = self._channel
        return channel

    def __repr__(self) -> str:
        with self._lock:
            current = self._current
        return f"Prop(key={self._key!r}, value={self.render(current)})"

    __str__ = __repr__
