"""Structured logging for registry, source and notification events.

Purpose
    Every diagnostic the library emits is a short event name (``prop_updated``,
    ``source_reload_failed`` ...) plus a flat field mapping attached to the log
    record as ``record.context``. Host applications decide how to render it.

Contents
    - ``TRACE_ID`` / ``bind_trace_id`` / ``trace_scope``: correlation id carried
      into every event emitted from the current context.
    - ``REDACTED`` / ``redact_value``: the marker that replaces secret values.
    - ``get_logger``: the package logger, silent until the host adds handlers.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emitters.
    - ``make_event``: builds the ``source``/``key`` payload shared by events.

System Integration
    Imported by the application and adapter layers only; the domain layer stays
    free of logging. The refresh thread and the notification executor run in
    their own contexts, so events they emit carry ``trace_id=None`` unless the
    host binds one there.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Iterator, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_live_config_trace_id", default=None)

REDACTED: Final[str] = "<redacted>"
"""Rendered in place of a secret property's value, in reprs, logs and CLI output."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_live_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``lib_live_config`` logger so applications can attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind *trace_id* to the current context; ``None`` clears it.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


@contextmanager
def trace_scope(trace_id: str | None) -> Iterator[None]:
    """Bind *trace_id* for the duration of a ``with`` block, then restore the previous one.

    Examples
    --------
    >>> with trace_scope('cli-read'):
    ...     TRACE_ID.get()
    'cli-read'
    >>> TRACE_ID.get() is None
    True
    """

    token = TRACE_ID.set(trace_id)
    try:
        yield
    finally:
        TRACE_ID.reset(token)


def redact_value(value: Any, secret: bool) -> Any:
    """Return :data:`REDACTED` for secrets and ``None`` passthrough otherwise.

    Examples
    --------
    >>> redact_value('hunter2', True), redact_value('public', False), redact_value(None, True)
    ('<redacted>', 'public', None)
    """

    if value is None or not secret:
        return value
    return REDACTED


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(
    source: str | None,
    key: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the field mapping for an event about *source* and/or *key*.

    ``source`` and ``key`` are always present (possibly ``None``) so log
    processors can index on them; *payload* entries are added after them.

    Examples
    --------
    >>> make_event('env', 'service.timeout', {'changed': 1})
    {'source': 'env', 'key': 'service.timeout', 'changed': 1}
    """

    event: dict[str, Any] = {"source": source, "key": key}
    if payload:
        event.update(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    context: dict[str, Any] = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context})
