"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the registry, the sources, and
consuming applications. The hierarchy lives in the domain layer so that every
outer layer may depend on it without creating import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all library failures.
* :class:`BindError` – a key is already bound to a different property.
* :class:`InvalidArgument` – an unknown source id or an unusable key.
* :class:`InvalidState` – a registry was requested without any source.
* :class:`ValidationError` – a required value is missing or a predicate failed.
* :class:`DecodeError` – a raw string could not be converted by a codec.
* :class:`InvalidFormat` – a source artifact (file, ``.env``) is malformed.
* :class:`NotFound` – an optional source artifact does not exist.

System Role
-----------
Misuse errors (:class:`BindError`, :class:`InvalidArgument`,
:class:`InvalidState`) are raised synchronously to the caller. Source-level
errors (:class:`InvalidFormat`, :class:`NotFound`) are caught by the registry,
logged, and treated as "nothing changed". Callers catch :class:`ConfigError`
to handle all library failures uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_live_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class BindError(ConfigError):
    """Raised when a key is already bound to a different property instance.

    Why
    ----
    One object per key keeps subscribers and cached values in a single place.
    Callers that need the existing handle should use
    :meth:`lib_live_config.application.registry.Registry.retrieve`.

    Attributes
    ----------
    key:
        The contested property key.
    existing:
        The property that currently owns *key*.
    """

    def __init__(self, key: str, existing: object) -> None:
        self.key = key
        self.existing = existing
        super().__init__(f"Key '{key}' is already bound to {existing!r}")


class InvalidArgument(ConfigError, ValueError):
    """Raised when a caller references an unknown source or passes an empty key."""


class InvalidState(ConfigError, RuntimeError):
    """Raised when a registry cannot be constructed from the supplied parts.

    Typical Sources
    ---------------
    :meth:`lib_live_config.core.Factory.build` without any registered source.
    """


class ValidationError(ConfigError):
    """Signifies that a property value failed its semantic checks.

    Why
    ----
    Required properties without a value surface at read time, while predicate
    failures surface when the registry tries to store a new value.

    Attributes
    ----------
    key:
        Key of the property that failed validation, when known.
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class DecodeError(ConfigError, ValueError):
    """Raised when a codec cannot turn a raw string into its target type.

    Why
    ----
    Decoding only happens once a source produced a value, so this error always
    means "malformed value", never "value not found".
    """


class InvalidFormat(ConfigError):
    """Raised when a source artifact cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`) and the
    dotenv parser.
    """


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, optional parsers).

    Why
    ----
    Allow sources to signal absence without aborting a reload. A file source
    whose file disappears simply reports its keys as removed.
    """
