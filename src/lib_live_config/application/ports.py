"""Application-layer ports describing the capabilities the registry consumes.

Purpose
-------
Define the structural contracts that sources and codecs must satisfy so the
registry can orchestrate resolution and refresh without depending on concrete
implementations.

Contents
--------
* :class:`Source` – priority-ordered origin of raw string values.
* :class:`Codec` – bidirectional converter between raw strings and values.
* :class:`FileLoader` – parses a structured file into a mapping (used by the
  file source adapter).

System Role
-----------
These protocols enforce Dependency Inversion. Adapters under
``lib_live_config.adapters`` implement them, and so may any application code:
the registry never imports an adapter.
"""

from __future__ import annotations

from typing import Mapping, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class Source(Protocol):
    """Pluggable read/reload capability for raw configuration strings.

    Why
    ----
    Environment variables, files, and remote stores differ wildly in how they
    fetch data; the registry only needs point lookups and change detection.

    Methods
    -------
    :meth:`id`
        Stable identifier used for priority lookup and pinning.
    :meth:`get`
        Side-effect free lookup; never blocks on I/O that :meth:`reload` did
        not already perform.
    :meth:`reload`
        Re-reads the backing store and returns the keys whose value changed
        since the previous reload (an empty set is a common answer). Errors
        are raised normally; the registry catches and logs them.
    :meth:`is_reloadable`
        ``False`` for static snapshots that only take part in the initial load.
    """

    def id(self) -> str:
        """Return the stable source identifier."""

    def get(self, key: str) -> str | None:
        """Return the raw value stored under *key* or ``None``."""

    def reload(self) -> set[str]:
        """Refresh the cached values and return the keys that changed."""

    def is_reloadable(self) -> bool:
        """Return ``True`` when the periodic refresh should reload this source."""


@runtime_checkable
class Codec(Protocol[T]):
    """Convert raw strings into typed values and back.

    Why
    ----
    Keeps type conversion out of the sources so one source can feed properties
    of any type.
    """

    def decode(self, raw: str) -> T:
        """Return the typed value for *raw* or raise ``DecodeError``."""

    def encode(self, value: T) -> str:
        """Return a string representation that :meth:`decode` accepts."""


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping.

    Why
    ----
    Segregate parsing concerns (TOML/JSON/YAML) from change detection.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""
