"""Shared machinery for sources that cache a flat key/value snapshot.

Purpose
-------
Every bundled source follows the same pattern: read the backing store into a
``dict[str, str]``, swap it in atomically, and report which keys differ from
the previous snapshot. This module implements that once.

Contents
--------
* :class:`SnapshotSource` – base class implementing the
  :class:`~lib_live_config.application.ports.Source` protocol.
* :func:`flatten_mapping` – turns nested mappings into dotted keys with string
  values.
* :func:`diff_keys` – keys added, removed or changed between two snapshots.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from ..observability import log_debug


class SnapshotSource:
    """Base class for sources backed by an atomically replaced snapshot.

    Why
    ----
    ``get`` must be cheap and never perform I/O, so lookups only touch the
    cached snapshot; ``reload`` does the I/O and computes the change set.

    What
    ----
    Subclasses implement :meth:`_read`. Exceptions raised there propagate out
    of :meth:`reload` and leave the previous snapshot in place.
    """

    def __init__(self, source_id: str, *, reloadable: bool = True) -> None:
        if not source_id:
            raise ValueError("source id must be a non-empty string")
        self._source_id = source_id
        self._reloadable = reloadable
        self._values: Mapping[str, str] = {}
        self._lock = threading.Lock()

    def id(self) -> str:
        return self._source_id

    def is_reloadable(self) -> bool:
        return self._reloadable

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def keys(self) -> frozenset[str]:
        return frozenset(self._values)

    def reload(self) -> set[str]:
        """Re-read the backing store and return the keys whose value changed."""

        fresh = dict(self._read())
        with self._lock:
            changed = diff_keys(self._values, fresh)
            self._values = fresh
        log_debug("source_snapshot_swapped", source=self._source_id, key=None, keys=len(fresh), changed=len(changed))
        return changed

    def _read(self) -> Mapping[str, str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._source_id!r}, keys={len(self._values)})"


def diff_keys(before: Mapping[str, str], after: Mapping[str, str]) -> set[str]:
    """Return keys whose presence or value differs between *before* and *after*.

    Examples
    --------
    >>> sorted(diff_keys({"a": "1", "b": "2"}, {"b": "3", "c": "4"}))
    ['a', 'b', 'c']
    """

    changed = {key for key in before.keys() ^ after.keys()}
    changed.update(key for key in before.keys() & after.keys() if before[key] != after[key])
    return changed


def flatten_mapping(mapping: Mapping[str, Any], *, separator: str = ".") -> dict[str, str]:
    """Flatten nested *mapping* into ``{"a.b": "value"}`` with string values.

    What
    ----
    Booleans become ``true``/``false``, lists and tuples are comma-joined,
    ``None`` entries are skipped, everything else goes through :func:`str`.

    Examples
    --------
    >>> flatten_mapping({"service": {"port": 8080, "debug": True, "hosts": ["a", "b"]}})
    {'service.port': '8080', 'service.debug': 'true', 'service.hosts': 'a,b'}
    """

    flat: dict[str, str] = {}
    _flatten_into(flat, mapping, [], separator)
    return flat


def _flatten_into(target: dict[str, str], mapping: Mapping[str, Any], segments: list[str], separator: str) -> None:
    for key, value in mapping.items():
        path = [*segments, str(key)]
        if isinstance(value, Mapping):
            _flatten_into(target, value, path, separator)
        elif value is not None:
            target[separator.join(path)] = _render_scalar(value)


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_render_scalar(item) for item in value)
    return str(value)
