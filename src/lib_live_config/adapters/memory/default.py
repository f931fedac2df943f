"""In-memory source.

Purpose
-------
Provide a :class:`~lib_live_config.application.ports.Source` whose backing
store is a plain dictionary. Useful for programmatic overrides, defaults
computed at startup, and tests.

Key behaviours
--------------
* Mutations (:meth:`MemorySource.set`, :meth:`MemorySource.remove`, ...) change
  the backing store only; they become visible through ``get`` on the next
  ``reload``, exactly like an edited file.
* ``reloadable=False`` turns the source into a one-shot snapshot that only
  takes part in the initial load.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping

from ..snapshot import SnapshotSource


class MemorySource(SnapshotSource):
    """Dictionary-backed source.

    Examples
    --------
    >>> source = MemorySource("overrides", {"port": "9090"})
    >>> source.get("port") is None
    True
    >>> sorted(source.reload())
    ['port']
    >>> source.get("port")
    '9090'
    >>> source.remove("port")
    >>> sorted(source.reload()), source.get("port")
    (['port'], None)
    """

    def __init__(
        self,
        source_id: str = "memory",
        values: Mapping[str, str] | None = None,
        *,
        reloadable: bool = True,
    ) -> None:
        super().__init__(source_id, reloadable=reloadable)
        self._backing: dict[str, str] = {}
        self._backing_lock = threading.Lock()
        if values:
            self.update(values)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"MemorySource values must be strings, got {type(value).__name__} for '{key}'")
        with self._backing_lock:
            self._backing[key] = value

    def update(self, values: Mapping[str, str]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def remove(self, key: str) -> None:
        with self._backing_lock:
            self._backing.pop(key, None)

    def clear(self) -> None:
        with self._backing_lock:
            self._backing.clear()

    def _read(self) -> Mapping[str, str]:
        with self._backing_lock:
            return dict(self._backing)
