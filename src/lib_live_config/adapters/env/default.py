"""Environment variable source.

Purpose
-------
Expose process environment variables as a
:class:`~lib_live_config.application.ports.Source`. It is the highest
precedence layer of the default stack built by
:func:`lib_live_config.core.layered_sources`.

Key behaviours
--------------
* Enforces a configurable prefix (``default_env_prefix``) so only relevant keys
  are captured.
* Supports ``__`` as a nesting delimiter: ``DEMO_SERVICE__TIMEOUT`` becomes the
  property key ``service.timeout``.
* Keeps values as raw strings; typing is the codec's job.
* Re-reads the environment on every ``reload`` so changes made by the process
  itself (or a test) are picked up.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from ...observability import log_debug
from ..snapshot import SnapshotSource


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Why
    ----
    Namespacing prevents unrelated environment variables from leaking into the
    configuration.

    Examples
    --------
    >>> default_env_prefix('lib-live-config')
    'LIB_LIVE_CONFIG'
    """

    return slug.replace("-", "_").upper()


def env_key(name: str) -> str:
    """Translate a stripped variable name into a dotted property key.

    Examples
    --------
    >>> env_key('SERVICE__TIMEOUT')
    'service.timeout'
    """

    return ".".join(part.lower() for part in name.split("__"))


class EnvSource(SnapshotSource):
    """Load environment variables that belong to the configuration namespace.

    Parameters
    ----------
    prefix:
        Prefix filter (case-sensitive, upper-case by convention). ``_`` is
        appended when missing. An empty prefix exposes every variable.
    environ:
        Mapping to read from. Defaults to :data:`os.environ`; injectable for
        tests.
    source_id:
        Identifier used for priority lookups and pinning.

    Examples
    --------
    >>> source = EnvSource('DEMO', environ={'DEMO_SERVICE__RETRIES': '3', 'OTHER': 'x'})
    >>> sorted(source.reload())
    ['service.retries']
    >>> source.get('service.retries')
    '3'
    """

    def __init__(
        self,
        prefix: str = "",
        *,
        environ: Mapping[str, str] | None = None,
        source_id: str = "env",
        reloadable: bool = True,
    ) -> None:
        super().__init__(source_id, reloadable=reloadable)
        self._prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        self._environ = environ if environ is not None else os.environ

    @property
    def prefix(self) -> str:
        return self._prefix

    def _read(self) -> Mapping[str, str]:
        collected: dict[str, str] = {}
        for name, value in list(self._environ.items()):
            if self._prefix and not name.startswith(self._prefix):
                continue
            stripped = name[len(self._prefix) :]
            if not stripped:
                continue
            collected[env_key(stripped)] = value
        log_debug("env_variables_loaded", source=self.id(), key=None, keys=sorted(collected))
        return collected
