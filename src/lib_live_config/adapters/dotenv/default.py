"""`.env` source.

Purpose
-------
Expose the first ``.env`` file found walking upwards from a start directory as
a reloadable :class:`~lib_live_config.application.ports.Source`.

Contents
--------
* :class:`DotEnvSource` – entry point with optional extra search paths.
* Helper functions (`_iter_candidates`, `parse_dotenv`, `_strip_quotes`) that
  perform discovery and parsing.

System Role
-------------
Sits between file sources and the environment in the default stack. Keys use
the same ``__`` nesting convention as environment variables, so
``SERVICE__TOKEN`` resolves the property ``service.token``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Iterable

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error
from ..env.default import env_key
from ..snapshot import SnapshotSource


class DotEnvSource(SnapshotSource):
    """Load a dotenv file into a flat snapshot of dotted keys.

    Why
    ----
    `.env` files supply secrets and developer overrides. They need deterministic
    discovery and identical naming semantics to environment variables.

    Parameters
    ----------
    start_dir:
        Directory that seeds the upward search; defaults to the working
        directory at reload time.
    extras:
        Additional paths appended to the search order.
    """

    def __init__(
        self,
        start_dir: str | Path | None = None,
        *,
        extras: Iterable[str | Path] | None = None,
        source_id: str = "dotenv",
        reloadable: bool = True,
    ) -> None:
        super().__init__(source_id, reloadable=reloadable)
        self._start_dir = Path(start_dir) if start_dir is not None else None
        self._extras = [Path(p) for p in extras or []]
        self.last_loaded_path: str | None = None

    def _read(self) -> Mapping[str, str]:
        """Return the parsed contents of the first dotenv file discovered.

        Side Effects
        ------------
        Sets :attr:`last_loaded_path` and emits structured logging events.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> path = Path(tmp.name) / '.env'
        >>> _ = path.write_text('SERVICE__TOKEN=secret', encoding='utf-8')
        >>> source = DotEnvSource(tmp.name)
        >>> sorted(source.reload())
        ['service.token']
        >>> source.last_loaded_path == str(path)
        True
        >>> tmp.cleanup()
        """

        candidates = list(_iter_candidates(self._start_dir)) + self._extras
        for candidate in candidates:
            if candidate.is_file():
                data = parse_dotenv(candidate)
                self.last_loaded_path = str(candidate)
                log_debug("dotenv_loaded", source=self.id(), key=None, path=self.last_loaded_path, keys=sorted(data))
                return data
        self.last_loaded_path = None
        log_debug("dotenv_not_found", source=self.id(), key=None, path=None)
        return {}


def _iter_candidates(start_dir: Path | None) -> Iterable[Path]:
    """Yield candidate dotenv paths walking from ``start_dir`` to filesystem root.

    Examples
    --------
    >>> next(_iter_candidates(Path('.'))).name
    '.env'
    """

    base = start_dir if start_dir is not None else Path.cwd()
    for directory in [base, *base.parents]:
        yield directory / ".env"


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``path`` into dotted keys, raising ``InvalidFormat`` on malformed lines.

    Why
    ----
    Strict parsing keeps a typo from silently dropping half of a file. An
    optional ``export`` keyword is accepted for shell compatibility.

    Examples
    --------
    >>> import os
    >>> tmp = Path('example.env')
    >>> body = os.linesep.join(['FEATURE=true', 'export SERVICE__TIMEOUT=10']) + os.linesep
    >>> _ = tmp.write_text(body, encoding='utf-8')
    >>> parse_dotenv(tmp)
    {'feature': 'true', 'service.timeout': '10'}
    >>> tmp.unlink()
    """

    result: dict[str, str] = {}
    try:
        handle = path.open("r", encoding="utf-8")
    except OSError as exc:
        raise InvalidFormat(f"Cannot read {path}: {exc}") from exc
    with handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if "=" not in line:
                log_error("dotenv_invalid_line", source="dotenv", key=None, path=str(path), line=line_number)
                raise InvalidFormat(f"Malformed line {line_number} in {path}")
            name, value = line.split("=", 1)
            name = name.strip()
            if not name:
                log_error("dotenv_invalid_line", source="dotenv", key=None, path=str(path), line=line_number)
                raise InvalidFormat(f"Missing key on line {line_number} in {path}")
            result[env_key(name)] = _strip_quotes(value.strip())
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Why
    ----
    `.env` syntax allows quoted strings and trailing inline comments; stripping
    them keeps behaviour aligned with community conventions.

    Examples
    --------
    >>> _strip_quotes('"token"')
    'token'
    >>> _strip_quotes("value # comment")
    'value'
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value
