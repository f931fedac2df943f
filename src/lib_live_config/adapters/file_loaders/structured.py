"""Structured configuration file loaders and the file source built on them.

Purpose
-------
Convert on-disk artifacts into flat key/value snapshots the registry can
resolve. Loaders are small wrappers around ``tomllib``/``json``/``yaml.safe_load``
so error handling and observability live in one place.

Contents
--------
* :class:`BaseFileLoader` – shared helpers for reading files and validating
  mapping outputs.
* :class:`TOMLFileLoader` – loader for the canonical TOML format.
* :class:`JSONFileLoader` – minimal JSON loader.
* :class:`YAMLFileLoader` – YAML loader (requires PyYAML).
* :func:`loader_for` – suffix based loader lookup.
* :class:`FileSource` – reloadable source exposing one file as dotted keys.

System Role
-----------
File sources form the lowest layers of the default stack assembled by
:func:`lib_live_config.core.layered_sources`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from ...application.ports import FileLoader
from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error
from ..snapshot import SnapshotSource, flatten_mapping

try:
    import yaml  # type: ignore[import-untyped]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b"key = 'value'")
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)[:3]
        b'key'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", source="file", key=None, path=path, size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_live_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data


class TOMLFileLoader(BaseFileLoader):
    """Load TOML documents using the standard library parser."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from TOML file at *path*.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8')
        >>> _ = tmp.write('key = "value"')
        >>> tmp.close()
        >>> TOMLFileLoader().load(tmp.name)["key"]
        'value'
        >>> Path(tmp.name).unlink()
        """

        try:
            text = self._read(path).decode("utf-8")
            data = tomllib.loads(text)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            log_error("config_file_invalid", source="file", key=None, path=path, format="toml", error=str(exc))
            raise InvalidFormat(f"Invalid TOML in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source="file", key=None, path=path, format="toml")
        return result


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = json.loads(self._read(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log_error("config_file_invalid", source="file", key=None, path=path, format="json", error=str(exc))
            raise InvalidFormat(f"Invalid JSON in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source="file", key=None, path=path, format="json")
        return result


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents through PyYAML's ``safe_load``."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from YAML file at *path*; an empty document is ``{}``.

        Raises
        ------
        NotFound
            When PyYAML is not installed.
        """

        if yaml is None:
            raise NotFound("PyYAML is required for YAML configuration support")
        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            log_error("config_file_invalid", source="file", key=None, path=path, format="yaml", error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source="file", key=None, path=path, format="yaml")
        return result


# Supported structured file loaders keyed by suffix.
_FILE_LOADERS: dict[str, FileLoader] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
}


def loader_for(path: str | Path) -> FileLoader:
    """Return the loader registered for the suffix of *path*.

    Examples
    --------
    >>> type(loader_for("config.toml")).__name__
    'TOMLFileLoader'
    >>> loader_for("config.ini")
    Traceback (most recent call last):
    ...
    lib_live_config.domain.errors.InvalidFormat: Unsupported configuration file type: config.ini
    """

    loader = _FILE_LOADERS.get(Path(path).suffix.lower())
    if loader is None:
        raise InvalidFormat(f"Unsupported configuration file type: {path}")
    return loader


class FileSource(SnapshotSource):
    """Expose one structured file as a reloadable source of dotted keys.

    Why
    ----
    Operators edit configuration files in place; re-reading them on every
    refresh pass applies the edit without a restart.

    What
    ----
    A missing file yields an empty snapshot (its keys are reported as
    removed). A malformed file raises :class:`InvalidFormat` from
    :meth:`reload` and keeps the previous snapshot, so a half-written edit never
    wipes the layer.

    Parameters
    ----------
    path:
        File to read; the suffix selects the loader unless *loader* is given.
    source_id:
        Defaults to ``file:<path>``.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        source_id: str | None = None,
        loader: FileLoader | None = None,
        reloadable: bool = True,
    ) -> None:
        super().__init__(source_id or f"file:{path}", reloadable=reloadable)
        self._path = str(path)
        self._loader = loader if loader is not None else loader_for(path)

    @property
    def path(self) -> str:
        return self._path

    def _read(self) -> Mapping[str, str]:
        try:
            data = self._loader.load(self._path)
        except NotFound:
            log_debug("config_file_missing", source=self.id(), key=None, path=self._path)
            return {}
        return flatten_mapping(data)
