"""Composition root for ``lib_live_config``.

Purpose
-------
Provide the entry points that assemble sources into a
:class:`~lib_live_config.application.registry.Registry` and tie the registry
to the application's shutdown sequence.

Contents
--------
* :class:`Lifecycle` – explicit owner of shutdown callbacks.
* :class:`Factory` – fluent registry configuration.
* :func:`factory` – shorthand for ``Factory()``.
* :func:`layered_sources` – default source stack (files → dotenv → env).
* :func:`open_registry` – high-level API returning a ready registry.

System Role
-----------
This module connects adapters (files, dotenv, environment) with the
application layer. It is the canonical location for adjusting the default
precedence or wiring new adapters.
"""

from __future__ import annotations

import atexit
import threading
from concurrent.futures import Executor
from pathlib import Path
from typing import Callable, Iterable, Sequence

from .adapters.dotenv.default import DotEnvSource
from .adapters.env.default import EnvSource, default_env_prefix
from .adapters.file_loaders.structured import FileSource
from .adapters.memory.default import MemorySource
from .application.ports import Source
from .application.registry import (
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_SHUTDOWN_GRACE_PERIOD,
    Builder,
    Registry,
)
from .application.prop import Prop
from .domain.errors import InvalidState
from .observability import log_debug, log_error, make_event


class Lifecycle:
    """Collect shutdown callbacks and run them once, newest first.

    Why
    ----
    Shutdown ordering belongs to the application, not to a library that
    silently registers process-wide hooks. The application owns a Lifecycle,
    hands it to :class:`Factory`, and either calls :meth:`close` itself or opts
    into :meth:`install_exit_hook`.

    Examples
    --------
    >>> lifecycle = Lifecycle()
    >>> calls = []
    >>> lifecycle.register(lambda: calls.append("first"))
    >>> lifecycle.register(lambda: calls.append("second"))
    >>> lifecycle.close()
    >>> lifecycle.close()
    >>> calls
    ['second', 'first']
    """

    def __init__(self) -> None:
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()
        self._closed = False
        self._exit_hook_installed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def register(self, callback: Callable[[], None]) -> None:
        if not callable(callback):
            raise TypeError("Lifecycle callbacks must be callable")
        with self._lock:
            self._callbacks.append(callback)

    def install_exit_hook(self) -> None:
        """Run :meth:`close` when the interpreter exits (idempotent)."""

        with self._lock:
            if self._exit_hook_installed:
                return
            self._exit_hook_installed = True
        atexit.register(self.close)

    def close(self) -> None:
        """Invoke every callback once; failures are logged and do not stop the rest."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            callbacks = list(reversed(self._callbacks))
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:  # noqa: BLE001 - keep shutting down the rest
                log_error("lifecycle_callback_failed", **make_event(None, None, {"error": str(exc)}))


class Factory:
    """Fluent configuration for :class:`Registry` instances.

    Examples
    --------
    >>> registry = (
    ...     factory()
    ...     .with_source(MemorySource("base", {"name": "demo"}))
    ...     .refresh_interval(5)
    ...     .build()
    ... )
    >>> registry.prop("name").read_once()
    'demo'
    >>> registry.close()
    """

    def __init__(self) -> None:
        self._sources: dict[str, Source] = {}
        self._refresh_interval = DEFAULT_REFRESH_INTERVAL
        self._shutdown_grace_period = DEFAULT_SHUTDOWN_GRACE_PERIOD
        self._register_shutdown_hook = True
        self._lifecycle: Lifecycle | None = None
        self._notification_executor: Executor | None = None

    def with_source(self, source: Source) -> Factory:
        """Add *source*; a later source with the same id replaces the earlier one."""

        source_id = source.id()
        if source_id in self._sources:
            log_debug("source_replaced", **make_event(source_id, None))
            del self._sources[source_id]
        self._sources[source_id] = source
        return self

    def with_sources(self, sources: Iterable[Source]) -> Factory:
        for source in sources:
            self.with_source(source)
        return self

    def refresh_interval(self, seconds: float) -> Factory:
        if seconds <= 0:
            raise ValueError("refresh interval must be positive")
        self._refresh_interval = float(seconds)
        return self

    def shutdown_grace_period(self, seconds: float) -> Factory:
        if seconds < 0:
            raise ValueError("shutdown grace period must not be negative")
        self._shutdown_grace_period = float(seconds)
        return self

    def register_shutdown_hook(self, should_register: bool = True) -> Factory:
        """Register the built registry's ``close`` with the configured :class:`Lifecycle`."""

        self._register_shutdown_hook = should_register
        return self

    def lifecycle(self, lifecycle: Lifecycle) -> Factory:
        self._lifecycle = lifecycle
        return self

    def notification_executor(self, executor: Executor) -> Factory:
        """Deliver change notifications of the built registry's props on *executor*."""

        self._notification_executor = executor
        return self

    def build(self) -> Registry:
        """Create the registry.

        Raises
        ------
        InvalidState
            When no source was registered.
        """

        if not self._sources:
            raise InvalidState("Cannot initialize a Registry without any Sources")
        registry = Registry(
            list(self._sources.values()),
            refresh_interval=self._refresh_interval,
            shutdown_grace_period=self._shutdown_grace_period,
            notification_executor=self._notification_executor,
        )
        if self._register_shutdown_hook and self._lifecycle is not None:
            self._lifecycle.register(registry.close)
        return registry


def factory() -> Factory:
    """Convenience constructor mirroring ``Factory()``."""

    return Factory()


def layered_sources(
    *,
    slug: str | None = None,
    files: Sequence[str | Path] = (),
    dotenv: bool = True,
    start_dir: str | Path | None = None,
    env: bool = True,
    env_prefix: str | None = None,
) -> list[Source]:
    """Return the default source stack, lowest priority first.

    What
    ----
    One :class:`FileSource` per entry in *files* (in the given order), then the
    nearest ``.env`` file, then environment variables under
    ``default_env_prefix(slug)`` (or *env_prefix*).

    Examples
    --------
    >>> [source.id() for source in layered_sources(slug="demo", files=["base.toml"])]
    ['file:base.toml', 'dotenv', 'env']
    """

    sources: list[Source] = [FileSource(path) for path in files]
    if dotenv:
        sources.append(DotEnvSource(start_dir))
    if env:
        prefix = env_prefix if env_prefix is not None else (default_env_prefix(slug) if slug else "")
        sources.append(EnvSource(prefix))
    return sources


def open_registry(
    *,
    slug: str | None = None,
    files: Sequence[str | Path] = (),
    dotenv: bool = True,
    start_dir: str | Path | None = None,
    env: bool = True,
    env_prefix: str | None = None,
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    shutdown_grace_period: float = DEFAULT_SHUTDOWN_GRACE_PERIOD,
    lifecycle: Lifecycle | None = None,
) -> Registry:
    """Build a registry over :func:`layered_sources`.

    Raises
    ------
    InvalidState
        When every layer was disabled.
    """

    builder = (
        Factory()
        .with_sources(
            layered_sources(
                slug=slug,
                files=files,
                dotenv=dotenv,
                start_dir=start_dir,
                env=env,
                env_prefix=env_prefix,
            )
        )
        .refresh_interval(refresh_interval)
        .shutdown_grace_period(shutdown_grace_period)
    )
    if lifecycle is not None:
        builder.lifecycle(lifecycle)
    return builder.build()


__all__ = [
    "Builder",
    "Factory",
    "Lifecycle",
    "MemorySource",
    "Prop",
    "Registry",
    "factory",
    "layered_sources",
    "open_registry",
]
