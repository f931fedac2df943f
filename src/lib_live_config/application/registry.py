"""Property registry and resolution engine.

Purpose
-------
Own the ordered sources, the bound properties, the priority resolution
algorithm, the refresh passes and the registry lifecycle.

Contents
--------
* :class:`Registry` – binds :class:`~lib_live_config.application.prop.Prop`
  instances, resolves them against the sources and keeps them current.
* :class:`Builder` – fluent construction of a Prop against one registry.

System Role
-----------
Priority is the reverse of declaration order: the last declared source wins,
which gives "base configuration plus overrides" composition. A single
:class:`~lib_live_config.application.refresh.RefreshScheduler` thread performs
the initial load of every source and the periodic refresh of reloadable ones;
the reloads inside one pass run concurrently on a private thread pool. Source
failures are logged and treated as "nothing changed".
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from types import MappingProxyType, TracebackType
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, Type, TypeVar

from ..domain.codecs import STRING
from ..domain.errors import BindError, InvalidArgument
from ..observability import log_debug, log_error, log_info, log_warning, make_event
from .ports import Codec, Source
from .prop import Prop
from .refresh import RefreshScheduler

T = TypeVar("T")

DEFAULT_REFRESH_INTERVAL = 30.0
DEFAULT_SHUTDOWN_GRACE_PERIOD = 30.0


class Registry:
    """Resolve properties from prioritised sources and keep them up to date.

    Why
    ----
    Centralising resolution gives every property the same precedence rules and
    lets one background pass refresh all of them.

    Parameters
    ----------
    sources:
        Sources in declaration order (lowest priority first). Identifiers must
        be unique; use :class:`lib_live_config.core.Factory` to collapse
        duplicates.
    refresh_interval:
        Seconds between refresh passes; also bounds how long a resolution
        waits for the initial load.
    shutdown_grace_period:
        Seconds :meth:`close` waits for an in-flight pass.
    notification_executor:
        Executor handed to properties built through :meth:`prop`.

    Examples
    --------
    >>> from lib_live_config.adapters.memory.default import MemorySource
    >>> from lib_live_config.domain.codecs import INTEGER
    >>> base = MemorySource("base", {"port": "8080"})
    >>> override = MemorySource("override", {"port": "9090"})
    >>> with Registry([base, override]) as registry:
    ...     registry.prop("port", INTEGER).default(3000).build().value()
    9090
    """

    def __init__(
        self,
        sources: Iterable[Source],
        *,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        shutdown_grace_period: float = DEFAULT_SHUTDOWN_GRACE_PERIOD,
        notification_executor: Executor | None = None,
    ) -> None:
        ordered: dict[str, Source] = {}
        for source in sources:
            source_id = source.id()
            if source_id in ordered:
                raise InvalidArgument(f"Source id '{source_id}' is declared more than once")
            ordered[source_id] = source
        self._sources: Mapping[str, Source] = MappingProxyType(ordered)
        self._prioritized: tuple[str, ...] = tuple(reversed(ordered))
        self._refresh_interval = refresh_interval
        self._shutdown_grace_period = shutdown_grace_period
        self._notification_executor = notification_executor

        self._bound: dict[str, Prop[Any]] = {}
        self._pins: dict[str, str] = {}
        self._bind_lock = threading.Lock()
        self._pass_lock = threading.Lock()
        self._loaded = threading.Event()
        self._closed = False
        self._close_lock = threading.Lock()

        self._pool = ThreadPoolExecutor(
            max_workers=max(1, min(32, len(ordered))),
            thread_name_prefix="lib_live_config-reload",
        )
        self._scheduler = RefreshScheduler(
            initial_load=self._initial_load,
            refresh=self.refresh,
            interval=refresh_interval,
        )
        self._scheduler.start()

    # ------------------------------------------------------------------ views

    @property
    def sources(self) -> Mapping[str, Source]:
        """Read-only mapping of source ids to sources, in declaration order."""

        return self._sources

    @property
    def source_ids(self) -> tuple[str, ...]:
        """Source ids ordered by priority, highest first."""

        return self._prioritized

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    @property
    def shutdown_grace_period(self) -> float:
        return self._shutdown_grace_period

    @property
    def closed(self) -> bool:
        return self._closed

    def is_loaded(self) -> bool:
        """Return ``True`` once the initial load of every source finished."""

        return self._loaded.is_set()

    def wait_until_loaded(self, timeout: float | None = None) -> bool:
        return self._loaded.wait(timeout)

    # ---------------------------------------------------------------- binding

    def prop(self, key: str, codec: Codec[T] = STRING) -> Builder[T]:  # type: ignore[assignment]
        """Start building a property bound to this registry.

        Examples
        --------
        >>> from lib_live_config.adapters.memory.default import MemorySource
        >>> with Registry([MemorySource("mem", {"name": "demo"})]) as registry:
        ...     registry.prop("name").read_once()
        'demo'
        """

        return Builder(self, key, codec)

    def bind(self, prop: Prop[T], source_id: Optional[str] = None) -> Prop[T]:
        """Bind *prop* to this registry, optionally pinned to *source_id*.

        Raises
        ------
        InvalidArgument
            When *source_id* is not a registered source, or when *prop* is
            already bound with a different pin.
        BindError
            When a different Prop is already bound under ``prop.key``.

        Binding the same instance again returns it untouched; its pin and
        value stay as they are.
        """

        if source_id is not None:
            self._validate_source(source_id)
        with self._bind_lock:
            existing = self._bound.get(prop.key)
            if existing is not None:
                if existing is not prop:
                    raise BindError(prop.key, existing)
                pinned = self._pins.get(prop.key)
                if source_id is not None and source_id != pinned:
                    raise InvalidArgument(
                        f"Prop '{prop.key}' is already bound to source {pinned!r}; cannot re-pin it to '{source_id}'"
                    )
                return prop
            self._bound[prop.key] = prop
            if source_id is not None:
                self._pins[prop.key] = source_id
        log_debug("prop_bound", **make_event(source_id, prop.key))
        self.update(prop)
        return prop

    def retrieve(self, key: str) -> Prop[Any] | None:
        """Return the Prop bound under *key*, or ``None``."""

        return self._bound.get(key)

    def bound_keys(self) -> frozenset[str]:
        with self._bind_lock:
            return frozenset(self._bound)

    # ------------------------------------------------------------- resolution

    def update(self, prop: Prop[T]) -> bool:
        """Re-resolve *prop* and store the result when it differs.

        Returns
        -------
        bool
            ``True`` if the stored value changed (including absent/present
            transitions); ``False`` leaves the Prop and its subscribers alone.
        """

        current = prop.current
        updated = self.resolve(prop.key, prop, self._pins.get(prop.key))
        if current == updated:
            return False
        changed = prop._set_value(updated, expected=current)
        if changed:
            log_info("prop_updated", **make_event(None, prop.key, {"value": prop.render(updated)}))
        return changed

    def resolve(self, key: str, codec: Codec[T], source_id: Optional[str] = None) -> T | None:
        """Return the decoded value for *key* from the highest-priority source.

        What
        ----
        Waits (at most ``refresh_interval`` seconds) for the initial load. A
        pinned lookup only consults *source_id*. Decoding happens after a raw
        value was found, so a :class:`DecodeError` always means "malformed".
        """

        if not self._wait_for_initial_load(key):
            return None
        if source_id is not None:
            source = self._sources.get(source_id)
            if source is None:
                raise InvalidArgument(f"Source '{source_id}' is not registered with the current registry")
            raw = source.get(key)
            return None if raw is None else codec.decode(raw)
        for candidate in self._prioritized:
            raw = self._sources[candidate].get(key)
            if raw is not None:
                log_debug("prop_resolved", **make_event(candidate, key))
                return codec.decode(raw)
        return None

    def resolve_layers(self, prop: Prop[T]) -> dict[str, T]:
        """Return every source's decoded value for *prop*, lowest priority first.

        Why
        ----
        Explains precedence outcomes: the last entry is the value that wins.
        """

        layers: dict[str, T] = {}
        if not self._wait_for_initial_load(prop.key):
            return layers
        for source_id, source in self._sources.items():
            raw = source.get(prop.key)
            if raw is not None:
                layers[source_id] = prop.decode(raw)
        return layers

    # ---------------------------------------------------------------- refresh

    def refresh(self) -> set[str]:
        """Run one refresh pass synchronously and return the keys that changed.

        Only reloadable sources are reloaded. All reloads finish before any
        Prop is re-resolved; each affected Prop is updated once even when
        several sources reported its key. Nothing happens before the initial
        load completed.
        """

        if not self._wait_for_initial_load(None):
            return set()
        with self._pass_lock:
            reloadable = [source for source in self._sources.values() if source.is_reloadable()]
            changed_keys = self._reload(reloadable)
            updated = self._apply(changed_keys)
        log_debug(
            "refresh_complete",
            **make_event(None, None, {"reloaded": len(reloadable), "reported": len(changed_keys), "updated": len(updated)}),
        )
        return updated

    def _initial_load(self) -> None:
        with self._pass_lock:
            try:
                changed_keys = self._reload(list(self._sources.values()))
            finally:
                self._loaded.set()
            log_info("initial_load_complete", **make_event(None, None, {"sources": len(self._sources)}))
            self._apply(changed_keys)

    def _reload(self, sources: list[Source]) -> set[str]:
        if not sources:
            return set()
        try:
            results = list(self._pool.map(_safe_reload, sources))
        except RuntimeError as exc:
            # pool shut down by close() while the pass was starting
            log_warning("refresh_skipped", **make_event(None, None, {"error": str(exc)}))
            return set()
        changed: set[str] = set()
        for keys in results:
            changed |= keys
        return changed

    def _apply(self, changed_keys: set[str]) -> set[str]:
        with self._bind_lock:
            affected = [self._bound[key] for key in changed_keys if key in self._bound]
        updated: set[str] = set()
        for prop in affected:
            try:
                if self.update(prop):
                    updated.add(prop.key)
            except Exception as exc:  # noqa: BLE001 - one bad Prop must not stall the pass
                log_error("prop_update_failed", **make_event(None, prop.key, {"error": str(exc)}))
        return updated

    def _wait_for_initial_load(self, key: str | None) -> bool:
        if self._loaded.wait(self._refresh_interval):
            return True
        log_warning("resolve_timeout", **make_event(None, key, {"waited": self._refresh_interval}))
        return False

    def _validate_source(self, source_id: str) -> None:
        if source_id not in self._sources:
            raise InvalidArgument(f"Source '{source_id}' is not registered with the current registry")

    # -------------------------------------------------------------- lifecycle

    def close(self) -> None:
        """Stop the refresh scheduler; idempotent.

        Waits up to ``shutdown_grace_period`` for an in-flight pass, then
        cancels pending reloads. A :class:`KeyboardInterrupt` while waiting
        forces termination and is re-raised.
        """

        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            finished = self._scheduler.stop(self._shutdown_grace_period)
        except KeyboardInterrupt:
            log_warning("registry_shutdown_forced", **make_event(None, None, {"reason": "interrupted"}))
            self._pool.shutdown(wait=False, cancel_futures=True)
            raise
        if not finished:
            log_warning("registry_shutdown_forced", **make_event(None, None, {"reason": "grace_period_elapsed"}))
        self._pool.shutdown(wait=finished, cancel_futures=True)
        log_info("registry_closed", **make_event(None, None, {"bound": len(self._bound)}))

    def __enter__(self) -> Registry:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Registry sources={list(self._sources)} bound={len(self._bound)} closed={self._closed}>"


def _safe_reload(source: Source) -> set[str]:
    """Reload *source*, logging and swallowing its failure as "nothing changed"."""

    try:
        changed = set(source.reload())
    except Exception as exc:  # noqa: BLE001 - source failures are isolated by contract
        log_error("source_reload_failed", **make_event(_source_id(source), None, {"error": str(exc)}))
        return set()
    log_debug("source_reloaded", **make_event(_source_id(source), None, {"changed": len(changed)}))
    return changed


def _source_id(source: Source) -> str:
    try:
        return source.id()
    except Exception:  # noqa: BLE001 - only used for diagnostics
        return repr(source)


class Builder(Generic[T]):
    """Fluent builder for a :class:`Prop` owned by one :class:`Registry`.

    Examples
    --------
    >>> from lib_live_config.adapters.memory.default import MemorySource
    >>> from lib_live_config.domain.codecs import BOOLEAN
    >>> with Registry([MemorySource("mem", {"debug": "yes"})]) as registry:
    ...     flag = registry.prop("debug", BOOLEAN).description("verbose output").build()
    ...     flag.value()
    True
    """

    def __init__(self, registry: Registry, key: str, codec: Codec[T]) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidArgument("A property key must be a non-empty string")
        if codec is None:
            raise InvalidArgument(f"A codec must be specified for '{key}'")
        self.key = key
        self.codec = codec
        self._registry = registry
        self._default: T | None = None
        self._description: str | None = None
        self._required = False
        self._secret = False
        self._source_id: str | None = None
        self._validator: Callable[[T], bool] | None = None

    def default(self, value: T) -> Builder[T]:
        self._default = value
        return self

    def description(self, text: str) -> Builder[T]:
        self._description = text
        return self

    def required(self, flag: bool = True) -> Builder[T]:
        self._required = flag
        return self

    def secret(self, flag: bool = True) -> Builder[T]:
        self._secret = flag
        return self

    def source(self, source_id: str) -> Builder[T]:
        """Pin the property to *source_id*; unknown ids fail immediately."""

        self._registry._validate_source(source_id)
        self._source_id = source_id
        return self

    def validator(self, predicate: Callable[[T], bool]) -> Builder[T]:
        self._validator = predicate
        return self

    def build(self) -> Prop[T]:
        """Construct the Prop, bind it to the registry and return it."""

        return self._registry.bind(self._make(), self._source_id)

    def read_once(self) -> T | None:
        """Resolve the key without binding a Prop.

        Raises
        ------
        ValidationError
            When the property is required and neither a value nor a default
            is available.
        """

        prop = self._make()
        value = self._registry.resolve(self.key, prop, self._source_id)
        if value is None:
            value = self._default
        prop.validate_before_get(value)
        return value

    def _make(self) -> Prop[T]:
        return Prop(
            self.key,
            self.codec,
            default=self._default,
            description=self._description,
            required=self._required,
            secret=self._secret,
            validator=self._validator,
            executor=self._registry._notification_executor,
        )
