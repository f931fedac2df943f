"""Shared helpers for the test-suite.

The registry delivers notifications on a background executor and loads its
sources on a background thread. These helpers keep the tests deterministic:
registries are built with a refresh interval long enough that only explicit
``refresh()`` calls run a pass, and subscribers record into a thread-safe
collector the tests can wait on.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterable

from lib_live_config import Registry
from lib_live_config.application.ports import Source

QUIET_INTERVAL = 3600.0
WAIT_TIMEOUT = 5.0


def make_registry(sources: Iterable[Source], **options: Any) -> Registry:
    """Build a registry whose background thread only performs the initial load."""

    options.setdefault("refresh_interval", QUIET_INTERVAL)
    options.setdefault("shutdown_grace_period", WAIT_TIMEOUT)
    registry = Registry(list(sources), **options)
    assert registry.wait_until_loaded(WAIT_TIMEOUT)
    return registry


def wait_for(predicate: Callable[[], bool], timeout: float = WAIT_TIMEOUT) -> bool:
    """Poll *predicate* until it holds or *timeout* elapses."""

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class Recorder:
    """Collect values and errors delivered to a subscriber."""

    def __init__(self) -> None:
        self.values: list[Any] = []
        self.errors: list[BaseException] = []
        self._lock = threading.Lock()

    def on_value(self, value: Any) -> None:
        with self._lock:
            self.values.append(value)

    def on_error(self, error: BaseException) -> None:
        with self._lock:
            self.errors.append(error)

    def wait_for_values(self, count: int, timeout: float = WAIT_TIMEOUT) -> list[Any]:
        assert wait_for(lambda: len(self.values) >= count, timeout), f"expected {count} values, got {self.values}"
        with self._lock:
            return list(self.values)

    def wait_for_errors(self, count: int, timeout: float = WAIT_TIMEOUT) -> list[BaseException]:
        assert wait_for(lambda: len(self.errors) >= count, timeout), f"expected {count} errors, got {self.errors}"
        with self._lock:
            return list(self.errors)


def settle(timeout: float = 0.2) -> None:
    """Give the notification executor time to deliver anything still queued."""

    time.sleep(timeout)
