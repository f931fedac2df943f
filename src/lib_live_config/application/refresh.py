"""Background driver for the initial load and the periodic refresh passes.

Purpose
-------
Run exactly one worker thread per registry: it performs the one-time initial
load, then a refresh pass every ``interval`` seconds until stopped. Passes
never overlap because each one runs to completion before the next wait starts.

Contents
--------
* :class:`RefreshScheduler` – start/stop wrapper around the worker thread.

System Role
-----------
Owned by :class:`lib_live_config.application.registry.Registry`, which supplies
the two callables. The scheduler knows nothing about sources or properties; it
only guarantees ordering, isolation of unexpected failures, and a bounded
shutdown.
"""

from __future__ import annotations

import threading
from typing import Callable

from ..observability import log_debug, log_error


class RefreshScheduler:
    """Single background thread invoking *initial_load* once, then *refresh* periodically.

    Parameters
    ----------
    initial_load:
        Called once when the thread starts.
    refresh:
        Called every *interval* seconds after *initial_load* returned.
    interval:
        Seconds between the end of one pass and the start of the next.
    name:
        Thread name, useful in thread dumps.
    """

    def __init__(
        self,
        *,
        initial_load: Callable[[], None],
        refresh: Callable[[], object],
        interval: float,
        name: str = "lib_live_config-refresh",
    ) -> None:
        if interval <= 0:
            raise ValueError("refresh interval must be positive")
        self._initial_load = initial_load
        self._refresh = refresh
        self._interval = interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = False
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self._started = True
        self._thread.start()

    def stop(self, timeout: float) -> bool:
        """Cancel future passes and wait up to *timeout* for the current one.

        Returns ``True`` when the worker finished in time. Safe to call more
        than once and from the worker thread itself (it then does not wait).
        """

        self._stop.set()
        if not self._started or threading.current_thread() is self._thread:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        self._guarded("initial_load", self._initial_load)
        while not self._stop.wait(self._interval):
            self._guarded("refresh", self._refresh)
        log_debug("refresh_scheduler_stopped", source=None, key=None)

    @staticmethod
    def _guarded(phase: str, func: Callable[[], object]) -> None:
        try:
            func()
        except Exception as exc:  # noqa: BLE001 - the worker must outlive a failing pass
            log_error("refresh_pass_failed", source=None, key=None, phase=phase, error=str(exc))
