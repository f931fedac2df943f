"""Per-property publish/subscribe fan-out of value and error events.

Purpose
-------
Deliver property changes to subscribers without ever blocking the thread that
produced them (the registry's refresh or bind path).

Contents
--------
* :func:`default_executor` – lazily created executor shared by all channels.
* :class:`Subscription` – handle returned to subscribers; supports ``cancel``.
* :class:`UpdateChannel` – fan-out used by a single property.

System Role
-----------
Each subscriber owns an ordered mailbox. Publishing appends to every mailbox
and, when the mailbox is idle, schedules one drain task on the executor. At
most one drain task per mailbox is in flight, so events reach a subscriber in
publication order, while subscribers are drained independently: a slow or
failing subscriber only delays itself.
"""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Final, Generic, TypeVar

from ..observability import log_error, make_event

T = TypeVar("T")

ValueHandler = Callable[[T], None]
ErrorHandler = Callable[[BaseException], None]

DEFAULT_MAX_WORKERS: Final[int] = 32
"""Worker threads of the shared notification executor."""

_EXECUTOR: ThreadPoolExecutor | None = None
_EXECUTOR_LOCK = threading.Lock()


def default_executor() -> Executor:
    """Return the process-wide notification executor, creating it on first use.

    Why
    ----
    Notification is fire-and-forget; a small shared pool multiplexes every
    property's mailboxes instead of dedicating a thread per subscriber.

    Limits
    ------
    The pool has :data:`DEFAULT_MAX_WORKERS` threads. A handler that blocks
    holds one of them for as long as it blocks; once every worker is held by
    blocked handlers, delivery for all properties sharing the pool waits.
    Properties with slow or blocking subscribers should be given their own
    executor (``Prop(..., executor=...)``, ``Registry(notification_executor=...)``
    or :meth:`lib_live_config.core.Factory.notification_executor`).
    """

    global _EXECUTOR
    with _EXECUTOR_LOCK:
        if _EXECUTOR is None:
            _EXECUTOR = ThreadPoolExecutor(
                max_workers=DEFAULT_MAX_WORKERS,
                thread_name_prefix="lib_live_config-notify",
            )
        return _EXECUTOR


class Subscription(Generic[T]):
    """Ordered mailbox feeding one value handler and one optional error handler."""

    def __init__(
        self,
        key: str,
        on_value: ValueHandler[T],
        on_error: ErrorHandler | None,
        executor: Executor,
    ) -> None:
        self._key = key
        self._on_value = on_value
        self._on_error = on_error
        self._executor = executor
        self._events: deque[tuple[bool, object]] = deque()
        self._lock = threading.Lock()
        self._draining = False
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop delivering events; queued events that were not started are dropped."""

        with self._lock:
            self._cancelled = True
            self._events.clear()

    def offer(self, is_error: bool, payload: object) -> None:
        """Queue an event and make sure a drain task is scheduled."""

        with self._lock:
            if self._cancelled:
                return
            self._events.append((is_error, payload))
            if self._draining:
                return
            self._draining = True
        try:
            self._executor.submit(self._drain)
        except RuntimeError:
            # executor already shut down (interpreter exit)
            with self._lock:
                self._draining = False
                self._events.clear()

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._events or self._cancelled:
                    self._draining = False
                    return
                is_error, payload = self._events.popleft()
            self._deliver(is_error, payload)

    def _deliver(self, is_error: bool, payload: object) -> None:
        try:
            if not is_error:
                self._on_value(payload)  # type: ignore[arg-type]
            elif self._on_error is not None:
                self._on_error(payload)  # type: ignore[arg-type]
        except Exception as exc:  # noqa: BLE001 - subscriber failures stay isolated
            log_error(
                "subscriber_failed",
                **make_event(None, self._key, {"handler": repr(self._on_value), "error": type(exc).__name__}),
            )


class UpdateChannel(Generic[T]):
    """Fan-out of value and error events for a single property.

    Examples
    --------
    >>> import threading
    >>> done = threading.Event()
    >>> seen = []
    >>> channel = UpdateChannel("demo")
    >>> _ = channel.subscribe(lambda value: (seen.append(value), done.set()))
    >>> channel.publish(42)
    >>> done.wait(5)
    True
    >>> seen
    [42]
    """

    def __init__(self, key: str, executor: Executor | None = None) -> None:
        self._key = key
        self._executor = executor if executor is not None else default_executor()
        self._subscriptions: list[Subscription[T]] = []
        self._lock = threading.Lock()

    def subscribe(self, on_value: ValueHandler[T], on_error: ErrorHandler | None = None) -> Subscription[T]:
        """Register handlers that receive every event published after this call."""

        if not callable(on_value) or (on_error is not None and not callable(on_error)):
            raise TypeError("Subscriber handlers must be callable")
        subscription: Subscription[T] = Subscription(self._key, on_value, on_error, self._executor)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def publish(self, value: T | None) -> None:
        """Queue *value* for every live subscriber without waiting for delivery."""

        self._offer(False, value)

    def publish_error(self, error: BaseException) -> None:
        """Queue *error* for every live subscriber's error handler."""

        self._offer(True, error)

    def subscriber_count(self) -> int:
        with self._lock:
            self._subscriptions = [sub for sub in self._subscriptions if not sub.cancelled]
            return len(self._subscriptions)

    def _offer(self, is_error: bool, payload: object) -> None:
        with self._lock:
            targets = [sub for sub in self._subscriptions if not sub.cancelled]
            self._subscriptions = targets
        for subscription in targets:
            subscription.offer(is_error, payload)
