"""Testing helpers that keep failure scenarios observable and predictable.

Purpose
    Provide intentionally failing collaborators that exercise the registry's
    isolation paths (and the CLI's error handling) without brittle fixtures.

Contents
    - ``FAILURE_MESSAGE``: stable message used when forcing a failure.
    - ``FailingSource``: a source whose ``reload`` always raises.
    - ``i_should_fail``: raises ``RuntimeError`` so callers can assert on the
      propagated error details.

System Integration
    Used by the test-suite and by applications that want to prove a broken
    source does not take the rest of their configuration down.
"""

from __future__ import annotations

from typing import Final

FAILURE_MESSAGE: Final[str] = "i should fail"
"""Stable message emitted by every helper in this module."""


class FailingSource:
    """Source whose :meth:`reload` raises :class:`RuntimeError` every time.

    Why
        The registry promises that one broken source never blocks the others;
        this source makes that promise testable.
    What
        ``get`` serves the optional *values* so priority behaviour can still be
        observed; ``reload_calls`` counts attempts.

    Examples
    --------
    >>> source = FailingSource("broken")
    >>> source.reload()
    Traceback (most recent call last):
    ...
    RuntimeError: i should fail
    >>> source.reload_calls
    1
    """

    def __init__(self, source_id: str = "failing", values: dict[str, str] | None = None) -> None:
        self._source_id = source_id
        self._values = dict(values or {})
        self.reload_calls = 0

    def id(self) -> str:
        return self._source_id

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def reload(self) -> set[str]:
        self.reload_calls += 1
        raise RuntimeError(FAILURE_MESSAGE)

    def is_reloadable(self) -> bool:
        return True


def i_should_fail() -> None:
    """Raise a deterministic :class:`RuntimeError` for failure-path testing.

    Examples
    --------
    >>> i_should_fail()
    Traceback (most recent call last):
    ...
    RuntimeError: i should fail
    """

    raise RuntimeError(FAILURE_MESSAGE)
