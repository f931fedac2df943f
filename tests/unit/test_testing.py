from __future__ import annotations

import pytest

from lib_live_config.application.ports import Source
from lib_live_config.testing import FAILURE_MESSAGE, FailingSource, i_should_fail


def test_i_should_fail_raises_runtime_error() -> None:
    with pytest.raises(RuntimeError, match="^i should fail$"):
        i_should_fail()


def test_i_should_fail_reexported() -> None:
    from lib_live_config import i_should_fail as exported
    from lib_live_config.testing import i_should_fail as original

    assert exported is original


def test_failing_source_counts_attempts_and_still_serves_values() -> None:
    source = FailingSource("broken", {"port": "1"})
    assert isinstance(source, Source)
    for _ in range(2):
        with pytest.raises(RuntimeError, match=FAILURE_MESSAGE):
            source.reload()
    assert source.reload_calls == 2
    assert source.get("port") == "1"
    assert source.is_reloadable()
