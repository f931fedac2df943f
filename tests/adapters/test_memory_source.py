from __future__ import annotations

import pytest

from lib_live_config import MemorySource


def test_changes_become_visible_on_reload() -> None:
    source = MemorySource("overrides", {"port": "9090"})
    assert source.get("port") is None
    assert source.reload() == {"port"}
    source.set("port", "9091")
    assert source.get("port") == "9090"
    assert source.reload() == {"port"}
    assert source.get("port") == "9091"


def test_reload_without_changes_reports_nothing() -> None:
    source = MemorySource(values={"a": "1"})
    source.reload()
    source.set("a", "1")
    assert source.reload() == set()


def test_update_remove_and_clear() -> None:
    source = MemorySource()
    source.update({"a": "1", "b": "2"})
    source.reload()
    source.remove("a")
    source.remove("missing")
    assert source.reload() == {"a"}
    source.clear()
    assert source.reload() == {"b"}
    assert source.keys() == frozenset()


def test_values_must_be_strings() -> None:
    with pytest.raises(TypeError):
        MemorySource().set("port", 8080)  # type: ignore[arg-type]


def test_source_id_is_required() -> None:
    with pytest.raises(ValueError):
        MemorySource("")


def test_static_flag_and_repr() -> None:
    source = MemorySource("defaults", {"a": "1"}, reloadable=False)
    assert not source.is_reloadable()
    assert source.id() == "defaults"
    assert repr(source) == "MemorySource(id='defaults', keys=0)"
