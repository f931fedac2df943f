"""Factory, Lifecycle and composition-root tests."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import pytest

from lib_live_config import Factory, Lifecycle, MemorySource, factory, layered_sources, open_registry
from lib_live_config.adapters.dotenv.default import DotEnvSource
from lib_live_config.adapters.env.default import EnvSource
from lib_live_config.domain.codecs import INTEGER
from lib_live_config.domain.errors import InvalidState
from tests.support import WAIT_TIMEOUT


def test_build_without_sources_fails() -> None:
    with pytest.raises(InvalidState, match="without any Sources"):
        Factory().build()


def test_later_source_with_same_id_replaces_earlier() -> None:
    registry = (
        factory()
        .with_source(MemorySource("shared", {"port": "1"}))
        .with_source(MemorySource("other", {"port": "2"}))
        .with_source(MemorySource("shared", {"port": "3"}))
        .refresh_interval(3600)
        .build()
    )
    with registry:
        assert registry.source_ids == ("shared", "other")
        assert registry.prop("port", INTEGER).read_once() == 3


@pytest.mark.parametrize("seconds", [0, -1])
def test_refresh_interval_must_be_positive(seconds: float) -> None:
    with pytest.raises(ValueError):
        Factory().refresh_interval(seconds)


def test_shutdown_grace_period_must_not_be_negative() -> None:
    with pytest.raises(ValueError):
        Factory().shutdown_grace_period(-0.5)
    assert Factory().shutdown_grace_period(0) is not None


def test_build_registers_close_with_lifecycle() -> None:
    lifecycle = Lifecycle()
    registry = factory().with_source(MemorySource()).refresh_interval(3600).lifecycle(lifecycle).build()
    assert not registry.closed
    lifecycle.close()
    assert registry.closed
    assert lifecycle.closed


def test_shutdown_hook_can_be_disabled() -> None:
    lifecycle = Lifecycle()
    registry = (
        factory()
        .with_source(MemorySource())
        .refresh_interval(3600)
        .register_shutdown_hook(False)
        .lifecycle(lifecycle)
        .build()
    )
    lifecycle.close()
    assert not registry.closed
    registry.close()


def test_lifecycle_runs_callbacks_newest_first_and_survives_failures(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_live_config")
    lifecycle = Lifecycle()
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("cleanup failed")

    lifecycle.register(lambda: calls.append("first"))
    lifecycle.register(broken)
    lifecycle.register(lambda: calls.append("last"))
    lifecycle.close()
    lifecycle.close()
    assert calls == ["last", "first"]
    assert any(record.getMessage() == "lifecycle_callback_failed" for record in caplog.records)


def test_lifecycle_rejects_non_callables() -> None:
    with pytest.raises(TypeError):
        Lifecycle().register("close")  # type: ignore[arg-type]


def test_install_exit_hook_registers_once(monkeypatch: pytest.MonkeyPatch) -> None:
    registered: list[object] = []
    monkeypatch.setattr("lib_live_config.core.atexit.register", registered.append)
    lifecycle = Lifecycle()
    lifecycle.install_exit_hook()
    lifecycle.install_exit_hook()
    assert registered == [lifecycle.close]


def test_layered_sources_order(tmp_path: Path) -> None:
    sources = layered_sources(slug="demo-app", files=[tmp_path / "base.toml", tmp_path / "site.yaml"], start_dir=tmp_path)
    assert [source.id() for source in sources] == [
        f"file:{tmp_path / 'base.toml'}",
        f"file:{tmp_path / 'site.yaml'}",
        "dotenv",
        "env",
    ]
    assert isinstance(sources[2], DotEnvSource)
    assert isinstance(sources[3], EnvSource)
    assert sources[3].prefix == "DEMO_APP_"


def test_layered_sources_explicit_prefix_wins() -> None:
    sources = layered_sources(slug="demo", dotenv=False, env_prefix="OTHER")
    assert [source.id() for source in sources] == ["env"]
    assert sources[0].prefix == "OTHER_"


def test_open_registry_resolves_across_layers(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.toml"
    config.write_text('[service]\nport = 8080\nhost = "file-host"\n', encoding="utf-8")
    (tmp_path / ".env").write_text("SERVICE__HOST=dotenv-host\n", encoding="utf-8")
    monkeypatch.setenv("DEMO_SERVICE__PORT", "9090")
    lifecycle = Lifecycle()
    registry = open_registry(slug="demo", files=[config], start_dir=tmp_path, refresh_interval=3600, lifecycle=lifecycle)
    assert registry.wait_until_loaded(WAIT_TIMEOUT)
    port = registry.prop("service.port", INTEGER).build()
    host = registry.prop("service.host").build()
    assert port.value() == 9090
    assert host.value() == "dotenv-host"
    lifecycle.close()
    assert registry.closed


def test_open_registry_without_layers_fails() -> None:
    with pytest.raises(InvalidState):
        open_registry(dotenv=False, env=False)


def test_notification_executor_is_used_for_built_props() -> None:
    from concurrent.futures import ThreadPoolExecutor

    from tests.support import Recorder

    source = MemorySource("mem", {"level": "info"})
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="custom-notify") as executor:
        registry = factory().with_source(source).refresh_interval(3600).notification_executor(executor).build()
        with registry:
            assert registry.wait_until_loaded(WAIT_TIMEOUT)
            level = registry.prop("level").build()
            threads = Recorder()
            level.on_update(lambda value: threads.on_value(threading.current_thread().name))
            source.set("level", "debug")
            registry.refresh()
            assert threads.wait_for_values(1)[0].startswith("custom-notify")


def test_shared_notification_executor_is_bounded() -> None:
    from lib_live_config.application.notify import DEFAULT_MAX_WORKERS, default_executor

    assert default_executor()._max_workers == DEFAULT_MAX_WORKERS
