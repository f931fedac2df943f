"""Adapter contract tests for the application-layer ports.

Purpose
-------
Verify the bundled sources, codecs, loaders and properties continue to satisfy
the protocols defined in ``src/lib_live_config/application/ports.py`` so the
registry can stay agnostic of concrete adapters.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_live_config.adapters.dotenv.default import DotEnvSource
from lib_live_config.adapters.env.default import EnvSource
from lib_live_config.adapters.file_loaders.structured import JSONFileLoader, TOMLFileLoader, YAMLFileLoader, FileSource
from lib_live_config.adapters.memory.default import MemorySource
from lib_live_config.application import ports
from lib_live_config.application.prop import Prop
from lib_live_config.domain.codecs import CODECS, INTEGER
from lib_live_config.testing import FailingSource


@pytest.fixture()
def every_source(tmp_path: Path) -> list[ports.Source]:
    config = tmp_path / "config.toml"
    config.write_text("port = 1\n", encoding="utf-8")
    (tmp_path / ".env").write_text("PORT=1\n", encoding="utf-8")
    return [
        MemorySource("memory", {"port": "1"}),
        EnvSource("CONTRACT", environ={"CONTRACT_PORT": "1"}),
        DotEnvSource(tmp_path),
        FileSource(config),
        FailingSource(),
    ]


def test_sources_fulfil_source_protocol(every_source) -> None:
    for source in every_source:
        assert isinstance(source, ports.Source)
        assert isinstance(source.id(), str) and source.id()
        assert isinstance(source.is_reloadable(), bool)


def test_get_never_performs_io_before_reload(every_source) -> None:
    for source in every_source[:-1]:
        assert source.get("port") is None
        assert "port" in source.reload()
        assert source.get("port") == "1"


def test_codecs_and_props_fulfil_codec_protocol() -> None:
    for codec in CODECS.values():
        assert isinstance(codec, ports.Codec)
    assert isinstance(Prop("port", INTEGER), ports.Codec)


def test_loaders_fulfil_file_loader_protocol() -> None:
    for loader in (TOMLFileLoader(), JSONFileLoader(), YAMLFileLoader()):
        assert isinstance(loader, ports.FileLoader)
