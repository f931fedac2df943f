"""Public package surface for ``lib_live_config``.

Typed configuration properties resolved from prioritised, reloadable sources
and kept current while the process runs. Import from here; the layered
sub-packages (``domain``, ``application``, ``adapters``) are implementation
detail.
"""

from __future__ import annotations

from .adapters.dotenv.default import DotEnvSource
from .adapters.env.default import EnvSource, default_env_prefix
from .adapters.file_loaders.structured import FileSource
from .adapters.memory.default import MemorySource
from .adapters.snapshot import SnapshotSource
from .application.notify import Subscription
from .application.ports import Codec, Source
from .application.prop import Prop
from .application.registry import Builder, Registry
from .core import Factory, Lifecycle, factory, layered_sources, open_registry
from .domain.codecs import (
    BOOLEAN,
    DURATION,
    FLOAT,
    INTEGER,
    STRING,
    STRING_LIST,
    BaseCodec,
    ListCodec,
)
from .domain.errors import (
    BindError,
    ConfigError,
    DecodeError,
    InvalidArgument,
    InvalidFormat,
    InvalidState,
    NotFound,
    ValidationError,
)
from .observability import REDACTED, bind_trace_id, get_logger, trace_scope
from .testing import i_should_fail

__all__ = [
    "BOOLEAN",
    "DURATION",
    "FLOAT",
    "INTEGER",
    "REDACTED",
    "STRING",
    "STRING_LIST",
    "BaseCodec",
    "BindError",
    "Builder",
    "Codec",
    "ConfigError",
    "DecodeError",
    "DotEnvSource",
    "EnvSource",
    "Factory",
    "FileSource",
    "InvalidArgument",
    "InvalidFormat",
    "InvalidState",
    "Lifecycle",
    "ListCodec",
    "MemorySource",
    "NotFound",
    "Prop",
    "Registry",
    "SnapshotSource",
    "Source",
    "Subscription",
    "ValidationError",
    "bind_trace_id",
    "default_env_prefix",
    "factory",
    "get_logger",
    "i_should_fail",
    "layered_sources",
    "open_registry",
    "trace_scope",
]
