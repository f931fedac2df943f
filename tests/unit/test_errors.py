from __future__ import annotations

import pytest

from lib_live_config.domain.errors import (
    BindError,
    ConfigError,
    DecodeError,
    InvalidArgument,
    InvalidFormat,
    InvalidState,
    NotFound,
    ValidationError,
)


def test_error_hierarchy() -> None:
    for error_type in (BindError, InvalidArgument, InvalidState, ValidationError, DecodeError, InvalidFormat, NotFound):
        assert issubclass(error_type, ConfigError)


def test_builtin_compatibility() -> None:
    """Misuse errors double as the builtin exception callers already catch."""

    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(DecodeError, ValueError)
    assert issubclass(InvalidState, RuntimeError)


def test_bind_error_carries_key_and_owner() -> None:
    owner = object()
    error = BindError("port", owner)
    assert error.key == "port"
    assert error.existing is owner
    assert str(error).startswith("Key 'port' is already bound to ")


def test_validation_error_key_is_optional() -> None:
    assert ValidationError("boom").key is None
    with pytest.raises(ValidationError) as info:
        raise ValidationError("missing", key="db.password")
    assert info.value.key == "db.password"
