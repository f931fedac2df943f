"""CLI adapter for ``lib_live_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect how a key resolves across the default layered sources
(files → ``.env`` → environment) without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_env_prefix` – helper exposing :func:`lib_live_config.core.default_env_prefix`.
* :func:`cli_read` – one-shot typed read of a key (``Builder.read_once``).
* :func:`cli_layers` – every source's value for a key, lowest priority first.
* :func:`cli_fail` – deterministic failure for exit-code testing.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It only talks to the composition root
(:func:`lib_live_config.core.open_registry`) and the public registry API.
"""

from __future__ import annotations

import json
import sys
from functools import wraps
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import default_env_prefix as _default_env_prefix
from .application.registry import Registry
from .core import open_registry
from .application.prop import Prop
from .domain.codecs import CODECS, STRING
from .observability import redact_value, trace_scope
from .testing import i_should_fail

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DIST_NAME: Final[str] = "lib_live_config"


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Live, layered configuration properties",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DIST_NAME,
    message="lib_live_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


def _source_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options that describe the layered source stack."""

    @click.option("--slug", default=None, help="Slug used to derive the environment prefix")
    @click.option(
        "--file",
        "files",
        multiple=True,
        type=click.Path(path_type=Path, dir_okay=False),
        help="Structured config file (toml/json/yaml); repeat, lowest priority first",
    )
    @click.option("--dotenv/--no-dotenv", default=True, help="Include the nearest .env file", show_default=True)
    @click.option(
        "--start-dir",
        type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True),
        default=None,
        help="Starting directory for .env upward search (defaults to CWD)",
    )
    @click.option("--env/--no-env", "use_env", default=True, help="Include environment variables", show_default=True)
    @click.option("--env-prefix", default=None, help="Explicit environment prefix (overrides --slug)")
    @wraps(func)
    def wrapper(
        *args: Any,
        slug: Optional[str],
        files: Sequence[Path],
        dotenv: bool,
        start_dir: Optional[Path],
        use_env: bool,
        env_prefix: Optional[str],
        **kwargs: Any,
    ) -> Any:
        with trace_scope(f"cli:{func.__name__}"):
            registry = open_registry(
                slug=slug,
                files=tuple(files),
                dotenv=dotenv,
                start_dir=start_dir,
                env=use_env,
                env_prefix=env_prefix,
            )
            with registry:
                return func(*args, registry=registry, **kwargs)

    return wrapper


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DIST_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DIST_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DIST_NAME)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("slug")
def cli_env_prefix(slug: str) -> None:
    """Compute the canonical environment prefix for *slug*.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["env-prefix", "config-kit"])
    >>> result.output.strip()
    'CONFIG_KIT'
    """

    click.echo(_default_env_prefix(slug))


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option(
    "--type",
    "type_name",
    type=click.Choice(sorted(CODECS), case_sensitive=False),
    default="string",
    show_default=True,
    help="Codec used to decode the value",
)
@click.option("--default", "default_raw", default=None, help="Raw default, decoded with the same codec")
@click.option("--required/--optional", default=False, help="Fail when neither a value nor a default exists")
@click.option("--secret/--no-secret", default=False, help="Redact the value in the output")
@click.option("--source", "source_id", default=None, help="Only consult the source with this id")
@_source_options
def cli_read(
    key: str,
    type_name: str,
    default_raw: Optional[str],
    required: bool,
    secret: bool,
    source_id: Optional[str],
    registry: Registry,
) -> None:
    """Resolve KEY once and print ``{"key": ..., "value": ...}`` as JSON.

    The value is re-encoded with the selected codec; ``null`` means no source
    had the key and no default was given.
    """

    codec = CODECS[type_name.lower()]
    builder = registry.prop(key, codec).required(required).secret(secret)
    if default_raw is not None:
        builder.default(codec.decode(default_raw))
    if source_id is not None:
        builder.source(source_id)
    value = builder.read_once()
    click.echo(json.dumps({"key": key, "value": _render(codec, value, secret)}))


@cli.command("layers", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option("--secret/--no-secret", default=False, help="Redact the values in the output")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@_source_options
def cli_layers(key: str, secret: bool, indent: Optional[int], registry: Registry) -> None:
    """Print every source's raw value for KEY, lowest priority first, plus the winner."""

    prop = Prop(key, STRING, secret=secret)
    layers = registry.resolve_layers(prop)
    winner = list(layers)[-1] if layers else None
    payload = {
        "key": key,
        "layers": {source_id: redact_value(value, secret) for source_id, value in layers.items()},
        "winner": winner,
    }
    click.echo(json.dumps(payload, indent=indent))


@cli.command("fail", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_fail() -> None:
    """Trigger a deterministic error for testing traceback handling."""

    i_should_fail()


def _render(codec: Any, value: Any, secret: bool) -> Optional[str]:
    if value is None or secret:
        return redact_value(value, secret)
    return codec.encode(value)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DIST_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
