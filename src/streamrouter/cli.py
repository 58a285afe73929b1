from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import AppSettings, load_settings
from .core import default_config, serialize_config
from .editing import ReferencePolicy, find_dangling_references, rename_upstream
from .exceptions import StreamRouterError
from .logging_config import setup_logging
from .models import NginxConfig
from .output_writer import (
    atomic_write_text,
    dump_model,
    load_model,
    read_config_text,
    write_config_text,
)


def _settings(ctx: click.Context) -> AppSettings:
    return ctx.obj["settings"]


def _emit(text: str, output: str | None, encoding: str) -> None:
    """Write ``text`` to ``output`` or, without one, to stdout."""
    if output is None:
        click.echo(text, nl=False)
        return
    path = atomic_write_text(Path(output), text, encoding)
    click.echo(f"✓ Written to {path}", err=True)


def _read(ctx: click.Context, config_file: str) -> NginxConfig:
    try:
        return read_config_text(Path(config_file), _settings(ctx).encoding)
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"✗ Could not read {config_file}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--settings",
    "settings_file",
    default=None,
    help="Path to a YAML settings file.",
    type=click.Path(exists=True, dir_okay=False),
)
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, settings_file: str | None, verbose: bool):
    """
    StreamRouter: generate and edit nginx stream routing configurations.
    """
    settings = load_settings(Path(settings_file) if settings_file else None)
    setup_logging(
        "DEBUG" if verbose else settings.log_level,
        settings.mask_sensitive_data,
        settings.log_file,
    )
    ctx.obj = {"settings": settings}


@cli.command()
@click.option(
    "--model",
    "model_file",
    default=None,
    help="YAML or JSON model document to render. Defaults to the built-in example.",
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "--output",
    "output",
    default=None,
    help="File to write the configuration to. Defaults to stdout.",
    type=click.Path(dir_okay=False),
)
@click.option(
    "--write",
    "write",
    is_flag=True,
    default=False,
    help="Write to the output file named in the settings (nginx.conf by default).",
)
@click.pass_context
def render(ctx: click.Context, model_file: str | None, output: str | None, write: bool):
    """
    Render a model document as nginx configuration text.
    """
    settings = _settings(ctx)
    try:
        config = load_model(Path(model_file), settings.encoding) if model_file else default_config()
    except StreamRouterError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    if write and output is None:
        output = str(settings.output_file)
    _emit(serialize_config(config), output, settings.encoding)


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "fmt",
    default="yaml",
    show_default=True,
    type=click.Choice(["yaml", "json"]),
    help="Format of the model document.",
)
@click.option(
    "--output",
    "output",
    default=None,
    help="File to write the model document to. Defaults to stdout.",
    type=click.Path(dir_okay=False),
)
@click.pass_context
def parse(ctx: click.Context, config_file: str, fmt: str, output: str | None):
    """
    Parse nginx configuration text into a model document.
    """
    config = _read(ctx, config_file)
    _emit(dump_model(config, fmt), output, _settings(ctx).encoding)


@cli.command(name="format")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "output",
    default=None,
    help="File to write the canonical configuration to. Defaults to stdout.",
    type=click.Path(dir_okay=False),
)
@click.pass_context
def format_config(ctx: click.Context, config_file: str, output: str | None):
    """
    Rewrite a configuration file in canonical form.
    """
    config = _read(ctx, config_file)
    _emit(serialize_config(config), output, _settings(ctx).encoding)


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--strict",
    "strict",
    is_flag=True,
    default=False,
    help="Fail when mappings reference undeclared upstreams.",
)
@click.pass_context
def check(ctx: click.Context, config_file: str, strict: bool):
    """
    Summarize a configuration and report dangling upstream references.
    """
    config = _read(ctx, config_file)
    strict = strict or _settings(ctx).reference_policy == ReferencePolicy.STRICT
    console = Console()

    console.print(f"Listen port: [bold]{config.listen_port}[/bold]")
    console.print(f"Access log: {config.log_path} ({config.log_format})")
    console.print(f"Default upstream: [bold]{config.default_upstream}[/bold]")

    table = Table(title="Upstreams")
    table.add_column("Name")
    table.add_column("Servers")
    table.add_column("Mapped IPs", justify="right")
    for upstream in config.upstreams:
        table.add_row(
            upstream.name,
            ", ".join(upstream.addresses) or "-",
            str(config.usage(upstream.name)),
        )
    console.print(table)

    missing = find_dangling_references(config)
    if not missing:
        console.print("✅ All upstream references resolve.")
        return
    console.print(f"⚠️  Undeclared upstreams referenced: {', '.join(missing)}")
    if strict:
        sys.exit(1)


@cli.command(name="rename-upstream")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("old")
@click.argument("new")
@click.option(
    "--output",
    "output",
    default=None,
    help="File to write the result to. Defaults to rewriting CONFIG_FILE.",
    type=click.Path(dir_okay=False),
)
@click.pass_context
def rename_upstream_command(
    ctx: click.Context, config_file: str, old: str, new: str, output: str | None
):
    """
    Rename an upstream and every mapping that routes to it.
    """
    settings = _settings(ctx)
    config = _read(ctx, config_file)
    try:
        updated = rename_upstream(config, old, new, policy=settings.reference_policy)
    except StreamRouterError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    path = write_config_text(updated, Path(output or config_file), settings.encoding)
    click.echo(f"✓ Renamed {old} to {new} in {path}")


def main():
    cli()


if __name__ == "__main__":
    main()
