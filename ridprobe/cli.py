#!/usr/bin/env python3
"""
ridprobe CLI - Command-line interface
Click-based CLI for platform detection and runtime id resolution
"""

import json
import os
import sys
import click
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ridprobe import __version__
from ridprobe.config import ConfigManager, LINE_SEPARATORS
from ridprobe.platform import (
    CompatibilityTable,
    DistributionIdentity,
    PlatformIdentity,
    RidprobeError,
    StaticRuntimeIdFallback,
    detect_current_platform,
    resolve_runtime_id,
)
from ridprobe.platform.release_info import read_release_file

console = Console()


def _load_config(config_path: Optional[str]):
    return ConfigManager.load_config(Path(config_path) if config_path else None)


def _fail(message: str):
    console.print(f"[red]Error: {escape(message)}[/red]", highlight=False)
    sys.exit(1)


def _print_distribution(distribution: DistributionIdentity, indent: str = ""):
    console.print(f"{indent}Name: {escape(distribution.name)}", highlight=False)
    console.print(f"{indent}Version: {escape(distribution.version)}", highlight=False)
    if distribution.id_like is not None:
        console.print(f"{indent}Like: {escape(' '.join(distribution.id_like))}", highlight=False)


def _print_identity(identity: PlatformIdentity):
    console.print("[bold cyan]Platform Information:[/bold cyan]")
    console.print(f"  OS: {identity.os_kind.value}", highlight=False)
    console.print(f"  Architecture: {escape(identity.architecture or 'unknown')}", highlight=False)
    if identity.distribution is not None:
        console.print("  Distribution:")
        _print_distribution(identity.distribution, indent="    ")

    if identity.runtime_id:
        console.print(f"  Runtime ID: [green]{escape(identity.runtime_id)}[/green]", highlight=False)
    else:
        console.print("  Runtime ID: [yellow]unsupported[/yellow]")


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version and exit')
@click.pass_context
def main(ctx, version):
    """
    ridprobe - Platform Runtime Id Detection

    Detects the host OS, architecture and Linux distribution and maps them
    to a runtime id (e.g. ubuntu.16.04-x64).

    Examples:
        ridprobe detect                      # Detect this machine
        ridprobe detect --json               # Machine-readable output
        ridprobe resolve --os linux --arch x86_64 --distro ubuntu --distro-version 16.04
        ridprobe table                       # Show the compatibility table
    """
    if version:
        click.echo(f"ridprobe v{__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.option('--fallback-rid', default=None, help='Runtime id to use for unrecognized Linux distros')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Path to .ridprobe.yml (default: search from current dir)')
@click.option('--verbose', '-v', is_flag=True, help='Show detection diagnostics on stderr')
def detect(as_json, fallback_rid, config_path, verbose):
    """
    Detect the current platform and its runtime id.
    """
    config = _load_config(config_path)
    fallback = StaticRuntimeIdFallback(fallback_rid) if fallback_rid else None

    try:
        identity = detect_current_platform(fallback, config=config, verbose=verbose)
    except RidprobeError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(identity.to_dict(), indent=2))
    else:
        _print_identity(identity)


@main.command()
@click.option('--os', 'os_kind', required=True, type=click.Choice(['windows', 'macos', 'linux']),
              help='Operating system kind')
@click.option('--arch', 'architecture', required=True, help="Architecture, e.g. 'x86_64'")
@click.option('--distro', 'name', default='unknown', help='Linux distribution id (os-release ID)')
@click.option('--distro-version', 'distro_version', default='unknown', help='Linux VERSION_ID')
@click.option('--id-like', multiple=True, help='ID_LIKE ancestor id (can specify multiple)')
@click.option('--fallback-rid', default=None, help='Runtime id to use for unrecognized Linux distros')
@click.option('--table', 'table_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Alternative compatibility table (TOML)')
def resolve(os_kind, architecture, name, distro_version, id_like, fallback_rid, table_path):
    """
    Resolve the runtime id for a given platform description.

    Examples:
        ridprobe resolve --os windows --arch x86
        ridprobe resolve --os linux --arch x86_64 --distro neon --id-like ubuntu --distro-version 16.04
    """
    distribution = DistributionIdentity(name, distro_version, tuple(id_like) if id_like else None)
    fallback = StaticRuntimeIdFallback(fallback_rid) if fallback_rid else None

    try:
        table = CompatibilityTable.load(table_path) if table_path else None
        runtime_id = resolve_runtime_id(os_kind, architecture, distribution, fallback, table)
    except RidprobeError as e:
        _fail(str(e))

    click.echo(runtime_id)


@main.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--eol', type=click.Choice(['native'] + sorted(LINE_SEPARATORS)), default='native',
              help='Line separator used by the file')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
def parse(file_path, eol, as_json):
    """
    Parse an os-release file and show the distribution it describes.
    """
    separator = os.linesep if eol == 'native' else LINE_SEPARATORS[eol]

    try:
        distribution = read_release_file(file_path, separator)
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Failed to read {file_path}: {e}")

    if as_json:
        click.echo(json.dumps(distribution.to_dict(), indent=2))
    else:
        _print_distribution(distribution)


@main.command()
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Path to .ridprobe.yml (default: search from current dir)')
def table(config_path):
    """
    Show the runtime id compatibility table.
    """
    config = _load_config(config_path)
    try:
        compat = config.load_table()
    except RidprobeError as e:
        _fail(str(e))

    rid_table = Table(title="Runtime ID Compatibility", show_header=True, header_style="bold cyan")
    rid_table.add_column("Tier", style="cyan")
    rid_table.add_column("Match", style="magenta")
    rid_table.add_column("Version", style="yellow")
    rid_table.add_column("Runtime ID", style="green", no_wrap=True)

    for tier, key, predicate, runtime_id in compat.rows():
        rid_table.add_row(tier, key, predicate, runtime_id)

    console.print(rid_table)


@main.command()
@click.option('--force', is_flag=True, help='Overwrite existing configuration')
def init(force):
    """
    Create a default .ridprobe.yml in the current directory.
    """
    config_path = Path.cwd() / ConfigManager.DEFAULT_CONFIG_NAME

    if config_path.exists() and not force:
        console.print(f"[yellow]{config_path.name} already exists (use --force to overwrite)[/yellow]")
        return

    ConfigManager.create_default_config(Path.cwd())
    console.print(f"[green]Created {escape(str(config_path))}[/green]", highlight=False)


@main.command()
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Path to .ridprobe.yml (default: search from current dir)')
def config(config_path):
    """
    Show the effective ridprobe configuration.
    """
    found = Path(config_path) if config_path else ConfigManager.find_config()
    cfg = _load_config(config_path)

    console.print("[bold cyan]ridprobe Configuration:[/bold cyan]")
    console.print(f"  File: {escape(str(found)) if found else '(defaults)'}", highlight=False)
    console.print(f"  Fallback runtime id: {escape(cfg.fallback_runtime_id or '(none)')}", highlight=False)
    console.print(f"  Release files: {escape(', '.join(cfg.release_files))}", highlight=False)
    console.print(f"  Line separator: {cfg.line_separator_name or 'native'}", highlight=False)
    console.print(f"  Table: {escape(cfg.table_path or '(packaged)')}", highlight=False)
    console.print(f"\n[bold cyan]ridprobe Version:[/bold cyan] v{__version__}")


if __name__ == '__main__':
    main()
