"""CLI entry point for etcd-session-store.

Invoked as::

    etcd-session-store [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m etcd_session_store.cli.main

Commands
--------
- version  — Show version information
- get      — Print one session record as JSON
- set      — Store a session record given as JSON
- touch    — Rewrite a session record given as JSON
- destroy  — Delete one session
- list     — Show every stored session
- count    — Print the number of stored sessions
- clear    — Delete every stored session
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from etcd_session_store.config import StoreConfig
from etcd_session_store.errors import SessionStoreError
from etcd_session_store.store.etcd import EtcdSessionStore

console = Console()
err_console = Console(stderr=True)

_T = TypeVar("_T")

# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


def _load_config(
    config_path: str | None,
    backend: str | None,
    hosts: str | None,
    key_prefix: str | None,
    redis_url: str | None,
    log_level: str | None,
) -> StoreConfig:
    """Merge file/environment configuration with command-line overrides.

    The YAML file wins over the environment when given; explicit options
    win over both.
    """
    base = StoreConfig.from_yaml(config_path) if config_path else StoreConfig.from_env()
    overrides: dict[str, Any] = {
        "backend": backend,
        "hosts": hosts,
        "key_prefix": key_prefix,
        "redis_url": redis_url,
        "log_level": log_level,
    }
    data = base.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    return StoreConfig.model_validate(data)


def _make_store(config: StoreConfig) -> EtcdSessionStore:
    """Instantiate the store described by ``config``."""
    return EtcdSessionStore.from_config(config)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _run(ctx: click.Context, operation: Callable[[EtcdSessionStore], Awaitable[_T]]) -> _T:
    """Run ``operation`` against a fresh store and close it afterwards.

    Store errors are reported in red and terminate with exit status 1.
    """
    config: StoreConfig = ctx.obj["config"]

    async def runner() -> _T:
        store = _make_store(config)
        try:
            return await operation(store)
        finally:
            await store.close()

    try:
        return asyncio.run(runner())
    except (SessionStoreError, ImportError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _parse_record(raw: str) -> dict[str, Any]:
    try:
        record = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="RECORD") from exc
    if not isinstance(record, dict):
        raise click.BadParameter("must be a JSON object", param_hint="RECORD")
    return record


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration file.  Defaults to ETCD_SESSION_* variables.",
)
@click.option(
    "--backend",
    default=None,
    type=click.Choice(["etcd", "redis", "memory"], case_sensitive=False),
    help="Key-value backend to use.",
)
@click.option("--hosts", default=None, help="Comma-separated etcd endpoints.")
@click.option("--key-prefix", default=None, help="Root key for all sessions.")
@click.option("--redis-url", default=None, help="Redis connection URL (redis backend).")
@click.option("--log-level", default=None, help="Logging level, e.g. DEBUG.")
@click.version_option(package_name="etcd-session-store")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    backend: str | None,
    hosts: str | None,
    key_prefix: str | None,
    redis_url: str | None,
    log_level: str | None,
) -> None:
    """Inspect and maintain HTTP sessions stored in etcd."""
    ctx.ensure_object(dict)
    try:
        config = _load_config(
            config_path,
            backend.lower() if backend else None,
            hosts,
            key_prefix,
            redis_url,
            log_level,
        )
    except ValueError as exc:
        raise click.UsageError(f"Invalid configuration: {exc}") from exc
    _configure_logging(config.log_level)
    ctx.obj["config"] = config


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from etcd_session_store import __version__

    console.print(f"[bold]etcd-session-store[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# Single-session commands
# ---------------------------------------------------------------------------


@cli.command(name="get")
@click.argument("session_id")
@click.pass_context
def get_command(ctx: click.Context, session_id: str) -> None:
    """Print the record stored for SESSION_ID."""
    record = _run(ctx, lambda store: store.get(session_id))
    if record is None:
        err_console.print(f"[red]Session not found:[/red] {session_id}")
        sys.exit(1)
    click.echo(json.dumps(record, indent=2, sort_keys=True))


@cli.command(name="set")
@click.argument("session_id")
@click.argument("record")
@click.pass_context
def set_command(ctx: click.Context, session_id: str, record: str) -> None:
    """Store RECORD (a JSON object) for SESSION_ID."""
    data = _parse_record(record)
    _run(ctx, lambda store: store.set(session_id, data))
    console.print(f"[green]Session saved:[/green] {session_id}")


@cli.command(name="touch")
@click.argument("session_id")
@click.argument("record")
@click.pass_context
def touch_command(ctx: click.Context, session_id: str, record: str) -> None:
    """Rewrite the record for SESSION_ID with RECORD."""
    data = _parse_record(record)
    _run(ctx, lambda store: store.touch(session_id, data))
    console.print(f"[green]Session touched:[/green] {session_id}")


@cli.command(name="destroy")
@click.argument("session_id")
@click.pass_context
def destroy_command(ctx: click.Context, session_id: str) -> None:
    """Delete SESSION_ID.  Deleting an absent session succeeds."""
    _run(ctx, lambda store: store.destroy(session_id))
    console.print(f"[green]Session destroyed:[/green] {session_id}")


# ---------------------------------------------------------------------------
# Listing commands
# ---------------------------------------------------------------------------


@cli.command(name="list")
@click.option("--json-output", is_flag=True, help="Output a JSON object instead of a table.")
@click.pass_context
def list_command(ctx: click.Context, json_output: bool) -> None:
    """Show every stored session."""
    items = _run(ctx, lambda store: store.items())
    if json_output:
        click.echo(json.dumps(dict(items), indent=2, sort_keys=True))
        return
    if not items:
        console.print("[yellow]No sessions found.[/yellow]")
        return

    table = Table(title="Stored Sessions", show_lines=False)
    table.add_column("Session ID", style="cyan", no_wrap=True)
    table.add_column("Record")
    for session_id, record in items:
        table.add_row(session_id, json.dumps(record, sort_keys=True))
    console.print(table)


@cli.command(name="count")
@click.pass_context
def count_command(ctx: click.Context) -> None:
    """Print the number of stored sessions."""
    click.echo(str(_run(ctx, lambda store: store.length())))


@cli.command(name="clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def clear_command(ctx: click.Context, yes: bool) -> None:
    """Delete every stored session.

    Sessions written while the clear is running may survive it.
    """
    config: StoreConfig = ctx.obj["config"]
    if not yes:
        click.confirm(f"Delete every session under {config.key_prefix!r}?", abort=True)
    _run(ctx, lambda store: store.clear())
    console.print(f"[green]Cleared sessions under[/green] {config.key_prefix}")


if __name__ == "__main__":
    cli()
