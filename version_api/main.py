"""
CDN Version API — CLI Entry Point

Usage:
    python -m version_api.main serve [--host H] [--port N]
    python -m version_api.main info [--json]
    python -m version_api.main refresh [--json]
    python -m version_api.main scheduled
    python -m version_api.main watch [--interval N]
    python -m version_api.main mirrors [--version V]
    python -m version_api.main check-config
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_project_root = Path.cwd()
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import json
from datetime import datetime, timezone
from typing import Optional

import click

from .checks.refresh import refresh_version_record
from .config.loader import Settings, load_settings, validate_settings
from .errors import ConfigError, VersionApiError
from .logging_config import setup_logging
from .models.record import VersionRecord
from .persistence.record_cache import load_record
from .persistence.store import KeyValueStore, build_store
from .scheduler import RefreshLoop, run_scheduled_refresh

# Initialize logging
setup_logging()


def get_project_root() -> Path:
    """Directory relative store paths and .env are resolved against."""
    return _project_root


def _settings(ctx: click.Context) -> Settings:
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings()
        except ConfigError as e:
            raise click.ClickException(str(e))
    return ctx.obj["settings"]


def _store(ctx: click.Context) -> KeyValueStore:
    if "store" not in ctx.obj:
        try:
            ctx.obj["store"] = build_store(_settings(ctx), ctx.obj["root"])
        except ConfigError as e:
            raise click.ClickException(str(e))
    return ctx.obj["store"]


def _echo_record(record: VersionRecord, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(record.to_payload(), indent=2))
        return

    updated = datetime.fromtimestamp(record.last_updated / 1000, timezone.utc)
    click.echo(f"Version:      {record.package_version}")
    click.echo(f"Last updated: {updated.isoformat()}")
    click.echo("")
    for name, available in record.mirror_availability.items():
        if available:
            click.secho(f"  ✓ {name}", fg="green")
        else:
            click.secho(f"  ✗ {name}", fg="red")


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """CDN Version API — latest release availability across CDN mirrors."""
    ctx.ensure_object(dict)
    ctx.obj["root"] = get_project_root()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=5050, type=int, help="Port (default: 5050)")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, debug: bool) -> None:
    """Run the HTTP API."""
    from .api.server import run_server

    run_server(
        host=host,
        port=port,
        debug=debug,
        settings=_settings(ctx),
        project_root=ctx.obj["root"],
    )


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show the cached version record (no network access)."""
    settings = _settings(ctx)
    try:
        record = load_record(_store(ctx), settings.cache_key)
    except VersionApiError as e:
        raise click.ClickException(str(e))

    if record is None:
        click.secho("No cached version data. Run `refresh` first.", fg="yellow")
        raise SystemExit(1)

    _echo_record(record, as_json)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def refresh(ctx: click.Context, as_json: bool) -> None:
    """Refresh the version record now and print it."""
    settings = _settings(ctx)
    if not as_json:
        click.echo(
            f"Checking {settings.package_name} on {len(settings.mirrors)} mirrors..."
        )
    try:
        record = refresh_version_record(settings, _store(ctx))
    except VersionApiError as e:
        raise click.ClickException(f"Error refreshing: {e}")

    _echo_record(record, as_json)
    if not as_json:
        click.secho("\n✓ Version data refreshed", fg="green")


@cli.command()
@click.pass_context
def scheduled(ctx: click.Context) -> None:
    """Single refresh for an external timer (cron). Outcome goes to the log."""
    run_scheduled_refresh(_settings(ctx), _store(ctx))


@cli.command()
@click.option("--interval", type=int, default=None, help="Seconds between refreshes")
@click.pass_context
def watch(ctx: click.Context, interval: Optional[int]) -> None:
    """Refresh on a fixed interval until interrupted."""
    loop = RefreshLoop(_settings(ctx), _store(ctx), interval=interval)
    click.echo(f"Refreshing every {loop.interval}s — press Ctrl+C to stop")
    loop.start()


@cli.command()
@click.option("--version", "version", default="{version}", help="Version to substitute")
@click.pass_context
def mirrors(ctx: click.Context, version: str) -> None:
    """List configured mirrors and the URLs that would be probed."""
    settings = _settings(ctx)
    click.echo(f"Package: {settings.package_name}")
    click.echo(f"Preset:  {settings.mirror_preset}")
    click.echo("")
    for mirror in settings.mirrors:
        click.secho(f"  {mirror.name}", bold=True, nl=False)
        click.echo(f"  {mirror.url_for(version, settings.package_name)}")


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Validate configuration."""
    settings = _settings(ctx)
    report = validate_settings(settings)

    click.echo("\n📋 Configuration\n")
    click.echo(f"  Package:   {settings.package_name}")
    click.echo(f"  Registry:  {settings.registry_package_url}")
    click.echo(f"  Mirrors:   {', '.join(settings.mirror_names)}")
    click.echo(f"  Store:     {settings.store_backend} (key: {settings.cache_key})")
    click.echo(f"  Attempts:  {settings.probe_attempts} × {settings.probe_timeout:g}s")
    click.echo("")

    for warning in report.warnings:
        click.secho(f"  ⚠ {warning}", fg="yellow")
    for error in report.errors:
        click.secho(f"  ✗ {error}", fg="red")

    if not report.ok:
        raise SystemExit(1)
    click.secho("  ✓ Configuration valid", fg="green")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
