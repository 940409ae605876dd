"""
CLI commands for single-package operations.

Thin wrappers over ``pkgsync.core.services.pkgng``.
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

import click

from pkgsync.adapters.base import ExecutionFailure

if TYPE_CHECKING:
    from pkgsync.core.services.pkgng.provider import PkgngProvider


def _provider(ctx: click.Context) -> PkgngProvider:
    """Provider for this invocation, honouring the manifest's settings."""
    from pkgsync.core.config.loader import ConfigError, find_manifest_file, load_manifest
    from pkgsync.core.services.pkgng.provider import PkgngProvider
    from pkgsync.core.use_cases.apply import build_runner, require_available

    runner = ctx.obj.get("runner")
    if runner is None:
        config_path = ctx.obj.get("config_path") or find_manifest_file()
        try:
            settings = load_manifest(config_path).settings if config_path else None
            runner = build_runner(settings)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)

    try:
        require_available(runner)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    return PkgngProvider(runner)


@click.group()
def pkg() -> None:
    """Packages — list, query, outdated, install, remove."""


# ── Observe ─────────────────────────────────────────────────────


@pkg.command("list")
@click.option("--latest", is_flag=True, help="Also check for upstream updates.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_packages(ctx: click.Context, latest: bool, as_json: bool) -> None:
    """List installed packages."""
    records = _provider(ctx).instances(resolve_latest=latest)

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.secho("⚠️  No installed packages found", fg="yellow")
        return

    click.secho(f"📦 Installed ({len(records)}):", fg="cyan", bold=True)
    for r in records:
        upgrade = f" → {r.latest}" if latest and r.has_update else ""
        click.echo(f"   {r.name:<30} {r.version:<16} {r.origin}{upgrade}")
    click.echo()


@pkg.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def query(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show the installed state of one package (name or origin)."""
    record = _provider(ctx).query(name)

    if as_json:
        click.echo(json.dumps(record.model_dump(mode="json"), indent=2))
        return

    if not record.installed:
        click.secho(f"❌ {name} is not installed", fg="yellow")
        return

    click.secho(f"📦 {record.name}", fg="cyan", bold=True)
    click.echo(f"   Version: {record.version}")
    click.echo(f"   Origin:  {record.origin}")


@pkg.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def outdated(ctx: click.Context, as_json: bool) -> None:
    """List installed packages with a newer version upstream."""
    records = [r for r in _provider(ctx).instances(resolve_latest=True) if r.has_update]

    if as_json:
        click.echo(json.dumps(
            [{"name": r.name, "origin": r.origin, "current": r.version, "latest": r.latest}
             for r in records],
            indent=2,
        ))
        return

    if not records:
        click.secho("✅ All packages up to date", fg="green")
        return

    click.secho(f"📦 Outdated ({len(records)}):", fg="yellow", bold=True)
    for r in records:
        click.echo(f"   {r.name:<30} {r.version:<16} → {r.latest}")
    click.echo()


# ── Act ─────────────────────────────────────────────────────────


@pkg.command()
@click.argument("name")
@click.option("--ensure", "ensure", default="present", help="present, latest, or a version.")
@click.option("--source", default=None, help="urn:freebsd:repo:<tag>, URL or package file.")
@click.option("--dry-run", is_flag=True, help="Print the pkg command without running it.")
@click.pass_context
def install(
    ctx: click.Context,
    name: str,
    ensure: str,
    source: str | None,
    dry_run: bool,
) -> None:
    """Install one package."""
    from pkgsync.core.models.manifest import PackageResource
    from pkgsync.core.services.pkgng.planner import plan_install

    try:
        resource = PackageResource(name=name, ensure=ensure, source=source)
    except ValueError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if dry_run:
        argv = plan_install(resource.name, resource.ensure, resource.source)
        click.echo(f"pkg {' '.join(argv)}")
        return

    click.secho(f"📦 Installing {name}...", fg="cyan")
    try:
        _provider(ctx).install(resource)
    except ExecutionFailure as e:
        click.secho(f"❌ {e.details()}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Installed {name}", fg="green", bold=True)


@pkg.command()
@click.argument("name")
@click.option("--dry-run", is_flag=True, help="Print the pkg command without running it.")
@click.pass_context
def remove(ctx: click.Context, name: str, dry_run: bool) -> None:
    """Remove one package by name."""
    from pkgsync.core.models.desired import Absent
    from pkgsync.core.models.manifest import PackageResource
    from pkgsync.core.services.pkgng.planner import plan_uninstall

    if dry_run:
        click.echo(f"pkg {' '.join(plan_uninstall(name))}")
        return

    click.secho(f"📦 Removing {name}...", fg="cyan")
    try:
        _provider(ctx).uninstall(PackageResource(name=name, ensure=Absent()))
    except ExecutionFailure as e:
        click.secho(f"❌ {e.details()}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Removed {name}", fg="green", bold=True)
