"""
pkgsync — CLI entrypoint.

Usage:
    pkgsync --help
    pkgsync plan
    pkgsync apply --dry-run
    pkgsync pkg list --latest
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from pkgsync import __version__
from pkgsync.core.observability.logging_config import setup_from_flags


@click.group()
@click.version_option(version=__version__, prog_name="pkgsync")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to packages.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """pkgsync — converge pkgng packages to a manifest."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_flags(debug=debug, verbose=verbose, quiet=quiet)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--mock", is_flag=True, help="Use the mock runner (no real pkg calls).")
@click.pass_context
def plan(ctx: click.Context, as_json: bool, mock: bool) -> None:
    """Show the changes needed to match packages.yml."""
    from pkgsync.core.use_cases.apply import run_apply

    result = run_apply(
        config_path=ctx.obj.get("config_path"),
        plan_only=True,
        runner=ctx.obj.get("runner"),
        mock_mode=mock,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    reconcile_plan = result.plan
    assert reconcile_plan is not None

    if reconcile_plan.in_sync:
        click.secho("✅ All packages in sync", fg="green")
        return

    click.secho(f"📋 {reconcile_plan.total_changes} change(s) needed:", fg="cyan", bold=True)
    for change in reconcile_plan.changes:
        click.echo(f"   • {change.summary}")
        if not ctx.obj.get("quiet"):
            click.echo(f"     pkg {' '.join(change.argv)}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Plan but don't execute.")
@click.option("--fail-fast", is_flag=True, help="Stop after the first failed change.")
@click.option("--mock", is_flag=True, help="Use the mock runner (no real pkg calls).")
@click.pass_context
def apply(
    ctx: click.Context,
    as_json: bool,
    dry_run: bool,
    fail_fast: bool,
    mock: bool,
) -> None:
    """Install, upgrade and remove packages to match packages.yml.

    Examples:

        pkgsync apply

        pkgsync apply --dry-run

        pkgsync -c /etc/pkgsync/packages.yml apply --fail-fast
    """
    from pkgsync.core.use_cases.apply import run_apply

    result = run_apply(
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        fail_fast=fail_fast,
        runner=ctx.obj.get("runner"),
        mock_mode=mock,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error or (result.report and result.report.failed > 0):
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None

    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    click.secho(f"\n⚡ {mode_label}apply — {report.total} change(s)", fg="cyan", bold=True)
    click.echo()

    for receipt in report.receipts:
        label = f"{receipt.operation} {receipt.resource}"
        timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
        if receipt.ok:
            click.secho(f"   ✓ {label}", fg="green", nl=False)
            click.echo(timing)
            if ctx.obj.get("verbose") and receipt.output:
                for line in receipt.output.split("\n")[:10]:
                    click.echo(f"     │ {line}")
        elif receipt.failed:
            click.secho(f"   ✗ {label}", fg="red", nl=False)
            click.echo(timing)
            if receipt.error:
                for line in receipt.error.split("\n"):
                    click.echo(f"     │ {line}")
        else:
            click.secho(f"   ⊘ {label} ", fg="yellow", nl=False)
            click.echo(f"({receipt.output})")

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(
        report.status, "white"
    )
    click.secho(
        f"   Result: {report.succeeded}/{report.total} succeeded",
        fg=status_color,
        bold=True,
    )

    if report.failed > 0:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from pkgsync/ui/cli/ ────────────

from pkgsync.ui.cli.packages import pkg  # noqa: E402

cli.add_command(pkg)


if __name__ == "__main__":
    cli()
