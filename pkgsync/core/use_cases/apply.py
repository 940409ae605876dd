"""
Apply use case — converge the host to packages.yml.

The top-level orchestrator: loads the manifest, builds one provider
(and therefore one update cache) for the run, plans the changes and,
unless only planning, executes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pkgsync.adapters.base import CommandRunner
from pkgsync.adapters.mock import MockRunner
from pkgsync.adapters.pkg import PkgCommandRunner
from pkgsync.core.config.loader import (
    ENV_PKG_PATH,
    ConfigError,
    apply_env_overrides,
    load_manifest,
)
from pkgsync.core.engine.reconciler import (
    ReconcilePlan,
    ReconcileReport,
    execute_plan,
    plan_changes,
)
from pkgsync.core.models.manifest import Manifest, Settings
from pkgsync.core.models.source import MalformedSourceError
from pkgsync.core.services.pkgng.provider import PkgngProvider

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Result of planning (and possibly applying) a manifest."""

    plan: ReconcilePlan | None = None
    report: ReconcileReport | None = None
    manifest: Manifest | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}

        result: dict = {}
        if self.plan:
            result["plan"] = self.plan.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def build_runner(settings: Settings | None = None, mock: bool = False) -> CommandRunner:
    """Command runner for ``settings`` (or a MockRunner in mock mode)."""
    if mock:
        return MockRunner()
    settings = settings or apply_env_overrides(Settings())
    return PkgCommandRunner(binary=settings.pkg_path, timeout=settings.timeout)


def require_available(runner: CommandRunner) -> None:
    """Fail before the first pkg call if the runner cannot be launched.

    Raises:
        ConfigError: Naming the missing executable.
    """
    if runner.is_available():
        return
    where = getattr(runner, "binary", runner.name)
    raise ConfigError(
        f"{runner.name} is not available at {where}; "
        f"set settings.pkg_path in packages.yml or {ENV_PKG_PATH}"
    )


def run_apply(
    config_path: Path | None = None,
    plan_only: bool = False,
    dry_run: bool = False,
    fail_fast: bool = False,
    runner: CommandRunner | None = None,
    mock_mode: bool = False,
) -> ApplyResult:
    """Plan and apply the manifest.

    Args:
        config_path: Explicit packages.yml, or None to search upward.
        plan_only: Stop after planning.
        dry_run: Execute as skipped receipts only.
        fail_fast: Stop executing after the first failed change.
        runner: Runner override (tests).
        mock_mode: Use a MockRunner instead of the real pkg binary.
    """
    try:
        manifest = load_manifest(config_path)
    except ConfigError as e:
        return ApplyResult(error=str(e))

    runner = runner or build_runner(manifest.settings, mock=mock_mode)
    try:
        require_available(runner)
    except ConfigError as e:
        return ApplyResult(manifest=manifest, error=str(e))

    provider = PkgngProvider(runner)

    try:
        plan = plan_changes(manifest.packages, provider)
    except MalformedSourceError as e:
        return ApplyResult(manifest=manifest, error=str(e))

    if plan_only:
        return ApplyResult(plan=plan, manifest=manifest)

    report = execute_plan(plan, provider, dry_run=dry_run, fail_fast=fail_fast)
    logger.info(
        "Apply %s: %d/%d succeeded (%s)",
        report.operation_id,
        report.succeeded,
        report.total,
        report.status,
    )
    return ApplyResult(plan=plan, report=report, manifest=manifest)
