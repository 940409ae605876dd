"""
Reconciler — the central convergence loop.

Takes the managed packages, observes them with one prefetch (plus
per-package queries for anything the listing missed), decides what
each one needs, and runs the resulting pkg commands.

Flow:
    resources → prefetch → query fallback → decide → execute → receipts
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import assert_never

from pkgsync.adapters.base import ExecutionFailure
from pkgsync.core.models.action import Change, Receipt
from pkgsync.core.models.desired import Absent, Latest, Pinned, Present
from pkgsync.core.models.manifest import PackageResource
from pkgsync.core.models.package import PackageRecord
from pkgsync.core.services.pkgng.planner import plan_install, plan_uninstall
from pkgsync.core.services.pkgng.provider import PkgngProvider

logger = logging.getLogger(__name__)


@dataclass
class ReconcilePlan:
    """Observed state and the changes needed to converge it."""

    operation_id: str = ""
    current: dict[str, PackageRecord] = field(default_factory=dict)
    changes: list[Change] = field(default_factory=list)
    resources: dict[str, PackageResource] = field(default_factory=dict)

    @property
    def total_changes(self) -> int:
        return len(self.changes)

    @property
    def in_sync(self) -> bool:
        return not self.changes

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "in_sync": self.in_sync,
            "packages": {
                name: record.model_dump(mode="json") for name, record in self.current.items()
            },
            "changes": [c.model_dump(mode="json") for c in self.changes],
        }


@dataclass
class ReconcileReport:
    """Result of executing a plan."""

    operation_id: str = ""
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def observe(
    resources: list[PackageResource],
    provider: PkgngProvider,
) -> dict[str, PackageRecord]:
    """Current record for every resource: prefetch, then query fallback."""
    matched = provider.prefetch([r.name for r in resources])

    current: dict[str, PackageRecord] = {}
    for resource in resources:
        record = matched.get(resource.name)
        if record is None:
            record = provider.query(resource.name)
        current[resource.name] = record
    return current


def decide(
    resource: PackageResource,
    current: PackageRecord,
    provider: PkgngProvider,
) -> Change | None:
    """The change ``resource`` needs given ``current``, or None if in sync.

    Raises:
        MalformedSourceError: If the resource's source is a bad URN.
    """
    ensure = resource.ensure
    observed = current.ensure if current.installed else "absent"

    def _install(operation: str, target: str = "") -> Change:
        return Change(
            resource=resource.name,
            operation=operation,
            argv=plan_install(resource.name, ensure, resource.source),
            current=observed,
            desired=str(ensure),
            target=target,
        )

    if isinstance(ensure, Absent):
        if not current.installed:
            return None
        if current.name and current.name != resource.name:
            logger.warning(
                "Removing %r by its configured name; installed package is %r (%s)",
                resource.name,
                current.name,
                current.origin,
            )
        return Change(
            resource=resource.name,
            operation="remove",
            argv=plan_uninstall(resource.name),
            current=observed,
            desired=str(ensure),
        )
    if isinstance(ensure, Present):
        return None if current.installed else _install("install")
    if isinstance(ensure, Latest):
        if not current.installed:
            return _install("install")
        latest = provider.latest(current)
        if latest == current.version:
            return None
        return _install("update", target=latest)
    if isinstance(ensure, Pinned):
        if current.installed and current.version == ensure.version:
            return None
        return _install("install", target=ensure.version)
    assert_never(ensure)


def plan_changes(
    resources: list[PackageResource],
    provider: PkgngProvider,
    operation_id: str = "",
) -> ReconcilePlan:
    """Build the plan that converges ``resources``.

    Raises:
        MalformedSourceError: Before anything is executed, if any
            resource names a malformed repository URN.
    """
    plan = ReconcilePlan(
        operation_id=operation_id or generate_operation_id(),
        resources={r.name: r for r in resources},
    )
    plan.current = observe(resources, provider)

    for resource in resources:
        change = decide(resource, plan.current[resource.name], provider)
        if change is None:
            logger.debug("%s is in sync (%s)", resource.name, resource.ensure)
            continue
        plan.changes.append(change)

    if provider.checker.loaded:
        # The update check ran while deciding; carry its answers into the plan.
        checker = provider.checker
        plan.current = {
            name: record.model_copy(
                update={"latest": checker.latest_version(record.origin) or record.version}
            ) if record.installed else record
            for name, record in plan.current.items()
        }

    logger.info("Planned %d change(s) for %d package(s)", plan.total_changes, len(resources))
    return plan


def _run_change(change: Change, resource: PackageResource, provider: PkgngProvider) -> str:
    if change.operation == "remove":
        return provider.uninstall(resource)
    if change.operation == "update":
        return provider.update(resource)
    return provider.install(resource)


def execute_plan(
    plan: ReconcilePlan,
    provider: PkgngProvider,
    dry_run: bool = False,
    fail_fast: bool = False,
) -> ReconcileReport:
    """Run every change in ``plan`` and collect receipts.

    Args:
        plan: The reconcile plan.
        provider: Provider whose runner executes the changes.
        dry_run: If True, record every change as skipped.
        fail_fast: If True, skip the remaining changes after a failure.

    Returns:
        ReconcileReport with one receipt per change.
    """
    report = ReconcileReport(operation_id=plan.operation_id)
    aborted = False

    for change in plan.changes:
        if dry_run:
            receipt = Receipt.skip(change, reason="dry-run")
        elif aborted:
            receipt = Receipt.skip(change, reason="skipped after earlier failure")
        else:
            resource = plan.resources.get(change.resource) or PackageResource(name=change.resource)
            receipt = _execute_change(change, resource, provider)
            if receipt.failed and fail_fast:
                aborted = True

        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s → %s", status_marker, change.summary, receipt.status)

    return report


def _execute_change(
    change: Change,
    resource: PackageResource,
    provider: PkgngProvider,
) -> Receipt:
    started_at = datetime.now(UTC).isoformat()
    start = time.monotonic()
    try:
        output = _run_change(change, resource, provider)
    except ExecutionFailure as e:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.error("%s failed: %s", change.summary, e)
        return Receipt.failure(
            change,
            error=e.details(),
            started_at=started_at,
            duration_ms=elapsed_ms,
            metadata={"returncode": e.returncode},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    return Receipt.success(
        change,
        output=output.strip(),
        started_at=started_at,
        duration_ms=elapsed_ms,
    )


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
