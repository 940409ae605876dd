"""
Tests for the reconciler — observe, decide, execute.
"""

import time
from datetime import datetime

import pytest

from pkgsync.adapters.mock import MockRunner
from pkgsync.core.engine.reconciler import (
    ReconcileReport,
    decide,
    execute_plan,
    generate_operation_id,
    observe,
    plan_changes,
)
from pkgsync.core.models.action import Change, Receipt
from pkgsync.core.models.manifest import PackageResource
from pkgsync.core.models.package import AbsentRecord, PackageRecord
from pkgsync.core.models.source import MalformedSourceError
from pkgsync.core.services.pkgng.inventory import QUERY_FORMAT
from pkgsync.core.services.pkgng.provider import LISTING_ARGS, PkgngProvider


def _res(name: str, ensure="present", source=None) -> PackageResource:
    return PackageResource(name=name, ensure=ensure, source=source)


def _installed(name="curl", version="8.7.1", origin="ftp/curl") -> PackageRecord:
    return PackageRecord(name=name, version=version, origin=origin, latest=version, ensure=version)


class _SlowRunner(MockRunner):
    """Mock pkg whose installs take a moment."""

    def execute(self, argv: list[str]) -> str:
        if argv and argv[0] == "install":
            time.sleep(0.05)
        return super().execute(argv)


# ── Observe ──────────────────────────────────────────────────────────


class TestObserve:
    def test_prefetch_then_fallback(self, provider, runner):
        current = observe([_res("curl"), _res("tmux")], provider)
        assert current["curl"].version == "8.7.1"
        assert isinstance(current["tmux"], AbsentRecord)
        assert runner.call_log == [
            LISTING_ARGS,
            ["query", QUERY_FORMAT, "tmux"],
        ]

    def test_listing_failure_still_queries_each(self):
        runner = MockRunner()
        runner.set_failure(LISTING_ARGS, error="pkg not bootstrapped")
        runner.set_response(["query", QUERY_FORMAT, "curl"], "curl 8.7.1 ftp/curl\n")
        current = observe([_res("curl")], PkgngProvider(runner))
        assert current["curl"].installed
        assert ["query", QUERY_FORMAT, "curl"] in runner.call_log


# ── Decide ───────────────────────────────────────────────────────────


class TestDecide:
    def test_present_installed_is_noop(self, provider):
        assert decide(_res("curl"), _installed(), provider) is None

    def test_present_missing_installs(self, provider):
        change = decide(_res("tmux"), AbsentRecord(name="tmux"), provider)
        assert change.operation == "install"
        assert change.argv == ["install", "-qy", "tmux"]
        assert change.current == "absent"

    def test_absent_installed_removes(self, provider):
        change = decide(_res("curl", "absent"), _installed(), provider)
        assert change.operation == "remove"
        assert change.argv == ["remove", "-qy", "curl"]

    def test_absent_missing_is_noop(self, provider):
        assert decide(_res("tmux", "absent"), AbsentRecord(name="tmux"), provider) is None

    def test_remove_by_origin_keeps_configured_name(self, provider, caplog):
        change = decide(_res("ftp/curl", "absent"), _installed(), provider)
        assert change.argv == ["remove", "-qy", "ftp/curl"]
        assert "configured name" in caplog.text

    def test_pinned_same_version_is_noop(self, provider):
        assert decide(_res("curl", "8.7.1"), _installed(), provider) is None

    def test_pinned_other_version_installs_pin(self, provider):
        change = decide(_res("ftp/curl", "7.77.0"), _installed(), provider)
        assert change.operation == "install"
        assert change.argv == ["install", "-qy", "curl-7.77.0"]
        assert change.target == "7.77.0"

    def test_latest_outdated_updates(self, provider):
        change = decide(_res("curl", "latest"), _installed(), provider)
        assert change.operation == "update"
        assert change.target == "8.9.1"
        assert change.argv == ["install", "-qy", "curl"]

    def test_latest_current_is_noop(self, provider):
        record = _installed(name="vim", version="9.1.0", origin="editors/vim")
        assert decide(_res("vim", "latest"), record, provider) is None

    def test_latest_missing_installs_without_update_check(self, provider, runner):
        change = decide(_res("tmux", "latest"), AbsentRecord(name="tmux"), provider)
        assert change.operation == "install"
        assert runner.calls_for("version") == []

    def test_repo_source(self, provider):
        change = decide(
            _res("tmux", "present", "urn:freebsd:repo:FreeBSD"), AbsentRecord(name="tmux"), provider,
        )
        assert change.argv == ["install", "-qy", "-r", "FreeBSD", "tmux"]


# ── Plan ─────────────────────────────────────────────────────────────


class TestPlanChanges:
    def test_plan(self, provider):
        plan = plan_changes(
            [_res("curl", "latest"), _res("vim"), _res("tmux"), _res("www/nginx", "absent")],
            provider,
        )
        ops = [(c.resource, c.operation) for c in plan.changes]
        assert ops == [("curl", "update"), ("tmux", "install"), ("www/nginx", "remove")]
        assert not plan.in_sync
        assert plan.operation_id.startswith("op-")

    def test_update_check_only_when_latest_needed(self, provider, runner):
        plan_changes([_res("curl"), _res("vim", "9.1.0")], provider)
        assert runner.calls_for("version") == []

    def test_update_check_once_for_many_latest(self, provider, runner):
        plan_changes([_res("curl", "latest"), _res("nginx", "latest"), _res("vim", "latest")], provider)
        assert len(runner.calls_for("version")) == 1

    def test_in_sync(self, provider):
        plan = plan_changes([_res("curl"), _res("vim")], provider)
        assert plan.in_sync
        assert plan.to_dict()["in_sync"] is True

    def test_plan_packages_show_latest_after_update_check(self, provider):
        packages = plan_changes([_res("curl", "latest"), _res("vim")], provider).to_dict()["packages"]
        assert packages["curl"]["version"] == "8.7.1"
        assert packages["curl"]["latest"] == "8.9.1"
        assert packages["vim"]["latest"] == "9.1.0"

    def test_plan_packages_latest_is_version_without_update_check(self, provider, runner):
        packages = plan_changes([_res("curl")], provider).to_dict()["packages"]
        assert packages["curl"]["latest"] == "8.7.1"
        assert runner.calls_for("version") == []

    def test_malformed_source_aborts_before_mutation(self, provider, runner):
        bad = PackageResource.model_construct(name="tmux", ensure=_res("tmux").ensure, source="urn:x:y")
        with pytest.raises(MalformedSourceError):
            plan_changes([_res("curl", "absent"), bad], provider)
        assert runner.calls_for("remove") == []
        assert runner.calls_for("install") == []


# ── Execute ──────────────────────────────────────────────────────────


class TestExecutePlan:
    def test_executes_changes(self, provider, runner):
        plan = plan_changes([_res("tmux"), _res("www/nginx", "absent")], provider)
        report = execute_plan(plan, provider)
        assert report.all_ok
        assert report.total == 2
        assert ["install", "-qy", "tmux"] in runner.call_log
        assert ["remove", "-qy", "www/nginx"] in runner.call_log

    def test_dry_run_executes_nothing(self, provider, runner):
        plan = plan_changes([_res("tmux")], provider)
        report = execute_plan(plan, provider, dry_run=True)
        assert report.skipped == 1
        assert runner.calls_for("install") == []

    def test_failure_recorded_verbatim(self, provider, runner):
        runner.set_failure(
            ["install", "-qy", "tmux"],
            error="Execution of 'pkg install -qy tmux' returned 3",
            output="pkg: No packages available to install matching 'tmux'",
            returncode=3,
        )
        plan = plan_changes([_res("tmux"), _res("curl", "absent")], provider)
        report = execute_plan(plan, provider)

        assert report.status == "partial"
        failed = report.receipts[0]
        assert failed.failed
        assert "No packages available" in failed.error
        assert failed.metadata["returncode"] == 3
        assert report.receipts[1].ok

    def test_fail_fast_skips_rest(self, provider, runner):
        runner.set_failure(["install", "-qy", "tmux"])
        plan = plan_changes([_res("tmux"), _res("curl", "absent")], provider)
        report = execute_plan(plan, provider, fail_fast=True)
        assert report.failed == 1
        assert report.skipped == 1
        assert runner.calls_for("remove") == []

    def test_receipt_started_before_command_ran(self):
        runner = _SlowRunner()
        runner.set_response(LISTING_ARGS, "")
        provider = PkgngProvider(runner)
        report = execute_plan(plan_changes([_res("tmux")], provider), provider)

        receipt = report.receipts[0]
        assert receipt.ok
        started = datetime.fromisoformat(receipt.started_at)
        ended = datetime.fromisoformat(receipt.ended_at)
        assert (ended - started).total_seconds() >= 0.05
        assert receipt.duration_ms >= 50


# ── Report ───────────────────────────────────────────────────────────


class TestReconcileReport:
    def _receipt(self, status: str) -> Receipt:
        change = Change(resource="curl", operation="install")
        return Receipt(resource=change.resource, operation=change.operation, status=status)

    def test_empty_is_ok(self):
        assert ReconcileReport().status == "ok"

    def test_all_failed(self):
        report = ReconcileReport(receipts=[self._receipt("failed")])
        assert report.status == "failed"

    def test_to_dict(self):
        report = ReconcileReport(operation_id="op-1", receipts=[self._receipt("ok")])
        d = report.to_dict()
        assert d["succeeded"] == 1
        assert d["receipts"][0]["resource"] == "curl"


def test_operation_id_unique():
    assert generate_operation_id() != generate_operation_id()
