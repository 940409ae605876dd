"""
pkgng provider — observe & act on packages through ``pkg``.

Handles:
- Bulk inventory (``pkg query -a``) and prefetch matching
- Single-package query with "not installed" → AbsentRecord
- Install / update / remove via the planner

Read paths degrade (empty inventory, absent record). Mutating
paths raise ExecutionFailure with pkg's output attached.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pkgsync.adapters.base import CommandRunner, ExecutionFailure
from pkgsync.core.models.manifest import PackageResource
from pkgsync.core.models.package import AbsentRecord, PackageRecord
from pkgsync.core.services.pkgng.inventory import QUERY_FORMAT, parse_line, parse_listing
from pkgsync.core.services.pkgng.planner import plan_install, plan_uninstall
from pkgsync.core.services.pkgng.version_checker import VersionChecker

logger = logging.getLogger(__name__)

LISTING_ARGS = ["query", "-a", QUERY_FORMAT]


class PkgngProvider:
    """Package provider for FreeBSD / DragonFly pkgng.

    One provider (and its VersionChecker) per reconciliation run.
    """

    name = "pkgng"

    def __init__(self, runner: CommandRunner, checker: VersionChecker | None = None):
        self.runner = runner
        self.checker = checker or VersionChecker(runner)

    # ── Observe ─────────────────────────────────────────────────

    def instances(self, resolve_latest: bool = False) -> list[PackageRecord]:
        """Every installed package. Empty if pkg cannot list them."""
        try:
            output = self.runner.execute(LISTING_ARGS)
        except ExecutionFailure as e:
            logger.warning("Package listing unavailable, treating as empty: %s", e)
            return []

        if not output:
            return []

        checker = self.checker if resolve_latest else None
        records = parse_listing(output, checker)
        logger.debug("Listed %d installed package(s)", len(records))
        return records

    def prefetch(
        self,
        identifiers: Iterable[str],
        resolve_latest: bool = False,
    ) -> dict[str, PackageRecord | None]:
        """Match identifiers against one bulk listing.

        An identifier binds to the first record with that ``name``;
        failing that, to the first record with that ``origin``.
        """
        records = self.instances(resolve_latest=resolve_latest)

        by_name: dict[str, PackageRecord] = {}
        by_origin: dict[str, PackageRecord] = {}
        for record in records:
            by_name.setdefault(record.name, record)
            by_origin.setdefault(record.origin, record)

        matched: dict[str, PackageRecord | None] = {}
        for identifier in identifiers:
            matched[identifier] = by_name.get(identifier) or by_origin.get(identifier)
        return matched

    def query(self, identifier: str) -> PackageRecord:
        """Current state of one package; AbsentRecord if not installed."""
        try:
            output = self.runner.execute(["query", QUERY_FORMAT, identifier])
        except ExecutionFailure:
            logger.debug("%s is not installed", identifier)
            return AbsentRecord(name=identifier)

        for line in output.splitlines():
            record = parse_line(line, self.checker if self.checker.loaded else None)
            if record is not None and record.is_valid:
                return record

        logger.warning("Unparseable pkg query output for %s: %r", identifier, output)
        return AbsentRecord(name=identifier)

    def latest(self, record: PackageRecord) -> str:
        """Newest available version of an installed package."""
        latest = self.checker.latest_version(record.origin) or record.version
        logger.debug("returning the latest %r version %r", record.name, latest)
        return latest

    # ── Act ─────────────────────────────────────────────────────

    def install(self, resource: PackageResource) -> str:
        """Install ``resource`` as its ensure/source dictate."""
        return self.runner.execute(plan_install(resource.name, resource.ensure, resource.source))

    def update(self, resource: PackageResource) -> str:
        """Upgrade to the latest version; pkg decides what is newer."""
        return self.install(resource)

    def uninstall(self, resource: PackageResource) -> str:
        """Remove ``resource`` by its configured name."""
        return self.runner.execute(plan_uninstall(resource.name))
