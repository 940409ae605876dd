"""
Remote update cache — which installed packages have a newer version.

Built from a single ``pkg version -voRUL=`` call, the first time a
"latest" value is actually needed. One instance lives for one
reconciliation run and is shared by everything in that run.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

from pkgsync.adapters.base import CommandRunner, ExecutionFailure
from pkgsync.core.services.pkgng.inventory import parse_update_line

logger = logging.getLogger(__name__)

VERSION_CHECK_ARGS = ["version", "-voRUL="]


class VersionChecker:
    """Lazily-built map of origin → newest version available upstream.

    Nothing runs at construction. The first ``latest_version`` or
    ``updates`` call populates the map exactly once, even with
    concurrent callers; afterwards it is read-only.
    """

    def __init__(self, runner: CommandRunner):
        self._runner = runner
        self._updates: Mapping[str, str] | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._updates is not None

    def latest_version(self, origin: str) -> str | None:
        """Upstream version for ``origin``, or None if it is up to date."""
        return self.updates().get(origin)

    def updates(self) -> Mapping[str, str]:
        """The full origin → version map, building it on first use."""
        updates = self._updates
        if updates is not None:
            return updates

        with self._lock:
            if self._updates is None:
                self._updates = MappingProxyType(self._load())
            return self._updates

    def _load(self) -> dict[str, str]:
        logger.debug("Listing packages with updates")
        try:
            output = self._runner.execute(VERSION_CHECK_ARGS)
        except ExecutionFailure as e:
            logger.warning("Update check failed, assuming no updates: %s", e)
            return {}

        found: dict[str, str] = {}
        for line in output.splitlines():
            parsed = parse_update_line(line)
            if parsed is None:
                continue
            origin, version = parsed
            found[origin] = version
            logger.debug("%s is updatable to %s", origin, version)

        logger.info("Update check: %d package(s) with updates", len(found))
        return found
