"""
Inventory parsing — pkg text output → PackageRecord.

The only place that knows the shape of ``pkg query`` and
``pkg version`` output. If pkg changes its format, this file is
what changes.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pkgsync.core.models.package import PackageRecord

if TYPE_CHECKING:
    from pkgsync.core.services.pkgng.version_checker import VersionChecker

logger = logging.getLogger(__name__)

# name, version, origin — origin is the rest of the line
QUERY_FORMAT = "%n %v %o"

# pkg version -voRUL= : "www/curl   <   needs updating (remote has 8.9.1)"
_UPDATE_LINE_RE = re.compile(r"^(\S+)\s.*\(remote has ([^)]+)\)")


def parse_line(line: str, checker: VersionChecker | None = None) -> PackageRecord | None:
    """Parse one ``name version origin`` line.

    Returns None for lines that do not split into three fields; the
    caller skips them. ``latest`` comes from ``checker`` keyed by
    origin, or falls back to the installed version.
    """
    fields = line.rstrip("\r\n").split(None, 2)
    if len(fields) < 3:
        return None

    name, version, origin = fields
    latest = (checker.latest_version(origin) if checker else None) or version

    return PackageRecord(
        name=name,
        origin=origin,
        version=version,
        latest=latest,
        ensure=version,
    )


def parse_listing(output: str, checker: VersionChecker | None = None) -> list[PackageRecord]:
    """Parse bulk ``pkg query`` output, dropping malformed lines."""
    records: list[PackageRecord] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        record = parse_line(line, checker)
        if record is None or not record.is_valid:
            logger.warning("Skipping unparseable pkg query line: %r", line)
            continue
        records.append(record)
    return records


def parse_update_line(line: str) -> tuple[str, str] | None:
    """Extract ``(origin, remote_version)`` from a ``pkg version`` line."""
    match = _UPDATE_LINE_RE.match(line)
    if not match:
        return None
    return match.group(1), match.group(2)
