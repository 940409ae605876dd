"""
Package records — what pkg reports about one installed package.

``origin`` (e.g. ``www/curl``) is the stable key for update lookups.
``name`` may collide across origins and is never used for that join.
"""

from __future__ import annotations

from pydantic import BaseModel

ABSENT = "absent"


class PackageRecord(BaseModel):
    """One installed package as reported by ``pkg query``."""

    name: str
    origin: str = ""
    version: str = ""
    latest: str = ""                # upstream version, defaults to version
    ensure: str = ""                # observed state, mirrors version
    status: str = "installed"
    provider: str = "pkgng"

    @property
    def installed(self) -> bool:
        return self.ensure != ABSENT

    @property
    def is_valid(self) -> bool:
        """Records with an empty name come from unparseable lines."""
        return bool(self.name)

    @property
    def has_update(self) -> bool:
        return self.installed and bool(self.latest) and self.latest != self.version


class AbsentRecord(PackageRecord):
    """A package that is not installed. Only ``name`` is populated."""

    ensure: str = ABSENT
    status: str = "missing"
