"""
pkgng backend — inventory parsing, update cache, planning, provider.
"""

from pkgsync.core.services.pkgng.inventory import parse_line, parse_listing, parse_update_line
from pkgsync.core.services.pkgng.planner import install_name, plan_install, plan_uninstall
from pkgsync.core.services.pkgng.provider import PkgngProvider
from pkgsync.core.services.pkgng.version_checker import VersionChecker

__all__ = [
    "PkgngProvider",
    "VersionChecker",
    "install_name",
    "parse_line",
    "parse_listing",
    "parse_update_line",
    "plan_install",
    "plan_uninstall",
]
