"""
Install planning — desired state + source → pkg argument list.

Pure functions: nothing here runs pkg. The provider executes what
these return.
"""

from __future__ import annotations

from typing import assert_never

from pkgsync.core.models.desired import Absent, Latest, Pinned, Present
from pkgsync.core.models.source import ArtifactSource, RepoSource, Source, parse_source


def install_name(identifier: str, ensure: Absent | Present | Latest | Pinned) -> str:
    """Name to hand to ``pkg install``.

    Version pins become ``name-version``. pkg rejects origin-qualified
    pins (``www/curl-1.2.3``), so the category prefix is dropped.
    """
    if isinstance(ensure, (Absent, Present, Latest)):
        return identifier
    if isinstance(ensure, Pinned):
        base = identifier.rsplit("/", 1)[-1] if "/" in identifier else identifier
        return f"{base}-{ensure.version}"
    assert_never(ensure)


def plan_install(
    identifier: str,
    ensure: Absent | Present | Latest | Pinned,
    source: str | Source | None = None,
) -> list[str]:
    """Build the pkg argv that installs ``identifier`` as desired.

    Raises:
        MalformedSourceError: For a ``urn:`` source that is not
            ``urn:freebsd:repo:<tag>``.
    """
    parsed = parse_source(source)

    if parsed is None:
        return ["install", "-qy", install_name(identifier, ensure)]
    if isinstance(parsed, RepoSource):
        return ["install", "-qy", "-r", parsed.tag, install_name(identifier, ensure)]
    if isinstance(parsed, ArtifactSource):
        return ["add", "-q", parsed.location]
    assert_never(parsed)


def plan_uninstall(name: str) -> list[str]:
    """Build the pkg argv that removes ``name`` (the configured name)."""
    return ["remove", "-qy", name]
