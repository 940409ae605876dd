"""
Package source — where an install comes from.

    None                        default repository
    urn:freebsd:repo:<tag>      a named repository (``pkg install -r``)
    anything else               a package file or URL (``pkg add``)
"""

from __future__ import annotations

import re
from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel

_REPO_URN_RE = re.compile(r"^urn:freebsd:repo:(.+)$")


class MalformedSourceError(ValueError):
    """A ``urn:`` source that does not name a FreeBSD repository."""


class RepoSource(BaseModel):
    kind: Literal["repo"] = "repo"
    tag: str


class ArtifactSource(BaseModel):
    kind: Literal["artifact"] = "artifact"
    location: str


Source = RepoSource | ArtifactSource


def repo_tag_from_urn(urn: str) -> str:
    """Extract the repository tag from ``urn:freebsd:repo:<tag>``.

    Raises:
        MalformedSourceError: If ``urn`` does not have that shape.
    """
    match = _REPO_URN_RE.match(urn)
    if not match:
        raise MalformedSourceError(
            f"Invalid repository URN {urn!r}: expected urn:freebsd:repo:<tag>"
        )
    return match.group(1)


def parse_source(value: str | Source | None) -> Source | None:
    """Classify a source string. ``None`` or blank means default repository."""
    if value is None or isinstance(value, (RepoSource, ArtifactSource)):
        return value

    text = value.strip()
    if not text:
        return None

    if urlsplit(text).scheme.lower() == "urn":
        return RepoSource(tag=repo_tag_from_urn(text))
    return ArtifactSource(location=text)
