"""
Domain models — Pydantic types for pkgsync.

All models are re-exported here for convenient access:

    from pkgsync.core.models import PackageRecord, Manifest, Change, Receipt
"""

from pkgsync.core.models.action import Change, Receipt
from pkgsync.core.models.desired import Absent, Ensure, Latest, Pinned, Present, parse_ensure
from pkgsync.core.models.manifest import Manifest, PackageResource, Settings
from pkgsync.core.models.package import AbsentRecord, PackageRecord
from pkgsync.core.models.source import (
    ArtifactSource,
    MalformedSourceError,
    RepoSource,
    Source,
    parse_source,
    repo_tag_from_urn,
)

__all__ = [
    # desired.py
    "Absent",
    "AbsentRecord",
    "ArtifactSource",
    # action.py
    "Change",
    "Ensure",
    "Latest",
    "MalformedSourceError",
    # manifest.py
    "Manifest",
    "PackageResource",
    # package.py
    "PackageRecord",
    "Pinned",
    "Present",
    "Receipt",
    # source.py
    "RepoSource",
    "Settings",
    "Source",
    "parse_ensure",
    "parse_source",
    "repo_tag_from_urn",
]
