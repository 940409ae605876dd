"""
Manifest model — the packages a host should (or should not) have.

Loaded from packages.yml. This is a declaration of intent; the
observed state comes from pkg at run time.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from pkgsync.adapters.pkg import DEFAULT_PKG_PATH, DEFAULT_TIMEOUT
from pkgsync.core.models.desired import Ensure, Present, parse_ensure
from pkgsync.core.models.source import parse_source


class PackageResource(BaseModel):
    """One managed package.

    ``name`` is the identifier used to find the package: either the
    short name (``curl``) or the origin (``www/curl``).
    """

    name: str = Field(min_length=1)
    ensure: Ensure = Field(default_factory=Present)
    source: str | None = None

    @field_validator("ensure", mode="before")
    @classmethod
    def _coerce_ensure(cls, value: Any) -> Any:
        return parse_ensure(value)

    @field_validator("source")
    @classmethod
    def _check_source(cls, value: str | None) -> str | None:
        # Surfaces malformed URNs at load time, before any pkg call.
        parse_source(value)
        return value or None


class Settings(BaseModel):
    """Runtime settings for talking to pkg."""

    pkg_path: str = DEFAULT_PKG_PATH
    timeout: int = Field(default=DEFAULT_TIMEOUT, gt=0)


class Manifest(BaseModel):
    """Root manifest — loaded from packages.yml."""

    version: int = 1
    settings: Settings = Field(default_factory=Settings)
    packages: list[PackageResource] = Field(default_factory=list)

    @field_validator("packages", mode="before")
    @classmethod
    def _expand_mapping(cls, value: Any) -> Any:
        """Accept ``{name: ensure}`` / ``{name: {ensure, source}}`` too."""
        if not isinstance(value, dict):
            return value
        expanded = []
        for name, entry in value.items():
            if isinstance(entry, dict):
                expanded.append({"name": name, **entry})
            else:
                expanded.append({"name": name, "ensure": entry})
        return expanded

    @model_validator(mode="after")
    def _unique_names(self) -> Manifest:
        seen: set[str] = set()
        for resource in self.packages:
            if resource.name in seen:
                raise ValueError(f"Duplicate package in manifest: {resource.name}")
            seen.add(resource.name)
        return self

    def get_package(self, name: str) -> PackageResource | None:
        """Look up a managed package by its configured name."""
        for resource in self.packages:
            if resource.name == name:
                return resource
        return None
