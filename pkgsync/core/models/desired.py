"""
Desired state — the ``ensure`` value of a managed package.

Modelled as a tagged variant so every consumer handles all four
cases explicitly:

    Absent      remove the package
    Present     any installed version is fine
    Latest      track the newest upstream version
    Pinned      exactly this version
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

_ABSENT_WORDS = {"absent", "false"}
_PRESENT_WORDS = {"present", "installed", "true"}


class Absent(BaseModel):
    kind: Literal["absent"] = "absent"

    def __str__(self) -> str:
        return "absent"


class Present(BaseModel):
    kind: Literal["present"] = "present"

    def __str__(self) -> str:
        return "present"


class Latest(BaseModel):
    kind: Literal["latest"] = "latest"

    def __str__(self) -> str:
        return "latest"


class Pinned(BaseModel):
    kind: Literal["version"] = "version"
    version: str = Field(min_length=1)

    def __str__(self) -> str:
        return self.version


Ensure = Annotated[Absent | Present | Latest | Pinned, Field(discriminator="kind")]


def parse_ensure(value: Any) -> Absent | Present | Latest | Pinned:
    """Turn a manifest / CLI ``ensure`` value into its variant.

    Accepts booleans, the keywords above, an already-parsed variant,
    or a ``{"kind": ...}`` mapping. Any other non-empty string or
    integer is a version pin.

    Floats are refused: YAML reads ``7.70`` as ``7.7`` and the
    trailing zero is already gone, so the pin must be quoted.

    Raises:
        ValueError: For empty, unquoted-float or unsupported values.
    """
    if isinstance(value, (Absent, Present, Latest, Pinned)):
        return value
    if value is None:
        return Present()
    if isinstance(value, bool):
        return Present() if value else Absent()
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind == "version":
            return Pinned(version=str(value.get("version", "")))
        return parse_ensure(kind)
    if isinstance(value, float):
        raise ValueError(
            f"Version {value!r} was read as a number; quote it in the manifest "
            f"(e.g. ensure: \"{value}\")"
        )
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported ensure value: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("ensure must not be empty")

    word = text.lower()
    if word in _ABSENT_WORDS:
        return Absent()
    if word in _PRESENT_WORDS:
        return Present()
    if word == "latest":
        return Latest()
    return Pinned(version=text)
