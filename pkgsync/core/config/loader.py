"""
Configuration loader — reads packages.yml into a Manifest.

Reads YAML, validates against the Pydantic models, then applies
PKGSYNC_* environment overrides to the runtime settings.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from pkgsync.core.models.manifest import Manifest, Settings

logger = logging.getLogger(__name__)

# Default manifest filename
MANIFEST_FILE = "packages.yml"

ENV_PKG_PATH = "PKGSYNC_PKG"
ENV_TIMEOUT = "PKGSYNC_TIMEOUT"


class ConfigError(Exception):
    """Raised when the manifest is missing or invalid."""


def find_manifest_file(start_dir: Path | None = None) -> Path | None:
    """Search for packages.yml starting from ``start_dir``, walking up.

    Returns:
        Path to packages.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_manifest(path: Path | None = None) -> Manifest:
    """Load and validate a manifest.

    Args:
        path: Explicit path to packages.yml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_manifest_file()

    if path is None:
        raise ConfigError(f"No {MANIFEST_FILE} found. Create one, or specify --config.")

    if not path.is_file():
        raise ConfigError(f"Manifest not found: {path}")

    logger.debug("Loading manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid manifest {path}: {e}") from e

    manifest.settings = apply_env_overrides(manifest.settings)
    logger.info("Loaded manifest with %d package(s)", len(manifest.packages))
    return manifest


def apply_env_overrides(settings: Settings, environ: dict[str, str] | None = None) -> Settings:
    """Overlay PKGSYNC_PKG / PKGSYNC_TIMEOUT on top of ``settings``.

    Raises:
        ConfigError: If PKGSYNC_TIMEOUT is not a positive integer.
    """
    env = os.environ if environ is None else environ
    updates: dict[str, object] = {}

    if env.get(ENV_PKG_PATH):
        updates["pkg_path"] = env[ENV_PKG_PATH]

    if env.get(ENV_TIMEOUT):
        try:
            timeout = int(env[ENV_TIMEOUT])
        except ValueError as e:
            raise ConfigError(f"{ENV_TIMEOUT} must be an integer, got {env[ENV_TIMEOUT]!r}") from e
        if timeout <= 0:
            raise ConfigError(f"{ENV_TIMEOUT} must be positive, got {timeout}")
        updates["timeout"] = timeout

    return settings.model_copy(update=updates) if updates else settings
