"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from pkgsync.adapters.mock import MockRunner
from pkgsync.core.services.pkgng.inventory import QUERY_FORMAT
from pkgsync.core.services.pkgng.provider import LISTING_ARGS, PkgngProvider
from pkgsync.core.services.pkgng.version_checker import VERSION_CHECK_ARGS

LISTING = (
    "curl 8.7.1 ftp/curl\n"
    "nginx 1.24.0_14,3 www/nginx\n"
    "py311-pip 23.3.2 devel/py-pip\n"
    "vim 9.1.0 editors/vim\n"
)

UPDATES = (
    "ftp/curl                           <   needs updating (remote has 8.9.1)\n"
    "www/nginx                          <   needs updating (remote has 1.26.2,3)\n"
    "editors/vim                        =   up-to-date with remote\n"
)


@pytest.fixture
def runner() -> MockRunner:
    """Mock pkg with a small installed inventory and two pending updates."""
    mock = MockRunner()
    mock.set_response(LISTING_ARGS, LISTING)
    mock.set_response(VERSION_CHECK_ARGS, UPDATES)
    mock.set_response(["query", QUERY_FORMAT, "curl"], "curl 8.7.1 ftp/curl\n")
    mock.set_failure(
        ["query", QUERY_FORMAT, "tmux"],
        error="pkg: No package(s) matching tmux",
        returncode=70,
    )
    return mock


@pytest.fixture
def provider(runner: MockRunner) -> PkgngProvider:
    return PkgngProvider(runner)


@pytest.fixture
def manifest_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write a packages.yml and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "packages.yml"
        path.write_text(content)
        return path

    return _write
