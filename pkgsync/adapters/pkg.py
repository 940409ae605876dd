"""
pkg command runner — executes the real ``pkg`` binary.

This is the SINGLE PLACE where ``subprocess.run`` is called. Every
query, update check, install and remove goes through here.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from pkgsync.adapters.base import CommandRunner, ExecutionFailure

logger = logging.getLogger(__name__)

DEFAULT_PKG_PATH = "/usr/local/sbin/pkg"
DEFAULT_TIMEOUT = 300


class PkgCommandRunner(CommandRunner):
    """Run ``pkg`` as a subprocess and capture its output.

    Args:
        binary: Path to the pkg executable.
        timeout: Seconds before the command is abandoned.
    """

    def __init__(self, binary: str = DEFAULT_PKG_PATH, timeout: int = DEFAULT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "pkg"

    def is_available(self) -> bool:
        if os.path.sep in self.binary:
            return os.path.isfile(self.binary) and os.access(self.binary, os.X_OK)
        return shutil.which(self.binary) is not None

    def execute(self, argv: list[str]) -> str:
        cmd = [self.binary, *argv]
        logger.debug("Executing: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ExecutionFailure(
                f"Command timed out after {self.timeout}s: {' '.join(cmd)}",
                argv=argv,
            ) from e
        except OSError as e:
            raise ExecutionFailure(
                f"Could not execute {self.binary}: {e}",
                argv=argv,
            ) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("pkg %s exited %d (%dms)", argv[0] if argv else "", result.returncode, elapsed_ms)

        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            raise ExecutionFailure(
                f"Execution of '{' '.join(cmd)}' returned {result.returncode}: {output}",
                argv=argv,
                returncode=result.returncode,
                output=output,
            )

        return result.stdout
