"""
Command runners — the only way the engine reaches the ``pkg`` binary.
"""

from pkgsync.adapters.base import CommandRunner, ExecutionFailure
from pkgsync.adapters.mock import MockRunner
from pkgsync.adapters.pkg import PkgCommandRunner

__all__ = ["CommandRunner", "ExecutionFailure", "MockRunner", "PkgCommandRunner"]
