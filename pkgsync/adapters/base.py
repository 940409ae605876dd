"""
Command runner base — the contract between the engine and ``pkg``.

The engine never calls ``subprocess`` itself. It hands an argument
list to a runner and gets stdout back. Anything other than a clean
exit surfaces as ``ExecutionFailure`` so callers decide, per path,
whether a failure is expected (queries) or fatal (installs).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ExecutionFailure(Exception):
    """Raised when a command exits non-zero, cannot start, or times out.

    Carries the captured output so mutating paths can surface it
    verbatim to the caller.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: list[str] | None = None,
        returncode: int | None = None,
        output: str = "",
    ):
        super().__init__(message)
        self.argv = list(argv or [])
        self.returncode = returncode
        self.output = output

    def details(self) -> str:
        """Message plus captured output, for receipts and CLI display."""
        text = str(self)
        if self.output and self.output not in text:
            text = f"{text}\n{self.output}"
        return text


class CommandRunner(ABC):
    """Abstract base class for anything that can run ``pkg``.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, is_available, execute
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'pkg', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the underlying executable can be launched.

        Should be fast and never raise.
        """

    @abstractmethod
    def execute(self, argv: list[str]) -> str:
        """Run the package manager with ``argv`` and return stdout.

        Raises:
            ExecutionFailure: On non-zero exit, launch failure or timeout.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
