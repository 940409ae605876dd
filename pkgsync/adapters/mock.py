"""
Mock runner — in-memory stand-in for the ``pkg`` binary.

Used by ``--mock`` and by the test suite to script pkg output
without touching the host. Responses are keyed by the exact
argument list.
"""

from __future__ import annotations

from pkgsync.adapters.base import CommandRunner, ExecutionFailure


class MockRunner(CommandRunner):
    """Scriptable runner for testing.

    By default every command succeeds with ``default_output``. Use
    ``set_response`` / ``set_failure`` to script specific argv.
    """

    def __init__(
        self,
        runner_name: str = "mock",
        available: bool = True,
        default_output: str = "",
    ):
        self._name = runner_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[tuple[str, ...], str | ExecutionFailure] = {}
        self._call_log: list[list[str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[list[str]]:
        """Every argv this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    def calls_for(self, subcommand: str) -> list[list[str]]:
        """Calls whose first argument is ``subcommand``."""
        return [argv for argv in self._call_log if argv and argv[0] == subcommand]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, argv: list[str], output: str) -> None:
        """Return ``output`` when called with exactly ``argv``."""
        self._responses[tuple(argv)] = output

    def set_failure(
        self,
        argv: list[str],
        error: str = "Mock failure",
        output: str = "",
        returncode: int = 1,
    ) -> None:
        """Raise ExecutionFailure when called with exactly ``argv``."""
        self._responses[tuple(argv)] = ExecutionFailure(
            error,
            argv=list(argv),
            returncode=returncode,
            output=output,
        )

    def execute(self, argv: list[str]) -> str:
        self._call_log.append(list(argv))

        response = self._responses.get(tuple(argv))
        if isinstance(response, ExecutionFailure):
            raise response
        if response is not None:
            return response

        return self._default_output

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()
