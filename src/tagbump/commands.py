"""Blocking execution of external commands with fail-fast contracts."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .exceptions import CommandFailed, UnexpectedOutput
from .metrics import ReleaseMetrics


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command invocation."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Run commands inside ``cwd`` and wait for them to exit.

    There are no retries and no timeout: a failing command aborts the caller,
    a hung command hangs the release.
    """

    def __init__(
        self,
        cwd: Path | None = None,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        metrics: ReleaseMetrics | None = None,
    ) -> None:
        self.cwd = cwd
        self.logger = logger or logging.getLogger("tagbump")
        self.metrics = metrics

    def run(self, command: str, args: Sequence[str] = ()) -> CommandResult:
        argv = [command, *args]
        env = os.environ.copy()
        env.setdefault("LC_ALL", "C")
        try:
            completed = subprocess.run(
                argv,
                cwd=self.cwd,
                check=False,
                encoding="utf-8",
                errors="replace",
                capture_output=True,
                env=env,
            )
        except FileNotFoundError as exc:
            self._record(command, "missing")
            raise CommandFailed(argv, returncode=127, stderr=str(exc)) from exc
        result = CommandResult(
            command=argv,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
        self._record(command, "ok" if result.success else "error")
        self.logger.debug(
            "command_run",
            extra={"program": command, "argv": list(args), "returncode": result.returncode},
        )
        return result

    def run_or_fail(self, command: str, args: Sequence[str] = ()) -> CommandResult:
        result = self.run(command, args)
        if not result.success:
            raise CommandFailed(result.command, result.returncode, result.stderr.strip())
        return result

    def run_expect_empty_output(self, command: str, args: Sequence[str] = ()) -> CommandResult:
        result = self.run_or_fail(command, args)
        if result.stdout:
            raise UnexpectedOutput(result.command, result.stdout.strip())
        return result

    def run_argv(self, argv: Sequence[str]) -> CommandResult:
        """Run a full command line such as a configured toolchain step."""
        if not argv:
            raise ValueError("empty command line")
        return self.run_or_fail(argv[0], argv[1:])

    def _record(self, program: str, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_command(program, outcome)


__all__ = ["CommandResult", "CommandRunner"]
