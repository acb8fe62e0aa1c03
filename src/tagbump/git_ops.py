"""Git command helpers for the release workflow."""

from __future__ import annotations

from .commands import CommandResult, CommandRunner

GIT = "git"


def status_porcelain(runner: CommandRunner) -> CommandResult:
    """Fail with ``UnexpectedOutput`` when the working tree has any change."""
    return runner.run_expect_empty_output(GIT, ["status", "--porcelain=v2"])


def fetch(runner: CommandRunner) -> CommandResult:
    return runner.run_or_fail(GIT, ["fetch"])


def upstream_only_commits(runner: CommandRunner) -> CommandResult:
    """Fail with ``UnexpectedOutput`` when upstream has commits missing locally."""
    return runner.run_expect_empty_output(GIT, ["rev-list", "HEAD..HEAD@{upstream}"])


def list_tags(runner: CommandRunner) -> list[str]:
    completed = runner.run_or_fail(GIT, ["tag", "--list"])
    return [line for line in completed.stdout.strip().splitlines() if line]


def checkout(runner: CommandRunner, ref: str) -> CommandResult:
    return runner.run_or_fail(GIT, ["checkout", ref])


def commit_all(runner: CommandRunner, message: str) -> CommandResult:
    return runner.run_or_fail(GIT, ["commit", "-am", message])


def create_tag(runner: CommandRunner, name: str) -> CommandResult:
    return runner.run_or_fail(GIT, ["tag", name])


def push(runner: CommandRunner) -> CommandResult:
    return runner.run_or_fail(GIT, ["push"])


def push_tag(runner: CommandRunner, remote: str, name: str) -> CommandResult:
    return runner.run_or_fail(GIT, ["push", remote, name])

