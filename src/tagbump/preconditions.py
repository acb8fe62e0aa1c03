"""Checks that the repository is in a releasable state."""

from __future__ import annotations

from . import git_ops
from .commands import CommandRunner
from .exceptions import BehindUpstream, CheckoutFailed, CommandFailed, DirtyRepository, UnexpectedOutput


def ensure_clean(runner: CommandRunner) -> None:
    try:
        git_ops.status_porcelain(runner)
    except UnexpectedOutput as exc:
        raise DirtyRepository(
            f"`git status` not empty; repo not clean:\n{exc.stdout}",
            context={"status": exc.stdout},
        ) from exc


def ensure_up_to_date(runner: CommandRunner) -> None:
    """Fetch, then fail if upstream has commits that are not local."""
    git_ops.fetch(runner)
    try:
        git_ops.upstream_only_commits(runner)
    except UnexpectedOutput as exc:
        missing = exc.stdout.splitlines()
        raise BehindUpstream(
            f"`git rev-list` not empty; repo behind upstream by {len(missing)} commit(s)",
            context={"commits": missing},
        ) from exc


def checkout(runner: CommandRunner, ref: str) -> None:
    try:
        git_ops.checkout(runner, ref)
    except CommandFailed as exc:
        raise CheckoutFailed(ref, exc.stderr) from exc


__all__ = ["checkout", "ensure_clean", "ensure_up_to_date"]
