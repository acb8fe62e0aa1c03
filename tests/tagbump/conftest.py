from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

import pytest

from tagbump.clock import Clock
from tagbump.commands import CommandResult, CommandRunner
from tagbump.config import ToolchainSettings
from tagbump.metrics import ReleaseMetrics

CARGO_TOML = """\
[package]
name = "demo"
version = "{version}"
edition = "2021"

[dependencies]
serde = {{ version = "1.0" }}

[dev-dependencies.pretty_assertions]
version = "1.4"
"""


@dataclass
class RepoHandle:
    worktree: Path
    remote_uri: str
    bare: Path
    calls_log: Path

    def git(self, *args: str, cwd: Path | None = None) -> str:
        return _run(["git", *args], cwd=cwd or self.worktree)

    def tags(self) -> set[str]:
        return set(self.git("tag", "--list").split())

    def remote_tags(self) -> set[str]:
        lines = self.git("ls-remote", "--tags", "origin").splitlines()
        return {line.split("\t", 1)[1].removeprefix("refs/tags/") for line in lines if line}

    def subjects(self, count: int) -> list[str]:
        return self.git("log", f"-{count}", "--format=%s").splitlines()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()

    @property
    def manifest(self) -> Path:
        return self.worktree / "Cargo.toml"

    def calls(self) -> list[str]:
        if not self.calls_log.exists():
            return []
        return self.calls_log.read_text(encoding="utf-8").split()


class RecordingRunner(CommandRunner):
    """Runner that remembers every command line it executed."""

    def __init__(self, cwd: Path | None = None) -> None:
        super().__init__(cwd)
        self.commands: list[list[str]] = []

    def run(self, command: str, args: Iterable[str] = ()) -> CommandResult:
        args = list(args)
        self.commands.append([command, *args])
        return super().run(command, args)

    def git_calls(self) -> list[str]:
        return [" ".join(argv[1:]) for argv in self.commands if argv[0] == "git"]


@pytest.fixture
def stub_clock() -> Clock:
    base_epoch = 1_700_000_000.0
    monotonic_state = {"value": 10.0}

    def time_fn() -> float:
        return base_epoch

    def monotonic_fn() -> float:
        monotonic_state["value"] += 0.1
        return monotonic_state["value"]

    return Clock(time_fn=time_fn, monotonic_fn=monotonic_fn)


@pytest.fixture
def release_metrics() -> ReleaseMetrics:
    return ReleaseMetrics()


def step_command(log: Path, name: str, *, exit_code: int = 0, stderr: str = "") -> list[str]:
    """A toolchain step that appends ``name`` to ``log`` and exits with ``exit_code``."""
    script = (
        "import sys\n"
        f"open({str(log)!r}, 'a').write({name!r} + '\\n')\n"
        f"sys.stderr.write({stderr!r})\n"
        f"sys.exit({exit_code})\n"
    )
    return [sys.executable, "-c", script]


def make_toolchain(log: Path, **overrides: list[str]) -> ToolchainSettings:
    commands = {
        "resync_command": step_command(log, "resync"),
        "lint_command": step_command(log, "lint"),
        "format_command": step_command(log, "format"),
        "install_command": step_command(log, "install"),
    }
    commands.update(overrides)
    return ToolchainSettings(manifest=Path("Cargo.toml"), remote="origin", **commands)


@pytest.fixture
def repo_factory(tmp_path_factory: pytest.TempPathFactory) -> Callable[..., RepoHandle]:
    def _factory(
        tags: Iterable[str] = ("v1.0.0",),
        manifest_version: str = "1.1.0-dev",
        manifest_text: str | None = None,
    ) -> RepoHandle:
        base = tmp_path_factory.mktemp("repo")
        remote_bare = base / "remote.git"
        worktree = base / "work"
        _run(["git", "init", "--bare", remote_bare.name], cwd=base)
        remote_uri = (base / remote_bare.name).resolve().as_uri()
        _run(["git", "clone", remote_uri, worktree.name], cwd=base)
        _configure_identity(worktree, "tester")
        _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], cwd=worktree)

        text = manifest_text if manifest_text is not None else CARGO_TOML.format(version=manifest_version)
        (worktree / "Cargo.toml").write_bytes(text.encode("utf-8"))
        (worktree / "README.md").write_text("seed\n", encoding="utf-8")
        _run(["git", "add", "Cargo.toml", "README.md"], cwd=worktree)
        _run(["git", "commit", "-m", "seed"], cwd=worktree)
        for tag in tags:
            _run(["git", "tag", tag], cwd=worktree)
        _run(["git", "push", "-u", "origin", "main"], cwd=worktree)
        _run(["git", "push", "origin", "--tags"], cwd=worktree)
        _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], cwd=remote_bare)

        return RepoHandle(
            worktree=worktree,
            remote_uri=remote_uri,
            bare=remote_bare,
            calls_log=base / "calls.log",
        )

    return _factory


def push_from_other_clone(repo: RepoHandle, name: str) -> None:
    """Advance the remote's main branch from a second clone."""
    other = repo.worktree.parent / name
    _run(["git", "clone", repo.remote_uri, other.name], cwd=repo.worktree.parent)
    _configure_identity(other, name)
    (other / f"{name}.txt").write_text("remote\n", encoding="utf-8")
    _run(["git", "add", f"{name}.txt"], cwd=other)
    _run(["git", "commit", "-m", name], cwd=other)
    _run(["git", "push", "origin", "HEAD:main"], cwd=other)


def _configure_identity(worktree: Path, name: str) -> None:
    _run(["git", "config", "user.name", name], cwd=worktree)
    _run(["git", "config", "user.email", f"{name}@example.com"], cwd=worktree)
    _run(["git", "config", "commit.gpgsign", "false"], cwd=worktree)
    _run(["git", "config", "tag.gpgsign", "false"], cwd=worktree)


def _run(args: list[str], cwd: Path) -> str:
    env = os.environ.copy()
    env.setdefault("LC_ALL", "C")
    completed = subprocess.run(
        args,
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )
    if completed.returncode != 0:
        raise RuntimeError(f"Command failed: {' '.join(args)} -> {completed.stderr}")
    return completed.stdout
