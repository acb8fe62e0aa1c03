"""Release workflow state machine."""

from __future__ import annotations

import enum
import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from . import git_ops, preconditions
from .artifacts import write_json
from .clock import Clock, default_clock
from .commands import CommandRunner
from .config import ReleaseConfig, validate_config
from .constraints import VersionConstraint
from .exceptions import FileAccessFailed, ReleaseError, VersionAlreadyReleased
from .logging_utils import setup_logging
from .manifest import update_manifest_version
from .metrics import ReleaseMetrics
from .semver import DEV_LABEL, SemanticVersion, format_version, increment_minor, with_prerelease
from .tags import is_released, parse_release_tags, resolve_latest, tag_name

RELEASE_MESSAGE = "Release version {version}."
POST_RELEASE_MESSAGE = "Post-release."


class ReleaseState(str, enum.Enum):
    CONFIGURE = "configure"
    SETUP = "setup"
    VALIDATE = "validate"
    RESOLVE = "resolve"
    COMPUTE_TARGET = "compute_target"
    APPLY_AND_BUILD = "apply_and_build"
    COMMIT_AND_TAG = "commit_and_tag"
    INSTALL = "install"
    POST_RELEASE = "post_release"
    PUBLISH = "publish"


@dataclass(frozen=True)
class ReleasePlan:
    """Versions a release would produce, computed without side effects."""

    latest: SemanticVersion
    target: SemanticVersion
    constraint: VersionConstraint
    released: frozenset[SemanticVersion]

    @property
    def tag(self) -> str:
        return tag_name(self.target)

    @property
    def already_released(self) -> bool:
        return self.target in self.released

    @property
    def next_minor(self) -> SemanticVersion:
        return increment_minor(self.target)

    @property
    def next_dev(self) -> Optional[SemanticVersion]:
        """The post-release manifest version, or ``None`` when escalation is skipped."""
        if is_released(self.next_minor, self.released):
            return None
        return with_prerelease(self.next_minor, DEV_LABEL)

    def as_dict(self) -> dict[str, Any]:
        next_dev = self.next_dev
        return {
            "constraint": str(self.constraint),
            "latest": format_version(self.latest),
            "target": format_version(self.target),
            "tag": self.tag,
            "already_released": self.already_released,
            "next_dev": format_version(next_dev) if next_dev else None,
        }


@dataclass
class ReleaseOutcome:
    """Result of a release run."""

    exit_code: int
    status: str
    message: str
    report: dict[str, Any]


@dataclass
class _Progress:
    state: Optional[ReleaseState] = None
    completed: list[str] = field(default_factory=list)
    plan: Optional[ReleasePlan] = None
    next_dev: Optional[SemanticVersion] = None
    installed: bool = False
    pushed: bool = False


class ReleaseOrchestrator:
    """Drive one release from precondition checks to publishing.

    States run strictly in order and the first :class:`ReleaseError` stops the
    run. Nothing already committed or tagged is undone.
    """

    def __init__(
        self,
        config: ReleaseConfig,
        *,
        runner: CommandRunner | None = None,
        clock: Clock | None = None,
        metrics: ReleaseMetrics | None = None,
        log_level: int = logging.INFO,
    ) -> None:
        self.config = config
        self.clock = clock or default_clock()
        self.metrics = metrics or ReleaseMetrics()
        self.correlation_id = os.environ.get("CORRELATION_ID", str(uuid.uuid4()))
        self.logger = setup_logging(self.correlation_id, log_level)
        self.runner = runner or CommandRunner(config.repo_root, logger=self.logger, metrics=self.metrics)
        self.progress = _Progress()

    # ------------------------------------------------------------------
    def plan(self, constraint: VersionConstraint | None = None) -> ReleasePlan:
        """Resolve the latest matching tag and compute the release target."""

        if constraint is None:
            constraint = validate_config(self.config)
        released = parse_release_tags(git_ops.list_tags(self.runner))
        latest = resolve_latest(released, constraint)
        target = self.config.policy.apply(latest)
        return ReleasePlan(latest=latest, target=target, constraint=constraint, released=frozenset(released))

    def execute(self) -> ReleasePlan:
        """Run every state; raise the first :class:`ReleaseError`."""

        self._enter(ReleaseState.CONFIGURE)
        constraint = validate_config(self.config)

        self._enter(ReleaseState.SETUP)
        if self.config.start_ref:
            preconditions.checkout(self.runner, self.config.start_ref)

        self._enter(ReleaseState.VALIDATE)
        preconditions.ensure_clean(self.runner)
        if self.config.push:
            preconditions.ensure_up_to_date(self.runner)

        self._enter(ReleaseState.RESOLVE)
        plan = self.plan(constraint)
        self.progress.plan = plan

        self._enter(ReleaseState.COMPUTE_TARGET)
        if plan.already_released:
            raise VersionAlreadyReleased(
                f"attempting to release a version that already exists: {format_version(plan.target)}",
                context={"tag": plan.tag},
            )

        self._enter(ReleaseState.APPLY_AND_BUILD)
        self.apply_and_build(plan.target)

        self._enter(ReleaseState.COMMIT_AND_TAG)
        git_ops.commit_all(self.runner, RELEASE_MESSAGE.format(version=format_version(plan.target)))
        git_ops.create_tag(self.runner, plan.tag)

        if self.config.install:
            self._enter(ReleaseState.INSTALL)
            self.runner.run_argv(self.config.toolchain.install_command)
            self.progress.installed = True

        self._enter(ReleaseState.POST_RELEASE)
        self.progress.next_dev = self.post_release(plan.target, plan.released)

        if self.config.push:
            self._enter(ReleaseState.PUBLISH)
            git_ops.push(self.runner)
            git_ops.push_tag(self.runner, self.config.toolchain.remote, plan.tag)
            self.progress.pushed = True

        self._mark_completed()
        return plan

    def apply_and_build(self, target: SemanticVersion) -> None:
        """Write ``target`` to the manifest, then resync, lint and format in that order."""

        toolchain = self.config.toolchain
        update_manifest_version(self.config.manifest_path, target)
        self.runner.run_argv(toolchain.resync_command)
        self.runner.run_argv(toolchain.lint_command)
        self.runner.run_argv(toolchain.format_command)

    def post_release(
        self, target: SemanticVersion, released: frozenset[SemanticVersion] | set[SemanticVersion]
    ) -> Optional[SemanticVersion]:
        """Move the manifest to the next minor ``-dev`` unless that minor is already tagged."""

        next_minor = increment_minor(target)
        if is_released(next_minor, released):
            self.logger.info("post_release_skipped", extra={"next": format_version(next_minor)})
            return None
        next_dev = with_prerelease(next_minor, DEV_LABEL)
        update_manifest_version(self.config.manifest_path, next_dev)
        self.runner.run_argv(self.config.toolchain.resync_command)
        git_ops.commit_all(self.runner, POST_RELEASE_MESSAGE)
        return next_dev

    # ------------------------------------------------------------------
    def _enter(self, state: ReleaseState) -> None:
        self._mark_completed()
        self.progress.state = state
        self.logger.info("release_state", extra={"state": state.value})

    def _mark_completed(self) -> None:
        current = self.progress.state
        if current is not None and current.value not in self.progress.completed:
            self.progress.completed.append(current.value)

    def report(self) -> dict[str, Any]:
        progress = self.progress
        plan = progress.plan
        return {
            "correlation_id": self.correlation_id,
            "repo": str(self.config.repo_root),
            "manifest": str(self.config.manifest_path),
            "policy": self.config.policy.value,
            "base": self.config.base,
            "latest": format_version(plan.latest) if plan else None,
            "target": format_version(plan.target) if plan else None,
            "tag": plan.tag if plan else None,
            "next_dev": format_version(progress.next_dev) if progress.next_dev else None,
            "installed": progress.installed,
            "pushed": progress.pushed,
            "completed_states": list(progress.completed),
        }


def run(
    config: ReleaseConfig,
    *,
    runner: CommandRunner | None = None,
    clock: Clock | None = None,
    metrics: ReleaseMetrics | None = None,
    report_path: Path | None = None,
    log_level: int = logging.INFO,
) -> ReleaseOutcome:
    """Execute a release and fold any :class:`ReleaseError` or file access error into the outcome."""

    orchestrator = ReleaseOrchestrator(
        config, runner=runner, clock=clock, metrics=metrics, log_level=log_level
    )
    clock = orchestrator.clock
    metrics = orchestrator.metrics
    logger = orchestrator.logger
    metrics.record_attempt()
    started_at = clock.now()
    start_ms = clock.monotonic_ms()

    try:
        plan = orchestrator.execute()
    except ReleaseError as err:
        outcome = _failed(orchestrator, err)
    except OSError as exc:
        outcome = _failed(orchestrator, FileAccessFailed.from_os_error(exc))
    else:
        report = orchestrator.report()
        report.update({"status": "released", "exit_code": 0})
        message = f"Released {plan.tag}."
        if report["next_dev"]:
            message += f" Manifest now at {report['next_dev']}."
        if not report["pushed"]:
            message += " Nothing was pushed."
        logger.info("release_completed", extra={"tag": plan.tag})
        outcome = ReleaseOutcome(exit_code=0, status="released", message=message, report=report)

    timing_ms = max(0, clock.monotonic_ms() - start_ms)
    metrics.observe_duration(timing_ms / 1000)
    outcome.report["started_at"] = started_at.isoformat()
    outcome.report["timing_ms"] = timing_ms
    if report_path is not None:
        write_json(outcome.report, report_path)
    return outcome


def _failed(orchestrator: ReleaseOrchestrator, err: ReleaseError) -> ReleaseOutcome:
    state = (orchestrator.progress.state or ReleaseState.CONFIGURE).value
    orchestrator.metrics.record_failure(state, err.kind)
    orchestrator.logger.error("release_failed", extra={"state": state, "kind": err.kind, "error": err.diagnostic})
    report = orchestrator.report()
    report.update(
        {
            "status": "failed",
            "exit_code": err.exit_code,
            "failed_state": state,
            "error_kind": err.kind,
            "error": err.diagnostic,
            "error_context": {key: str(value) for key, value in err.context.items()},
        }
    )
    message = f"{state}: {err.kind}: {err.diagnostic}"
    return ReleaseOutcome(exit_code=err.exit_code, status="failed", message=message, report=report)


__all__ = [
    "POST_RELEASE_MESSAGE",
    "RELEASE_MESSAGE",
    "ReleaseOrchestrator",
    "ReleaseOutcome",
    "ReleasePlan",
    "ReleaseState",
    "run",
]
