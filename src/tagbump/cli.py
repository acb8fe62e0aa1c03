"""CLI entry point using Typer."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from pydantic_settings import SettingsError

from . import __version__
from .config import ReleaseConfig, ToolchainSettings
from .constraints import policy_from_flags
from .exceptions import ReleaseError
from .metrics import ReleaseMetrics
from .orchestrator import ReleaseOrchestrator, run

WORKFLOW_EPILOG = """\
The release command performs, in order:

  1. Switch to --repo (default: current directory) and checkout --branch if given.
  2. Check the repo is clean (`git status`) and, unless --no-push, fetched and not
     behind upstream (`git rev-list`).
  3. Find the latest `vX.Y.Z` tag, restricted by --for when given.
  4. Bump it: minor by default, --patch or --major as needed. Abort if the new tag exists.
  5. Rewrite `version` in the manifest, then run resync, lint (warnings are errors)
     and format.
  6. Commit "Release version X.Y.Z." and tag `vX.Y.Z`.
  7. If --install, install the new version locally.
  8. If no tag exists for the next minor, set the manifest to `X.(Y+1).0-dev`, resync
     and commit "Post-release.".
  9. Unless --no-push, push the branch, then the new tag.

WARNING: the manifest is edited with a pattern, not parsed. The first line shaped
like `version = "..."` must be the package version.
"""

app = typer.Typer(
    help="Opinionated automated release actions.",
    epilog=WORKFLOW_EPILOG,
    pretty_exceptions_short=True,
    rich_markup_mode=None,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Opinionated automated release actions."""


def _build_config(
    *,
    major: bool,
    patch: bool,
    repo: Optional[Path],
    branch: Optional[str],
    base: Optional[str],
    install: bool,
    no_push: bool,
    manifest: Optional[Path],
) -> ReleaseConfig:
    try:
        policy = policy_from_flags(major=major, patch=patch)
        toolchain = ToolchainSettings()
        if manifest is not None:
            toolchain = toolchain.model_copy(update={"manifest": manifest})
        return ReleaseConfig(
            policy=policy,
            repo=repo,
            start_ref=branch,
            base=base,
            install=install,
            push=not no_push,
            toolchain=toolchain,
        )
    except ReleaseError as err:
        typer.echo(f"configure: {err.kind}: {err.diagnostic}", err=True)
        raise typer.Exit(err.exit_code) from err
    except (ValidationError, SettingsError) as err:
        typer.echo(f"configure: invalid settings: {err}", err=True)
        raise typer.Exit(2) from err


@app.command(epilog=WORKFLOW_EPILOG)
def release(
    patch: bool = typer.Option(False, "--patch", "-p", help="Release is a patch (x.y.Z). Default: new minor version."),
    major: bool = typer.Option(
        False, "--major", "-M", help="Release is a new major version (X.y.z). Default: new minor version."
    ),
    repo: Optional[Path] = typer.Option(
        None, "--repo", "-r", help="Path to the git repository to use. Default: current directory."
    ),
    branch: Optional[str] = typer.Option(
        None, "--branch", "-b", help="Start from this branch or commit. Default: no checkout."
    ),
    base: Optional[str] = typer.Option(
        None,
        "--for",
        "-f",
        help="Use this version as the base (X or X.Y, X.Y needs --patch). X also combines with --major."
        " Default: latest.",
    ),
    install: bool = typer.Option(False, "--install", "-i", help="Install the new version locally."),
    no_push: bool = typer.Option(False, "--no-push", "-n", help="Do not perform a final push to the remote."),
    manifest: Optional[Path] = typer.Option(
        None, "--manifest", help="Manifest holding the version field, relative to the repo. Default: Cargo.toml."
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report of the run to this path."),
    metrics_out: Optional[Path] = typer.Option(
        None, "--metrics-out", help="Write Prometheus metrics of the run to this path."
    ),
    machine: bool = typer.Option(False, "--json", help="Print the JSON report on stdout instead of a message."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every external command."),
) -> None:
    """Release a new version of the project."""
    config = _build_config(
        major=major,
        patch=patch,
        repo=repo,
        branch=branch,
        base=base,
        install=install,
        no_push=no_push,
        manifest=manifest,
    )
    metrics = ReleaseMetrics()
    outcome = run(
        config,
        metrics=metrics,
        report_path=report,
        log_level=logging.DEBUG if verbose else logging.INFO,
    )
    if metrics_out is not None:
        metrics.write(metrics_out)
    if machine:
        typer.echo(json.dumps(outcome.report, ensure_ascii=False, sort_keys=True))
    elif outcome.exit_code == 0:
        typer.echo(outcome.message)
    else:
        typer.echo(outcome.message, err=True)
    raise typer.Exit(outcome.exit_code)


@app.command()
def plan(
    patch: bool = typer.Option(False, "--patch", "-p", help="Plan a patch release."),
    major: bool = typer.Option(False, "--major", "-M", help="Plan a major release."),
    repo: Optional[Path] = typer.Option(None, "--repo", "-r", help="Path to the git repository to use."),
    base: Optional[str] = typer.Option(None, "--for", "-f", help="Use this version as the base (X or X.Y)."),
) -> None:
    """Show what a release would produce, without touching anything."""
    config = _build_config(
        major=major,
        patch=patch,
        repo=repo,
        branch=None,
        base=base,
        install=False,
        no_push=True,
        manifest=None,
    )
    orchestrator = ReleaseOrchestrator(config, log_level=logging.WARNING)
    try:
        release_plan = orchestrator.plan()
    except ReleaseError as err:
        typer.echo(f"plan: {err.kind}: {err.diagnostic}", err=True)
        raise typer.Exit(err.exit_code) from err
    typer.echo(json.dumps(release_plan.as_dict(), ensure_ascii=False, sort_keys=True))


def main() -> None:
    """CLI wrapper for console_scripts compatibility."""
    app(prog_name="tagbump")


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
