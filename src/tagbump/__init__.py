"""Automated semver releases driven by git tags.

The workflow resolves the latest ``vX.Y.Z`` tag, bumps it under a policy,
rewrites the manifest's version field, validates the change with the project
toolchain, then commits, tags and pushes the result.
"""
from __future__ import annotations

__version__ = "0.1.0"

from .config import ReleaseConfig, ToolchainSettings, validate_config
from .constraints import ReleasePolicy, VersionConstraint
from .exceptions import ReleaseError
from .orchestrator import ReleaseOrchestrator, ReleaseOutcome, ReleasePlan, ReleaseState, run
from .semver import SemanticVersion

__all__ = [
    "ReleaseConfig",
    "ReleaseError",
    "ReleaseOrchestrator",
    "ReleaseOutcome",
    "ReleasePlan",
    "ReleasePolicy",
    "ReleaseState",
    "SemanticVersion",
    "ToolchainSettings",
    "VersionConstraint",
    "__version__",
    "run",
]
