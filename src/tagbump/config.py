from __future__ import annotations

"""Configuration objects for a release run."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constraints import ReleasePolicy, VersionConstraint, build_constraint


class ToolchainSettings(BaseSettings):
    """Toolchain command lines and manifest location, overridable via ``TAGBUMP_*``."""

    model_config = SettingsConfigDict(env_prefix="TAGBUMP_", extra="ignore")

    manifest: Path = Path("Cargo.toml")
    remote: str = "origin"
    resync_command: List[str] = Field(default_factory=lambda: ["cargo", "update"])
    lint_command: List[str] = Field(default_factory=lambda: ["cargo", "clippy", "--", "-D", "warnings"])
    format_command: List[str] = Field(default_factory=lambda: ["cargo", "fmt"])
    install_command: List[str] = Field(default_factory=lambda: ["cargo", "install", "--path", "."])

    @field_validator("resync_command", "lint_command", "format_command", "install_command")
    @classmethod
    def _ensure_command(cls, value: List[str]) -> List[str]:
        if not value or not value[0].strip():
            raise ValueError("toolchain command must name a program")
        return value


class ReleaseConfig(BaseModel):
    """Everything one release run needs to know."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    policy: ReleasePolicy = ReleasePolicy.MINOR
    repo: Optional[Path] = None
    start_ref: Optional[str] = None
    base: Optional[str] = None
    install: bool = False
    push: bool = True
    toolchain: ToolchainSettings = Field(default_factory=ToolchainSettings)

    @property
    def repo_root(self) -> Path:
        return (self.repo or Path.cwd()).expanduser().resolve()

    @property
    def manifest_path(self) -> Path:
        manifest = self.toolchain.manifest
        if manifest.is_absolute():
            return manifest
        return self.repo_root / manifest


def validate_config(config: ReleaseConfig) -> VersionConstraint:
    """Reject illegal option combinations before anything runs.

    Returns the tag constraint built from ``config.base``.
    """

    return build_constraint(config.base, config.policy)


__all__ = ["ReleaseConfig", "ToolchainSettings", "validate_config"]
