"""Release policy and base-version constraint."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from .exceptions import FormatError
from .semver import SemanticVersion, increment_major, increment_minor, increment_patch

_BASE_RE = re.compile(r"(?P<major>[0-9]+)(?:\.(?P<minor>[0-9]+))?")


class ReleasePolicy(str, enum.Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    def apply(self, version: SemanticVersion) -> SemanticVersion:
        """Return the release target for ``version`` under this policy."""
        if self is ReleasePolicy.MAJOR:
            return increment_major(version)
        if self is ReleasePolicy.PATCH:
            return increment_patch(version)
        return increment_minor(version)


def policy_from_flags(*, major: bool = False, patch: bool = False) -> ReleasePolicy:
    """Map the mutually exclusive policy flags to a policy; minor is the default."""
    if major and patch:
        raise FormatError("--major and --patch are mutually exclusive")
    if major:
        return ReleasePolicy.MAJOR
    if patch:
        return ReleasePolicy.PATCH
    return ReleasePolicy.MINOR


@dataclass(frozen=True)
class VersionConstraint:
    """Filter for release tags: any, ``major == X`` or ``major.minor == X.Y``."""

    major: int | None = None
    minor: int | None = None

    def __post_init__(self) -> None:
        if self.minor is not None and self.major is None:
            raise FormatError("a minor constraint requires a major component")

    @property
    def is_any(self) -> bool:
        return self.major is None

    @property
    def pins_minor(self) -> bool:
        return self.minor is not None

    def matches(self, version: SemanticVersion) -> bool:
        if self.major is not None and version.major != self.major:
            return False
        if self.minor is not None and version.minor != self.minor:
            return False
        return True

    def __str__(self) -> str:
        if self.major is None:
            return "*"
        if self.minor is None:
            return f"{self.major}.x"
        return f"{self.major}.{self.minor}.x"


ANY = VersionConstraint()


def parse_base(text: str | None) -> VersionConstraint:
    """Parse a ``X`` or ``X.Y`` base into a constraint; ``None`` means any."""
    if text is None:
        return ANY
    match = _BASE_RE.fullmatch(text.strip())
    if not match:
        raise FormatError(f"--for: invalid format {text!r}, should be `X` or `X.Y`")
    minor = match.group("minor")
    return VersionConstraint(
        major=int(match.group("major")),
        minor=int(minor) if minor is not None else None,
    )


def build_constraint(base: str | None, policy: ReleasePolicy) -> VersionConstraint:
    """Parse ``base`` and reject a minor-level base unless releasing a patch."""
    constraint = parse_base(base)
    if constraint.pins_minor and policy is not ReleasePolicy.PATCH:
        raise FormatError(
            f"--for: a minor base ({base}) is only allowed with --patch, not a {policy.value} release"
        )
    return constraint


__all__ = [
    "ANY",
    "ReleasePolicy",
    "VersionConstraint",
    "build_constraint",
    "parse_base",
    "policy_from_flags",
]
