"""Semantic version value type and its increment/compare algebra."""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import total_ordering

from .exceptions import FormatError

_NUMBER = r"(?:0|[1-9][0-9]*)"
_IDENTIFIER = r"[0-9A-Za-z-]+"

_SEMVER_RE = re.compile(
    rf"^(?P<major>{_NUMBER})\.(?P<minor>{_NUMBER})\.(?P<patch>{_NUMBER})"
    rf"(?:-(?P<prerelease>{_IDENTIFIER}(?:\.{_IDENTIFIER})*))?$"
)
_IDENTIFIER_RE = re.compile(_IDENTIFIER)

DEV_LABEL = "dev"


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # Numeric identifiers sort below alphanumeric ones at the same position;
    # "01" and "1" tie numerically and fall back to their text.
    if identifier.isdigit():
        return (0, int(identifier), identifier)
    return (1, 0, identifier)


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """``MAJOR.MINOR.PATCH[-PRERELEASE]`` with SemVer precedence."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("major", "minor", "patch"):
            value = getattr(self, name)
            if value < 0:
                raise FormatError(f"version component {name} must be non-negative, got {value}")
        for identifier in self.prerelease:
            if not _IDENTIFIER_RE.fullmatch(identifier):
                raise FormatError(f"invalid pre-release identifier: {identifier!r}")

    def __str__(self) -> str:
        return format_version(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) < 0

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)


def parse(text: str) -> SemanticVersion:
    """Parse ``text`` into a :class:`SemanticVersion` or raise :class:`FormatError`."""

    match = _SEMVER_RE.fullmatch(text)
    if not match:
        raise FormatError(f"invalid semantic version: {text!r}")
    prerelease = match.group("prerelease")
    return SemanticVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
    )


def compare(a: SemanticVersion, b: SemanticVersion) -> int:
    """Return -1, 0 or 1 following SemVer precedence."""

    core_a = (a.major, a.minor, a.patch)
    core_b = (b.major, b.minor, b.patch)
    if core_a != core_b:
        return -1 if core_a < core_b else 1
    if a.prerelease == b.prerelease:
        return 0
    # A release outranks any pre-release of the same core.
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1
    for left, right in zip(a.prerelease, b.prerelease):
        key_left = _identifier_key(left)
        key_right = _identifier_key(right)
        if key_left != key_right:
            return -1 if key_left < key_right else 1
    if len(a.prerelease) == len(b.prerelease):
        return 0
    return -1 if len(a.prerelease) < len(b.prerelease) else 1


def increment_major(version: SemanticVersion) -> SemanticVersion:
    return SemanticVersion(version.major + 1, 0, 0)


def increment_minor(version: SemanticVersion) -> SemanticVersion:
    return SemanticVersion(version.major, version.minor + 1, 0)


def increment_patch(version: SemanticVersion) -> SemanticVersion:
    return SemanticVersion(version.major, version.minor, version.patch + 1)


def with_prerelease(version: SemanticVersion, label: str = DEV_LABEL) -> SemanticVersion:
    """Return a copy whose pre-release is exactly ``label``."""

    return replace(version, prerelease=(label,))


def format_version(version: SemanticVersion) -> str:
    text = f"{version.major}.{version.minor}.{version.patch}"
    if version.prerelease:
        text += "-" + ".".join(version.prerelease)
    return text


__all__ = [
    "DEV_LABEL",
    "SemanticVersion",
    "compare",
    "format_version",
    "increment_major",
    "increment_minor",
    "increment_patch",
    "parse",
    "with_prerelease",
]
