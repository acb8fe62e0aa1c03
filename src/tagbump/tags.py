"""Release tag discovery and latest-version resolution."""

from __future__ import annotations

import re
from typing import Iterable

from .constraints import VersionConstraint
from .exceptions import NoMatchingVersion
from .semver import SemanticVersion, format_version

TAG_PREFIX = "v"
RELEASE_TAG_RE = re.compile(r"v(?P<major>0|[1-9][0-9]*)\.(?P<minor>0|[1-9][0-9]*)\.(?P<patch>0|[1-9][0-9]*)")


def tag_name(version: SemanticVersion) -> str:
    return f"{TAG_PREFIX}{format_version(version)}"


def parse_release_tags(names: Iterable[str]) -> list[SemanticVersion]:
    """Return the versions of every name that is a release tag; others are skipped."""
    versions: list[SemanticVersion] = []
    for name in names:
        match = RELEASE_TAG_RE.fullmatch(name.strip())
        if not match:
            continue
        versions.append(
            SemanticVersion(
                major=int(match.group("major")),
                minor=int(match.group("minor")),
                patch=int(match.group("patch")),
            )
        )
    return versions


def resolve_latest(versions: Iterable[SemanticVersion], constraint: VersionConstraint) -> SemanticVersion:
    """Return the greatest version satisfying ``constraint``."""
    candidates = [version for version in versions if constraint.matches(version)]
    if not candidates:
        raise NoMatchingVersion(
            f"no matching semver tag found for constraint {constraint}",
            context={"constraint": str(constraint)},
        )
    return max(candidates)


def is_released(version: SemanticVersion, versions: Iterable[SemanticVersion]) -> bool:
    return version in set(versions)


__all__ = [
    "RELEASE_TAG_RE",
    "TAG_PREFIX",
    "is_released",
    "parse_release_tags",
    "resolve_latest",
    "tag_name",
]
