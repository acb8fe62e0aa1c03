"""Pattern-based rewriting of the manifest's version field.

The manifest is never parsed structurally. The first line shaped like
``version = "..."`` is taken to be the package version and only its quoted
value is replaced; every other byte is kept as is. For a ``Cargo.toml`` this
means the ``[package]`` table must come before any other table carrying a
top-level ``version`` key.
"""

from __future__ import annotations

import re
from pathlib import Path

from .artifacts import atomic_write_bytes
from .exceptions import VersionFieldNotFound
from .semver import SemanticVersion, format_version

VERSION_FIELD_RE = re.compile(
    r'^(?P<head>[ \t]*version[ \t]*=[ \t]*")(?P<value>[^"\r\n]*)(?P<tail>"[ \t]*\r?)$',
    re.MULTILINE,
)


def find_version_field(text: str) -> re.Match[str]:
    match = VERSION_FIELD_RE.search(text)
    if match is None:
        raise VersionFieldNotFound(
            'could not locate a `version = "..."` line in the manifest',
        )
    return match


def patch_manifest_text(text: str, version: SemanticVersion) -> str:
    """Return ``text`` with the first version field set to ``version``."""
    match = find_version_field(text)
    return text[: match.start("value")] + format_version(version) + text[match.end("value") :]


def read_manifest_version(path: Path) -> str:
    """Return the raw value of the manifest's first version field."""
    return find_version_field(_read(path)).group("value")


def update_manifest_version(path: Path, version: SemanticVersion) -> str:
    """Rewrite the version field of the manifest at ``path``; return the previous value."""
    text = _read(path)
    previous = find_version_field(text).group("value")
    patched = patch_manifest_text(text, version)
    atomic_write_bytes(Path(path), patched.encode("utf-8"))
    return previous


def _read(path: Path) -> str:
    return Path(path).read_bytes().decode("utf-8")


__all__ = [
    "VERSION_FIELD_RE",
    "find_version_field",
    "patch_manifest_text",
    "read_manifest_version",
    "update_manifest_version",
]
