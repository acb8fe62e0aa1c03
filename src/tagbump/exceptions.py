"""Error taxonomy for the release workflow."""

from __future__ import annotations


class ReleaseError(RuntimeError):
    """Wrap a fatal release error with its kind and exit code."""

    kind = "ReleaseError"
    exit_code = 1

    def __init__(self, message: str, *, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}

    @property
    def diagnostic(self) -> str:
        return self.args[0] if self.args else ""


class FormatError(ReleaseError):
    """Raised for malformed version, constraint or option text."""

    kind = "FormatError"
    exit_code = 2


class CheckoutFailed(ReleaseError):
    kind = "CheckoutFailed"
    exit_code = 3

    def __init__(self, ref: str, diagnostic: str) -> None:
        super().__init__(diagnostic or f"failed to checkout {ref}", context={"ref": ref})
        self.ref = ref


class DirtyRepository(ReleaseError):
    kind = "DirtyRepository"
    exit_code = 4


class BehindUpstream(ReleaseError):
    kind = "BehindUpstream"
    exit_code = 5


class NoMatchingVersion(ReleaseError):
    kind = "NoMatchingVersion"
    exit_code = 6


class VersionAlreadyReleased(ReleaseError):
    kind = "VersionAlreadyReleased"
    exit_code = 7


class VersionFieldNotFound(ReleaseError):
    kind = "VersionFieldNotFound"
    exit_code = 8


class CommandFailed(ReleaseError):
    """Raised when an external command exits non-zero."""

    kind = "CommandFailed"
    exit_code = 9

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        display = " ".join(command)
        message = stderr or f"command failed: {display} ({returncode})"
        super().__init__(message, context={"command": display, "returncode": returncode})


class UnexpectedOutput(ReleaseError):
    """Raised when a command that must stay silent printed to stdout."""

    kind = "UnexpectedOutput"
    exit_code = 10

    def __init__(self, command: list[str], stdout: str) -> None:
        self.command = command
        self.stdout = stdout
        super().__init__(stdout, context={"command": " ".join(command)})


class FileAccessFailed(ReleaseError):
    """Raised when a file the release reads or writes cannot be accessed."""

    kind = "FileAccessFailed"
    exit_code = 1

    @classmethod
    def from_os_error(cls, exc: OSError) -> "FileAccessFailed":
        reason = exc.strerror or str(exc)
        if exc.filename is None:
            return cls(reason)
        return cls(f"{reason}: {exc.filename}", context={"path": exc.filename})


__all__ = [
    "BehindUpstream",
    "CheckoutFailed",
    "CommandFailed",
    "DirtyRepository",
    "FileAccessFailed",
    "FormatError",
    "NoMatchingVersion",
    "ReleaseError",
    "UnexpectedOutput",
    "VersionAlreadyReleased",
    "VersionFieldNotFound",
]
