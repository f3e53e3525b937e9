"""Custom error hierarchy for git-nomad."""

from __future__ import annotations


class NomadError(RuntimeError):
    """Base error for all failures presented to the user."""


class GitCommandError(NomadError):
    """Raised when an underlying git command fails."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        *,
        description: str | None = None,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        self.command = command
        self.returncode = returncode
        self.description = description or ""
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        message = f"git command failed (exit {returncode}): {' '.join(command)}"
        if self.description:
            message = f"{self.description}: {message}"
        for name, stream in (("STDOUT", self.stdout), ("STDERR", self.stderr)):
            if stream.strip():
                message = f"{message}\n# ---- {name} ----\n{stream.strip()}"
        super().__init__(message)


class GitOutputError(NomadError):
    """Raised when git succeeds but prints something we cannot make sense of."""


class RefParseError(GitOutputError):
    """Raised when a `show-ref` or `ls-remote` line is malformed."""

    MISSING_NAME = "Missing name"
    MISSING_COMMIT_ID = "Missing commit ID"
    TOO_MANY_PARTS = "Too many parts"

    def __init__(self, reason: str, line: str):
        self.reason = reason
        self.line = line
        super().__init__(f"{reason}: {line}")


class ConfigError(NomadError):
    """Raised when the persisted nomad configuration is inconsistent."""


class DetachedHeadError(NomadError):
    """Raised when a workflow needs the current branch but HEAD is detached."""


class ValidationError(NomadError):
    """Raised when user input fails validation."""


class UserAbort(NomadError):
    """Raised when the user cancels an interactive flow."""


class SnapshotInvariantError(AssertionError):
    """A snapshot was handed a ref belonging to another user. Always a programming error."""


__all__ = [
    "NomadError",
    "GitCommandError",
    "GitOutputError",
    "RefParseError",
    "ConfigError",
    "DetachedHeadError",
    "ValidationError",
    "UserAbort",
    "SnapshotInvariantError",
]
