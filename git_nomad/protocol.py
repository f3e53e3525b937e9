"""Protocol definition for the git repository nomad operates on."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Branch, GitRef


class Repository(Protocol):
    """Everything the nomad workflows need from a git clone.

    Implementations must raise on any failed git operation; nothing is retried.
    """

    def read_config(self, key: str) -> str | None:
        """Read ``nomad.<key>``, returning ``None`` when it is unset."""
        ...

    def write_config(self, key: str, value: str) -> None:
        """Persist ``nomad.<key>`` in the clone's local config."""
        ...

    def list_local_refs(self) -> list[GitRef]:
        """All refs in the local clone, like `git show-ref`."""
        ...

    def list_remote_refs(self, remote: str, patterns: Sequence[str]) -> list[GitRef]:
        """Refs on ``remote`` matching ``patterns``, like `git ls-remote`."""
        ...

    def fetch(self, remote: str, refspecs: Sequence[str], *, description: str | None = None) -> None:
        ...

    def push(self, remote: str, refspecs: Sequence[str], *, description: str | None = None) -> None:
        """Push ``refspecs``; entries of the form ``:<name>`` delete remote refs."""
        ...

    def delete_local_ref(self, name: str, expected_commit_id: str) -> None:
        """Delete ``name`` only if it still points at ``expected_commit_id``."""
        ...

    def current_branch(self) -> Branch:
        """The checked out branch. Raises `DetachedHeadError` on a detached HEAD."""
        ...


__all__ = ["Repository"]
