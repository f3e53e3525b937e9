"""Git repository operations implemented on top of the `git` binary."""

from __future__ import annotations

import logging
import subprocess
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, Sequence

from rich.console import Console

from . import namespace
from .exceptions import DetachedHeadError, GitCommandError, GitOutputError, RefParseError
from .models import Branch, GitRef

logger = logging.getLogger(__name__)


def run_git(
    args: Sequence[str],
    *,
    git: str = "git",
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    check: bool = True,
    description: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and optionally raise on failure."""

    command = [git, *args]
    logger.debug("Running git command: %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd else None,
            env=env,
            text=True,
            capture_output=True,
        )
    except OSError as exc:
        raise GitCommandError(command, 127, description=description, stderr=str(exc)) from exc
    if result.stdout:
        logger.debug("stdout:\n%s", result.stdout.rstrip())
    if result.stderr:
        logger.debug("stderr:\n%s", result.stderr.rstrip())
    if check and result.returncode != 0:
        raise GitCommandError(
            command,
            result.returncode,
            description=description,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def _first_lines(output: str) -> list[str]:
    lines = output.splitlines()[:2]
    if lines == [""]:
        return []
    return lines


def one_line(output: str) -> str:
    """The single line a command was expected to print."""

    lines = _first_lines(output)
    if len(lines) != 1:
        raise GitOutputError(f"Expected one line, got {output!r}")
    return lines[0]


def zero_or_one_line(output: str) -> str | None:
    lines = _first_lines(output)
    if len(lines) > 1:
        raise GitOutputError(f"Expected 0 or 1 line, got {output!r}")
    return lines[0] if lines else None


def _parse_delimited_ref_line(line: str, delimiter: str) -> GitRef:
    parts = line.split(delimiter)
    name = parts.pop()
    if not name:
        raise RefParseError(RefParseError.MISSING_NAME, line)
    commit_id = parts.pop() if parts else ""
    if not commit_id:
        raise RefParseError(RefParseError.MISSING_COMMIT_ID, line)
    if parts:
        raise RefParseError(RefParseError.TOO_MANY_PARTS, line)
    return GitRef(commit_id=commit_id, name=name)


def parse_show_ref_line(line: str) -> GitRef:
    """Parse a `<commit> <name>` line printed by `git show-ref`."""

    return _parse_delimited_ref_line(line, " ")


def parse_ls_remote_line(line: str) -> GitRef:
    """Parse a `<commit>\\t<name>` line printed by `git ls-remote`."""

    return _parse_delimited_ref_line(line, "\t")


class GitRepository:
    """A git clone driven through an ambient `git` binary.

    Every command is run with an explicit ``--git-dir`` so the working directory of the
    process does not matter. Slow or mutating commands show a spinner on ``console``
    when one is given.
    """

    def __init__(self, git_dir: Path, *, git: str = "git", console: Console | None = None):
        self.git_dir = Path(git_dir)
        self.git = git
        self.console = console

    @classmethod
    def discover(cls, cwd: Path | None = None, *, git: str = "git", console: Console | None = None) -> GitRepository:
        """Find the `.git` directory for ``cwd`` using the usual ancestor search."""

        proc = run_git(
            ["rev-parse", "--absolute-git-dir"],
            git=git,
            cwd=cwd or Path.cwd(),
            description="Resolving .git directory",
        )
        return cls(Path(one_line(proc.stdout)), git=git, console=console)

    def _status(self, description: str) -> ContextManager[object]:
        if self.console is None:
            return nullcontext()
        return self.console.status(description)

    def _run(
        self,
        args: Sequence[str],
        *,
        description: str,
        notable: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        if notable:
            logger.info("%s", description)
        else:
            logger.debug("%s", description)
        with self._status(description) if notable else nullcontext():
            return run_git(
                ["--git-dir", str(self.git_dir), *args],
                git=self.git,
                check=check,
                description=description,
            )

    def read_config(self, key: str) -> str | None:
        # The empty default keeps git from exiting non-zero when the key is unset.
        proc = self._run(
            ["config", "--default", "", "--get", namespace.config_key(key)],
            description=f"Get config {key}",
        )
        return zero_or_one_line(proc.stdout)

    def write_config(self, key: str, value: str) -> None:
        self._run(
            ["config", "--local", "--replace-all", namespace.config_key(key), value],
            description=f"Set config {key} = {value}",
        )

    def list_local_refs(self) -> list[GitRef]:
        proc = self._run(["show-ref"], description="Listing all refs", check=False)
        # `show-ref` exits 1 without output when the repository has no refs at all.
        if proc.returncode == 1 and not proc.stdout.strip():
            return []
        if proc.returncode != 0:
            raise GitCommandError(
                [self.git, "show-ref"],
                proc.returncode,
                description="Listing all refs",
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        return [parse_show_ref_line(line) for line in proc.stdout.splitlines()]

    def list_remote_refs(self, remote: str, patterns: Sequence[str]) -> list[GitRef]:
        if not patterns:
            raise ValueError("list_remote_refs needs at least one pattern; git would list every ref")
        proc = self._run(
            ["ls-remote", remote, *patterns],
            description=f"Listing branches at {remote}",
            notable=True,
        )
        return [parse_ls_remote_line(line) for line in proc.stdout.splitlines()]

    def fetch(self, remote: str, refspecs: Sequence[str], *, description: str | None = None) -> None:
        if not refspecs:
            raise ValueError("fetch needs at least one refspec; git would fall back to configured defaults")
        self._run(
            ["fetch", remote, *refspecs],
            description=description or f"Fetching from {remote}",
            notable=True,
        )

    def push(self, remote: str, refspecs: Sequence[str], *, description: str | None = None) -> None:
        if not refspecs:
            raise ValueError("push needs at least one refspec; git would fall back to configured defaults")
        self._run(
            ["push", "--no-verify", remote, *refspecs],
            description=description or f"Pushing to {remote}",
            notable=True,
        )

    def delete_local_ref(self, name: str, expected_commit_id: str) -> None:
        self._run(
            ["update-ref", "-d", name, expected_commit_id],
            description=f"Delete {name} (was {expected_commit_id})",
            notable=True,
        )

    def current_branch(self) -> Branch:
        proc = self._run(
            ["symbolic-ref", "--short", "HEAD"],
            description="Reading current branch",
            check=False,
        )
        if proc.returncode != 0:
            raise DetachedHeadError(
                "HEAD is detached; check out a branch first."
                + (f"\n{proc.stderr.strip()}" if proc.stderr.strip() else "")
            )
        return Branch(one_line(proc.stdout))


__all__ = [
    "run_git",
    "one_line",
    "zero_or_one_line",
    "parse_show_ref_line",
    "parse_ls_remote_line",
    "GitRepository",
]
