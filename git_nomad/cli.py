"""Typer CLI entrypoint for git-nomad."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console

from . import __version__, interactive, render, workflows
from .config import Identity, resolve_git_binary, resolve_identity, write_identity
from .exceptions import NomadError, ValidationError
from .filters import Filter
from .git import GitRepository
from .models import Branch, Host, PrintStyle
from .render import Printer
from .snapshot import build_snapshot, hosts

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Synchronize branches between clones of one repository through an ordinary git remote.",
    add_completion=False,
    no_args_is_help=True,
)


@dataclass(slots=True)
class AppState:
    git: str
    repo_path: Path | None
    console: Console
    err_console: Console
    quiet: bool = False
    _repo: GitRepository | None = None

    @property
    def repo(self) -> GitRepository:
        if self._repo is None:
            self._repo = GitRepository.discover(
                self.repo_path,
                git=self.git,
                console=None if self.quiet else self.err_console,
            )
        return self._repo

    def printer(self, style: PrintStyle = PrintStyle.GROUPED) -> Printer:
        return Printer(self.console, style)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"git-nomad {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("git_nomad").setLevel(level)


@app.callback()
def main(
    ctx: typer.Context,
    git: Optional[str] = typer.Option(
        None,
        "--git",
        help="Git binary to use (defaults to $GIT_NOMAD_GIT, then `git`).",
    ),
    repo: Optional[Path] = typer.Option(
        None,
        "-C",
        "--repo",
        help="Run as if started in this directory instead of the current one.",
        dir_okay=True,
        file_okay=False,
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Show more detail (repeat for git invocations and output)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress all non-essential output."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the git-nomad version and exit.",
    ),
) -> None:
    _ = version  # handled via callback
    _configure_logging(verbose)
    ctx.obj = AppState(
        git=resolve_git_binary(git),
        repo_path=repo.expanduser() if repo else None,
        console=Console(),
        err_console=Console(stderr=True),
        quiet=quiet,
    )


def _require_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):  # pragma: no cover
        raise typer.Exit(1)
    return state


@contextmanager
def _errors_as_exit(state: AppState) -> Iterator[None]:
    try:
        yield
    except NomadError as exc:
        render.error(state.err_console, str(exc))
        raise typer.Exit(1) from exc


def _identity(state: AppState, user: str | None, host: str | None = None) -> Identity:
    identity = resolve_identity(state.repo, user=user, host=host)
    logger.info("Using user=%s host=%s", identity.user, identity.host)
    return identity


@app.command(help="Persist the user and host identity used in this clone.")
def init(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--user", help="User name, shared by all your clones (defaults to $GIT_NOMAD_USER, then git config, then your login)."),
    host: Optional[str] = typer.Option(None, "--host", help="Host name, unique per clone (defaults to $GIT_NOMAD_HOST, then git config, then the hostname)."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing identity."),
) -> None:
    state = _require_state(ctx)
    with _errors_as_exit(state):
        identity = _identity(state, user, host)
        workflows.init(state.repo, identity.user, identity.host, force=force)
        if not state.quiet:
            render.success(state.console, f"Wrote nomad.user={identity.user} nomad.host={identity.host}")


@app.command(help="Push local branches, fetch other hosts' branches and prune deleted ones.")
def sync(
    ctx: typer.Context,
    remote: str = typer.Argument("origin", help="Git remote to sync against."),
    user: Optional[str] = typer.Option(None, "--user", help="User name, shared by all your clones (defaults to $GIT_NOMAD_USER, then git config, then your login)."),
    host: Optional[str] = typer.Option(None, "--host", help="Host name, unique per clone (defaults to $GIT_NOMAD_HOST, then git config, then the hostname)."),
) -> None:
    state = _require_state(ctx)
    with _errors_as_exit(state):
        identity = _identity(state, user, host)
        if identity.needs_persisting:
            write_identity(state.repo, identity.user, identity.host)
            logger.info("Persisted identity user=%s host=%s", identity.user, identity.host)
        printer = None if state.quiet else state.printer()
        workflows.sync(state.repo, identity.user, identity.host, remote, printer=printer)


@app.command(help="List nomad managed refs, grouped by host.")
def ls(
    ctx: typer.Context,
    fetch: Optional[str] = typer.Option(None, "--fetch", metavar="REMOTE", help="Fetch from REMOTE before listing."),
    print_style: PrintStyle = typer.Option(PrintStyle.GROUPED, "--print", help="How to print each ref."),
    host_names: Optional[List[str]] = typer.Option(None, "--host", help="Only list refs from this host (repeatable)."),
    branch_names: Optional[List[str]] = typer.Option(None, "--branch", help="Only list refs for this branch (repeatable)."),
    head: bool = typer.Option(False, "--head", help="Only list refs for the currently checked out branch."),
    user: Optional[str] = typer.Option(None, "--user", help="User name, shared by all your clones (defaults to $GIT_NOMAD_USER, then git config, then your login)."),
) -> None:
    state = _require_state(ctx)
    with _errors_as_exit(state):
        identity = _identity(state, user)
        selected_branches = [Branch(name) for name in branch_names or []]
        if head:
            selected_branches.append(state.repo.current_branch())
        workflows.ls(
            state.repo,
            identity.user,
            state.printer(print_style),
            fetch_remote=fetch,
            host_filter=Filter.allow_or_all(Host(name) for name in host_names or []),
            branch_filter=Filter.allow_or_all(selected_branches),
        )


@app.command(help="Delete nomad managed refs, both locally and on the remote.")
def purge(
    ctx: typer.Context,
    remote: str = typer.Argument("origin", help="Git remote to purge refs from."),
    all_hosts: bool = typer.Option(False, "--all", help="Delete refs for every host."),
    host_names: Optional[List[str]] = typer.Option(None, "--host", help="Delete refs for this host (repeatable)."),
    user: Optional[str] = typer.Option(None, "--user", help="User name, shared by all your clones (defaults to $GIT_NOMAD_USER, then git config, then your login)."),
) -> None:
    state = _require_state(ctx)
    with _errors_as_exit(state):
        if all_hosts and host_names:
            raise ValidationError("--all and --host are mutually exclusive.")
        identity = _identity(state, user)
        if all_hosts:
            host_filter: Filter[Host] = Filter.all()
        elif host_names:
            host_filter = Filter.allow(Host(name) for name in host_names)
        else:
            host_filter = _prompt_host_filter(state, identity)
            if host_filter is None:
                state.console.print("No hosts selected.")
                return
        pruned = workflows.purge(state.repo, identity.user, remote, host_filter)
        if not state.quiet:
            render.success(state.console, f"Purged {len(pruned)} ref(s) from {remote}")


def _prompt_host_filter(state: AppState, identity: Identity) -> Filter[Host] | None:
    if not interactive.is_interactive():
        raise ValidationError("Specify --all or at least one --host.")
    known_hosts = hosts(build_snapshot(state.repo, identity.user))
    if not known_hosts:
        raise ValidationError("No nomad managed refs found locally. Run `git nomad sync` or pass --host.")
    selected = interactive.select_many("Hosts to purge", known_hosts)
    if not selected:
        return None
    return Filter.allow(Host(name) for name in selected)


__all__ = ["app"]


if __name__ == "__main__":
    app()
