"""High level user invoked workflows: sync, ls, purge and init."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable

from . import namespace
from .config import read_persisted_identity, write_identity
from .exceptions import ConfigError
from .filters import Filter, FilterMode
from .models import Branch, GitRef, Host, LocalAndRemote, PruneFrom, RemoteRefKey, User
from .protocol import Repository
from .render import Printer
from .snapshot import (
    build_snapshot,
    prune_all,
    prune_by_hosts,
    prune_deleted_branches,
    sorted_hosts_and_branches,
)

logger = logging.getLogger(__name__)


def init(repo: Repository, user: User, host: Host, *, force: bool = False) -> None:
    """Persist the identity nomad uses in this clone.

    Refuses to overwrite a different existing identity unless ``force`` is set.
    """

    existing = read_persisted_identity(repo)
    if existing is not None and not force and existing != (user, host):
        raise ConfigError(
            f"Found existing config (user={existing[0]}, host={existing[1]}), refusing to init again. "
            "Pass --force to overwrite it."
        )
    write_identity(repo, user, host)


def fetch_nomad_refs(repo: Repository, user: User, remote: str) -> None:
    repo.fetch(remote, [namespace.fetch_refspec(user)], description=f"Fetching branches from {remote}")


def list_remote_nomad_refs(repo: Repository, user: User, remote: str) -> set[RemoteRefKey]:
    """What the remote reports for ``user``, queried separately from any fetch.

    `git fetch` is porcelain and its output is not meant to be parsed, so the set of
    remote refs comes from a plumbing `git ls-remote` round trip instead.
    """

    known: set[RemoteRefKey] = set()
    for git_ref in repo.list_remote_refs(remote, [namespace.list_refspec(user)]):
        parsed = namespace.parse_remote_ref(git_ref.name)
        if parsed is not None:
            known.add(parsed)
    return known


def push_nomad_refs(repo: Repository, user: User, host: Host, remote: str) -> None:
    repo.push(
        remote,
        [namespace.push_refspec(user, host)],
        description=f"Pushing local branches to {remote}",
    )


def prune_nomad_refs(
    repo: Repository,
    remote: str,
    prune: Iterable[PruneFrom[GitRef]],
    *,
    remote_known_refs: AbstractSet[RemoteRefKey] | None = None,
) -> None:
    """Delete tracking refs, remote side first and then locally.

    If this is interrupted after the remote push, the local refs are still around and
    the next sync notices and prunes them again. The reverse order could leave a remote
    ref with no local trace of it.

    When ``remote_known_refs`` is given, remote deletes are only sent for refs it contains:
    git refuses to delete a remote ref that is already gone, which is exactly the state an
    interrupted prune leaves behind.
    """

    entries = list(prune)
    refspecs = [
        namespace.delete_refspec(entry.nomad_ref.user, entry.nomad_ref.host, entry.nomad_ref.branch)
        for entry in entries
        if isinstance(entry, LocalAndRemote)
        and (remote_known_refs is None or entry.nomad_ref.key in remote_known_refs)
    ]
    if refspecs:
        repo.push(remote, refspecs, description=f"Pruning branches at {remote}")
    for entry in entries:
        git_ref = entry.nomad_ref.ref
        repo.delete_local_ref(git_ref.name, git_ref.commit_id)
    logger.info("Pruned %d ref(s), %d of them on %s", len(entries), len(refspecs), remote)


def sync(
    repo: Repository,
    user: User,
    host: Host,
    remote: str,
    *,
    printer: Printer | None = None,
) -> None:
    """Synchronize local branches with nomad managed refs on ``remote``.

    When ``printer`` is given the resulting state is listed afterwards.
    """

    push_nomad_refs(repo, user, host, remote)
    fetch_nomad_refs(repo, user, remote)
    remote_known_refs = list_remote_nomad_refs(repo, user, remote)
    snapshot = build_snapshot(repo, user)
    prune_nomad_refs(
        repo,
        remote,
        prune_deleted_branches(snapshot, host, remote_known_refs),
        remote_known_refs=remote_known_refs,
    )

    if printer is not None:
        printer.line()
        ls(repo, user, printer)


def ls(
    repo: Repository,
    user: User,
    printer: Printer,
    *,
    fetch_remote: str | None = None,
    host_filter: Filter[Host] | None = None,
    branch_filter: Filter[Branch] | None = None,
) -> None:
    """List nomad managed refs organized by host.

    Always prints, since output is the whole point of this workflow.
    """

    if fetch_remote is not None:
        fetch_nomad_refs(repo, user, fetch_remote)
    host_filter = host_filter or Filter.all()
    branch_filter = branch_filter or Filter.all()

    listing = []
    for host, nomad_refs in sorted_hosts_and_branches(build_snapshot(repo, user)):
        if not host_filter.contains(host):
            continue
        selected = [nomad_ref for nomad_ref in nomad_refs if branch_filter.contains(nomad_ref.branch)]
        if selected:
            listing.append((host, selected))
    printer.print_listing(listing)


def purge(repo: Repository, user: User, remote: str, host_filter: Filter[Host]) -> list[PruneFrom[GitRef]]:
    """Delete nomad managed refs for the hosts passing ``host_filter``, remotely and locally.

    Returns what was deleted.
    """

    fetch_nomad_refs(repo, user, remote)
    snapshot = build_snapshot(repo, user)
    if host_filter.mode is FilterMode.ALL:
        prune = prune_all(snapshot)
    else:
        prune = prune_by_hosts(snapshot, host_filter)
    prune_nomad_refs(repo, remote, prune)
    return prune


__all__ = [
    "init",
    "fetch_nomad_refs",
    "list_remote_nomad_refs",
    "push_nomad_refs",
    "prune_nomad_refs",
    "sync",
    "ls",
    "purge",
]
