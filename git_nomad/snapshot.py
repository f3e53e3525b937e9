"""Point in time view of nomad state in a clone, and the decisions made from it.

Everything below `build_snapshot` is pure: it consumes a `Snapshot` (plus facts about
the remote) and returns what should be deleted or displayed, without touching git.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import AbstractSet, Generic

from . import namespace
from .exceptions import SnapshotInvariantError
from .filters import Filter
from .models import (
    Branch,
    GitRef,
    Host,
    LocalAndRemote,
    LocalOnly,
    NomadRef,
    PruneFrom,
    RefT,
    RemoteRefKey,
    User,
)
from .protocol import Repository


@dataclass(frozen=True)
class Snapshot(Generic[RefT]):
    """Nomad state of one clone, scoped to a single user.

    Attributes:
        user: The user every nomad ref in this snapshot belongs to.
        local_branches: Branches the user manipulates directly with `git branch` and friends.
        nomad_refs: Tracking refs nomad manages in this clone, for every host of ``user``.
    """

    user: User
    local_branches: frozenset[Branch] = field(default_factory=frozenset)
    nomad_refs: tuple[NomadRef[RefT], ...] = ()

    def __post_init__(self) -> None:
        # Normalise so callers may pass any iterable.
        object.__setattr__(self, "local_branches", frozenset(self.local_branches))
        object.__setattr__(self, "nomad_refs", tuple(self.nomad_refs))
        for nomad_ref in self.nomad_refs:
            if nomad_ref.user != self.user:
                raise SnapshotInvariantError(
                    f"Snapshot for user {self.user!r} was given a ref for user {nomad_ref.user!r}: {nomad_ref}"
                )


def build_snapshot(repo: Repository, user: User) -> Snapshot[GitRef]:
    """List every ref in the local clone once and classify it."""

    local_branches: set[Branch] = set()
    nomad_refs: list[NomadRef[GitRef]] = []
    for git_ref in repo.list_local_refs():
        branch = namespace.parse_branch_ref(git_ref.name)
        if branch is not None:
            local_branches.add(branch)
        parsed = namespace.parse_local_ref(git_ref.name)
        if parsed is not None:
            host, nomad_branch = parsed
            nomad_refs.append(NomadRef(user=user, host=host, branch=nomad_branch, ref=git_ref))
    return Snapshot(user=user, local_branches=frozenset(local_branches), nomad_refs=tuple(nomad_refs))


def prune_deleted_branches(
    snapshot: Snapshot[RefT],
    current_host: Host,
    remote_known_refs: AbstractSet[RemoteRefKey],
) -> list[PruneFrom[RefT]]:
    """Find tracking refs whose source branch no longer exists.

    * Refs for ``current_host`` whose local branch is gone are deleted locally and remotely.
    * Refs for other hosts that the remote no longer reports are deleted locally only. The
      remote path belongs to the other host, which has already removed it.
    """

    prune: list[PruneFrom[RefT]] = []
    for nomad_ref in snapshot.nomad_refs:
        if nomad_ref.host == current_host:
            if nomad_ref.branch not in snapshot.local_branches:
                prune.append(LocalAndRemote(nomad_ref))
        elif nomad_ref.key not in remote_known_refs:
            prune.append(LocalOnly(nomad_ref))
    return prune


def prune_all(snapshot: Snapshot[RefT]) -> list[PruneFrom[RefT]]:
    return [LocalAndRemote(nomad_ref) for nomad_ref in snapshot.nomad_refs]


def prune_by_hosts(snapshot: Snapshot[RefT], host_filter: Filter[Host]) -> list[PruneFrom[RefT]]:
    return [
        LocalAndRemote(nomad_ref)
        for nomad_ref in snapshot.nomad_refs
        if host_filter.contains(nomad_ref.host)
    ]


def sorted_hosts_and_branches(snapshot: Snapshot[RefT]) -> list[tuple[Host, list[NomadRef[RefT]]]]:
    """Group nomad refs by host; hosts sorted, branches sorted within each host."""

    by_host: dict[Host, list[NomadRef[RefT]]] = defaultdict(list)
    for nomad_ref in snapshot.nomad_refs:
        by_host[nomad_ref.host].append(nomad_ref)
    return [
        (host, sorted(by_host[host], key=lambda nomad_ref: nomad_ref.branch))
        for host in sorted(by_host)
    ]


def hosts(snapshot: Snapshot) -> list[Host]:
    """Distinct hosts with at least one tracking ref, sorted."""

    return sorted({nomad_ref.host for nomad_ref in snapshot.nomad_refs})


__all__ = [
    "Snapshot",
    "build_snapshot",
    "prune_deleted_branches",
    "prune_all",
    "prune_by_hosts",
    "sorted_hosts_and_branches",
    "hosts",
]
