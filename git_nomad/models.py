"""Value types shared across modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, NewType, TypeVar, Union

# Shared by every clone belonging to one person. Keeps users apart on a shared remote.
User = NewType("User", str)
# Unique per clone of a given user.
Host = NewType("Host", str)
# May itself contain `/`, like `feature/x`.
Branch = NewType("Branch", str)

RefT = TypeVar("RefT")

RemoteRefKey = tuple[User, Host, Branch]


@dataclass(frozen=True)
class GitRef:
    """A single ref as reported by `git show-ref` or `git ls-remote`.

    Carries the commit id so that deletions can be made conditional on the ref not
    having moved since it was observed.
    """

    commit_id: str
    name: str


@dataclass(frozen=True)
class NomadRef(Generic[RefT]):
    """A nomad managed tracking ref, either in the local clone or on the remote."""

    user: User
    host: Host
    branch: Branch
    ref: RefT

    @property
    def key(self) -> RemoteRefKey:
        return (self.user, self.host, self.branch)

    def with_ref(self, ref: object) -> NomadRef:
        return NomadRef(user=self.user, host=self.host, branch=self.branch, ref=ref)


@dataclass(frozen=True)
class LocalOnly(Generic[RefT]):
    """Delete only the tracking ref in this clone."""

    nomad_ref: NomadRef[RefT]


@dataclass(frozen=True)
class LocalAndRemote(Generic[RefT]):
    """Delete the tracking ref in this clone and the matching ref on the remote.

    Only ever produced for refs this host is allowed to delete remotely.
    """

    nomad_ref: NomadRef[RefT]


PruneFrom = Union[LocalOnly[RefT], LocalAndRemote[RefT]]


class PrintStyle(str, Enum):
    """How `ls` renders nomad refs."""

    GROUPED = "grouped"
    REF = "ref"
    COMMIT = "commit"


__all__ = [
    "User",
    "Host",
    "Branch",
    "RemoteRefKey",
    "GitRef",
    "NomadRef",
    "LocalOnly",
    "LocalAndRemote",
    "PruneFrom",
    "PrintStyle",
]
