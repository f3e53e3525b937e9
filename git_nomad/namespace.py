"""Naming scheme for nomad managed refs.

Nomad claims the `refs/nomad/...` hierarchy and the `nomad` section of `git config`
in every repository it touches. Two conventions are used:

* local clone: ``refs/nomad/<host>/<branch...>``. A clone only ever serves one user, so the
  user segment is dropped.
* remote: ``refs/nomad/<user>/<host>/<branch...>``. Many users may share one remote.

Branch names may contain ``/``; everything after the fixed segments is the branch.
"""

from __future__ import annotations

from .models import Branch, Host, User

PREFIX = "nomad"

HEADS_PREFIX = "refs/heads/"


def config_key(key: str) -> str:
    """Where a nomad setting lives in `git config`."""

    return f"{PREFIX}.{key}"


def local_ref_name(host: str, branch: str) -> str:
    return f"refs/{PREFIX}/{host}/{branch}"


def remote_ref_name(user: str, host: str, branch: str) -> str:
    return f"refs/{PREFIX}/{user}/{host}/{branch}"


def parse_local_ref(name: str) -> tuple[Host, Branch] | None:
    """Split a local nomad ref name into its host and branch.

    Returns ``None`` for anything outside the nomad hierarchy; callers skip those refs.
    """

    parts = name.split("/")
    if len(parts) < 4 or parts[0] != "refs" or parts[1] != PREFIX:
        return None
    host, branch_segments = parts[2], parts[3:]
    return Host(host), Branch("/".join(branch_segments))


def parse_remote_ref(name: str) -> tuple[User, Host, Branch] | None:
    """Split a remote nomad ref name into its user, host and branch."""

    parts = name.split("/")
    if len(parts) < 5 or parts[0] != "refs" or parts[1] != PREFIX:
        return None
    user, host, branch_segments = parts[2], parts[3], parts[4:]
    return User(user), Host(host), Branch("/".join(branch_segments))


def list_refspec(user: str) -> str:
    """Remote pattern matching every nomad ref of ``user``, for `git ls-remote`."""

    return f"refs/{PREFIX}/{user}/*"


def fetch_refspec(user: str) -> str:
    """Fetch every host of ``user`` into the local namespace, dropping the user segment.

    ``refs/nomad/rraval/apollo/master`` becomes ``refs/nomad/apollo/master``.
    """

    return f"+{list_refspec(user)}:refs/{PREFIX}/*"


def push_refspec(user: str, host: str) -> str:
    """Force update this host's remote region from its real branches.

    On host ``boreas``, ``refs/heads/feature`` becomes ``refs/nomad/rraval/boreas/feature``.
    Only this host ever writes below that path, so overwriting is always safe.
    """

    return f"+{HEADS_PREFIX}*:{remote_ref_name(user, host, '*')}"


def delete_refspec(user: str, host: str, branch: str) -> str:
    """Push refspec that deletes a single remote nomad ref (empty source side)."""

    return f":{remote_ref_name(user, host, branch)}"


def parse_branch_ref(name: str) -> Branch | None:
    """The branch name of a `refs/heads/...` ref, ``None`` for any other ref."""

    if not name.startswith(HEADS_PREFIX) or len(name) == len(HEADS_PREFIX):
        return None
    return Branch(name[len(HEADS_PREFIX):])


__all__ = [
    "PREFIX",
    "config_key",
    "local_ref_name",
    "remote_ref_name",
    "parse_local_ref",
    "parse_remote_ref",
    "list_refspec",
    "fetch_refspec",
    "push_refspec",
    "delete_refspec",
    "parse_branch_ref",
]
