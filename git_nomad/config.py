"""Resolve the (user, host) identity nomad runs as."""

from __future__ import annotations

import getpass
import os
import socket
from dataclasses import dataclass
from typing import Mapping

from . import namespace
from .exceptions import ConfigError, ValidationError
from .models import Host, User
from .protocol import Repository

USER_KEY = "user"
HOST_KEY = "host"

USER_ENV = "GIT_NOMAD_USER"
HOST_ENV = "GIT_NOMAD_HOST"
GIT_ENV = "GIT_NOMAD_GIT"


@dataclass(slots=True)
class Identity:
    user: User
    host: Host
    # What was already stored in git config, if anything.
    persisted: tuple[User, Host] | None = None

    @property
    def needs_persisting(self) -> bool:
        return self.persisted is None


def read_persisted_identity(repo: Repository) -> tuple[User, Host] | None:
    """The persisted (user, host) of this clone, or ``None`` if nomad was never set up here."""

    user = repo.read_config(USER_KEY)
    host = repo.read_config(HOST_KEY)
    if user and host:
        return User(user), Host(host)
    if not user and not host:
        return None
    missing, present = (USER_KEY, HOST_KEY) if not user else (HOST_KEY, USER_KEY)
    raise ConfigError(
        f"Found {namespace.config_key(present)} but not {namespace.config_key(missing)} in git config. "
        "Set both (or unset both) before running git-nomad."
    )


def write_identity(repo: Repository, user: User, host: Host) -> None:
    repo.write_config(USER_KEY, user)
    repo.write_config(HOST_KEY, host)


def default_user() -> str:
    return getpass.getuser()


def default_host() -> str:
    return socket.gethostname().split(".", 1)[0]


def validate_identity_part(kind: str, value: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(f"{kind.capitalize()} name cannot be empty.")
    if "/" in value or "\0" in value:
        raise ValidationError(f"{kind.capitalize()} name cannot contain '/' or null characters: {value!r}")
    return value


def resolve_identity(
    repo: Repository,
    *,
    user: str | None = None,
    host: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Identity:
    """Pick user and host from, in order: arguments, environment, git config, system defaults."""

    environ = os.environ if environ is None else environ
    persisted = read_persisted_identity(repo)
    persisted_user, persisted_host = persisted if persisted else (None, None)

    resolved_user = _first_set(user, environ.get(USER_ENV), persisted_user) or default_user()
    resolved_host = _first_set(host, environ.get(HOST_ENV), persisted_host) or default_host()
    return Identity(
        user=User(validate_identity_part("user", resolved_user)),
        host=Host(validate_identity_part("host", resolved_host)),
        persisted=persisted,
    )


def resolve_git_binary(git: str | None = None, environ: Mapping[str, str] | None = None) -> str:
    environ = os.environ if environ is None else environ
    return _first_set(git, environ.get(GIT_ENV)) or "git"


def _first_set(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None


__all__ = [
    "USER_KEY",
    "HOST_KEY",
    "USER_ENV",
    "HOST_ENV",
    "GIT_ENV",
    "Identity",
    "read_persisted_identity",
    "write_identity",
    "default_user",
    "default_host",
    "validate_identity_part",
    "resolve_identity",
    "resolve_git_binary",
]
