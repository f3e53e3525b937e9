"""Predicates used to scope `ls` and `purge` to specific hosts or branches."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Iterable, TypeVar

T = TypeVar("T")


class FilterMode(Enum):
    ALL = "all"
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Filter(Generic[T]):
    mode: FilterMode
    values: frozenset = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> Filter[T]:
        return cls(FilterMode.ALL)

    @classmethod
    def allow(cls, values: Iterable[T]) -> Filter[T]:
        return cls(FilterMode.ALLOW, frozenset(values))

    @classmethod
    def deny(cls, values: Iterable[T]) -> Filter[T]:
        return cls(FilterMode.DENY, frozenset(values))

    @classmethod
    def allow_or_all(cls, values: Iterable[T] | None) -> Filter[T]:
        """`Filter.allow` for a non-empty selection, otherwise everything.

        Matches the CLI convention where omitting a repeatable option means "no restriction".
        """

        selected = list(values or [])
        if not selected:
            return cls.all()
        return cls.allow(selected)

    def contains(self, value: T) -> bool:
        if self.mode is FilterMode.ALL:
            return True
        if self.mode is FilterMode.ALLOW:
            return value in self.values
        return value not in self.values

    def __contains__(self, value: object) -> bool:
        return self.contains(value)  # type: ignore[arg-type]


__all__ = ["Filter", "FilterMode"]
