"""Interactive prompt helpers built on InquirerPy."""

from __future__ import annotations

import sys
from typing import Sequence

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from .exceptions import UserAbort, ValidationError


def is_interactive() -> bool:
    return sys.stdin.isatty()


def _ensure_tty() -> None:
    if not is_interactive():
        raise ValidationError(
            "Interactive mode requires a TTY. Pass --all or --host to run non-interactively."
        )


def select_many(message: str, options: Sequence[str]) -> list[str]:
    """Checkbox prompt returning the selected options, in the order they were offered."""

    _ensure_tty()
    choices = [Choice(value=option, name=option) for option in options]
    try:
        selected = inquirer.checkbox(
            message=message,
            choices=choices,
            instruction="(space to toggle, enter to confirm)",
        ).execute()
    except KeyboardInterrupt as exc:
        raise UserAbort("Selection cancelled.") from exc
    chosen = set(selected or [])
    return [option for option in options if option in chosen]


__all__ = ["is_interactive", "select_many"]
