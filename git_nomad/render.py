"""Rich output helpers for nomad listings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from rich.console import Console
from rich.text import Text

from .models import GitRef, Host, NomadRef, PrintStyle


@dataclass
class Printer:
    """Writes `ls` output to a console in one of the `PrintStyle`s.

    Output goes through `rich.text.Text` so ref names are never interpreted as markup.
    """

    console: Console
    style: PrintStyle = PrintStyle.GROUPED

    def line(self, text: str = "", style: str | None = None) -> None:
        self.console.print(Text(text, style=style or ""), highlight=False, soft_wrap=True)

    def print_listing(self, listing: Sequence[tuple[Host, Sequence[NomadRef[GitRef]]]]) -> None:
        for host, nomad_refs in listing:
            if self.style is PrintStyle.GROUPED:
                self.line(host, style="bold")
                for nomad_ref in nomad_refs:
                    self.line(f"  {nomad_ref.ref.name} -> {nomad_ref.ref.commit_id}")
            elif self.style is PrintStyle.REF:
                for nomad_ref in nomad_refs:
                    self.line(nomad_ref.ref.name)
            else:
                for nomad_ref in nomad_refs:
                    self.line(nomad_ref.ref.commit_id)


def error(console: Console, message: str) -> None:
    """Print an error message."""
    text = Text("Error: ", style="bold red")
    text.append(message)
    console.print(text, highlight=False, soft_wrap=True)


def success(console: Console, message: str) -> None:
    """Print a success message."""
    console.print(Text(message, style="green"), highlight=False, soft_wrap=True)


__all__ = ["Printer", "error", "success"]
