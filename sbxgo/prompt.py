"""Interactive yes/no prompts, with a terminal and a scripted implementation."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from sbxgo.errors import SbxgoError


class Prompter(Protocol):
    """Asks the user yes/no questions."""

    def confirm(self, question: str, default_yes: bool) -> bool:
        """Ask a question; ``default_yes`` is the answer when the user just presses enter."""


class TerminalPrompter:
    """Prompts on a terminal, reading the answer from a line of input."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin
        self._stdout = stdout

    def confirm(self, question: str, default_yes: bool) -> bool:
        """Ask and return the answer; empty input or end of input gives the default."""
        stdin = self._stdin if self._stdin is not None else sys.stdin
        stdout = self._stdout if self._stdout is not None else sys.stdout

        hint = "[Y/n]" if default_yes else "[y/N]"
        stdout.write(f"{question} {hint} ")
        stdout.flush()

        try:
            line = stdin.readline()
        except OSError as exc:
            raise SbxgoError("reading confirmation", exc) from exc

        answer = line.strip().lower()
        if not answer:
            return default_yes
        return answer in ("y", "yes")


@dataclass
class FakePrompter:
    """A prompter that records questions and always gives the same answer."""

    response: bool = False
    err: Exception | None = None
    calls: list[str] = field(default_factory=list)
    defaults: list[bool] = field(default_factory=list)

    def confirm(self, question: str, default_yes: bool) -> bool:
        self.calls.append(question)
        self.defaults.append(default_yes)
        if self.err is not None:
            raise self.err
        return self.response