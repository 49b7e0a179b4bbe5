"""Running external commands, with a real and a recording implementation."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Protocol

from sbxgo.errors import SbxgoError


class CommandError(SbxgoError):
    """An external command failed or could not be started."""


@dataclass
class Call:
    """A single recorded command invocation."""

    name: str
    args: list[str]


class CommandRunner(Protocol):
    """Executes external commands."""

    def run(self, name: str, *args: str) -> None:
        """Run a command attached to the user's terminal."""

    def output(self, name: str, *args: str) -> bytes:
        """Run a command and return its standard output."""


class RealRunner:
    """Runs commands as child processes."""

    def run(self, name: str, *args: str) -> None:
        """Run a command with stdin, stdout and stderr inherited."""
        try:
            subprocess.run([name, *args], check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise CommandError(f'running "{name}"', exc) from exc

    def output(self, name: str, *args: str) -> bytes:
        """Run a command and return its stdout; stderr goes to the terminal."""
        try:
            completed = subprocess.run([name, *args], check=True, stdout=subprocess.PIPE)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise CommandError(f'running "{name}"', exc) from exc
        return completed.stdout


def _command_key(name: str, args: list[str] | tuple[str, ...]) -> str:
    return " ".join([name, *args])


@dataclass
class FakeRunner:
    """A runner that records calls and answers output requests from a table."""

    run_calls: list[Call] = field(default_factory=list)
    output_calls: list[Call] = field(default_factory=list)
    run_error: Exception | None = None
    output_responses: dict[str, bytes] = field(default_factory=dict)
    output_error: Exception | None = None

    def set_output_response(self, name: str, args: list[str], data: bytes) -> None:
        """Configure the output returned for a given command and arguments."""
        self.output_responses[_command_key(name, args)] = data

    def run(self, name: str, *args: str) -> None:
        """Record the call and raise ``run_error`` if one is set."""
        self.run_calls.append(Call(name, list(args)))
        if self.run_error is not None:
            raise self.run_error

    def output(self, name: str, *args: str) -> bytes:
        """Record the call and return the configured response."""
        self.output_calls.append(Call(name, list(args)))
        if self.output_error is not None:
            raise self.output_error

        key = _command_key(name, args)
        try:
            return self.output_responses[key]
        except KeyError:
            raise CommandError(f'fake: no response configured for "{key}"') from None