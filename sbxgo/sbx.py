"""Wrappers around the sbx command-line tool."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import TextIO

from sbxgo.errors import SbxgoError
from sbxgo.runner import CommandRunner

_KNOWN_POLICIES = frozenset({"allow-all", "balanced", "deny-all"})


@dataclass
class Sandbox:
    """One entry from ``sbx ls --json``."""

    name: str = ""
    agent: str = ""
    status: str = ""
    workspaces: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PolicyRule:
    """A single allow or deny rule that applies to a sandbox."""

    decision: str
    resource: str


class SbxClient:
    """Runs sbx commands through a command runner."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner
        self._debug = False
        self._verbose = False
        self._log_out: TextIO | None = sys.stderr

    def set_debug(self, debug: bool) -> SbxClient:
        """Toggle the global ``--debug`` flag on every sbx invocation."""
        self._debug = debug
        return self

    def set_verbose(self, verbose: bool) -> SbxClient:
        """Toggle logging of every sbx command before it runs."""
        self._verbose = verbose
        return self

    def set_log_output(self, stream: TextIO | None) -> SbxClient:
        """Set where verbose command logs go; ``None`` disables them."""
        self._log_out = stream
        return self

    def list(self) -> list[Sandbox]:
        """Return all sandboxes reported by ``sbx ls --json``."""
        try:
            out = self._output_cmd("ls", "--json")
        except SbxgoError as exc:
            raise SbxgoError("sbx ls", exc) from exc
        return parse_list(out)

    def exists(self, name: str) -> bool:
        """Report whether a sandbox with the given name exists."""
        return any(sandbox.name == name for sandbox in self.list())

    def run(self, name: str) -> None:
        """Resume (attach to) an existing sandbox."""
        try:
            self._run_cmd("run", name)
        except SbxgoError as exc:
            raise SbxgoError(f'sbx run "{name}"', exc) from exc

    def create(self, args: list[str]) -> None:
        """Create a sandbox via ``sbx create`` without attaching to it."""
        try:
            self._run_cmd("create", *args)
        except SbxgoError as exc:
            raise SbxgoError(f"sbx create {' '.join(args)}", exc) from exc

    def remove(self, name: str) -> None:
        """Delete a sandbox with ``sbx rm --force``."""
        try:
            self._run_cmd("rm", "--force", name)
        except SbxgoError as exc:
            raise SbxgoError(f'sbx rm "{name}"', exc) from exc

    def load_template(self, tar_path: str) -> None:
        """Load an image tar file into the sbx template store."""
        try:
            self._run_cmd("template", "load", tar_path)
        except SbxgoError as exc:
            raise SbxgoError(f'sbx template load "{tar_path}"', exc) from exc

    def current_policy(self) -> str:
        """Return the host-wide default network policy, or ``""`` if unknown."""
        try:
            out = self._output_cmd("policy", "ls", "--type", "network")
        except SbxgoError as exc:
            raise SbxgoError("sbx policy ls", exc) from exc
        return parse_policy(_text(out))

    def list_sandbox_rules(self, sandbox_name: str) -> list[PolicyRule]:
        """Return every network rule (global and sandbox-scoped) applying to a sandbox."""
        try:
            out = self._output_cmd("policy", "ls", sandbox_name)
        except SbxgoError as exc:
            raise SbxgoError(f'sbx policy ls "{sandbox_name}"', exc) from exc
        return parse_sandbox_rules(_text(out))

    def allow_network(self, sandbox_name: str, *args: str) -> None:
        """Allow the given domains for a sandbox in one call; no domains is a no-op."""
        self._policy("allow", sandbox_name, args)

    def deny_network(self, sandbox_name: str, *args: str) -> None:
        """Deny the given domains for a sandbox in one call; no domains is a no-op."""
        self._policy("deny", sandbox_name, args)

    def list_secrets(self) -> list[str]:
        """Return the service names listed by ``sbx secret ls``."""
        try:
            out = self._output_cmd("secret", "ls")
        except SbxgoError as exc:
            raise SbxgoError("sbx secret ls", exc) from exc
        return parse_secret_list(_text(out))

    def _policy(self, decision: str, sandbox_name: str, domains: tuple[str, ...]) -> None:
        resources = ",".join(domains)
        if not resources:
            return
        try:
            self._run_cmd("policy", decision, "network", sandbox_name, resources)
        except SbxgoError as exc:
            raise SbxgoError(
                f'sbx policy {decision} network "{sandbox_name}" "{resources}"', exc
            ) from exc

    def _args(self, rest: tuple[str, ...]) -> list[str]:
        return ["--debug", *rest] if self._debug else list(rest)

    def _log_cmd(self, args: list[str]) -> None:
        if not self._verbose or self._log_out is None:
            return
        try:
            self._log_out.write(f"+ sbx {' '.join(args)}\n")
        except OSError:
            pass

    def _run_cmd(self, *sbx_args: str) -> None:
        args = self._args(sbx_args)
        self._log_cmd(args)
        self._runner.run("sbx", *args)

    def _output_cmd(self, *sbx_args: str) -> bytes:
        args = self._args(sbx_args)
        self._log_cmd(args)
        return self._runner.output("sbx", *args)


def _text(data: bytes | str) -> str:
    return data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data


def parse_list(data: bytes | str) -> list[Sandbox]:
    """Parse the JSON output of ``sbx ls --json``."""
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SbxgoError("parsing sbx ls output", exc) from exc

    if not isinstance(raw, dict):
        raise SbxgoError("parsing sbx ls output: expected a JSON object")

    entries = raw.get("sandboxes") or []
    if not isinstance(entries, list):
        raise SbxgoError("parsing sbx ls output: sandboxes is not a list")

    sandboxes = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise SbxgoError("parsing sbx ls output: sandbox entry is not an object")
        sandboxes.append(
            Sandbox(
                name=str(entry.get("name") or ""),
                agent=str(entry.get("agent") or ""),
                status=str(entry.get("status") or ""),
                workspaces=[str(w) for w in entry.get("workspaces") or []],
            )
        )
    return sandboxes


def parse_sandbox_rules(output: str) -> list[PolicyRule]:
    """Parse the table printed by ``sbx policy ls <sandbox>``.

    Multi-resource rules, whose extra resources sit on continuation lines,
    are flattened into one rule per resource.
    """
    rules: list[PolicyRule] = []
    last_decision = ""
    seen_header = False

    for line in output.split("\n"):
        fields = line.split()
        if not fields:
            continue

        if not seen_header and fields[0] == "NAME":
            seen_header = True
            continue

        if ":" in fields[0] and len(fields) >= 6:
            last_decision = fields[3]
            rules.extend(PolicyRule(last_decision, res) for res in fields[5:])
            continue

        if len(fields) == 1 and last_decision:
            rules.append(PolicyRule(last_decision, fields[0]))

    return rules


def parse_policy(output: str) -> str:
    """Return the first whole token naming a known policy, or ``""``."""
    return next((token for token in output.split() if token in _KNOWN_POLICIES), "")


def parse_secret_list(output: str) -> list[str]:
    """Extract the SERVICE column from ``sbx secret ls`` output.

    Output whose first non-empty line is not a header yields an empty list.
    """
    secrets: list[str] = []
    service_idx: int | None = None

    for line in output.split("\n"):
        fields = line.split()
        if not fields:
            continue

        if service_idx is None:
            service_idx = next(
                (i for i, f in enumerate(fields) if f.casefold() == "service"), None
            )
            if service_idx is None:
                return []
            continue

        if service_idx < len(fields):
            secrets.append(fields[service_idx])

    return secrets