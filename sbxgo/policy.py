"""Applying configured network allow/deny rules to a sandbox."""

from __future__ import annotations

import sys

from sbxgo.config import SandboxConfig
from sbxgo.errors import SbxgoError
from sbxgo.sbx import PolicyRule, SbxClient


def apply_policy(client: SbxClient, sandbox_name: str, cfg: SandboxConfig, dry_run: bool) -> None:
    """Add the configured allow/deny rules that the sandbox does not have yet.

    Existing rules are listed first and only the missing entries are sent to
    sbx. The sandbox must already exist.
    """
    policy = str(cfg.network_policy)
    print(
        f'Network policy: configured base "{policy}" '
        f"(set host-wide with `sbx policy set-default {policy}`)"
    )

    warn_if_host_default_differs(client, policy)

    if not cfg.allowed_domains and not cfg.denied_domains:
        return

    if dry_run:
        if cfg.allowed_domains:
            print(f"Would allow for {sandbox_name}: {', '.join(cfg.allowed_domains)}")
        if cfg.denied_domains:
            print(f"Would deny for {sandbox_name}: {', '.join(cfg.denied_domains)}")
        return

    try:
        existing = client.list_sandbox_rules(sandbox_name)
    except SbxgoError as exc:
        raise SbxgoError(f'listing existing policy rules for "{sandbox_name}"', exc) from exc

    allow_to_add = diff_rules(cfg.allowed_domains, existing, "allow")
    deny_to_add = diff_rules(cfg.denied_domains, existing, "deny")

    if not allow_to_add and not deny_to_add:
        print(f"Network rules for {sandbox_name}: all in place")
        return

    if allow_to_add:
        try:
            client.allow_network(sandbox_name, *allow_to_add)
        except SbxgoError as exc:
            raise SbxgoError(
                f'allowing domains [{" ".join(allow_to_add)}] for "{sandbox_name}"', exc
            ) from exc
        print(
            f"Allow rules for {sandbox_name}: {len(allow_to_add)} added, "
            f"{len(cfg.allowed_domains) - len(allow_to_add)} already in place"
        )

    if deny_to_add:
        try:
            client.deny_network(sandbox_name, *deny_to_add)
        except SbxgoError as exc:
            raise SbxgoError(
                f'denying domains [{" ".join(deny_to_add)}] for "{sandbox_name}"', exc
            ) from exc
        print(
            f"Deny rules for {sandbox_name}: {len(deny_to_add)} added, "
            f"{len(cfg.denied_domains) - len(deny_to_add)} already in place"
        )


def diff_rules(configured: list[str], existing: list[PolicyRule], decision: str) -> list[str]:
    """Return configured resources missing from existing rules of ``decision``, in order."""
    if not configured:
        return []
    present = {rule.resource for rule in existing if rule.decision == decision}
    return [resource for resource in configured if resource not in present]


def warn_if_host_default_differs(client: SbxClient, desired: str) -> None:
    """Warn on stderr when the host-wide default policy differs from ``desired``.

    Best effort: an unknown default or a failing lookup stays silent.
    """
    try:
        current = client.current_policy()
    except (SbxgoError, OSError):
        return
    if not current or current == desired:
        return

    print(
        f'WARNING: network_policy is "{desired}" but the host-wide default is "{current}".\n'
        "         sbxgo does not change the host default automatically. To change it:\n"
        f"             sbx policy set-default {desired}\n"
        "         (use `sbx policy reset` first if you want a clean slate; it wipes\n"
        "         every rule, global AND sandbox-scoped, across all sandboxes.)",
        file=sys.stderr,
    )