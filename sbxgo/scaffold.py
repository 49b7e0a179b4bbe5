"""Creating a starter ``.sbxgo`` directory for a project."""

from __future__ import annotations

import json
import posixpath

from sbxgo.common import DEFAULT_CONFIG_PATH, login_domains_for
from sbxgo.errors import SbxgoError
from sbxgo.fsutil import FileSystem
from sbxgo.prompt import Prompter

GITIGNORE_PATH = ".sbxgo/.gitignore"

_AGENT_TOKEN = "{{AGENT}}"
_ALLOWED_DOMAINS_TOKEN = "{{ALLOWED_DOMAINS}}"
_FS_ERRORS = (SbxgoError, OSError)

CONFIG_TEMPLATE = """\
# sbxgo project sandbox configuration.
# Commit this file so everyone on the project gets the same sandbox.
# Run `sbxgo setup` after editing it, and `sbxgo run` for everyday work.

[sandbox]
# Agent to run inside the sandbox (e.g. claude, codex).
agent = "{{AGENT}}"

# Base network policy: allow-all, balanced or deny-all.
network_policy = "deny-all"

# Git branch mode passed to `sbx create --branch`.
# branch = "auto"

# Domains reachable from the sandbox in addition to the base policy.
{{ALLOWED_DOMAINS}}

# Domains that are always blocked.
denied_domains = []

# Kits applied when the sandbox is created (local directories, URLs or OCI refs).
kits = []

# Secrets that should be stored with `sbx secret set` before running.
required_secrets = []

# Additional host directories mounted into the sandbox.
extra_workspaces = []

# Optional template image: set exactly one of image or build.
# [sandbox.docker]
# image = "registry.example.com/team/dev:1.0"
#
# [sandbox.docker.build]
# context    = "."
# dockerfile = ".sbxgo/Dockerfile"
"""

GITIGNORE_TEMPLATE = """\
# Local sbxgo state; not meant to be committed.
.image-id
.image-id-new
.create-state
"""


def scaffold_config(agent: str, fs: FileSystem, prompter: Prompter) -> bool:
    """Create the default config and ``.sbxgo/.gitignore`` if no config exists.

    For agents with known login domains the user is asked (default yes)
    whether to pre-fill ``allowed_domains``. Returns True if files were created.
    """
    try:
        exists = fs.exists(DEFAULT_CONFIG_PATH)
    except _FS_ERRORS as exc:
        raise SbxgoError(f'checking config path "{DEFAULT_CONFIG_PATH}"', exc) from exc
    if exists:
        return False

    directory = posixpath.dirname(DEFAULT_CONFIG_PATH)
    try:
        fs.mkdir_all(directory, 0o755)
    except _FS_ERRORS as exc:
        raise SbxgoError(f'creating directory "{directory}"', exc) from exc

    allowed_block = resolve_allowed_domains_block(agent, prompter)

    content = CONFIG_TEMPLATE.replace(_AGENT_TOKEN, agent)
    content = content.replace(_ALLOWED_DOMAINS_TOKEN, allowed_block)

    try:
        fs.write_file(DEFAULT_CONFIG_PATH, content.encode(), 0o644)
    except _FS_ERRORS as exc:
        raise SbxgoError(f'writing config "{DEFAULT_CONFIG_PATH}"', exc) from exc

    try:
        gitignore_exists = fs.exists(GITIGNORE_PATH)
    except _FS_ERRORS as exc:
        raise SbxgoError(f'checking "{GITIGNORE_PATH}"', exc) from exc

    if not gitignore_exists:
        try:
            fs.write_file(GITIGNORE_PATH, GITIGNORE_TEMPLATE.encode(), 0o644)
        except _FS_ERRORS as exc:
            raise SbxgoError(f'writing "{GITIGNORE_PATH}"', exc) from exc

    return True


def resolve_allowed_domains_block(agent: str, prompter: Prompter) -> str:
    """Return the TOML text that takes the place of the allowed-domains token.

    The block is pre-filled with the agent's login domains only if there are
    any and the user accepts; otherwise an empty placeholder list is returned.
    """
    domains = login_domains_for(agent)
    if not domains:
        return _empty_allowed_domains_block()

    question = (
        f'Pre-fill allowed_domains with login/API endpoints for "{agent}" '
        f"({', '.join(domains)})?"
    )
    try:
        accepted = prompter.confirm(question, True)
    except _FS_ERRORS as exc:
        raise SbxgoError("reading confirmation", exc) from exc

    if not accepted:
        return _empty_allowed_domains_block()
    return _prefilled_allowed_domains_block(domains)


def _empty_allowed_domains_block() -> str:
    return 'allowed_domains = [\n  # "api.example.com",\n]'


def _prefilled_allowed_domains_block(domains: list[str]) -> str:
    lines = [
        "# Login/API endpoints required by the agent. Added by `sbxgo setup`;",
        "# safe to remove if you don't need agent login from inside the sandbox.",
        "allowed_domains = [",
        *(f"  {json.dumps(domain)}," for domain in domains),
        "]",
    ]
    return "\n".join(lines)