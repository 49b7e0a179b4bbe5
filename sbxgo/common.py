"""Shared helpers for the setup and run flows: naming, config, drift detection."""

from __future__ import annotations

import hashlib
import os
import posixpath
import re
import sys

from sbxgo import config as config_mod
from sbxgo.config import Config, DockerConfig, SandboxConfig
from sbxgo.errors import SbxgoError
from sbxgo.fsutil import FileSystem
from sbxgo.sbx import SbxClient

DEFAULT_CONFIG_PATH = ".sbxgo/config.toml"
"""Default location of the project config."""

IMAGE_ID_FILE = ".sbxgo/.image-id"
"""Stores the image ID of the last loaded template."""

IMAGE_ID_NEW_FILE = ".sbxgo/.image-id-new"
"""Temporary iidfile written by ``docker build``."""

CREATE_STATE_FILE = ".sbxgo/.create-state"
"""Stores a hash of the create-time configuration, used to detect drift."""

_VALID_NAME = re.compile(r"[A-Za-z0-9.+\-]+")

# Strictly login/API-essential endpoints; telemetry and analytics do not belong here.
_LOGIN_DOMAINS: dict[str, tuple[str, ...]] = {
    "claude": ("api.anthropic.com", "downloads.claude.ai"),
}

_FS_ERRORS = (SbxgoError, OSError)


def _base(path: str) -> str:
    """Return the last element of a path, following the usual shell conventions."""
    for sep in (os.sep, os.altsep):
        if sep and sep != "/":
            path = path.replace(sep, "/")
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _join(*parts: str) -> str:
    return posixpath.normpath(posixpath.join(*parts))


def sandbox_name(agent: str, workdir: str) -> str:
    """Return the sandbox name ``{agent}-{basename of workdir}``.

    Raises if the name holds characters sbx rejects.
    """
    name = f"{agent}-{_base(workdir)}"
    if not _VALID_NAME.fullmatch(name):
        raise SbxgoError(
            f'sandbox name "{name}" contains invalid characters; sbx allows only letters, '
            "digits, '.', '+', and '-' (rename or move the project directory, or pick an "
            "agent name without special characters)"
        )
    return name


def work_dir() -> str:
    """Return the current working directory."""
    try:
        return os.getcwd()
    except OSError as exc:
        raise SbxgoError("getting working directory", exc) from exc


def login_domains_for(agent: str) -> list[str]:
    """Return the domains an agent needs reachable to log in, or an empty list."""
    return list(_LOGIN_DOMAINS.get(agent, ()))


def check_secrets(client: SbxClient, required: list[str]) -> None:
    """Warn on stderr about every required secret that sbx does not have."""
    if not required:
        return
    try:
        existing = set(client.list_secrets())
    except SbxgoError as exc:
        raise SbxgoError("listing secrets", exc) from exc

    for name in required:
        if name not in existing:
            print(
                f'WARNING: required secret "{name}" is not set (run: sbx secret set {name})',
                file=sys.stderr,
            )


def load_config(path: str, fs: FileSystem) -> Config:
    """Read the config through ``fs`` and parse it."""
    try:
        data = fs.read_file(path)
    except _FS_ERRORS as exc:
        raise SbxgoError(f'reading config "{path}"', exc) from exc
    try:
        return config_mod.parse(data, path)
    except SbxgoError as exc:
        raise SbxgoError(f'parsing config "{path}"', exc) from exc


def compute_create_state_hash(cfg: Config, fs: FileSystem) -> str:
    """Hash the parts of the config that need a sandbox recreate when changed.

    Covers the branch, extra workspaces (order-insensitive), the docker source
    and the kits (in declared order, including local kit file contents).
    Returns a hex SHA-256 digest.
    """
    h = hashlib.sha256()
    sb = cfg.sandbox

    h.update(f"branch:{sb.branch}\n".encode())
    for workspace in sorted(sb.extra_workspaces):
        h.update(f"workspace:{workspace}\n".encode())

    _hash_docker_source(h, sb.docker, fs)

    for kit in sb.kits:
        _hash_kit(h, kit, fs)

    return h.hexdigest()


def _hash_docker_source(h: "hashlib._Hash", docker: DockerConfig | None, fs: FileSystem) -> None:
    if docker is None:
        return
    if docker.image:
        h.update(f"image:{docker.image}\n".encode())
        return
    if docker.build is None:
        return

    h.update(f"build-context:{docker.build.context}\n".encode())

    try:
        exists = fs.exists(docker.build.dockerfile)
    except _FS_ERRORS as exc:
        raise SbxgoError("checking dockerfile for hash", exc) from exc
    if not exists:
        return

    try:
        data = fs.read_file(docker.build.dockerfile)
    except _FS_ERRORS as exc:
        raise SbxgoError("reading dockerfile for hash", exc) from exc

    h.update(b"dockerfile:")
    h.update(data)
    h.update(b"\n")


def _hash_kit(h: "hashlib._Hash", kit: str, fs: FileSystem) -> None:
    h.update(f"kit:{kit}\n".encode())

    try:
        has_spec = fs.exists(_join(kit, "spec.yaml"))
    except _FS_ERRORS as exc:
        raise SbxgoError(f'checking spec.yaml for kit "{kit}"', exc) from exc
    if not has_spec:
        # Not a local kit directory; the reference string is the only signal.
        return

    try:
        files = fs.walk_files(kit)
    except _FS_ERRORS as exc:
        raise SbxgoError(f'walking kit directory "{kit}"', exc) from exc

    for rel in files:
        full = _join(kit, rel)
        try:
            data = fs.read_file(full)
        except _FS_ERRORS as exc:
            raise SbxgoError(f'reading kit file "{full}"', exc) from exc
        h.update(f"file:{rel}:".encode())
        h.update(data)
        h.update(b"\n")


def write_create_state(cfg: Config, fs: FileSystem) -> None:
    """Record the current create-state hash in ``CREATE_STATE_FILE``."""
    digest = compute_create_state_hash(cfg, fs)
    try:
        fs.write_file(CREATE_STATE_FILE, f"{digest}\n".encode(), 0o644)
    except _FS_ERRORS as exc:
        raise SbxgoError("writing create state", exc) from exc


def check_drift(cfg: Config, fs: FileSystem) -> tuple[bool, bool]:
    """Return ``(drifted, has_state)`` for the stored create-state hash.

    ``has_state`` is false when no state has been recorded yet; ``drifted``
    is then false as well.
    """
    try:
        has_state = fs.exists(CREATE_STATE_FILE)
    except _FS_ERRORS as exc:
        raise SbxgoError("checking create state", exc) from exc
    if not has_state:
        return False, False

    try:
        stored_bytes = fs.read_file(CREATE_STATE_FILE)
    except _FS_ERRORS as exc:
        raise SbxgoError("reading create state", exc) from exc

    current = compute_create_state_hash(cfg, fs)
    stored = stored_bytes.decode("utf-8", errors="replace").strip()
    return stored != current, True


def build_run_args(cfg: SandboxConfig, use_template: bool, template_name: str) -> list[str]:
    """Build the arguments that follow ``sbx create`` for a new sandbox."""
    args: list[str] = []
    if use_template:
        args += ["--template", template_name]
    for kit in cfg.kits:
        args += ["--kit", kit]
    if cfg.branch:
        args += ["--branch", cfg.branch]
    args += [cfg.agent, "."]
    args += cfg.extra_workspaces
    return args