"""Loading and validating ``.sbxgo/config.toml``."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from sbxgo.errors import SbxgoError

DEFAULT_DOCKERFILE = ".sbxgo/Dockerfile"


class NetworkPolicy(StrEnum):
    """Network policy names understood by the sbx CLI."""

    ALLOW_ALL = "allow-all"
    BALANCED = "balanced"
    DENY_ALL = "deny-all"


class ConfigError(SbxgoError):
    """The configuration could not be read or is invalid."""


@dataclass
class DockerBuildConfig:
    """The ``[sandbox.docker.build]`` table."""

    context: str = ""
    dockerfile: str = ""


@dataclass
class DockerConfig:
    """The ``[sandbox.docker]`` table; exactly one of image or build is set."""

    image: str = ""
    build: DockerBuildConfig | None = None


@dataclass
class SandboxConfig:
    """The ``[sandbox]`` table."""

    agent: str = ""
    docker: DockerConfig | None = None
    network_policy: NetworkPolicy | str = ""
    branch: str = ""
    allowed_domains: list[str] = field(default_factory=list)
    denied_domains: list[str] = field(default_factory=list)
    kits: list[str] = field(default_factory=list)
    required_secrets: list[str] = field(default_factory=list)
    extra_workspaces: list[str] = field(default_factory=list)


@dataclass
class Config:
    """The parsed contents of ``.sbxgo/config.toml``."""

    sandbox: SandboxConfig = field(default_factory=SandboxConfig)

    def validate(self) -> None:
        """Check required fields, fill in defaults, and reject invalid values."""
        sb = self.sandbox
        if not sb.agent:
            raise ConfigError("sandbox.agent is required")

        if not sb.network_policy:
            sb.network_policy = NetworkPolicy.DENY_ALL
        try:
            sb.network_policy = NetworkPolicy(sb.network_policy)
        except ValueError:
            raise ConfigError(
                f'unknown network_policy "{sb.network_policy}": '
                "must be allow-all, balanced, or deny-all"
            ) from None

        if sb.docker is not None:
            _validate_docker(sb.docker)


def _validate_docker(docker: DockerConfig) -> None:
    has_image = bool(docker.image)
    has_build = docker.build is not None

    if has_image and has_build:
        raise ConfigError("sandbox.docker: set exactly one of image or build, not both")
    if not has_image and not has_build:
        raise ConfigError("sandbox.docker: set exactly one of image or build")

    if docker.build is not None:
        docker.build.context = docker.build.context or "."
        docker.build.dockerfile = docker.build.dockerfile or DEFAULT_DOCKERFILE


def _table(parent: dict[str, Any], key: str, where: str) -> dict[str, Any] | None:
    value = parent.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"{where}.{key}: expected a table")
    return value


def _string(table: dict[str, Any], key: str, where: str) -> str:
    value = table.get(key, "")
    if not isinstance(value, str):
        raise ConfigError(f"{where}.{key}: expected a string")
    return value


def _string_list(table: dict[str, Any], key: str, where: str) -> list[str]:
    value = table.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{where}.{key}: expected a list of strings")
    return list(value)


def _decode(raw: dict[str, Any]) -> Config:
    sandbox_table = _table(raw, "sandbox", "config")
    if sandbox_table is None:
        return Config()

    where = "sandbox"
    docker = None
    docker_table = _table(sandbox_table, "docker", where)
    if docker_table is not None:
        build = None
        build_table = _table(docker_table, "build", "sandbox.docker")
        if build_table is not None:
            build = DockerBuildConfig(
                context=_string(build_table, "context", "sandbox.docker.build"),
                dockerfile=_string(build_table, "dockerfile", "sandbox.docker.build"),
            )
        docker = DockerConfig(image=_string(docker_table, "image", "sandbox.docker"), build=build)

    return Config(
        sandbox=SandboxConfig(
            agent=_string(sandbox_table, "agent", where),
            docker=docker,
            network_policy=_string(sandbox_table, "network_policy", where),
            branch=_string(sandbox_table, "branch", where),
            allowed_domains=_string_list(sandbox_table, "allowed_domains", where),
            denied_domains=_string_list(sandbox_table, "denied_domains", where),
            kits=_string_list(sandbox_table, "kits", where),
            required_secrets=_string_list(sandbox_table, "required_secrets", where),
            extra_workspaces=_string_list(sandbox_table, "extra_workspaces", where),
        )
    )


def parse(data: bytes | str, path: str) -> Config:
    """Decode and validate TOML config data; ``path`` is used in error messages."""
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        raw = tomllib.loads(text)
        cfg = _decode(raw)
    except (UnicodeDecodeError, tomllib.TOMLDecodeError, ConfigError) as exc:
        raise ConfigError(f'loading config "{path}"', exc) from exc

    try:
        cfg.validate()
    except ConfigError as exc:
        raise ConfigError(f'validating config "{path}"', exc) from exc

    return cfg


def load(path: str | Path) -> Config:
    """Read, parse and validate the TOML config file at ``path``."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigError(f'loading config "{path}"', exc) from exc
    return parse(data, str(path))