"""Thin wrappers around the docker command-line tool."""

from __future__ import annotations

from sbxgo.errors import SbxgoError
from sbxgo.runner import CommandRunner


class DockerClient:
    """Runs docker commands through a command runner."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def build(self, iid_file: str, tag: str, dockerfile: str, build_context: str) -> None:
        """Run ``docker build --iidfile <iid_file> -t <tag> -f <dockerfile> <context>``.

        An empty build context means the current directory.
        """
        build_context = build_context or "."
        try:
            self._runner.run(
                "docker",
                "build",
                "--iidfile",
                iid_file,
                "-t",
                tag,
                "-f",
                dockerfile,
                build_context,
            )
        except SbxgoError as exc:
            raise SbxgoError(
                f'docker build (tag="{tag}", dockerfile="{dockerfile}", context="{build_context}")',
                exc,
            ) from exc

    def pull(self, ref: str) -> None:
        """Run ``docker pull <ref>``."""
        try:
            self._runner.run("docker", "pull", ref)
        except SbxgoError as exc:
            raise SbxgoError(f'docker pull "{ref}"', exc) from exc

    def inspect_id(self, ref: str) -> str:
        """Return the local image ID of a tag or reference."""
        try:
            out = self._runner.output("docker", "image", "inspect", "--format", "{{.Id}}", ref)
        except SbxgoError as exc:
            raise SbxgoError(f'docker image inspect "{ref}"', exc) from exc
        return out.decode("utf-8", errors="replace").strip()

    def save(self, tag: str, output_path: str) -> None:
        """Run ``docker image save -o <output_path> <tag>``."""
        try:
            self._runner.run("docker", "image", "save", "-o", output_path, tag)
        except SbxgoError as exc:
            raise SbxgoError(f'docker image save "{tag}" to "{output_path}"', exc) from exc

    def tag(self, src: str, dst: str) -> None:
        """Run ``docker tag <src> <dst>``."""
        try:
            self._runner.run("docker", "tag", src, dst)
        except SbxgoError as exc:
            raise SbxgoError(f'docker tag "{src}" as "{dst}"', exc) from exc