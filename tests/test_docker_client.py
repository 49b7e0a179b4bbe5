import pytest

from sbxgo.docker_client import DockerClient
from sbxgo.errors import SbxgoError
from sbxgo.runner import CommandError, FakeRunner


def test_build_sends_correct_command():
    fake = FakeRunner()
    client = DockerClient(fake)

    client.build("/tmp/iid", "claude-myproj", ".sbxgo/Dockerfile", "./build")

    assert len(fake.run_calls) == 1
    assert fake.run_calls[0].name == "docker"
    assert fake.run_calls[0].args == [
        "build",
        "--iidfile",
        "/tmp/iid",
        "-t",
        "claude-myproj",
        "-f",
        ".sbxgo/Dockerfile",
        "./build",
    ]


def test_build_defaults_context_to_cwd():
    fake = FakeRunner()
    client = DockerClient(fake)

    client.build("/tmp/iid", "tag", ".sbxgo/Dockerfile", "")

    assert len(fake.run_calls) == 1
    assert fake.run_calls[0].args[-1] == "."


def test_pull_sends_correct_command():
    fake = FakeRunner()
    client = DockerClient(fake)

    client.pull("ghcr.io/acme/dev:1.4.0")

    assert len(fake.run_calls) == 1
    assert fake.run_calls[0].name == "docker"
    assert fake.run_calls[0].args == ["pull", "ghcr.io/acme/dev:1.4.0"]


def test_tag_sends_correct_command():
    fake = FakeRunner()
    client = DockerClient(fake)

    client.tag("ghcr.io/acme/dev:1.4.0", "claude-myproj")

    assert len(fake.run_calls) == 1
    assert fake.run_calls[0].args == ["tag", "ghcr.io/acme/dev:1.4.0", "claude-myproj"]


def test_save_sends_correct_command():
    fake = FakeRunner()
    client = DockerClient(fake)

    client.save("claude-myproj", "/tmp/sbx-template.tar")

    assert len(fake.run_calls) == 1
    assert fake.run_calls[0].args == [
        "image",
        "save",
        "-o",
        "/tmp/sbx-template.tar",
        "claude-myproj",
    ]


def test_inspect_id_sends_correct_command_and_trims_output():
    fake = FakeRunner()
    fake.set_output_response(
        "docker",
        ["image", "inspect", "--format", "{{.Id}}", "claude-myproj"],
        b"sha256:abc123\n",
    )
    client = DockerClient(fake)

    image_id = client.inspect_id("claude-myproj")

    assert image_id == "sha256:abc123"
    assert len(fake.output_calls) == 1
    assert fake.output_calls[0].args == ["image", "inspect", "--format", "{{.Id}}", "claude-myproj"]


def test_build_error_is_wrapped_with_context():
    fake = FakeRunner(run_error=CommandError("boom"))
    client = DockerClient(fake)

    with pytest.raises(SbxgoError) as info:
        client.build("/tmp/iid", "t", "Dockerfile", "")

    message = str(info.value)
    assert message.startswith('docker build (tag="t", dockerfile="Dockerfile", context=".")')
    assert message.endswith("boom")


def test_pull_error_is_wrapped_with_ref():
    fake = FakeRunner(run_error=CommandError("boom"))
    client = DockerClient(fake)

    with pytest.raises(SbxgoError, match='docker pull "alpine:3": boom'):
        client.pull("alpine:3")


def test_inspect_id_without_response_raises():
    fake = FakeRunner()
    client = DockerClient(fake)

    with pytest.raises(SbxgoError, match='docker image inspect "missing"'):
        client.inspect_id("missing")