# sbxgo

`sbxgo` is a Python library for managing project-level AI coding agent
sandboxes built on Docker Sandboxes (the `sbx` command-line tool).

A project keeps its sandbox settings in `.sbxgo/config.toml`, committed to the
repository. The library reads and validates that file, scaffolds a starter
config, wraps the `sbx` and `docker` tools, applies per-sandbox network rules
and detects when create-time settings have changed.

## Installation

```
pip install .
```

No third-party dependencies are needed. Functions that run commands expect the
`sbx` and `docker` tools on your `PATH`.

## Configuration file

```toml
[sandbox]
agent          = "claude"
network_policy = "deny-all"   # allow-all, balanced or deny-all (default deny-all)
branch         = "auto"

allowed_domains  = ["api.anthropic.com"]
denied_domains   = ["ads.example.com"]
kits             = [".sbxgo/kits/go"]
required_secrets = ["ANTHROPIC_API_KEY"]
extra_workspaces = ["/shared"]

[sandbox.docker.build]
context    = "."                   # default "."
dockerfile = ".sbxgo/Dockerfile"   # default ".sbxgo/Dockerfile"
```

Use `[sandbox.docker]` with `image = "..."` instead of the `build` table to
name a published image. Setting both, or neither, is an error.

## Modules

- `sbxgo.config` – `load(path)` and `parse(data, path)` return a validated
  `Config` (with `SandboxConfig`, `DockerConfig`, `DockerBuildConfig`);
  problems raise `ConfigError`. `NetworkPolicy` lists the three policy names.
- `sbxgo.runner` – `RealRunner` runs commands as child processes (`run`
  attaches to the terminal, `output` returns stdout); failures raise
  `CommandError`. `FakeRunner` records `Call`s and answers `output` from
  responses set with `set_output_response`.
- `sbxgo.fsutil` – `RealFileSystem` and the in-memory `FakeFileSystem`, with
  `read_file`, `write_file`, `exists`, `mkdir_all`, `copy_dir` and `walk_files`.
- `sbxgo.prompt` – `TerminalPrompter.confirm(question, default_yes)` asks a
  yes/no question on the terminal; `FakePrompter` always gives one answer and
  records the questions.
- `sbxgo.docker_client` – `DockerClient` with `build`, `pull`, `inspect_id`,
  `save` and `tag`.
- `sbxgo.sbx` – `SbxClient` with `list`, `exists`, `create`, `run`, `remove`,
  `load_template`, `current_policy`, `list_sandbox_rules`, `allow_network`,
  `deny_network` and `list_secrets`, plus the output parsers `parse_list`,
  `parse_sandbox_rules`, `parse_policy` and `parse_secret_list`.
  `set_debug(True)` prepends `--debug` to every call; `set_verbose(True)`
  logs each command line (to stderr unless `set_log_output` says otherwise).
- `sbxgo.common` – `sandbox_name(agent, workdir)` gives
  `{agent}-{directory name}` and rejects names with characters other than
  letters, digits, `.`, `+` and `-`; `build_run_args`, `check_secrets`,
  `load_config`, `compute_create_state_hash`, `write_create_state`,
  `check_drift` and `login_domains_for`.
- `sbxgo.policy` – `apply_policy(client, sandbox_name, cfg, dry_run)` lists
  the rules already in place and adds only the missing allow/deny domains;
  it warns when the host-wide default differs from `network_policy` but never
  changes it.
- `sbxgo.scaffold` – `scaffold_config(agent, fs, prompter)` writes
  `.sbxgo/config.toml` and `.sbxgo/.gitignore` when no config exists, offering
  to pre-fill `allowed_domains` with the agent's login endpoints.
- `sbxgo.errors` – `SbxgoError`, the base exception; its message chains the
  contexts with colons.

## Example

```python
from sbxgo.common import build_run_args, load_config, sandbox_name, work_dir
from sbxgo.fsutil import RealFileSystem
from sbxgo.policy import apply_policy
from sbxgo.runner import RealRunner
from sbxgo.sbx import SbxClient

fs = RealFileSystem()
cfg = load_config(".sbxgo/config.toml", fs)
name = sandbox_name(cfg.sandbox.agent, work_dir())

client = SbxClient(RealRunner()).set_verbose(True)
if not client.exists(name):
    client.create(build_run_args(cfg.sandbox, False, name))
apply_policy(client, name, cfg.sandbox, dry_run=False)
client.run(name)
```

`check_drift(cfg, fs)` returns `(drifted, has_state)`: whether the branch,
extra workspaces, docker source or kit contents differ from the hash last
stored with `write_create_state`.

## What this package does not do

There is no `sbxgo` command-line program. The package has no complete
"setup" flow (building or pulling the template image, loading it into sbx,
recreating the sandbox after confirmation) and no complete "run" flow
(resuming or creating the sandbox and prompting on drift). Those steps must be
put together from the modules above.

## Development

```
pip install -e ".[test]"
pytest
```