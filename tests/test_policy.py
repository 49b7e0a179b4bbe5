import pytest

from sbxgo.config import NetworkPolicy, SandboxConfig
from sbxgo.errors import SbxgoError
from sbxgo.policy import apply_policy, diff_rules, warn_if_host_default_differs
from sbxgo.runner import FakeRunner
from sbxgo.sbx import PolicyRule, SbxClient

SANDBOX = "claude-myproject"
HEADER = "NAME  TYPE  ORIGIN  DECISION  STATUS  RESOURCES\n"


def _client(runner: FakeRunner) -> SbxClient:
    return SbxClient(runner).set_log_output(None)


def _rules_response(runner: FakeRunner, rules: list[PolicyRule]) -> None:
    body = HEADER + "".join(
        f"local:{i:08d}-fake  network  local  {r.decision}  active  {r.resource}\n"
        for i, r in enumerate(rules)
    )
    runner.set_output_response("sbx", ["policy", "ls", SANDBOX], body.encode())


def _cfg(allowed=(), denied=()) -> SandboxConfig:
    return SandboxConfig(
        agent="claude",
        network_policy=NetworkPolicy.DENY_ALL,
        allowed_domains=list(allowed),
        denied_domains=list(denied),
    )


def _policy_calls(runner: FakeRunner) -> list[list[str]]:
    return [c.args for c in runner.run_calls if c.name == "sbx" and c.args[:1] == ["policy"]]


def test_diff_rules_keeps_missing_in_order():
    existing = [PolicyRule("allow", "github.com")]
    configured = ["proxy.example.org", "github.com", "new.example.com"]
    assert diff_rules(configured, existing, "allow") == ["proxy.example.org", "new.example.com"]


def test_diff_rules_ignores_other_decision():
    existing = [PolicyRule("deny", "github.com")]
    assert diff_rules(["github.com"], existing, "allow") == ["github.com"]


def test_diff_rules_empty_configured():
    assert diff_rules([], [PolicyRule("allow", "github.com")], "allow") == []


def test_diff_rules_result_is_subset_of_configured():
    configured = ["github.com", "proxy.example.org"]
    existing = [PolicyRule("allow", "proxy.example.org"), PolicyRule("allow", "other.example.com")]
    result = diff_rules(configured, existing, "allow")
    assert set(result) <= set(configured)
    assert "proxy.example.org" not in result


def test_apply_policy_adds_allow_and_deny_in_order():
    runner = FakeRunner()
    _rules_response(runner, [])
    apply_policy(_client(runner), SANDBOX, _cfg(["github.com"], ["ads.example.com"]), False)
    assert _policy_calls(runner) == [
        ["policy", "allow", "network", SANDBOX, "github.com"],
        ["policy", "deny", "network", SANDBOX, "ads.example.com"],
    ]


def test_apply_policy_batches_allow_domains():
    runner = FakeRunner()
    _rules_response(runner, [])
    apply_policy(_client(runner), SANDBOX, _cfg(["github.com", "proxy.example.org"]), False)
    assert _policy_calls(runner) == [
        ["policy", "allow", "network", SANDBOX, "github.com,proxy.example.org"]
    ]


def test_apply_policy_only_adds_diff(capsys):
    runner = FakeRunner()
    _rules_response(runner, [PolicyRule("allow", "github.com")])
    apply_policy(_client(runner), SANDBOX, _cfg(["github.com", "new.example.com"]), False)
    assert _policy_calls(runner) == [["policy", "allow", "network", SANDBOX, "new.example.com"]]
    assert f"Allow rules for {SANDBOX}: 1 added, 1 already in place" in capsys.readouterr().out


def test_apply_policy_all_in_place(capsys):
    runner = FakeRunner()
    _rules_response(runner, [PolicyRule("allow", "github.com"), PolicyRule("deny", "ads.example.com")])
    apply_policy(_client(runner), SANDBOX, _cfg(["github.com"], ["ads.example.com"]), False)
    assert _policy_calls(runner) == []
    assert f"Network rules for {SANDBOX}: all in place" in capsys.readouterr().out


def test_apply_policy_dry_run_makes_no_calls(capsys):
    runner = FakeRunner()
    apply_policy(_client(runner), SANDBOX, _cfg(["github.com"], ["ads.example.com"]), True)
    out = capsys.readouterr().out
    assert runner.run_calls == []
    assert f"Would allow for {SANDBOX}: github.com" in out
    assert f"Would deny for {SANDBOX}: ads.example.com" in out


def test_apply_policy_no_domains_skips_listing():
    runner = FakeRunner()
    apply_policy(_client(runner), SANDBOX, _cfg(), False)
    assert all(c.args[:3] != ["policy", "ls", SANDBOX] for c in runner.output_calls)
    assert runner.run_calls == []


def test_apply_policy_listing_failure_is_wrapped():
    runner = FakeRunner()
    with pytest.raises(SbxgoError, match="listing existing policy rules"):
        apply_policy(_client(runner), SANDBOX, _cfg(["github.com"]), False)


def test_apply_policy_allow_failure_is_wrapped():
    runner = FakeRunner()
    _rules_response(runner, [])
    runner.run_error = SbxgoError("boom")
    with pytest.raises(SbxgoError, match="allowing domains"):
        apply_policy(_client(runner), SANDBOX, _cfg(["github.com"]), False)


def test_warn_when_host_default_differs(capsys):
    runner = FakeRunner()
    runner.set_output_response("sbx", ["policy", "ls", "--type", "network"], b"balanced")
    warn_if_host_default_differs(_client(runner), "deny-all")
    err = capsys.readouterr().err
    assert 'network_policy is "deny-all" but the host-wide default is "balanced"' in err
    assert "sbx policy set-default deny-all" in err


def test_no_warning_when_host_default_matches(capsys):
    runner = FakeRunner()
    runner.set_output_response("sbx", ["policy", "ls", "--type", "network"], b"deny-all")
    warn_if_host_default_differs(_client(runner), "deny-all")
    assert capsys.readouterr().err == ""


def test_no_warning_when_host_default_unknown(capsys):
    runner = FakeRunner()
    runner.set_output_response(
        "sbx",
        ["policy", "ls", "--type", "network"],
        b"local:abc  network  local  allow  active  example.com\n",
    )
    warn_if_host_default_differs(_client(runner), "deny-all")
    assert capsys.readouterr().err == ""


def test_warning_lookup_failure_is_silent(capsys):
    runner = FakeRunner()
    warn_if_host_default_differs(_client(runner), "deny-all")
    assert capsys.readouterr().err == ""
    assert runner.output_calls[0].args == ["policy", "ls", "--type", "network"]


def test_apply_policy_never_sets_host_default():
    runner = FakeRunner()
    runner.set_output_response("sbx", ["policy", "ls", "--type", "network"], b"balanced")
    _rules_response(runner, [])
    apply_policy(_client(runner), SANDBOX, _cfg(["github.com"]), False)
    assert all("set-default" not in c.args for c in runner.run_calls)
    assert len(runner.run_calls) == 1