from sbxgo.errors import SbxgoError


def test_message_without_cause():
    err = SbxgoError("sandbox.agent is required")
    assert str(err) == "sandbox.agent is required"
    assert err.cause is None


def test_message_chains_cause():
    inner = ValueError("boom")
    err = SbxgoError("reading config", inner)
    assert str(err) == "reading config: boom"
    assert err.__cause__ is inner


def test_nested_chain_reads_outer_to_inner():
    inner = SbxgoError("running \"sbx\"", OSError("missing"))
    outer = SbxgoError("sbx ls", inner)
    assert str(outer) == 'sbx ls: running "sbx": missing'


def test_is_an_exception_carrying_its_cause():
    inner = OSError("missing")
    err = SbxgoError("listing secrets", inner)
    assert isinstance(err, Exception)
    assert err.cause is inner
    assert str(err) == "listing secrets: missing"