import io

import pytest

from sbxgo.errors import SbxgoError
from sbxgo.prompt import FakePrompter, TerminalPrompter


def _ask(answer, default_yes):
    out = io.StringIO()
    prompter = TerminalPrompter(stdin=io.StringIO(answer), stdout=out)
    return prompter.confirm("Proceed?", default_yes), out.getvalue()


@pytest.mark.parametrize("answer", ["y\n", "yes\n", "YES\n", "  Y  \n"])
def test_terminal_yes_answers(answer):
    result, _ = _ask(answer, False)
    assert result is True


@pytest.mark.parametrize("answer", ["n\n", "no\n", "nope\n"])
def test_terminal_other_answers_are_no(answer):
    result, _ = _ask(answer, True)
    assert result is False


@pytest.mark.parametrize("default_yes", [True, False])
def test_terminal_empty_line_gives_default(default_yes):
    result, _ = _ask("\n", default_yes)
    assert result is default_yes


@pytest.mark.parametrize("default_yes", [True, False])
def test_terminal_eof_gives_default(default_yes):
    result, _ = _ask("", default_yes)
    assert result is default_yes


def test_terminal_hint_reflects_default():
    _, out_yes = _ask("\n", True)
    _, out_no = _ask("\n", False)
    assert out_yes == "Proceed? [Y/n] "
    assert out_no == "Proceed? [y/N] "


def test_terminal_read_error_raises():
    class Broken(io.StringIO):
        def readline(self, *args):
            raise OSError("closed")

    prompter = TerminalPrompter(stdin=Broken(), stdout=io.StringIO())
    with pytest.raises(SbxgoError, match="reading confirmation"):
        prompter.confirm("Proceed?", True)


def test_fake_records_calls_and_defaults():
    fake = FakePrompter(True)
    assert fake.confirm("first?", True) is True
    assert fake.confirm("second?", False) is True
    assert fake.calls == ["first?", "second?"]
    assert fake.defaults == [True, False]


def test_fake_default_response_is_no():
    assert FakePrompter().confirm("q?", True) is False


def test_fake_raises_configured_error():
    fake = FakePrompter(err=SbxgoError("no tty"))
    with pytest.raises(SbxgoError, match="no tty"):
        fake.confirm("q?", True)
    assert fake.calls == ["q?"]