import pytest

from core.models import Decision, ProposedChange
from tests.fakes import make_user
from utils.prompt import ConsolePrompter, format_changes


def scripted_input(answers):
    answers = iter(answers)
    return lambda _: next(answers)


@pytest.mark.parametrize("answer,expected", [
    ("y", Decision.YES), ("YES", Decision.YES), (" n ", Decision.NO), ("no", Decision.NO),
    ("a", Decision.ALL), ("All", Decision.ALL), ("q", Decision.QUIT), ("quit", Decision.QUIT),
])
def test_ask(answer, expected):
    assert ConsolePrompter(input_func=scripted_input([answer])).ask("alice") == expected


def test_ask_repeats_on_invalid_answer():
    output = []
    prompter = ConsolePrompter(input_func=scripted_input(["", "maybe", "y"]), output_func=output.append)

    assert prompter.ask("alice") == Decision.YES
    assert output.count("Please answer y, n, a or q.") == 2


@pytest.mark.parametrize("error", [EOFError, KeyboardInterrupt])
def test_ask_quits_when_input_ends(error):
    def closed_input(_):
        raise error()

    assert ConsolePrompter(input_func=closed_input, output_func=lambda _: None).ask("alice") == Decision.QUIT


def test_ask_uses_builtin_input(monkeypatch):
    monkeypatch.setattr('builtins.input', lambda _: 'q')
    assert ConsolePrompter().ask("alice") == Decision.QUIT


def test_show_change():
    output = []
    change = ProposedChange(
        identifier="alice",
        current={'proxyAddresses': ["SMTP:a@old.com"], 'mail': ''},
        proposed={'proxyAddresses': ["SMTP:a@new.com", "smtp:a@old.com"], 'mail': 'a@new.com'},
    )

    ConsolePrompter(output_func=output.append).show_change(3, make_user("alice"), change)

    assert "[3] alice (CN=alice,OU=Users,DC=example,DC=com)" in output
    assert "    proposed: SMTP:a@new.com, smtp:a@old.com" in output
    assert "    current : (empty)" in output


def test_format_changes():
    change = ProposedChange(
        identifier="alice",
        current={'userPrincipalName': 'a@old.com'},
        proposed={'userPrincipalName': 'a@new.com'},
    )
    assert format_changes(change) == {'userPrincipalName': 'a@old.com -> a@new.com'}
